# carelink/modules/appointments/lifecycle.py
from __future__ import annotations

from typing import Optional

from carelink.modules.appointments.models import Appointment, ApptStatus
from carelink.modules.doctors.models import Doctor
from carelink.modules.users.models import User

# target status -> statuses it may be reached from
TRANSITIONS: dict[ApptStatus, frozenset[ApptStatus]] = {
    # re-confirming is allowed and only reconciles the chat room
    ApptStatus.CONFIRMED: frozenset({ApptStatus.PENDING, ApptStatus.CONFIRMED}),
    ApptStatus.COMPLETED: frozenset({ApptStatus.PENDING, ApptStatus.CONFIRMED}),
    ApptStatus.CANCELLED: frozenset({ApptStatus.PENDING, ApptStatus.CONFIRMED}),
}

TERMINAL: frozenset[ApptStatus] = frozenset({ApptStatus.COMPLETED, ApptStatus.CANCELLED})


def can_transition(current: ApptStatus, target: ApptStatus) -> bool:
    if current in TERMINAL:
        return False
    return current in TRANSITIONS.get(target, frozenset())


def allowed_sources(target: ApptStatus) -> list[str]:
    """Status values a conditional UPDATE may match for `target`."""
    return sorted(s.value for s in TRANSITIONS.get(target, frozenset()))


def is_assigned_doctor(appointment: Appointment, doctor: Optional[Doctor]) -> bool:
    return doctor is not None and appointment.doctor_id == doctor.id


def is_owning_patient(appointment: Appointment, principal: Optional[User]) -> bool:
    return principal is not None and appointment.patient_id == principal.id
