# carelink/modules/appointments/service.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.appointments import repository as repo
from carelink.modules.appointments.lifecycle import (
    allowed_sources,
    can_transition,
    is_assigned_doctor,
    is_owning_patient,
)
from carelink.modules.appointments.models import Appointment, ApptStatus, RoomStatus
from carelink.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentList,
    AppointmentListItem,
    AppointmentPublic,
    ConfirmResponse,
    DaySlots,
)
from carelink.modules.appointments.slots import (
    available_slots,
    has_available_slots,
    is_slot_expired,
    min_selectable_date,
    parse_slot,
    slot_catalog,
    slot_display,
    slot_end,
    slot_label,
)
from carelink.modules.doctors import repository as doctors_repo
from carelink.modules.doctors.models import Doctor
from carelink.modules.doctors.schemas import DoctorAvailability, SlotInfo
from carelink.modules.log import write_audit_log
from carelink.modules.users.models import User

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "That time slot was just taken. Please choose another."


# Service-level errors; routers map them to HTTP
class AppointmentError(Exception):
    """Base for expected booking/lifecycle failures. str(exc) is the machine code."""

    code = "appointment_error"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        super().__init__(code or self.code)
        self.message = message or code or self.code


class Unauthenticated(AppointmentError):
    """No signed-in, non-anonymous user."""

    code = "unauthenticated"


class Forbidden(AppointmentError):
    """Signed in, but not the party allowed to do this (or not from this state)."""

    code = "forbidden"


class NotFound(AppointmentError):
    """Referenced appointment or doctor does not exist."""

    code = "not_found"


class InvalidSlot(AppointmentError):
    """Slot is not on the daily grid."""

    code = "invalid_slot"


class SlotExpired(AppointmentError):
    """Slot is in the past (or the current hour)."""

    code = "slot_expired"


class SlotTaken(AppointmentError):
    """Another non-cancelled appointment holds the slot."""

    code = "slot_taken"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        super().__init__(code, message or SLOT_TAKEN_MESSAGE)


class MissingNotes(AppointmentError):
    """Completing an appointment requires consultation notes."""

    code = "missing_notes"


class StorageError(AppointmentError):
    """Unexpected store failure; message keeps the driver error for the log."""

    code = "storage_error"


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


def _to_list_item(appt: Appointment) -> AppointmentListItem:
    return AppointmentListItem.model_validate(appt)


def _require_principal(principal: Optional[User]) -> User:
    if principal is None or principal.is_anonymous:
        raise Unauthenticated()
    return principal


async def _load(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appt = await repo.get_appointment(session, appointment_id=appointment_id)
    if not appt:
        raise NotFound("appointment_not_found")
    return appt


async def _acting_doctor(session: AsyncSession, principal: User) -> Optional[Doctor]:
    return await doctors_repo.get_doctor_by_user(session, user_id=principal.id)


async def _transition(
    session: AsyncSession,
    appt: Appointment,
    target: ApptStatus,
    notes: Optional[str] = None,
) -> Appointment:
    if not can_transition(appt.status_enum, target):
        raise Forbidden("invalid_transition")
    updated = await repo.update_status(
        session,
        appointment_id=appt.id,
        target=target,
        sources=allowed_sources(target),
        notes=notes,
    )
    if not updated:
        # Another request moved the appointment first
        raise Forbidden("invalid_transition")
    await session.refresh(appt)
    return appt


# SLOTS

def get_day_slots(day: date, now: datetime) -> DaySlots:
    slots = available_slots(day, now)
    return DaySlots(
        date=day,
        slots=[slot_label(s) for s in slots],
        has_available_slots=has_available_slots(day, now),
        min_selectable_date=min_selectable_date(now),
    )


async def doctor_availability(
    session: AsyncSession,
    doctor_id: UUID,
    day: date,
    now: datetime,
) -> DoctorAvailability:
    """
    Every catalog slot for the doctor on `day`, flagged available when it is
    neither past nor held by a non-cancelled appointment.
    """
    doctor = await doctors_repo.get_doctor(session, doctor_id=doctor_id)
    if not doctor:
        raise NotFound("doctor_not_found")

    earliest = min_selectable_date(now)
    open_slots = set(available_slots(day, now)) if day >= earliest else set()
    taken = await repo.taken_slots(session, doctor_id=doctor_id, day=day)

    return DoctorAvailability(
        doctor_id=doctor_id,
        date=day,
        min_selectable_date=earliest,
        slots=[
            SlotInfo(
                slot=slot_label(s),
                label=slot_display(s),
                available=s in open_slots and s not in taken,
            )
            for s in slot_catalog()
        ],
    )


# BOOK

async def attempt_book(
    session: AsyncSession,
    principal: Optional[User],
    payload: AppointmentCreateRequest,
    now: datetime,
) -> AppointmentPublic:
    """
    Book (doctor, day, slot) for the current user.

    Checks run in order: signed in, slot on the grid, slot not expired,
    doctor exists, slot not held. The write-time query gives an early
    SlotTaken; the partial unique index catches whatever races past it.
    """
    patient = _require_principal(principal)

    slot = parse_slot(payload.slot)
    if slot is None:
        raise InvalidSlot()

    if is_slot_expired(payload.appointment_date, slot, now):
        raise SlotExpired()

    doctor = await doctors_repo.get_doctor(session, doctor_id=payload.doctor_id)
    if not doctor:
        raise NotFound("doctor_not_found")

    # Plain values only from here on: a failed insert rolls the session
    # back and expires every loaded object
    doctor_id, patient_id = doctor.id, patient.id
    day, label = payload.appointment_date, slot_label(slot)

    taken = await repo.taken_slots(session, doctor_id=doctor_id, day=day)
    if slot in taken:
        logger.info("Slot %s on %s already held for doctor %s", label, day, doctor_id)
        raise SlotTaken()

    try:
        appt = await repo.insert_appointment(
            session,
            doctor_id=doctor_id,
            patient_id=patient_id,
            day=day,
            start_time=slot,
            end_time=slot_end(slot),
            notes=payload.notes,
        )
    except repo.SlotAlreadyBookedError as exc:
        logger.info("Concurrent booking lost for doctor %s at %s %s", doctor_id, day, label)
        raise SlotTaken() from exc
    except repo.AppointmentWriteError as exc:
        logger.error("Appointment insert failed: %s", exc)
        raise StorageError(message=str(exc)) from exc

    await write_audit_log(
        session,
        patient_id,
        "CREATE_APPOINTMENT",
        f"{appt.id} doctor={doctor_id} {day} {label}",
    )
    logger.info("Appointment %s booked (pending)", appt.id)
    return _to_public(appt)


# LIFECYCLE

async def confirm_appointment(
    session: AsyncSession,
    appointment_id: UUID,
    principal: Optional[User],
) -> ConfirmResponse:
    """
    Doctor accepts an appointment and gets its chat room.

    Idempotent: confirming an already confirmed appointment only makes
    sure the room exists and is open. Confirming after the slot has
    passed is allowed so visits can be recorded late.
    """
    user = _require_principal(principal)
    appt = await _load(session, appointment_id)
    doctor = await _acting_doctor(session, user)
    if not is_assigned_doctor(appt, doctor):
        raise Forbidden("not_assigned_doctor")

    if appt.status_enum != ApptStatus.CONFIRMED:
        appt = await _transition(session, appt, ApptStatus.CONFIRMED)

    room = await repo.get_room_for_appointment(session, appointment_id=appt.id)
    if room is None:
        room = await repo.create_room(session, appointment=appt)
    if room.status != RoomStatus.OPEN.value:
        room = await repo.set_room_status(session, room=room, status=RoomStatus.OPEN)

    await write_audit_log(session, user.id, "CONFIRM_APPOINTMENT", f"{appt.id} room={room.id}")
    logger.info("Appointment %s confirmed, chat room %s", appt.id, room.id)
    return ConfirmResponse(appointment=_to_public(appt), chat_room_id=room.id)


async def complete_appointment(
    session: AsyncSession,
    appointment_id: UUID,
    principal: Optional[User],
    notes: Optional[str],
) -> AppointmentPublic:
    user = _require_principal(principal)
    appt = await _load(session, appointment_id)
    doctor = await _acting_doctor(session, user)
    if not is_assigned_doctor(appt, doctor):
        raise Forbidden("not_assigned_doctor")
    if not can_transition(appt.status_enum, ApptStatus.COMPLETED):
        raise Forbidden("invalid_transition")
    if not notes or not notes.strip():
        raise MissingNotes()

    appt = await _transition(session, appt, ApptStatus.COMPLETED, notes=notes.strip())
    await write_audit_log(session, user.id, "COMPLETE_APPOINTMENT", str(appt.id))
    logger.info("Appointment %s completed", appt.id)
    return _to_public(appt)


async def cancel_appointment(
    session: AsyncSession,
    appointment_id: UUID,
    principal: Optional[User],
) -> AppointmentPublic:
    """
    Patient withdraws an appointment. The slot frees up immediately and an
    open chat room is closed.
    """
    user = _require_principal(principal)
    appt = await _load(session, appointment_id)
    if not is_owning_patient(appt, user):
        raise Forbidden("not_owner")

    appt = await _transition(session, appt, ApptStatus.CANCELLED)

    room = await repo.get_room_for_appointment(session, appointment_id=appt.id)
    if room is not None and room.status == RoomStatus.OPEN.value:
        await repo.set_room_status(session, room=room, status=RoomStatus.CLOSED)

    await write_audit_log(session, user.id, "CANCEL_APPOINTMENT", str(appt.id))
    logger.info("Appointment %s cancelled", appt.id)
    return _to_public(appt)


# READ

async def list_my_appointments(
    session: AsyncSession,
    principal: Optional[User],
) -> AppointmentList:
    """
    Doctors see the appointments of their profile, everyone else the
    appointments they booked.
    """
    user = _require_principal(principal)
    doctor = await _acting_doctor(session, user)
    if doctor is not None:
        rows = await repo.list_for_doctor(session, doctor_id=doctor.id)
        role = "doctor"
    else:
        rows = await repo.list_for_patient(session, patient_id=user.id)
        role = "patient"
    return AppointmentList(role=role, items=[_to_list_item(a) for a in rows], total=len(rows))


async def get_appointment_detail(
    session: AsyncSession,
    appointment_id: UUID,
    principal: Optional[User],
) -> AppointmentPublic:
    user = _require_principal(principal)
    appt = await _load(session, appointment_id)
    if is_owning_patient(appt, user):
        return _to_public(appt)
    doctor = await _acting_doctor(session, user)
    if is_assigned_doctor(appt, doctor):
        return _to_public(appt)
    raise Forbidden("not_owner")
