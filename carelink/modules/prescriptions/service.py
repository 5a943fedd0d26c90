# carelink/modules/prescriptions/service.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.core.config import settings
from carelink.modules.appointments import repository as appointments_repo
from carelink.modules.doctors import repository as doctors_repo
from carelink.modules.log import write_audit_log
from carelink.modules.prescriptions.models import (
    MedicationOrder,
    OrderStatus,
    Prescription,
    PrescriptionStatus,
)
from carelink.modules.prescriptions.schemas import (
    MedicationOrderPublic,
    PrescriptionCreateRequest,
    PrescriptionPublic,
)
from carelink.modules.users.models import User

logger = logging.getLogger(__name__)


class PrescriptionForbidden(Exception):
    """
    Caller may not issue or use this prescription
    """


class PrescriptionNotFound(Exception):
    """
    No prescription found
    """


# CREATE (doctor)
async def create_prescription_svc(
    session: AsyncSession,
    payload: PrescriptionCreateRequest,
    current_user: User,
) -> PrescriptionPublic:
    """
    Logic:
    - Only users linked to a doctor profile may prescribe.
    - The doctor must hold an appointment with the patient; when
      appointment_id is given it must be that doctor's appointment with
      that patient.
    """
    doctor = await doctors_repo.get_doctor_by_user(session, user_id=current_user.id)
    if not doctor:
        raise PrescriptionForbidden("doctor_profile_not_found")

    if payload.appointment_id is not None:
        appt = await appointments_repo.get_appointment(session, appointment_id=payload.appointment_id)
        if not appt or appt.doctor_id != doctor.id or appt.patient_id != payload.patient_id:
            raise PrescriptionForbidden("no_appointment_with_patient")
    elif not await appointments_repo.has_appointment_with(
        session, doctor_id=doctor.id, patient_id=payload.patient_id
    ):
        raise PrescriptionForbidden("no_appointment_with_patient")

    rx = Prescription(
        patient_id=payload.patient_id,
        doctor_id=doctor.id,
        appointment_id=payload.appointment_id,
        medication_name=payload.medication_name,
        dosage=payload.dosage,
        instructions=payload.instructions,
        status=PrescriptionStatus.ACTIVE.value,
        refills_remaining=settings.DEFAULT_REFILLS,
    )
    session.add(rx)
    await session.flush()
    await session.refresh(rx)

    await write_audit_log(session, current_user.id, "CREATE_PRESCRIPTION", str(rx.id))
    logger.info("Prescription %s issued by doctor %s", rx.id, doctor.id)
    return PrescriptionPublic.model_validate(rx)


# MY PRESCRIPTIONS (patient)
async def list_my_prescriptions_svc(
    session: AsyncSession,
    current_user: User,
) -> List[PrescriptionPublic]:
    rows = await session.execute(
        select(Prescription)
        .where(Prescription.patient_id == current_user.id)
        .order_by(Prescription.created_at.desc())
    )
    return [PrescriptionPublic.model_validate(p) for p in rows.scalars().all()]


async def get_prescription_svc(
    session: AsyncSession,
    prescription_id: UUID,
    current_user: User,
) -> PrescriptionPublic:
    """
    Visible to its patient and to the doctor who issued it. Anyone else gets
    the same answer as for a missing id.
    """
    rx = await session.get(Prescription, prescription_id)
    if rx is None:
        raise PrescriptionNotFound("prescription_not_found")
    if rx.patient_id != current_user.id:
        doctor = await doctors_repo.get_doctor_by_user(session, user_id=current_user.id)
        if doctor is None or rx.doctor_id != doctor.id:
            raise PrescriptionNotFound("prescription_not_found")
    return PrescriptionPublic.model_validate(rx)


# ORDER (patient)
async def order_medication_svc(
    session: AsyncSession,
    prescription_id: UUID,
    current_user: User,
) -> MedicationOrderPublic:
    """
    One unit per order against an active prescription the caller owns.
    """
    rx = await session.get(Prescription, prescription_id)
    if not rx:
        raise PrescriptionNotFound("prescription_not_found")
    if rx.patient_id != current_user.id:
        raise PrescriptionForbidden("not_owner")
    if rx.status != PrescriptionStatus.ACTIVE.value:
        raise PrescriptionForbidden("prescription_inactive")

    order = MedicationOrder(
        patient_id=current_user.id,
        prescription_id=rx.id,
        medication_name=rx.medication_name,
        quantity=1,
        status=OrderStatus.PENDING.value,
    )
    session.add(order)
    await session.flush()
    await session.refresh(order)

    await write_audit_log(session, current_user.id, "ORDER_MEDICATION", f"{order.id} rx={rx.id}")
    return MedicationOrderPublic.model_validate(order)


async def list_my_orders_svc(
    session: AsyncSession,
    current_user: User,
) -> List[MedicationOrderPublic]:
    rows = await session.execute(
        select(MedicationOrder)
        .where(MedicationOrder.patient_id == current_user.id)
        .order_by(MedicationOrder.ordered_at.desc())
    )
    return [MedicationOrderPublic.model_validate(o) for o in rows.scalars().all()]


async def get_order_svc(
    session: AsyncSession,
    order_id: UUID,
    current_user: User,
) -> MedicationOrderPublic:
    order = await session.get(MedicationOrder, order_id)
    if order is None or order.patient_id != current_user.id:
        raise PrescriptionNotFound("order_not_found")
    return MedicationOrderPublic.model_validate(order)
