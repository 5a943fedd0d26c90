# carelink/modules/appointments/repository.py
from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.appointments.models import (
    ACTIVE_SLOT_INDEX,
    Appointment,
    ApptStatus,
    ChatRoom,
    RoomStatus,
)


class SlotAlreadyBookedError(Exception):
    """Raised when the active-slot unique index rejects an insert."""


class AppointmentWriteError(Exception):
    """Raised when any other DB constraint fails on insert."""


def _is_active_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower() if exc.orig else str(exc).lower()
    # PostgreSQL reports the index name, SQLite the column list
    if ACTIVE_SLOT_INDEX in message:
        return True
    return "unique" in message and "appointments.doctor_id" in message


async def get_appointment(db: AsyncSession, *, appointment_id: UUID) -> Optional[Appointment]:
    return await db.get(Appointment, appointment_id)


async def taken_slots(db: AsyncSession, *, doctor_id: UUID, day: date) -> set[time]:
    """
    Start times of the doctor's non-cancelled appointments on `day`.
    """
    rows = await db.execute(
        select(Appointment.start_time).where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.status != ApptStatus.CANCELLED.value,
        )
    )
    return set(rows.scalars().all())


async def insert_appointment(
    db: AsyncSession,
    *,
    doctor_id: UUID,
    patient_id: UUID,
    day: date,
    start_time: time,
    end_time: time,
    notes: Optional[str],
) -> Appointment:
    appt = Appointment(
        doctor_id=doctor_id,
        patient_id=patient_id,
        appointment_date=day,
        start_time=start_time,
        end_time=end_time,
        status=ApptStatus.PENDING.value,
        notes=notes,
    )
    db.add(appt)
    try:
        # Flush to force INSERT and surface the unique index here
        await db.flush()
    except IntegrityError as exc:
        # The failed flush leaves the transaction inactive; reset it so the
        # caller can keep using the session
        await db.rollback()
        if _is_active_slot_violation(exc):
            raise SlotAlreadyBookedError("slot_already_booked") from exc
        raise AppointmentWriteError(str(exc.orig or exc)) from exc

    await db.refresh(appt)
    return appt


async def update_status(
    db: AsyncSession,
    *,
    appointment_id: UUID,
    target: ApptStatus,
    sources: Sequence[str],
    notes: Optional[str] = None,
) -> int:
    """
    Conditional status write. Only matches rows still in one of `sources`,
    so a concurrent transition makes this return 0.
    """
    values: dict[str, object] = {"status": target.value}
    if notes is not None:
        values["notes"] = notes
    stmt = (
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status.in_(sources))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    return res.rowcount or 0  # type: ignore


async def list_for_patient(db: AsyncSession, *, patient_id: UUID) -> Sequence[Appointment]:
    rows = await db.execute(
        select(Appointment)
        .where(Appointment.patient_id == patient_id)
        .order_by(Appointment.appointment_date, Appointment.start_time)
    )
    return rows.scalars().all()


async def list_for_doctor(db: AsyncSession, *, doctor_id: UUID) -> Sequence[Appointment]:
    rows = await db.execute(
        select(Appointment)
        .where(Appointment.doctor_id == doctor_id)
        .order_by(Appointment.appointment_date, Appointment.start_time)
    )
    return rows.scalars().all()


async def has_appointment_with(db: AsyncSession, *, doctor_id: UUID, patient_id: UUID) -> bool:
    row = await db.execute(
        select(Appointment.id)
        .where(Appointment.doctor_id == doctor_id, Appointment.patient_id == patient_id)
        .limit(1)
    )
    return row.scalar_one_or_none() is not None


# Chat rooms

async def get_room_for_appointment(db: AsyncSession, *, appointment_id: UUID) -> Optional[ChatRoom]:
    row = await db.execute(select(ChatRoom).where(ChatRoom.appointment_id == appointment_id))
    return row.scalar_one_or_none()


async def create_room(db: AsyncSession, *, appointment: Appointment) -> ChatRoom:
    """
    Insert the appointment's room unless one exists, then return the stored
    row. Two concurrent confirms end up with the same room.
    """
    dialect = db.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = (
        insert(ChatRoom)
        .values(
            appointment_id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            status=RoomStatus.OPEN.value,
        )
        .on_conflict_do_nothing(index_elements=[ChatRoom.appointment_id])
    )
    await db.execute(stmt)
    row = await db.execute(
        select(ChatRoom)
        .where(ChatRoom.appointment_id == appointment.id)
        .execution_options(populate_existing=True)
    )
    return row.scalar_one()


async def set_room_status(db: AsyncSession, *, room: ChatRoom, status: RoomStatus) -> ChatRoom:
    room.status = status.value
    await db.flush()
    await db.refresh(room)
    return room
