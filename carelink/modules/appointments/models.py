# carelink/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import date, time
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from carelink.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class ApptStatus(PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RoomStatus(PyEnum):
    OPEN = "open"
    CLOSED = "closed"


# Name of the partial unique index guarding (doctor, day, slot); the booking
# repository matches it when translating IntegrityError into SlotTaken.
ACTIVE_SLOT_INDEX = "uq_appt_doctor_day_start_active"

_NOT_CANCELLED = text(f"status <> '{ApptStatus.CANCELLED.value}'")


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One scheduled consultation. Rows are never deleted; cancelling only
    changes status, which frees the slot for the partial unique index.
    """

    __tablename__ = "appointments"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApptStatus.PENDING.value,
        server_default=ApptStatus.PENDING.value,
    )

    # Patient's booking notes, replaced by the doctor's consultation notes on completion
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_appt_time_order"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appt_status_valid",
        ),
        # Avoid double booking: 1 doctor, same day, same start_time, unless cancelled
        Index(
            ACTIVE_SLOT_INDEX,
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            postgresql_where=_NOT_CANCELLED,
            sqlite_where=_NOT_CANCELLED,
        ),
        Index("ix_appt_patient_date", "patient_id", "appointment_date"),
    )

    @property
    def status_enum(self) -> ApptStatus:
        return ApptStatus(self.status)


class ChatRoom(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Doctor/patient conversation opened the first time an appointment is confirmed.
    """

    __tablename__ = "chat_rooms"

    appointment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RoomStatus.OPEN.value,
        server_default=RoomStatus.OPEN.value,
    )
