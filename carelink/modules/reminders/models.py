# carelink/modules/reminders/models.py
from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from carelink.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Reminder(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Daily reminder for a patient, optionally tied to a prescription
    (e.g. "Amoxicillin 500mg" at 08:00).
    """

    __tablename__ = "reminders"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    prescription_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("prescriptions.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    remind_at: Mapped[dt.time] = mapped_column(Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="1", default=True
    )

    __table_args__ = (
        Index("ix_reminders_patient_time", "patient_id", "remind_at"),
    )
