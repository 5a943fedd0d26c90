# carelink/modules/prescriptions/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from carelink.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class PrescriptionStatus(PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class OrderStatus(PyEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class Prescription(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "prescriptions"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="RESTRICT"), nullable=False
    )
    appointment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )

    medication_name: Mapped[str] = mapped_column(String(200), nullable=False)
    dosage: Mapped[str] = mapped_column(String(120), nullable=False)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PrescriptionStatus.ACTIVE.value,
        server_default=PrescriptionStatus.ACTIVE.value,
    )
    refills_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("refills_remaining >= 0", name="ck_rx_refills_non_negative"),
        Index("ix_rx_patient_created", "patient_id", "created_at"),
    )


class MedicationOrder(UUIDPKMixin, ReprMixin, Base):
    __tablename__ = "medication_orders"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    prescription_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("prescriptions.id", ondelete="RESTRICT"), nullable=False
    )
    medication_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=OrderStatus.PENDING.value,
        server_default=OrderStatus.PENDING.value,
    )
    ordered_at: Mapped[dt.datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_quantity_positive"),
        Index("ix_order_patient_ordered", "patient_id", "ordered_at"),
    )
