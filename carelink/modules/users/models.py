# carelink/modules/users/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from carelink.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    details: Mapped[str | None] = mapped_column()
    timestamp: Mapped[dt.datetime] = mapped_column(server_default=func.now())

    __table_args__ = (Index("ix_audit_logs_timestamp", "timestamp"),)


class UserRole(PyEnum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class User(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Local mirror of an identity-provider account. Rows are provisioned by the
    identity provider; this service only reads them.
    """

    __tablename__ = "users"

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserRole.PATIENT.value
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="1", default=True
    )
    # Guest sessions browse availability but cannot book
    is_anonymous: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="0", default=False
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint(
            "role IN ('patient', 'doctor', 'admin')", name="ck_users_role_valid"
        ),
        Index("ix_users_role", "role"),
    )
