# carelink/modules/doctors/models.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carelink.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Doctor(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Public doctor profile. Linked to the doctor's login through user_id.
    """

    __tablename__ = "doctors"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    specialty: Mapped[str] = mapped_column(String(80), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="1", default=True
    )

    __table_args__ = (
        Index("ix_doctors_name", "name"),
        Index("ix_doctors_specialty", "specialty"),
    )
