# carelink/modules/doctors/repository.py
from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.doctors.models import Doctor


async def get_doctor(db: AsyncSession, *, doctor_id: UUID) -> Optional[Doctor]:
    return await db.get(Doctor, doctor_id)


async def get_doctor_by_user(db: AsyncSession, *, user_id: UUID) -> Optional[Doctor]:
    """
    Doctor profile linked to a login, or None when the user is not a doctor.
    """
    row = await db.execute(select(Doctor).where(Doctor.user_id == user_id))
    return row.scalar_one_or_none()


async def list_doctors(
    db: AsyncSession,
    *,
    specialty: Optional[str] = None,
    q: Optional[str] = None,
) -> Sequence[Doctor]:
    conditions = []
    if specialty:
        conditions.append(func.lower(Doctor.specialty) == specialty.strip().lower())
    if q:
        term = f"%{q.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Doctor.name).like(term),
                func.lower(Doctor.specialty).like(term),
                func.lower(func.coalesce(Doctor.bio, "")).like(term),
            )
        )

    stmt = select(Doctor).where(*conditions).order_by(Doctor.name, Doctor.id)
    rows = await db.execute(stmt)
    return rows.scalars().all()
