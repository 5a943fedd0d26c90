# carelink/routers/doctors.py
from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.sql import get_session
from carelink.dependencies import get_reference_instant
from carelink.modules.appointments.service import NotFound, doctor_availability
from carelink.modules.doctors import repository as repo
from carelink.modules.doctors.schemas import DoctorAvailability, DoctorPublic

router = APIRouter(tags=["doctors"])


@router.get(
    "/doctors",
    response_model=list[DoctorPublic],
    summary="List doctors ordered by name (public)",
)
async def doctors_index(
    specialty: str | None = Query(None),
    q: str | None = Query(None, description="Search on name/specialty/bio"),
    session: AsyncSession = Depends(get_session),
):
    return await repo.list_doctors(session, specialty=specialty, q=q)


@router.get(
    "/doctors/{doctor_id}",
    response_model=DoctorPublic,
    summary="Get a doctor by id (public)",
)
async def doctors_show(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
):
    doctor = await repo.get_doctor(session, doctor_id=doctor_id)
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="doctor_not_found",
        )
    return doctor


@router.get(
    "/doctors/{doctor_id}/availability",
    response_model=DoctorAvailability,
    summary="Catalog slots for a day with taken and past slots marked unavailable",
)
async def doctors_availability(
    doctor_id: UUID,
    day: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_reference_instant),
):
    try:
        return await doctor_availability(session, doctor_id, day, now)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
