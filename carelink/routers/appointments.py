# carelink/routers/appointments.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import NoReturn, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.sql import get_session
from carelink.dependencies import get_current_user, get_optional_user, get_reference_instant
from carelink.modules.appointments.schemas import (
    AppointmentCompleteRequest,
    AppointmentCreateRequest,
    AppointmentList,
    AppointmentPublic,
    ConfirmResponse,
)
from carelink.modules.appointments.service import (
    AppointmentError,
    Forbidden,
    InvalidSlot,
    MissingNotes,
    NotFound,
    SlotExpired,
    SlotTaken,
    StorageError,
    Unauthenticated,
    attempt_book,
    cancel_appointment,
    complete_appointment,
    confirm_appointment,
    get_appointment_detail,
    list_my_appointments,
)
from carelink.modules.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments"])

_STATUS_BY_ERROR: dict[type[AppointmentError], int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidSlot: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MissingNotes: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SlotExpired: status.HTTP_409_CONFLICT,
    SlotTaken: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_http(e: AppointmentError) -> NoReturn:
    code = _STATUS_BY_ERROR.get(type(e), status.HTTP_400_BAD_REQUEST)
    if isinstance(e, StorageError):
        logger.error("Appointment storage failure: %s", e.message)
        raise HTTPException(status_code=code, detail=str(e)) from e
    if isinstance(e, SlotTaken):
        # Clients re-query availability on this code
        raise HTTPException(
            status_code=code,
            detail={"code": str(e), "message": e.message},
        ) from e
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(e, Unauthenticated) else None
    raise HTTPException(status_code=code, detail=str(e), headers=headers) from e


# Implement /appointments (POST)
@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot with a doctor",
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
    now: datetime = Depends(get_reference_instant),
):
    try:
        return await attempt_book(session, current_user, payload, now)
    except AppointmentError as e:
        _raise_http(e)


# Implement /appointments/my (GET)
@router.get(
    "/appointments/my",
    response_model=AppointmentList,
    summary="Current user's appointments (as patient, or as doctor)",
)
async def appointments_my(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await list_my_appointments(session, current_user)
    except AppointmentError as e:
        _raise_http(e)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentPublic,
    summary="Appointment detail (owning patient or assigned doctor)",
)
async def appointments_show(
    appointment_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await get_appointment_detail(session, appointment_id, current_user)
    except AppointmentError as e:
        _raise_http(e)


@router.put(
    "/appointments/{appointment_id}/confirm",
    response_model=ConfirmResponse,
    summary="Doctor confirms an appointment and opens its chat room",
)
async def appointments_confirm(
    appointment_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await confirm_appointment(session, appointment_id, current_user)
    except AppointmentError as e:
        _raise_http(e)


@router.put(
    "/appointments/{appointment_id}/complete",
    response_model=AppointmentPublic,
    summary="Doctor completes an appointment with consultation notes",
)
async def appointments_complete(
    appointment_id: UUID,
    payload: AppointmentCompleteRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await complete_appointment(session, appointment_id, current_user, payload.notes)
    except AppointmentError as e:
        _raise_http(e)


# Implement /appointments/{id}/cancel (PUT)
@router.put(
    "/appointments/{appointment_id}/cancel",
    response_model=AppointmentPublic,
    summary="Patient cancels an appointment",
)
async def appointments_cancel(
    appointment_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await cancel_appointment(session, appointment_id, current_user)
    except AppointmentError as e:
        _raise_http(e)
