# carelink/routers/reminders.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.sql import get_session
from carelink.dependencies import get_current_user
from carelink.modules.reminders.schemas import ReminderCreateRequest, ReminderPublic
from carelink.modules.reminders.service import (
    ReminderNotFound,
    create_reminder_svc,
    deactivate_reminder_svc,
    list_active_reminders_svc,
)
from carelink.modules.users.models import User

router = APIRouter(tags=["reminders"])


@router.get(
    "/reminders/my",
    response_model=list[ReminderPublic],
    summary="Current patient's active reminders by time of day",
)
async def reminders_my(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await list_active_reminders_svc(session, current_user)


@router.post(
    "/reminders",
    response_model=ReminderPublic,
    status_code=status.HTTP_201_CREATED,
)
async def reminders_create(
    payload: ReminderCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await create_reminder_svc(session, payload, current_user)
    except ReminderNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.put(
    "/reminders/{reminder_id}/deactivate",
    response_model=ReminderPublic,
)
async def reminders_deactivate(
    reminder_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await deactivate_reminder_svc(session, reminder_id, current_user)
    except ReminderNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
