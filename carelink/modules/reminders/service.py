# carelink/modules/reminders/service.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.log import write_audit_log
from carelink.modules.prescriptions.models import Prescription
from carelink.modules.reminders.models import Reminder
from carelink.modules.reminders.schemas import ReminderCreateRequest, ReminderPublic
from carelink.modules.users.models import User

logger = logging.getLogger(__name__)


class ReminderNotFound(Exception):
    """
    No reminder (or prescription) with that id for the current user
    """


async def list_active_reminders_svc(
    session: AsyncSession,
    current_user: User,
) -> List[ReminderPublic]:
    rows = await session.execute(
        select(Reminder)
        .where(Reminder.patient_id == current_user.id, Reminder.is_active.is_(True))
        .order_by(Reminder.remind_at, Reminder.id)
    )
    return [ReminderPublic.model_validate(r) for r in rows.scalars().all()]


async def create_reminder_svc(
    session: AsyncSession,
    payload: ReminderCreateRequest,
    current_user: User,
) -> ReminderPublic:
    if payload.prescription_id is not None:
        rx = await session.get(Prescription, payload.prescription_id)
        if rx is None or rx.patient_id != current_user.id:
            raise ReminderNotFound("prescription_not_found")

    reminder = Reminder(
        patient_id=current_user.id,
        prescription_id=payload.prescription_id,
        title=payload.title,
        remind_at=payload.remind_at,
        is_active=True,
    )
    session.add(reminder)
    await session.flush()
    await session.refresh(reminder)

    await write_audit_log(session, current_user.id, "CREATE_REMINDER", str(reminder.id))
    return ReminderPublic.model_validate(reminder)


async def deactivate_reminder_svc(
    session: AsyncSession,
    reminder_id: UUID,
    current_user: User,
) -> ReminderPublic:
    reminder = await session.get(Reminder, reminder_id)
    if reminder is None or reminder.patient_id != current_user.id:
        raise ReminderNotFound("reminder_not_found")

    reminder.is_active = False
    await session.flush()
    await session.refresh(reminder)
    logger.info("Reminder %s deactivated", reminder.id)
    return ReminderPublic.model_validate(reminder)
