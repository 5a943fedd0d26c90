# carelink/modules/log.py
from __future__ import annotations

from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.users.models import AuditLog


async def write_audit_log(
    session: AsyncSession,
    user_id: UUID | None,
    action: str,
    details: str | None = None,
):
    """
    Write an audit log entry in the caller's transaction.

    action:
        "CREATE_APPOINTMENT"
        "CONFIRM_APPOINTMENT"
        "COMPLETE_APPOINTMENT"
        "CANCEL_APPOINTMENT"
        "CREATE_PRESCRIPTION"
        "ORDER_MEDICATION"
    """
    stmt = insert(AuditLog).values(
        user_id=user_id,
        action=action,
        details=details,
    )
    await session.execute(stmt)
