# carelink/modules/users/repository.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.modules.users.models import User


async def get_by_id(session: AsyncSession, user_id: UUID) -> Optional[User]:
    """
    Returns a User by primary key or None if not found.
    """
    return await session.get(User, user_id)
