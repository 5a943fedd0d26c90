# carelink/dependencies.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from carelink.core.security import (
    InvalidTokenError,
    decode_token,
    is_access_token,
    subject_uuid,
)
from carelink.db.sql import get_session
from carelink.modules.users.models import User
from carelink.modules.users.repository import get_by_id

# Tokens come from the identity provider; no login endpoint here
bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(session: AsyncSession, token: str) -> User:
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = subject_uuid(payload)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_by_id(session, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user_not_found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )
    if payload.get("is_anonymous") and not user.is_anonymous:
        # Guest sessions are flagged by the identity provider; keep the flag
        # on this request's principal without writing it back to the row
        set_committed_value(user, "is_anonymous", True)
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing_token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _resolve_user(session, credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """
    Like get_current_user, but a missing header yields None so the service
    decides how to treat guests. A bad token is still rejected.
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return await _resolve_user(session, credentials.credentials)


def get_reference_instant() -> datetime:
    """Wall-clock "now" for availability rules; overridden in tests."""
    return datetime.now()
