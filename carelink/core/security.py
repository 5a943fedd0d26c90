# carelink/core/security.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from carelink.core.config import settings

# =====
# JWTs
# =====
# Access tokens are minted by the identity provider with the shared secret.
# This service verifies them; create_access_token exists for local tooling
# and tests that need to act as a given user.


class TokenType(str, Enum):
    ACCESS = "access"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    *,
    subject: str,                # the user id (UUID as str)
    email: Optional[str] = None,
    is_anonymous: bool = False,
    expires_minutes: Optional[int] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a short-lived Bearer access token.
    """
    exp_minutes = expires_minutes or settings.ACCESS_EXPIRES_MIN
    to_encode: Dict[str, Any] = {
        "sub": subject,
        "type": TokenType.ACCESS.value,
        "iat": int(_utcnow().timestamp()),
        "exp": int((_utcnow() + timedelta(minutes=exp_minutes)).timestamp()),
        "jti": str(uuid.uuid4()),
        "is_anonymous": is_anonymous,
    }
    if email:
        to_encode["email"] = email
    if extra_claims:
        to_encode.update(extra_claims)

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class InvalidTokenError(Exception):
    """Raised when a token is missing/invalid/expired or claims are malformed."""


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidTokenError on failure.
    """
    if not token:
        raise InvalidTokenError("missing_token")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        # JWTError covers expired signature, invalid signature, bad format, etc.
        raise InvalidTokenError("invalid_token") from exc

    if "sub" not in payload or "type" not in payload:
        raise InvalidTokenError("invalid_claims")

    return payload


def is_access_token(payload: Dict[str, Any]) -> bool:
    return payload.get("type") == TokenType.ACCESS.value


def subject_uuid(payload: Dict[str, Any]) -> uuid.UUID:
    try:
        return uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError) as exc:
        raise InvalidTokenError("invalid_subject") from exc
