# carelink/modules/reminders/schemas.py
from __future__ import annotations

from datetime import datetime, time
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, StringConstraints


class ReminderCreateRequest(BaseModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    remind_at: time
    prescription_id: Optional[UUID] = None


class ReminderPublic(BaseModel):
    id: UUID
    title: str
    remind_at: time
    prescription_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
