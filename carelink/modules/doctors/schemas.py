# carelink/modules/doctors/schemas.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class DoctorPublic(BaseModel):
    id: UUID
    name: str
    specialty: str
    bio: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool

    class Config:
        from_attributes = True


class SlotInfo(BaseModel):
    slot: str          # "HH:00", the value sent back when booking
    label: str         # "3:00 PM"
    available: bool


class DoctorAvailability(BaseModel):
    doctor_id: UUID
    date: date
    min_selectable_date: date
    slots: List[SlotInfo]
