# carelink/modules/appointments/schemas.py
from __future__ import annotations

from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AppointmentCreateRequest(BaseModel):
    """
    Payload to book an appointment.
    - patient_id is taken from the current user, never from the client.
    - slot is the "HH:00" value returned by the availability endpoints.
    """
    doctor_id: UUID
    appointment_date: date
    slot: str = Field(..., examples=["15:00"])
    notes: Optional[str] = Field(default=None, max_length=4000)


class AppointmentCompleteRequest(BaseModel):
    notes: str = Field(default="", max_length=4000)


class AppointmentPublic(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AppointmentListItem(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    start_time: time
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class AppointmentList(BaseModel):
    """
    Appointments of the current user; `role` says which side they are on.
    """
    role: str
    items: List[AppointmentListItem]
    total: int


class ConfirmResponse(BaseModel):
    appointment: AppointmentPublic
    chat_room_id: UUID


class DaySlots(BaseModel):
    date: date
    slots: List[str]
    has_available_slots: bool
    min_selectable_date: date
