# carelink/modules/prescriptions/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, StringConstraints

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class PrescriptionCreateRequest(BaseModel):
    """
    Issued by a doctor; doctor_id comes from the current user.
    """
    patient_id: UUID
    appointment_id: Optional[UUID] = None
    medication_name: RequiredStr
    dosage: RequiredStr
    instructions: Optional[str] = None


class PrescriptionPublic(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_id: Optional[UUID] = None
    medication_name: str
    dosage: str
    instructions: Optional[str] = None
    status: str
    refills_remaining: int
    created_at: datetime

    class Config:
        from_attributes = True


class MedicationOrderPublic(BaseModel):
    id: UUID
    prescription_id: UUID
    medication_name: str
    quantity: int
    status: str
    ordered_at: datetime

    class Config:
        from_attributes = True
