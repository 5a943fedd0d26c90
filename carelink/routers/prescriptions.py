# carelink/routers/prescriptions.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.sql import get_session
from carelink.dependencies import get_current_user
from carelink.modules.prescriptions.schemas import (
    MedicationOrderPublic,
    PrescriptionCreateRequest,
    PrescriptionPublic,
)
from carelink.modules.prescriptions.service import (
    PrescriptionForbidden,
    PrescriptionNotFound,
    create_prescription_svc,
    get_order_svc,
    get_prescription_svc,
    list_my_orders_svc,
    list_my_prescriptions_svc,
    order_medication_svc,
)
from carelink.modules.users.models import User

router = APIRouter(tags=["prescriptions"])


@router.post(
    "/prescriptions",
    response_model=PrescriptionPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Doctor prescribes to a patient they have an appointment with",
)
async def prescriptions_create(
    payload: PrescriptionCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await create_prescription_svc(session, payload, current_user)
    except PrescriptionForbidden as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e) or "forbidden",
        )


@router.get(
    "/prescriptions/my",
    response_model=list[PrescriptionPublic],
    summary="Current patient's prescriptions, newest first",
)
async def prescriptions_my(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await list_my_prescriptions_svc(session, current_user)


@router.get(
    "/prescriptions/{prescription_id}",
    response_model=PrescriptionPublic,
    summary="One prescription (its patient or issuing doctor)",
)
async def prescriptions_show(
    prescription_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await get_prescription_svc(session, prescription_id, current_user)
    except PrescriptionNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

@router.post(
    "/prescriptions/{prescription_id}/orders",
    response_model=MedicationOrderPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Order medication against an active prescription",
)
async def prescriptions_order(
    prescription_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await order_medication_svc(session, prescription_id, current_user)
    except PrescriptionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="prescription_not_found",
        )
    except PrescriptionForbidden as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e) or "forbidden",
        )


@router.get(
    "/medication-orders/my",
    response_model=list[MedicationOrderPublic],
    summary="Current patient's medication orders, newest first",
)
async def medication_orders_my(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await list_my_orders_svc(session, current_user)


@router.get(
    "/medication-orders/{order_id}",
    response_model=MedicationOrderPublic,
    summary="Track one of the current patient's orders",
)
async def medication_orders_show(
    order_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return await get_order_svc(session, order_id, current_user)
    except PrescriptionNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
