"""Payment router: submission, verification queue, verify/reject, history and stats."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.bank_settings.service import get_bank_account_settings
from app.auth.dependencies import get_current_actor
from app.core.enums import PaymentStatus, Term
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PaymentCreate, PaymentReject, PaymentResponse, PaymentStats
from . import service, workflow

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> PaymentResponse:
    try:
        payment = await service.submit_payment(
            db,
            student_id=payload.student_id,
            amount=payload.amount,
            method=payload.payment_method,
            term=payload.term,
            academic_year=payload.academic_year,
            reference=payload.reference,
            recorded_by=actor_id,
            source=payload.source,
            notes=payload.notes,
            bank_settings=await get_bank_account_settings(db),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PaymentResponse.model_validate(payment)


@router.get("/pending", response_model=List[PaymentResponse])
async def list_pending_payments(
    term: Optional[Term] = Query(None),
    academic_year: Optional[str] = Query(None, examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> List[PaymentResponse]:
    try:
        payments = await service.list_pending_payments(db, term=term, academic_year=academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/stats", response_model=PaymentStats)
async def get_payment_stats(
    term: Optional[Term] = Query(None),
    academic_year: Optional[str] = Query(None, examples=["2024/2025"]),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> PaymentStats:
    try:
        return await service.get_payment_stats(
            db, term=term, academic_year=academic_year, student_id=student_id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/student/{student_id}", response_model=List[PaymentResponse])
async def list_student_payments(
    student_id: UUID,
    term: Optional[Term] = Query(None),
    academic_year: Optional[str] = Query(None, examples=["2024/2025"]),
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[PaymentResponse]:
    try:
        payments = await service.list_student_payments(
            db,
            student_id,
            term=term,
            academic_year=academic_year,
            status=payment_status,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    try:
        payment = await service.get_payment(db, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PaymentResponse.model_validate(payment)


@router.post("/{payment_id}/verify", response_model=PaymentResponse)
async def verify_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> PaymentResponse:
    try:
        payment = await workflow.verify_payment(db, payment_id, actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PaymentResponse.model_validate(payment)


@router.post("/{payment_id}/reject", response_model=PaymentResponse)
async def reject_payment(
    payment_id: UUID,
    payload: PaymentReject,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> PaymentResponse:
    try:
        payment = await workflow.reject_payment(db, payment_id, payload.reason, actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PaymentResponse.model_validate(payment)
