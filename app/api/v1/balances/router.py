"""Balance router: recompute and read student fee balances."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import StudentFeeStatus, Term
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import StudentFeeBalanceResponse
from . import service

router = APIRouter(prefix="/api/v1/balances", tags=["balances"])


@router.get("", response_model=List[StudentFeeBalanceResponse])
async def list_balances(
    term: Term,
    academic_year: str = Query(..., examples=["2024/2025"]),
    class_id: Optional[UUID] = Query(None),
    fee_status: Optional[StudentFeeStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[StudentFeeBalanceResponse]:
    try:
        rows = await service.list_balances(
            db,
            term,
            academic_year,
            class_id=class_id,
            status_filter=fee_status.value if fee_status else None,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [StudentFeeBalanceResponse.model_validate(r) for r in rows]


@router.get("/overdue", response_model=List[StudentFeeBalanceResponse])
async def list_overdue_balances(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    term: Optional[Term] = Query(None),
    academic_year: Optional[str] = Query(None, examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> List[StudentFeeBalanceResponse]:
    try:
        rows = await service.list_overdue_balances(db, as_of=as_of, term=term, academic_year=academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [StudentFeeBalanceResponse.model_validate(r) for r in rows]


@router.get("/{student_id}", response_model=StudentFeeBalanceResponse)
async def get_student_balance(
    student_id: UUID,
    term: Term,
    academic_year: str = Query(..., examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> StudentFeeBalanceResponse:
    """Cached balance; built on first read when no row exists yet."""
    try:
        row = await service.get_cached_balance(db, student_id, term, academic_year)
        if row is None:
            row = await service.recompute_balance(db, student_id, term, academic_year)
            await db.commit()
    except ServiceError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return StudentFeeBalanceResponse.model_validate(row)


@router.post("/{student_id}/recompute", response_model=StudentFeeBalanceResponse)
async def recompute_student_balance(
    student_id: UUID,
    term: Term,
    academic_year: str = Query(..., examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> StudentFeeBalanceResponse:
    try:
        row = await service.recompute_balance(db, student_id, term, academic_year)
        await db.commit()
    except ServiceError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return StudentFeeBalanceResponse.model_validate(row)
