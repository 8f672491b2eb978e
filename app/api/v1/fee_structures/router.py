"""Fee structure router: upsert, read and delete the fee composition per class/term/year."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.core.enums import Term
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import FeeCategories, FeeStructureResponse, FeeStructureUpsert
from . import service

router = APIRouter(prefix="/api/v1/fee-structures", tags=["fee-structures"])


@router.put("", response_model=FeeStructureResponse)
async def upsert_fee_structure(
    payload: FeeStructureUpsert,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> FeeStructureResponse:
    categories = payload.model_dump(include=set(FeeCategories.model_fields))
    try:
        structure = await service.upsert_fee_structure(
            db,
            payload.class_id,
            payload.term,
            payload.academic_year,
            categories,
            changed_by=actor_id,
            due_date=payload.due_date,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return FeeStructureResponse.model_validate(structure)


@router.get("", response_model=List[FeeStructureResponse])
async def list_fee_structures(
    term: Optional[Term] = Query(None),
    academic_year: Optional[str] = Query(None, examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> List[FeeStructureResponse]:
    try:
        structures = await service.list_fee_structures(db, term=term, academic_year=academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [FeeStructureResponse.model_validate(s) for s in structures]


@router.get("/{class_id}", response_model=FeeStructureResponse)
async def get_fee_structure_by_class(
    class_id: UUID,
    term: Term,
    academic_year: str = Query(..., examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        structure = await service.get_fee_structure_by_class(db, class_id, term, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if structure is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Fee structure not found",
        )
    return FeeStructureResponse.model_validate(structure)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fee_structure(
    class_id: UUID,
    term: Term,
    academic_year: str = Query(..., examples=["2024/2025"]),
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> None:
    """Refused with 409 once payments exist for the class in that term."""
    try:
        await service.delete_fee_structure(db, class_id, term, academic_year, changed_by=actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
