"""Bank account settings router."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import BankAccountSettingsResponse, BankAccountSettingsUpdate
from . import service

router = APIRouter(prefix="/api/v1/bank-settings", tags=["bank-settings"])


@router.get("", response_model=BankAccountSettingsResponse)
async def get_bank_account_settings(
    db: AsyncSession = Depends(get_db),
) -> BankAccountSettingsResponse:
    row = await service.get_bank_account_settings(db)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bank account settings have not been configured",
        )
    return service.to_response(row)


@router.put("", response_model=BankAccountSettingsResponse)
async def update_bank_account_settings(
    payload: BankAccountSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_current_actor),
) -> BankAccountSettingsResponse:
    try:
        row = await service.update_bank_account_settings(db, payload, actor_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return service.to_response(row)
