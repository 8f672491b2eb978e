"""Bank account settings: the school's single bank-details record and enabled payment methods."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import PaymentMethod
from app.core.exceptions import ValidationError
from app.core.fee_audit import log_fee_audit
from app.core.models import BankAccountSettings
from app.core.models.bank_account_settings import SINGLETON_ID

from .schemas import BankAccountSettingsResponse, BankAccountSettingsUpdate, EnabledPaymentMethods

logger = logging.getLogger(__name__)

# POS and Cheque have no switch on the settings page; they are always accepted.
_METHOD_SWITCHES = {
    PaymentMethod.BANK_TRANSFER: "bank_transfer_enabled",
    PaymentMethod.ONLINE_PAYMENT: "online_payment_enabled",
    PaymentMethod.CASH: "cash_enabled",
}


def is_method_enabled(bank_settings: Optional[BankAccountSettings], method) -> bool:
    if bank_settings is None:
        return True
    switch = _METHOD_SWITCHES.get(PaymentMethod(method))
    if switch is None:
        return True
    return bool(getattr(bank_settings, switch))


def enabled_methods(bank_settings: Optional[BankAccountSettings]) -> list:
    return [m for m in PaymentMethod if is_method_enabled(bank_settings, m)]


def to_response(row: BankAccountSettings) -> BankAccountSettingsResponse:
    return BankAccountSettingsResponse(
        bank_name=row.bank_name,
        account_name=row.account_name,
        account_number=row.account_number,
        payment_methods=EnabledPaymentMethods(
            bank_transfer=row.bank_transfer_enabled,
            online_payment=row.online_payment_enabled,
            cash=row.cash_enabled,
        ),
        updated_by=row.updated_by,
        updated_at=row.updated_at,
    )


def _snapshot(row: BankAccountSettings) -> dict:
    return {
        "bank_name": row.bank_name,
        "account_name": row.account_name,
        "account_number": row.account_number,
        "bank_transfer_enabled": row.bank_transfer_enabled,
        "online_payment_enabled": row.online_payment_enabled,
        "cash_enabled": row.cash_enabled,
    }


async def get_bank_account_settings(db: AsyncSession) -> Optional[BankAccountSettings]:
    return await db.get(BankAccountSettings, SINGLETON_ID)


async def update_bank_account_settings(
    db: AsyncSession,
    payload: BankAccountSettingsUpdate,
    actor_id: Optional[UUID],
) -> BankAccountSettings:
    """Replace the settings record. Last write wins."""
    bank_name = payload.bank_name.strip()
    account_name = payload.account_name.strip()
    account_number = payload.account_number.strip()
    if not bank_name or not account_name or not account_number:
        raise ValidationError("Bank name, account name and account number are required")
    length = settings.bank_account_number_length
    if not account_number.isdigit() or len(account_number) != length:
        raise ValidationError(f"Account number must be exactly {length} digits")

    row = await get_bank_account_settings(db)
    old = _snapshot(row) if row is not None else None
    if row is None:
        row = BankAccountSettings(id=SINGLETON_ID)
        db.add(row)
    row.bank_name = bank_name
    row.account_name = account_name
    row.account_number = account_number
    row.bank_transfer_enabled = payload.payment_methods.bank_transfer
    row.online_payment_enabled = payload.payment_methods.online_payment
    row.cash_enabled = payload.payment_methods.cash
    row.updated_by = actor_id
    await db.flush()
    await log_fee_audit(
        db, "bank_account_settings", SINGLETON_ID,
        "CREATE" if old is None else "UPDATE",
        old, _snapshot(row), actor_id,
    )
    await db.commit()
    await db.refresh(row)
    logger.info("Bank account settings updated by %s", actor_id)
    return row
