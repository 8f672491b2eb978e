"""Bank account settings: single record, full replace, account number policy."""

from uuid import UUID

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.bank_settings.schemas import BankAccountSettingsUpdate, EnabledPaymentMethods
from app.api.v1.bank_settings.service import (
    enabled_methods,
    get_bank_account_settings,
    is_method_enabled,
    update_bank_account_settings,
)
from app.core.enums import PaymentMethod
from app.core.exceptions import ValidationError
from app.core.models import BankAccountSettings, FeeAuditLog


def _payload(**overrides) -> BankAccountSettingsUpdate:
    data = {
        "bank_name": "First Bank",
        "account_name": "Unity Secondary School",
        "account_number": "0123456789",
    }
    data.update(overrides)
    return BankAccountSettingsUpdate(**data)


@pytest.mark.asyncio
async def test_unset_settings(db_session: AsyncSession) -> None:
    assert await get_bank_account_settings(db_session) is None
    # Without settings every method is offered
    assert enabled_methods(None) == list(PaymentMethod)


@pytest.mark.asyncio
async def test_update_replaces_singleton(db_session: AsyncSession, actor_id: UUID) -> None:
    await update_bank_account_settings(db_session, _payload(), actor_id)
    row = await update_bank_account_settings(
        db_session,
        _payload(
            bank_name="Zenith Bank",
            account_number="9876543210",
            payment_methods=EnabledPaymentMethods(bank_transfer=True, online_payment=True, cash=False),
        ),
        actor_id,
    )

    assert row.bank_name == "Zenith Bank"
    assert row.account_number == "9876543210"
    assert row.updated_by == actor_id
    count = (await db_session.execute(select(func.count(BankAccountSettings.id)))).scalar()
    assert count == 1

    stored = await get_bank_account_settings(db_session)
    assert not is_method_enabled(stored, PaymentMethod.CASH)
    assert is_method_enabled(stored, PaymentMethod.ONLINE_PAYMENT)
    assert is_method_enabled(stored, PaymentMethod.CHEQUE)
    assert PaymentMethod.CASH not in enabled_methods(stored)

    logs = (
        await db_session.execute(
            select(FeeAuditLog)
            .where(FeeAuditLog.reference_table == "bank_account_settings")
            .order_by(FeeAuditLog.created_at)
        )
    ).scalars().all()
    assert sorted((log.reference_id, log.action_type) for log in logs) == [("1", "CREATE"), ("1", "UPDATE")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"bank_name": "  "},
        {"account_name": ""},
        {"account_number": ""},
        {"account_number": "12345"},
        {"account_number": "01234567890"},
        {"account_number": "01234abcde"},
    ],
)
async def test_invalid_settings_rejected(db_session: AsyncSession, actor_id: UUID, overrides: dict) -> None:
    with pytest.raises(ValidationError):
        await update_bank_account_settings(db_session, _payload(**overrides), actor_id)
    assert await get_bank_account_settings(db_session) is None
