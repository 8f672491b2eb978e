"""Bank account settings schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EnabledPaymentMethods(BaseModel):
    bank_transfer: bool = True
    online_payment: bool = False
    cash: bool = True


class BankAccountSettingsUpdate(BaseModel):
    bank_name: str = Field(..., max_length=100)
    account_name: str = Field(..., max_length=150)
    account_number: str = Field(..., max_length=20)
    payment_methods: EnabledPaymentMethods = Field(default_factory=EnabledPaymentMethods)


class BankAccountSettingsResponse(BaseModel):
    bank_name: str
    account_name: str
    account_number: str
    payment_methods: EnabledPaymentMethods
    updated_by: Optional[UUID] = None
    updated_at: datetime
