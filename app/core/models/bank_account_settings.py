"""Bank account settings: single-row school configuration for manual payment submissions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base

SINGLETON_ID = 1


class BankAccountSettings(Base):
    """Bank details and the payment methods the accountant has switched on. Always row id 1."""

    __tablename__ = "bank_account_settings"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    bank_name = Column(String(100), nullable=False)
    account_name = Column(String(150), nullable=False)
    account_number = Column(String(20), nullable=False)
    bank_transfer_enabled = Column(Boolean, nullable=False, default=True)
    online_payment_enabled = Column(Boolean, nullable=False, default=False)
    cash_enabled = Column(Boolean, nullable=False, default=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
