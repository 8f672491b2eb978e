"""Payment schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import PaymentMethod, PaymentSource, PaymentStatus, PaymentType, Term
from app.core.validators import ACADEMIC_YEAR_PATTERN


class PaymentCreate(BaseModel):
    student_id: UUID
    amount: int = Field(..., gt=0, description="Whole currency units")
    payment_method: PaymentMethod
    term: Term
    academic_year: str = Field(..., pattern=ACADEMIC_YEAR_PATTERN, examples=["2024/2025"])
    reference: Optional[str] = Field(None, max_length=100, description="Required for BankTransfer, POS, OnlinePayment")
    source: PaymentSource = PaymentSource.ACCOUNTANT
    notes: Optional[str] = None


class PaymentReject(BaseModel):
    reason: str = Field(..., max_length=500)


class PaymentResponse(BaseModel):
    id: UUID
    student_id: UUID
    amount: int
    payment_type: PaymentType
    term: str
    academic_year: str
    payment_method: PaymentMethod
    reference: Optional[str] = None
    source: PaymentSource
    notes: Optional[str] = None
    receipt_number: str
    status: PaymentStatus
    recorded_by: Optional[UUID] = None
    recorded_date: datetime
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    rejected_by: Optional[UUID] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentStatusTotals(BaseModel):
    count: int = 0
    amount: int = 0


class PaymentStats(BaseModel):
    total_payments: int
    pending: PaymentStatusTotals
    verified: PaymentStatusTotals
    rejected: PaymentStatusTotals
