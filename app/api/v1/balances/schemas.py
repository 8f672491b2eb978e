"""Student fee balance schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.core.enums import StudentFeeStatus


class StudentFeeBalanceResponse(BaseModel):
    student_id: UUID
    class_id: Optional[UUID] = None
    term: str
    academic_year: str
    total_fee_required: int
    total_paid: int
    balance: int
    status: StudentFeeStatus

    class Config:
        from_attributes = True
