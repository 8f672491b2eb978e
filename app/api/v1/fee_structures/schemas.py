"""Fee structure schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import Term
from app.core.validators import ACADEMIC_YEAR_PATTERN


class FeeCategories(BaseModel):
    """Per-category amounts in whole currency units. Omitted categories are 0."""

    tuition: int = Field(0, ge=0)
    levy: int = Field(0, ge=0)
    exam: int = Field(0, ge=0)
    books: int = Field(0, ge=0)
    uniform: int = Field(0, ge=0)
    transport: int = Field(0, ge=0)
    sports: int = Field(0, ge=0)


class FeeStructureUpsert(FeeCategories):
    class_id: UUID
    term: Term
    academic_year: str = Field(..., pattern=ACADEMIC_YEAR_PATTERN, examples=["2024/2025"])
    due_date: Optional[date] = None


class FeeStructureResponse(FeeCategories):
    id: UUID
    class_id: UUID
    term: str
    academic_year: str
    total_fee: int
    due_date: Optional[date] = None
    updated_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
