"""Student fee balance: derived cache per (student, term, academic year). Rebuilt, never patched."""

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from app.core.enums import StudentFeeStatus
from app.db.session import Base


class StudentFeeBalance(Base):
    """
    Read model of a student's fee position for one term.
    balance may be negative (over-payment); it is never floored at zero.
    """

    __tablename__ = "student_fee_balances"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "term",
            "academic_year",
            name="uq_student_fee_balance_student_term_year",
        ),
        CheckConstraint(
            "status IN ('Unpaid','Partial','Paid')",
            name="chk_student_fee_balance_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(UUID(as_uuid=True), nullable=True)
    term = Column(String(20), nullable=False)
    academic_year = Column(String(9), nullable=False)
    total_fee_required = Column(Integer, nullable=False, default=0)
    total_paid = Column(Integer, nullable=False, default=0)
    balance = Column(Integer, nullable=False, default=0)
    status = Column(String(10), nullable=False, default=StudentFeeStatus.UNPAID.value)
