"""Payment: one row per payment attempt. Financial facts are immutable; only status metadata changes."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.enums import PaymentSource, PaymentStatus
from app.db.session import Base


class Payment(Base):
    """Payment attempt against a student's fee for one term. Only Verified payments count toward totals."""

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_payment_amount_positive"),
        CheckConstraint(
            "status IN ('Pending','Verified','Rejected')",
            name="chk_payment_status",
        ),
        Index("ix_payments_student_term_year_status", "student_id", "term", "academic_year", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    amount = Column(Integer, nullable=False)
    payment_type = Column(String(10), nullable=False)  # Full, Partial
    term = Column(String(20), nullable=False)
    academic_year = Column(String(9), nullable=False)
    payment_method = Column(String(20), nullable=False)
    reference = Column(String(100), nullable=True)
    source = Column(String(20), nullable=False, default=PaymentSource.ACCOUNTANT.value)
    notes = Column(Text, nullable=True)
    receipt_number = Column(String(40), nullable=False, unique=True)

    status = Column(String(10), nullable=False, default=PaymentStatus.PENDING.value)
    recorded_by = Column(UUID(as_uuid=True), nullable=True)
    recorded_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    verified_by = Column(UUID(as_uuid=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(UUID(as_uuid=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    student = relationship("Student", foreign_keys=[student_id])
