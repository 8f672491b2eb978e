"""Fee structure: fee composition per class per term per academic year."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base

CATEGORY_COLUMNS = ("tuition", "levy", "exam", "books", "uniform", "transport", "sports")


class FeeStructure(Base):
    """
    One row per (class, term, academic year).
    total_fee is derived from the category columns on every write and never set on its own.
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        UniqueConstraint(
            "class_id",
            "term",
            "academic_year",
            name="uq_fee_structure_class_term_year",
        ),
        CheckConstraint(
            "tuition >= 0 AND levy >= 0 AND exam >= 0 AND books >= 0 "
            "AND uniform >= 0 AND transport >= 0 AND sports >= 0",
            name="chk_fee_structure_non_negative",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    term = Column(String(20), nullable=False)
    academic_year = Column(String(9), nullable=False)  # e.g. 2024/2025

    tuition = Column(Integer, nullable=False, default=0)
    levy = Column(Integer, nullable=False, default=0)
    exam = Column(Integer, nullable=False, default=0)
    books = Column(Integer, nullable=False, default=0)
    uniform = Column(Integer, nullable=False, default=0)
    transport = Column(Integer, nullable=False, default=0)
    sports = Column(Integer, nullable=False, default=0)
    total_fee = Column(Integer, nullable=False, default=0)
    due_date = Column(Date, nullable=True)

    updated_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id])

    def categories(self) -> dict:
        return {name: int(getattr(self, name) or 0) for name in CATEGORY_COLUMNS}
