"""Fee structure catalog: one fee composition per class/term/year, total derived from categories."""

import logging
from datetime import date
from typing import List, Mapping, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.balances.service import recompute_class_balances
from app.core.directory import class_exists
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.fee_audit import log_fee_audit
from app.core.models import FeeStructure, Payment, Student
from app.core.models.fee_structure import CATEGORY_COLUMNS
from app.core.validators import normalize_academic_year, normalize_term

logger = logging.getLogger(__name__)


def validate_categories(categories: Mapping[str, object]) -> dict:
    """Return a full category map (missing categories as 0). Rejects unknown, negative or non-integer amounts."""
    unknown = sorted(set(categories) - set(CATEGORY_COLUMNS))
    if unknown:
        raise ValidationError(f"Unknown fee categories: {', '.join(unknown)}")
    clean = {}
    for name in CATEGORY_COLUMNS:
        value = categories.get(name, 0)
        if value is None:
            value = 0
        # bool is an int subclass; True is not a fee amount
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Fee amount for {name} must be a whole number")
        if value < 0:
            raise ValidationError(f"Fee amount for {name} cannot be negative")
        clean[name] = value
    return clean


async def get_fee_structure_by_class(
    db: AsyncSession,
    class_id: UUID,
    term: str,
    academic_year: str,
) -> Optional[FeeStructure]:
    return (
        await db.execute(
            select(FeeStructure).where(
                FeeStructure.class_id == class_id,
                FeeStructure.term == normalize_term(term),
                FeeStructure.academic_year == normalize_academic_year(academic_year),
            )
        )
    ).scalar_one_or_none()


async def list_fee_structures(
    db: AsyncSession,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> List[FeeStructure]:
    stmt = select(FeeStructure)
    if term is not None:
        stmt = stmt.where(FeeStructure.term == normalize_term(term))
    if academic_year is not None:
        stmt = stmt.where(FeeStructure.academic_year == normalize_academic_year(academic_year))
    stmt = stmt.order_by(FeeStructure.academic_year, FeeStructure.term, FeeStructure.class_id)
    return list((await db.execute(stmt)).scalars().all())


def _apply(
    structure: FeeStructure,
    categories: dict,
    due_date: Optional[date],
    changed_by: Optional[UUID],
) -> None:
    for name, value in categories.items():
        setattr(structure, name, value)
    structure.total_fee = sum(categories.values())
    structure.due_date = due_date
    structure.updated_by = changed_by


def _audit_values(structure: FeeStructure) -> dict:
    return {
        **structure.categories(),
        "total_fee": structure.total_fee,
        "due_date": structure.due_date.isoformat() if structure.due_date else None,
    }


async def upsert_fee_structure(
    db: AsyncSession,
    class_id: UUID,
    term: str,
    academic_year: str,
    categories: Mapping[str, object],
    changed_by: Optional[UUID] = None,
    due_date: Optional[date] = None,
) -> FeeStructure:
    """
    Create or replace the fee structure for (class, term, academic year).
    The record is replaced as a whole: categories not given are stored as 0 and a missing
    due date clears the old one. Cached balances of the class are rebuilt in the same commit.
    """
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)
    clean = validate_categories(categories)
    if not await class_exists(db, class_id):
        raise ValidationError("Invalid class")

    existing = await get_fee_structure_by_class(db, class_id, term, academic_year)
    if existing is None:
        structure = FeeStructure(class_id=class_id, term=term, academic_year=academic_year)
        _apply(structure, clean, due_date, changed_by)
        db.add(structure)
        try:
            await db.flush()
        except IntegrityError:
            # Another writer inserted the same key first; fall through to an update of its row.
            await db.rollback()
            existing = await get_fee_structure_by_class(db, class_id, term, academic_year)
            if existing is None:
                raise
        else:
            await log_fee_audit(db, "fee_structures", structure.id, "CREATE", None, _audit_values(structure), changed_by)
            rebuilt = await recompute_class_balances(db, class_id, term, academic_year)
            await db.commit()
            await db.refresh(structure)
            logger.info(
                "Fee structure created class=%s term=%s year=%s total=%s balances=%s",
                class_id, term, academic_year, structure.total_fee, rebuilt,
            )
            return structure

    old = _audit_values(existing)
    _apply(existing, clean, due_date, changed_by)
    await db.flush()
    await log_fee_audit(db, "fee_structures", existing.id, "UPDATE", old, _audit_values(existing), changed_by)
    rebuilt = await recompute_class_balances(db, class_id, term, academic_year)
    await db.commit()
    await db.refresh(existing)
    logger.info(
        "Fee structure replaced class=%s term=%s year=%s total=%s->%s balances=%s",
        class_id, term, academic_year, old["total_fee"], existing.total_fee, rebuilt,
    )
    return existing


async def delete_fee_structure(
    db: AsyncSession,
    class_id: UUID,
    term: str,
    academic_year: str,
    changed_by: Optional[UUID] = None,
) -> None:
    """
    Delete the fee structure for (class, term, academic year).
    Refused while any payment, in any status, exists for a student of the class in that term.
    """
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)
    structure = await get_fee_structure_by_class(db, class_id, term, academic_year)
    if structure is None:
        raise NotFoundError("Fee structure not found")

    payment_count = (
        await db.execute(
            select(func.count(Payment.id))
            .join(Student, Student.id == Payment.student_id)
            .where(
                Student.class_id == class_id,
                Payment.term == term,
                Payment.academic_year == academic_year,
            )
        )
    ).scalar() or 0
    if payment_count:
        raise ConflictError("Cannot delete a fee structure with existing payments")

    await log_fee_audit(db, "fee_structures", structure.id, "DELETE", _audit_values(structure), None, changed_by)
    await db.delete(structure)
    await db.flush()
    rebuilt = await recompute_class_balances(db, class_id, term, academic_year)
    await db.commit()
    logger.info(
        "Fee structure deleted class=%s term=%s year=%s balances=%s",
        class_id, term, academic_year, rebuilt,
    )
