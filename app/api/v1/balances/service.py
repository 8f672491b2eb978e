"""
Balance reconciler: derives a student's fee position for a term from the fee structure
and the Verified payments in the ledger.

The student_fee_balances table is a cache of compute_balance(). It is always rebuilt
from the ledger and never incremented or decremented in place.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.directory import resolve_student_class
from app.core.enums import PaymentStatus, StudentFeeStatus
from app.core.exceptions import ValidationError
from app.core.models import FeeStructure, Payment, Student, StudentFeeBalance
from app.core.validators import normalize_academic_year, normalize_term

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    student_id: UUID
    class_id: UUID
    term: str
    academic_year: str
    total_fee_required: int
    total_paid: int
    balance: int
    status: StudentFeeStatus


def classify_balance(total_paid: int, total_fee_required: int) -> StudentFeeStatus:
    if total_paid == 0:
        return StudentFeeStatus.UNPAID
    if total_paid >= total_fee_required:
        return StudentFeeStatus.PAID
    return StudentFeeStatus.PARTIAL


async def verified_total(db: AsyncSession, student_id: UUID, term: str, academic_year: str) -> int:
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.student_id == student_id,
                Payment.term == term,
                Payment.academic_year == academic_year,
                Payment.status == PaymentStatus.VERIFIED.value,
            )
        )
    ).scalar()
    return int(total or 0)


async def compute_balance(
    db: AsyncSession,
    student_id: UUID,
    term: str,
    academic_year: str,
) -> BalanceSnapshot:
    """Pure read of the student's position; nothing is written."""
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)
    class_id = await resolve_student_class(db, student_id)

    required = (
        await db.execute(
            select(FeeStructure.total_fee).where(
                FeeStructure.class_id == class_id,
                FeeStructure.term == term,
                FeeStructure.academic_year == academic_year,
            )
        )
    ).scalar_one_or_none()
    total_fee_required = int(required or 0)
    total_paid = await verified_total(db, student_id, term, academic_year)

    return BalanceSnapshot(
        student_id=student_id,
        class_id=class_id,
        term=term,
        academic_year=academic_year,
        total_fee_required=total_fee_required,
        total_paid=total_paid,
        balance=total_fee_required - total_paid,
        status=classify_balance(total_paid, total_fee_required),
    )


async def get_cached_balance(
    db: AsyncSession,
    student_id: UUID,
    term: str,
    academic_year: str,
) -> Optional[StudentFeeBalance]:
    return (
        await db.execute(
            select(StudentFeeBalance).where(
                StudentFeeBalance.student_id == student_id,
                StudentFeeBalance.term == normalize_term(term),
                StudentFeeBalance.academic_year == normalize_academic_year(academic_year),
            )
        )
    ).scalar_one_or_none()


async def recompute_balance(
    db: AsyncSession,
    student_id: UUID,
    term: str,
    academic_year: str,
) -> StudentFeeBalance:
    """
    Rebuild and store the balance row for (student, term, academic year).

    Safe to call any number of times: the result depends only on the fee structure and
    the Verified payments. Flushes but does not commit; the caller owns the transaction.
    """
    snapshot = await compute_balance(db, student_id, term, academic_year)
    row = await get_cached_balance(db, student_id, snapshot.term, snapshot.academic_year)
    if row is None:
        row = StudentFeeBalance(
            student_id=student_id,
            term=snapshot.term,
            academic_year=snapshot.academic_year,
        )
        db.add(row)
    row.class_id = snapshot.class_id
    row.total_fee_required = snapshot.total_fee_required
    row.total_paid = snapshot.total_paid
    row.balance = snapshot.balance
    row.status = snapshot.status.value
    await db.flush()
    logger.debug(
        "Balance recomputed student=%s term=%s year=%s paid=%s balance=%s status=%s",
        student_id, snapshot.term, snapshot.academic_year,
        snapshot.total_paid, snapshot.balance, snapshot.status.value,
    )
    return row


async def recompute_class_balances(
    db: AsyncSession,
    class_id: UUID,
    term: str,
    academic_year: str,
) -> int:
    """
    Rebuild the cached balances that depend on a class's fee structure for the term.
    Only existing rows are rebuilt; students without a row get one on first read.
    Flushes but does not commit. Returns the number of rows rebuilt.
    """
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)
    in_class = select(Student.id).where(Student.class_id == class_id)
    student_ids = (
        await db.execute(
            select(StudentFeeBalance.student_id).where(
                StudentFeeBalance.term == term,
                StudentFeeBalance.academic_year == academic_year,
                or_(
                    StudentFeeBalance.class_id == class_id,
                    StudentFeeBalance.student_id.in_(in_class),
                ),
            )
        )
    ).scalars().all()
    for student_id in sorted(set(student_ids), key=str):
        await recompute_balance(db, student_id, term, academic_year)
    return len(set(student_ids))


async def list_balances(
    db: AsyncSession,
    term: str,
    academic_year: str,
    class_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
) -> List[StudentFeeBalance]:
    """Cached balances for the reporting layer."""
    stmt = select(StudentFeeBalance).where(
        StudentFeeBalance.term == normalize_term(term),
        StudentFeeBalance.academic_year == normalize_academic_year(academic_year),
    )
    if class_id is not None:
        stmt = stmt.where(StudentFeeBalance.class_id == class_id)
    if status_filter:
        try:
            wanted = StudentFeeStatus(status_filter).value
        except ValueError:
            raise ValidationError(f"Invalid balance status: {status_filter!r}")
        stmt = stmt.where(StudentFeeBalance.status == wanted)
    stmt = stmt.order_by(StudentFeeBalance.class_id, StudentFeeBalance.student_id)
    return list((await db.execute(stmt)).scalars().all())


async def list_overdue_balances(
    db: AsyncSession,
    as_of: Optional[date] = None,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> List[StudentFeeBalance]:
    """Cached balances still owing after their fee structure's due date, earliest due date first."""
    as_of = as_of or date.today()
    stmt = (
        select(StudentFeeBalance)
        .join(
            FeeStructure,
            (FeeStructure.class_id == StudentFeeBalance.class_id)
            & (FeeStructure.term == StudentFeeBalance.term)
            & (FeeStructure.academic_year == StudentFeeBalance.academic_year),
        )
        .where(
            FeeStructure.due_date.is_not(None),
            FeeStructure.due_date < as_of,
            StudentFeeBalance.balance > 0,
        )
    )
    if term is not None:
        stmt = stmt.where(StudentFeeBalance.term == normalize_term(term))
    if academic_year is not None:
        stmt = stmt.where(StudentFeeBalance.academic_year == normalize_academic_year(academic_year))
    stmt = stmt.order_by(FeeStructure.due_date, StudentFeeBalance.class_id, StudentFeeBalance.student_id)
    return list((await db.execute(stmt)).scalars().all())


async def recompute_term_balances(db: AsyncSession, term: str, academic_year: str) -> int:
    """
    Rebuild balances for every student with a payment or a class fee structure in the term.
    Commits once at the end. Returns the number of rows rebuilt.
    """
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)
    with_payments = select(Payment.student_id).where(
        Payment.term == term, Payment.academic_year == academic_year
    )
    with_structure = select(Student.id).join(
        FeeStructure, FeeStructure.class_id == Student.class_id
    ).where(FeeStructure.term == term, FeeStructure.academic_year == academic_year)
    student_ids = set((await db.execute(with_payments)).scalars().all())
    student_ids.update((await db.execute(with_structure)).scalars().all())

    for student_id in sorted(student_ids, key=str):
        await recompute_balance(db, student_id, term, academic_year)
    await db.commit()
    logger.info("Rebuilt %d balance(s) for %s %s", len(student_ids), term, academic_year)
    return len(student_ids)
