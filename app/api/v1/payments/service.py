"""
Payment ledger: records payment attempts and answers read queries over them.

A submitted payment is Pending and does not count toward the student's paid total.
Status changes go through workflow.py only.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.balances.service import compute_balance
from app.api.v1.bank_settings.service import is_method_enabled
from app.core.config import settings
from app.core.enums import (
    REFERENCE_REQUIRED_METHODS,
    PaymentMethod,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.fee_audit import log_fee_audit
from app.core.models import BankAccountSettings, Payment
from app.core.validators import normalize_academic_year, normalize_term

from .schemas import PaymentStats, PaymentStatusTotals

logger = logging.getLogger(__name__)


def payment_type_for(amount: int, balance: int) -> PaymentType:
    """Full when the amount clears the outstanding balance. Amounts are never capped to the balance."""
    return PaymentType.FULL if amount >= balance else PaymentType.PARTIAL


async def next_receipt_number(db: AsyncSession, year: int) -> str:
    """REC/<year>/<sequence>. The unique constraint on receipt_number is the real guarantee."""
    prefix = f"{settings.receipt_prefix}/{year}/"
    issued = (
        await db.execute(
            select(func.count(Payment.id)).where(Payment.receipt_number.like(f"{prefix}%"))
        )
    ).scalar() or 0
    return f"{prefix}{issued + 1:05d}"


def _parse_method(method: Union[PaymentMethod, str]) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise ValidationError(f"Invalid payment method: {method!r}")


async def submit_payment(
    db: AsyncSession,
    student_id: UUID,
    amount: int,
    method: Union[PaymentMethod, str],
    term: str,
    academic_year: str,
    reference: Optional[str] = None,
    recorded_by: Optional[UUID] = None,
    source: Union[PaymentSource, str] = PaymentSource.ACCOUNTANT,
    notes: Optional[str] = None,
    bank_settings: Optional[BankAccountSettings] = None,
) -> Payment:
    """
    Record a payment attempt as Pending.

    Validates the amount and the reference rule for the method, refuses methods the
    accountant switched off in bank settings, and classifies the payment as Full or
    Partial against the current (Verified-only) balance. No balance is written here.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Payment amount must be a whole number greater than zero")
    method = _parse_method(method)
    reference = (reference or "").strip() or None
    if method in REFERENCE_REQUIRED_METHODS and reference is None:
        raise ValidationError(f"A transaction reference is required for {method.value} payments")
    if not is_method_enabled(bank_settings, method):
        raise ValidationError(f"{method.value} payments are not currently accepted")
    try:
        source = PaymentSource(source)
    except ValueError:
        raise ValidationError(f"Invalid payment source: {source!r}")
    term = normalize_term(term)
    academic_year = normalize_academic_year(academic_year)

    # Raises NotFoundError for an unknown student.
    current = await compute_balance(db, student_id, term, academic_year)
    payment_type = payment_type_for(amount, current.balance)

    recorded_date = datetime.utcnow()
    payment = Payment(
        student_id=student_id,
        amount=amount,
        payment_type=payment_type.value,
        term=term,
        academic_year=academic_year,
        payment_method=method.value,
        reference=reference,
        source=source.value,
        notes=(notes or "").strip() or None,
        receipt_number=await next_receipt_number(db, recorded_date.year),
        status=PaymentStatus.PENDING.value,
        recorded_by=recorded_by,
        recorded_date=recorded_date,
    )
    db.add(payment)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Receipt number already issued; resubmit the payment")
    await log_fee_audit(
        db, "payments", payment.id, "SUBMIT",
        None,
        {
            "student_id": str(student_id),
            "amount": amount,
            "payment_method": method.value,
            "payment_type": payment_type.value,
            "receipt_number": payment.receipt_number,
            "status": PaymentStatus.PENDING.value,
        },
        recorded_by,
    )
    await db.commit()
    await db.refresh(payment)
    logger.info(
        "Payment submitted receipt=%s student=%s amount=%s type=%s",
        payment.receipt_number, student_id, amount, payment_type.value,
    )
    return payment


async def get_payment(db: AsyncSession, payment_id: UUID) -> Payment:
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def _status_value(status) -> str:
    try:
        return PaymentStatus(status).value
    except ValueError:
        raise ValidationError(f"Invalid payment status: {status!r}")


async def list_student_payments(
    db: AsyncSession,
    student_id: UUID,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
    status=None,
) -> List[Payment]:
    stmt = select(Payment).where(Payment.student_id == student_id)
    if term is not None:
        stmt = stmt.where(Payment.term == normalize_term(term))
    if academic_year is not None:
        stmt = stmt.where(Payment.academic_year == normalize_academic_year(academic_year))
    if status is not None:
        stmt = stmt.where(Payment.status == _status_value(status))
    stmt = stmt.order_by(Payment.recorded_date.desc())
    return list((await db.execute(stmt)).scalars().all())


async def list_pending_payments(
    db: AsyncSession,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> List[Payment]:
    """Verification queue, oldest first."""
    stmt = select(Payment).where(Payment.status == PaymentStatus.PENDING.value)
    if term is not None:
        stmt = stmt.where(Payment.term == normalize_term(term))
    if academic_year is not None:
        stmt = stmt.where(Payment.academic_year == normalize_academic_year(academic_year))
    stmt = stmt.order_by(Payment.recorded_date)
    return list((await db.execute(stmt)).scalars().all())


async def get_payment_stats(
    db: AsyncSession,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
    student_id: Optional[UUID] = None,
) -> PaymentStats:
    stmt = select(
        Payment.status,
        func.count(Payment.id),
        func.coalesce(func.sum(Payment.amount), 0),
    )
    if term is not None:
        stmt = stmt.where(Payment.term == normalize_term(term))
    if academic_year is not None:
        stmt = stmt.where(Payment.academic_year == normalize_academic_year(academic_year))
    if student_id is not None:
        stmt = stmt.where(Payment.student_id == student_id)
    stmt = stmt.group_by(Payment.status)

    totals = {s: PaymentStatusTotals() for s in PaymentStatus}
    for status_value, count, amount in (await db.execute(stmt)).all():
        totals[PaymentStatus(status_value)] = PaymentStatusTotals(count=count, amount=int(amount))
    return PaymentStats(
        total_payments=sum(t.count for t in totals.values()),
        pending=totals[PaymentStatus.PENDING],
        verified=totals[PaymentStatus.VERIFIED],
        rejected=totals[PaymentStatus.REJECTED],
    )
