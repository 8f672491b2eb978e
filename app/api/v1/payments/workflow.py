"""
Payment verification workflow.

    Pending --verify--> Verified
    Pending --reject--> Rejected

Verified and Rejected are terminal. Every status change goes through _transition(),
which checks the current status and sets the new one in a single conditional UPDATE,
so two accountants acting on the same payment cannot both succeed.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.balances.service import recompute_balance
from app.core.enums import PaymentStatus
from app.core.exceptions import ConflictError, InvalidStateTransitionError, NotFoundError, ValidationError
from app.core.fee_audit import log_fee_audit
from app.core.models import Payment

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.VERIFIED, PaymentStatus.REJECTED}),
    PaymentStatus.VERIFIED: frozenset(),
    PaymentStatus.REJECTED: frozenset(),
}


def ensure_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateTransitionError(
            f"Payment is already {current.value}; cannot mark it {target.value}"
        )


async def _transition(
    db: AsyncSession,
    payment_id: UUID,
    target: PaymentStatus,
    values: dict,
) -> Payment:
    """Check-and-set the status. Does not commit."""
    payment = (
        await db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if payment is None:
        raise NotFoundError("Payment not found")
    ensure_transition(PaymentStatus(payment.status), target)

    result = await db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING.value)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Moved by a concurrent writer between the read and the update.
        raise InvalidStateTransitionError("Payment was already processed by another user")
    await db.refresh(payment)
    return payment


async def verify_payment(db: AsyncSession, payment_id: UUID, actor_id: Optional[UUID]) -> Payment:
    """
    Mark a Pending payment Verified and rebuild the student's balance in the same transaction.
    Either both the status and the balance are stored, or neither is.
    """
    try:
        payment = await _transition(
            db,
            payment_id,
            PaymentStatus.VERIFIED,
            {"verified_by": actor_id, "verified_at": datetime.utcnow()},
        )
        balance = await recompute_balance(db, payment.student_id, payment.term, payment.academic_year)
        await log_fee_audit(
            db, "payments", payment.id, "VERIFY",
            {"status": PaymentStatus.PENDING.value},
            {
                "status": PaymentStatus.VERIFIED.value,
                "total_paid": balance.total_paid,
                "balance": balance.balance,
                "balance_status": balance.status,
            },
            actor_id,
        )
        await db.commit()
    except InvalidStateTransitionError:
        await db.rollback()
        logger.warning("Rejected verify on payment %s: not pending", payment_id)
        raise
    except IntegrityError:
        # A concurrent verify for the same student inserted the balance row first.
        await db.rollback()
        logger.warning("Verify on payment %s lost a balance write race", payment_id)
        raise ConflictError("The student's balance was updated concurrently; retry the verification")
    except Exception:
        await db.rollback()
        raise
    await db.refresh(payment)
    logger.info(
        "Payment verified receipt=%s by=%s balance=%s status=%s",
        payment.receipt_number, actor_id, balance.balance, balance.status,
    )
    return payment


async def reject_payment(
    db: AsyncSession,
    payment_id: UUID,
    reason: str,
    actor_id: Optional[UUID],
) -> Payment:
    """Mark a Pending payment Rejected. Balances are untouched: a Pending payment was never counted."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required to reject a payment")
    try:
        payment = await _transition(
            db,
            payment_id,
            PaymentStatus.REJECTED,
            {
                "rejected_by": actor_id,
                "rejected_at": datetime.utcnow(),
                "rejection_reason": reason,
            },
        )
        await log_fee_audit(
            db, "payments", payment.id, "REJECT",
            {"status": PaymentStatus.PENDING.value},
            {"status": PaymentStatus.REJECTED.value, "reason": reason},
            actor_id,
        )
        await db.commit()
    except InvalidStateTransitionError:
        await db.rollback()
        logger.warning("Rejected reject on payment %s: not pending", payment_id)
        raise
    except Exception:
        await db.rollback()
        raise
    await db.refresh(payment)
    logger.info("Payment rejected receipt=%s by=%s", payment.receipt_number, actor_id)
    return payment
