"""Balance reconciler: verified-only counting, classification and idempotent rebuilds."""

from datetime import date
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.balances.service import (
    classify_balance,
    compute_balance,
    get_cached_balance,
    list_balances,
    list_overdue_balances,
    recompute_balance,
    recompute_term_balances,
)
from app.api.v1.fee_structures.service import upsert_fee_structure
from app.api.v1.payments.service import submit_payment
from app.api.v1.payments.workflow import reject_payment, verify_payment
from app.core.enums import PaymentMethod, StudentFeeStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Student, StudentFeeBalance

TERM = "First Term"
YEAR = "2024/2025"


async def _pay(db: AsyncSession, student_id: UUID, amount: int):
    return await submit_payment(db, student_id, amount, PaymentMethod.CASH, TERM, YEAR)


@pytest.mark.parametrize(
    "total_paid, required, expected",
    [
        (0, 55000, StudentFeeStatus.UNPAID),
        (1, 55000, StudentFeeStatus.PARTIAL),
        (54999, 55000, StudentFeeStatus.PARTIAL),
        (55000, 55000, StudentFeeStatus.PAID),
        (60000, 55000, StudentFeeStatus.PAID),
        (0, 0, StudentFeeStatus.UNPAID),
        (500, 0, StudentFeeStatus.PAID),
    ],
)
def test_classify_balance(total_paid: int, required: int, expected: StudentFeeStatus) -> None:
    assert classify_balance(total_paid, required) is expected


@pytest.mark.asyncio
async def test_only_verified_payments_count(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 50000, "levy": 5000})
    verified = await _pay(db_session, student_id, 20000)
    rejected = await _pay(db_session, student_id, 15000)
    await _pay(db_session, student_id, 7000)  # stays Pending
    await verify_payment(db_session, verified.id, None)
    await reject_payment(db_session, rejected.id, "Fake teller", None)

    snapshot = await compute_balance(db_session, student_id, TERM, YEAR)
    assert snapshot.total_paid == 20000
    assert snapshot.balance == 35000
    assert snapshot.status is StudentFeeStatus.PARTIAL


@pytest.mark.asyncio
async def test_recompute_is_idempotent(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 40000})
    payment = await _pay(db_session, student_id, 10000)
    await verify_payment(db_session, payment.id, None)

    def fields(row: StudentFeeBalance) -> tuple:
        return (row.id, row.class_id, row.total_fee_required, row.total_paid, row.balance, row.status)

    first = fields(await recompute_balance(db_session, student_id, TERM, YEAR))
    await db_session.commit()
    second = fields(await recompute_balance(db_session, student_id, TERM, YEAR))
    await db_session.commit()

    assert first == second
    rows = (await db_session.execute(select(func.count(StudentFeeBalance.id)))).scalar()
    assert rows == 1


@pytest.mark.asyncio
async def test_overpayment_gives_negative_balance(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000})
    payment = await _pay(db_session, student_id, 12500)
    await verify_payment(db_session, payment.id, None)

    row = await recompute_balance(db_session, student_id, TERM, YEAR)
    assert row.balance == -2500
    assert row.status == StudentFeeStatus.PAID.value


@pytest.mark.asyncio
async def test_no_fee_structure_means_nothing_required(db_session: AsyncSession, student_id: UUID) -> None:
    snapshot = await compute_balance(db_session, student_id, TERM, YEAR)
    assert (snapshot.total_fee_required, snapshot.total_paid, snapshot.balance) == (0, 0, 0)
    assert snapshot.status is StudentFeeStatus.UNPAID


@pytest.mark.asyncio
async def test_fee_change_is_picked_up_on_recompute(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000})
    payment = await _pay(db_session, student_id, 10000)
    await verify_payment(db_session, payment.id, None)
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000, "sports": 2000})

    row = await recompute_balance(db_session, student_id, TERM, YEAR)
    assert (row.total_fee_required, row.balance, row.status) == (12000, 2000, StudentFeeStatus.PARTIAL.value)


@pytest.mark.asyncio
async def test_fee_change_rebuilds_cached_balances(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    """Replacing a class's fee structure refreshes the cached rows the read and report paths serve."""
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000})
    payment = await _pay(db_session, student_id, 10000)
    await verify_payment(db_session, payment.id, None)
    paid = await list_balances(db_session, TERM, YEAR, status_filter="Paid")
    assert [r.student_id for r in paid] == [student_id]

    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000, "sports": 2000})

    row = await get_cached_balance(db_session, student_id, TERM, YEAR)
    assert (row.total_fee_required, row.total_paid, row.balance, row.status) == (
        12000, 10000, 2000, StudentFeeStatus.PARTIAL.value,
    )
    assert await list_balances(db_session, TERM, YEAR, status_filter="Paid") == []
    # Rebuilding again from the same inputs changes nothing
    again = await recompute_balance(db_session, student_id, TERM, YEAR)
    assert (again.total_fee_required, again.balance, again.status) == (12000, 2000, StudentFeeStatus.PARTIAL.value)


@pytest.mark.asyncio
async def test_fee_change_does_not_create_rows(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 10000})
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 12000})
    assert await get_cached_balance(db_session, student_id, TERM, YEAR) is None


@pytest.mark.asyncio
async def test_overdue_balances(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    other = Student(full_name="Bola Ade", admission_number="ADM/002", class_id=class_id)
    db_session.add(other)
    await db_session.commit()
    other_id = other.id
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 20000}, due_date=date(2024, 10, 1))
    await upsert_fee_structure(db_session, class_id, "Second Term", YEAR, {"tuition": 20000})
    await recompute_term_balances(db_session, TERM, YEAR)
    await recompute_term_balances(db_session, "Second Term", YEAR)
    payment = await _pay(db_session, other_id, 20000)
    await verify_payment(db_session, payment.id, None)

    overdue = await list_overdue_balances(db_session, as_of=date(2024, 10, 2))
    assert [(r.student_id, r.term) for r in overdue] == [(student_id, TERM)]
    assert await list_overdue_balances(db_session, as_of=date(2024, 10, 1)) == []
    assert await list_overdue_balances(db_session, as_of=date(2024, 10, 2), term="Second Term") == []


@pytest.mark.asyncio
async def test_unknown_student(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await compute_balance(db_session, uuid4(), TERM, YEAR)


@pytest.mark.asyncio
async def test_rebuild_term_and_list(db_session: AsyncSession, class_id: UUID, student_id: UUID) -> None:
    other = Student(full_name="Bola Ade", admission_number="ADM/002", class_id=class_id)
    db_session.add(other)
    await db_session.commit()
    other_id = other.id
    await upsert_fee_structure(db_session, class_id, TERM, YEAR, {"tuition": 30000})
    payment = await _pay(db_session, student_id, 30000)
    await verify_payment(db_session, payment.id, None)

    rebuilt = await recompute_term_balances(db_session, TERM, YEAR)
    assert rebuilt == 2

    all_rows = await list_balances(db_session, TERM, YEAR, class_id=class_id)
    by_student = {r.student_id: r.status for r in all_rows}
    assert by_student == {
        student_id: StudentFeeStatus.PAID.value,
        other_id: StudentFeeStatus.UNPAID.value,
    }
    unpaid = await list_balances(db_session, TERM, YEAR, status_filter="Unpaid")
    assert [r.student_id for r in unpaid] == [other_id]

    with pytest.raises(ValidationError):
        await list_balances(db_session, TERM, YEAR, status_filter="Overdue")
