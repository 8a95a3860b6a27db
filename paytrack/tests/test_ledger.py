# paytrack/tests/test_ledger.py
from datetime import date
from decimal import Decimal

from paytrack.db.enums import PaymentStatus
from paytrack.schemas.dto.payment_dto import PaymentDTO
from paytrack.services.ledger_service import aggregate


def payment(amount, status, number=1):
    return PaymentDTO(
        id=f"pay-{number}",
        project_id="p-1",
        amount=Decimal(amount),
        due_date=date(2024, number, 1),
        status=status,
    )


def test_only_paid_payments_count_as_paid():
    payments = [
        payment("1000", PaymentStatus.paid, 1),
        payment("1000", PaymentStatus.pending, 2),
        payment("1000", PaymentStatus.overdue, 3),
        payment("1000", PaymentStatus.cancelled, 4),
    ]

    totals = aggregate(payments, Decimal("12000"))

    assert totals.paid_amount == Decimal("1000")
    assert totals.remaining_amount == Decimal("11000")


def test_paid_plus_remaining_equals_total_in_any_order():
    payments = [payment(str(100 * n), PaymentStatus.paid, n) for n in range(1, 6)]
    total = Decimal("5000")

    forward = aggregate(payments, total)
    backward = aggregate(list(reversed(payments)), total)

    assert forward == backward
    assert forward.paid_amount + forward.remaining_amount == total


def test_overpayment_makes_remaining_negative():
    totals = aggregate([payment("700", PaymentStatus.paid)], Decimal("500"))

    assert totals.remaining_amount == Decimal("-200")


def test_empty_ledger():
    totals = aggregate([], Decimal("800"))

    assert totals.paid_amount == Decimal("0")
    assert totals.remaining_amount == Decimal("800")


def test_missing_total_counts_as_zero():
    totals = aggregate([payment("50", PaymentStatus.paid)], None)

    assert totals.remaining_amount == Decimal("-50")


def test_one_of_twelve_paid(make_project, project_service, payment_service):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    project_service.transition_status(project_id=project.id, new_status="active", operator_id="tester")
    first = payment_service.list_payments(project_id=project.id)[0]

    payment_service.mark_as_paid(payment_id=first.id, operator_id="tester")

    view = project_service.get_project_with_payments(project.id)
    assert view.paid_amount == Decimal("1000")
    assert view.remaining_amount == Decimal("11000")


def test_deleting_pending_payment_keeps_remaining(make_project, project_service, payment_service):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    project_service.transition_status(project_id=project.id, new_status="active", operator_id="tester")
    payments = payment_service.list_payments(project_id=project.id)
    payment_service.mark_as_paid(payment_id=payments[0].id, operator_id="tester")
    before = payment_service.project_totals(project.id)

    payment_service.delete_payment(payment_id=payments[5].id, operator_id="tester")

    after = payment_service.project_totals(project.id)
    assert after == before
    assert len(payment_service.list_payments(project_id=project.id)) == 11
