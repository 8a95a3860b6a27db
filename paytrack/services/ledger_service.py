from decimal import Decimal
from typing import Iterable, Optional

from paytrack.db.enums import PaymentStatus
from paytrack.schemas.dto.payment_dto import LedgerTotals, PaymentDTO

ZERO = Decimal("0")


def aggregate(payments: Iterable[PaymentDTO], total_value: Optional[Decimal]) -> LedgerTotals:
    """
    Paid / remaining totals of one project.

    paid_amount is the sum of paid payments only. remaining_amount is
    total_value - paid_amount, not the sum of unpaid payments: deleting a
    pending payment does not change it, and overpayment makes it negative.

    Always recomputed from the full payment set.
    """
    paid_amount = sum(
        (payment.amount for payment in payments if payment.status == PaymentStatus.paid),
        ZERO,
    )
    return LedgerTotals(
        paid_amount=paid_amount,
        remaining_amount=(total_value or ZERO) - paid_amount,
    )
