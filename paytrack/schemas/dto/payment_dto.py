from datetime import date, datetime
from typing import Optional

from paytrack.db.enums import PaymentStatus
from paytrack.schemas.dto.base_dto import BaseDTO, Money


class PaymentDTO(BaseDTO):
    id: str
    project_id: str
    amount: Money
    due_date: date
    status: PaymentStatus = PaymentStatus.pending
    paid_date: Optional[datetime] = None
    description: str = ""


class LedgerTotals(BaseDTO):
    paid_amount: Money
    remaining_amount: Money
