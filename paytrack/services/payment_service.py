from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from paytrack.clock import Clock
from paytrack.db.enums import AuditEntityType, PaymentStatus
from paytrack.exceptions import NotFoundError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.dto.payment_dto import LedgerTotals, PaymentDTO
from paytrack.services.audit_log_service import AuditLogService
from paytrack.services.ledger_service import aggregate
from paytrack.store.mappers import map_payment, map_project
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)


class PaymentService:
    """
    Service for payments created by hand.

    Responsibilities:
    - Create a pending payment for a project
    - Mark a payment as paid (status + paid_date, nothing else)
    - Delete a payment
    - Flag pending payments past their due date as overdue
    - Recompute a project's ledger totals after any of the above
    """

    def __init__(
        self,
        store: RecordStore,
        audit_log_service: AuditLogService,
        clock: Clock,
    ):
        self.store = store
        self.audit_log_service = audit_log_service
        self.clock = clock

    def create_payment(
        self,
        *,
        project_id: str,
        amount: Decimal,
        due_date: date,
        description: str = "",
        operator_id: str,
    ) -> PaymentDTO:
        '''
        Create a pending payment.

        :param project_id: owning project ID
        :param amount: amount due, must be positive
        :param due_date: due date
        :param description: human label shown in the payments table
        :param operator_id: who created it
        '''
        if self.store.get("projects", project_id) is None:
            raise NotFoundError("Project", project_id)
        if amount is None or Decimal(str(amount)) <= 0:
            raise ValidationError("Payment amount must be positive", field="amount")
        if due_date is None:
            raise ValidationError("Due date is required", field="due_date")

        payment = map_payment(self.store.insert("payments", {
            "project_id": project_id,
            "amount": amount,
            "due_date": due_date,
            "status": PaymentStatus.pending,
            "description": description or "",
        }))

        self.audit_log_service.record_create(
            project_id=project_id,
            entity_type=AuditEntityType.Payment,
            entity_id=payment.id,
            operator_id=operator_id,
        )
        return payment

    def mark_as_paid(self, *, payment_id: str, operator_id: str) -> PaymentDTO:
        current = self.get_payment(payment_id)

        paid = map_payment(self.store.update("payments", payment_id, {
            "status": PaymentStatus.paid,
            "paid_date": self.clock.now(),
        }))

        self.audit_log_service.record_update(
            project_id=paid.project_id,
            entity_type=AuditEntityType.Payment,
            entity_id=payment_id,
            changed_attribute="status",
            before_value=current.status,
            after_value=PaymentStatus.paid,
            operator_id=operator_id,
        )
        return paid

    def delete_payment(self, *, payment_id: str, operator_id: str) -> None:
        current = self.get_payment(payment_id)
        self.store.delete("payments", payment_id)

        self.audit_log_service.record_delete(
            project_id=current.project_id,
            entity_type=AuditEntityType.Payment,
            entity_id=payment_id,
            operator_id=operator_id,
        )

    def get_payment(self, payment_id: str) -> PaymentDTO:
        row = self.store.get("payments", payment_id)
        if row is None:
            raise NotFoundError("Payment", payment_id)
        return map_payment(row)

    def list_payments(
        self,
        *,
        project_id: Optional[str] = None,
        status: Optional[Union[str, PaymentStatus]] = None,
    ) -> List[PaymentDTO]:
        filters = {}
        if project_id:
            filters["project_id"] = project_id
        if status:
            filters["status"] = status
        rows = self.store.query("payments", filters, order_by="due_date")
        return [map_payment(row) for row in rows]

    def project_totals(self, project_id: str) -> LedgerTotals:
        row = self.store.get("projects", project_id)
        if row is None:
            raise NotFoundError("Project", project_id)
        project = map_project(row)
        return aggregate(self.list_payments(project_id=project_id), project.total_value)

    def mark_overdue_payments(self, *, as_of: Optional[date] = None) -> List[PaymentDTO]:
        '''
        Pending payments due before ``as_of`` become overdue.

        :param as_of: reference day, defaults to today
        :return: the payments that changed
        '''
        as_of = as_of or self.clock.today()
        changed = []
        for payment in self.list_payments(status=PaymentStatus.pending):
            if payment.due_date >= as_of:
                continue
            changed.append(map_payment(self.store.update("payments", payment.id, {"status": PaymentStatus.overdue})))
            self.audit_log_service.record_system_update(
                project_id=payment.project_id,
                entity_type=AuditEntityType.Payment,
                entity_id=payment.id,
                changed_attribute="status",
                before_value=PaymentStatus.pending,
                after_value=PaymentStatus.overdue,
            )
        if changed:
            logger.info(f"{len(changed)} payments marked overdue as of {as_of.isoformat()}")
        return changed
