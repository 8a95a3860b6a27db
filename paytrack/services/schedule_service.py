from abc import ABC, abstractmethod
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from paytrack.clock import Clock
from paytrack.db.enums import PaymentStatus, ScheduleInsertMode
from paytrack.exceptions import NotFoundError, PersistenceError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.dto.base_dto import BaseDTO, Money
from paytrack.schemas.dto.payment_dto import PaymentDTO
from paytrack.schemas.dto.project_dto import ProjectDTO
from paytrack.store.mappers import map_payment, to_row
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)

DEFAULT_INSTALLMENTS = 12  # one year of monthly billing
CENT = Decimal("0.01")


class PaymentDraft(BaseDTO):
    """A payment computed by the generator, not yet persisted."""
    project_id: str
    amount: Money
    due_date: date
    status: PaymentStatus = PaymentStatus.pending
    description: str

    def to_record(self) -> Dict[str, Any]:
        return to_row(self)


class ScheduleResult(BaseDTO):
    ok: bool
    created: List[PaymentDTO] = []
    failed_numbers: List[int] = []  # 1-based installment numbers that were not written
    rolled_back: bool = False
    error_message: Optional[str] = None


# ======================================================
# 📐 Pure schedule computation
# ======================================================

def validate_schedule_inputs(project: ProjectDTO) -> None:
    '''
    Reject a project whose billing configuration cannot produce a schedule.
    Raised before any write happens.
    '''
    if project.total_value is None:
        raise ValidationError("Project total value is required before activation", field="total_value")
    if project.total_value < 0:
        raise ValidationError("Project total value cannot be negative", field="total_value")
    if project.is_installment and project.installment_count is not None and project.installment_count <= 0:
        raise ValidationError(
            f"Installment count must be at least 1, got {project.installment_count}",
            field="installment_count",
        )


def resolve_installments(project: ProjectDTO) -> Tuple[int, Decimal]:
    '''
    Number of payments and per-payment amount.
    Both come from the same branch so they always agree.
    '''
    if project.is_installment and project.installment_count:
        count = project.installment_count
    else:
        count = DEFAULT_INSTALLMENTS
    amount = (project.total_value / count).quantize(CENT, rounding=ROUND_HALF_UP)
    return count, amount


def generate_schedule(project: ProjectDTO, today: date) -> List[PaymentDraft]:
    '''
    Monthly payment schedule of a recurring project.

    Due dates are anchor + i months, each computed from the anchor so a
    31st anchor clamps to the last day of shorter months without drifting.

    :param project: project being activated
    :param today: anchor when the project has no payment_date
    :return: drafts in due date order, empty for non-recurring projects
    '''
    if not project.is_recurring:
        return []

    validate_schedule_inputs(project)
    count, amount = resolve_installments(project)
    anchor = project.payment_date or today

    return [
        PaymentDraft(
            project_id=project.id,
            amount=amount,
            due_date=anchor + relativedelta(months=i),
            status=PaymentStatus.pending,
            description=f"Payment {i + 1} of {count} - {project.name}",
        )
        for i in range(count)
    ]


# ======================================================
# 💾 Insert strategies
# ======================================================

class InsertStrategy(ABC):
    """How a batch of drafts is written through the store."""

    @abstractmethod
    def insert(self, store: RecordStore, drafts: List[PaymentDraft]) -> ScheduleResult:
        ...


class BestEffortInsert(InsertStrategy):
    """
    Every payment is an independent write. A failed item is logged and
    skipped; the batch counts as written when at least one item made it.
    """

    def insert(self, store: RecordStore, drafts: List[PaymentDraft]) -> ScheduleResult:
        created: List[PaymentDTO] = []
        failed: List[int] = []

        for number, draft in enumerate(drafts, start=1):
            try:
                created.append(map_payment(store.insert("payments", draft.to_record())))
            except PersistenceError as e:
                logger.error(f"Payment {number} of {len(drafts)} for project {draft.project_id} not written: {e.message}")
                failed.append(number)

        ok = not drafts or bool(created)
        error_message = None
        if failed:
            error_message = f"{len(failed)} of {len(drafts)} payments could not be written"
        return ScheduleResult(ok=ok, created=created, failed_numbers=failed, error_message=error_message)


class AllOrNothingInsert(InsertStrategy):
    """
    Stops at the first failed write and deletes what was already written,
    so the project ends up with either the full schedule or none of it.
    """

    def insert(self, store: RecordStore, drafts: List[PaymentDraft]) -> ScheduleResult:
        created: List[PaymentDTO] = []

        for number, draft in enumerate(drafts, start=1):
            try:
                created.append(map_payment(store.insert("payments", draft.to_record())))
            except PersistenceError as e:
                logger.error(
                    f"Payment {number} of {len(drafts)} for project {draft.project_id} not written, "
                    f"rolling back {len(created)} payments: {e.message}"
                )
                leftovers = self._compensate(store, created)
                return ScheduleResult(
                    ok=False,
                    created=leftovers,
                    failed_numbers=list(range(number, len(drafts) + 1)),
                    rolled_back=not leftovers,
                    error_message=f"Schedule not written: payment {number} of {len(drafts)} failed",
                )

        return ScheduleResult(ok=True, created=created)

    def _compensate(self, store: RecordStore, created: List[PaymentDTO]) -> List[PaymentDTO]:
        '''Delete already written payments; returns the ones that could not be removed.'''
        leftovers = []
        for payment in created:
            try:
                store.delete("payments", payment.id)
            except NotFoundError:
                continue
            except PersistenceError as e:
                logger.error(f"Compensating delete of payment {payment.id} failed: {e.message}")
                leftovers.append(payment)
        return leftovers


def build_insert_strategy(mode) -> InsertStrategy:
    mode = ScheduleInsertMode(mode) if not isinstance(mode, ScheduleInsertMode) else mode
    if mode == ScheduleInsertMode.all_or_nothing:
        return AllOrNothingInsert()
    return BestEffortInsert()


class PaymentScheduleGenerator:
    """
    Computes and persists the payment schedule of a project entering "active".

    It only ever appends payments; running it twice for the same project
    writes a second full schedule.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Clock,
        strategy: Optional[InsertStrategy] = None,
    ):
        self.store = store
        self.clock = clock
        self.strategy = strategy or BestEffortInsert()

    def validate(self, project: ProjectDTO) -> None:
        if project.is_recurring:
            validate_schedule_inputs(project)

    def generate_for_project(self, project: ProjectDTO) -> ScheduleResult:
        drafts = generate_schedule(project, self.clock.today())
        if not drafts:
            return ScheduleResult(ok=True)

        result = self.strategy.insert(self.store, drafts)
        logger.info(
            f"Schedule for project {project.id}: {len(result.created)} of {len(drafts)} payments written"
        )
        return result
