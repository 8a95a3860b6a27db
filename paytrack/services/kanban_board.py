from typing import Dict, List, Optional, Union

from paytrack.db.enums import ProjectStatus
from paytrack.logger import get_logger
from paytrack.schemas.dto.base_dto import BaseDTO
from paytrack.schemas.dto.project_dto import ProjectWithPaymentsDTO
from paytrack.schemas.error_type import ErrorType
from paytrack.schemas.operation_result import OperationResult
from paytrack.services.project_service import ProjectService
from paytrack.store.record_store import ChangeEvent, RecordStore

logger = get_logger(__name__)


class Notification(BaseDTO):
    level: str  # success | warning | error
    message: str


class KanbanBoard:
    """
    In-memory view of the project board.

    A drop is applied to the card first and confirmed by the lifecycle call
    afterwards; a failed call puts the card back where it was. Any committed
    change to projects or payments marks the view stale until ``refresh``.
    """

    def __init__(self, project_service: ProjectService, store: RecordStore):
        self.project_service = project_service
        self.store = store
        self.cards: List[ProjectWithPaymentsDTO] = []
        self.notifications: List[Notification] = []
        self.stale = True
        self._unsubscribers = [
            store.subscribe("projects", self._on_change),
            store.subscribe("payments", self._on_change),
        ]

    def refresh(self) -> List[ProjectWithPaymentsDTO]:
        self.cards = self.project_service.list_projects_with_payments()
        self.stale = False
        return self.cards

    def columns(self) -> Dict[str, List[ProjectWithPaymentsDTO]]:
        grouped = {status.value: [] for status in ProjectStatus}
        for card in self.cards:
            grouped[card.status.value].append(card)
        return grouped

    def move(self, project_id: str, new_status: Union[str, ProjectStatus], operator_id: str) -> OperationResult:
        '''
        Drop a card on another column.

        :param project_id: card being moved
        :param new_status: target column
        :param operator_id: who moved it
        :return: the lifecycle result; on failure the card is back in its old column
        '''
        card = self._card(project_id)
        snapshot = card.status if card is not None else None

        # 1. 乐观更新；未知状态交给 lifecycle 返回 INPUT_ERROR
        if card is not None and _is_status(new_status):
            card.status = ProjectStatus(new_status)

        # 2. 确认；异常时同样回滚
        try:
            result = self.project_service.transition_status(
                project_id=project_id,
                new_status=new_status,
                operator_id=operator_id,
            )
        except Exception:
            if card is not None:
                card.status = snapshot
            raise

        # 3. 失败回滚
        if not result.ok:
            if card is not None:
                card.status = snapshot
            logger.warning(f"Move of project {project_id} to {new_status} reverted: {result.error_message}")
            self._notify("error", self._failure_message(result))
            return result

        if result.explanation:
            self._notify("warning", result.explanation)
        else:
            self._notify("success", "Project status updated")
        return result

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _card(self, project_id: str) -> Optional[ProjectWithPaymentsDTO]:
        for card in self.cards:
            if card.id == project_id:
                return card
        return None

    def _on_change(self, event: ChangeEvent) -> None:
        self.stale = True

    def _notify(self, level: str, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))

    @staticmethod
    def _failure_message(result: OperationResult) -> str:
        if result.error_type == ErrorType.VALIDATION_ERROR:
            return f"Project cannot be activated: {result.error_message}"
        if result.error_type == ErrorType.NOT_FOUND:
            return "Project no longer exists"
        return f"Could not update project status: {result.error_message}"


def _is_status(value) -> bool:
    if isinstance(value, ProjectStatus):
        return True
    return value in {status.value for status in ProjectStatus}
