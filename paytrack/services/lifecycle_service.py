from typing import Callable, Dict, Optional, Tuple, Union

from paytrack.db.enums import AuditEntityType, ProjectStatus
from paytrack.exceptions import NotFoundError, PersistenceError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.dto.project_dto import ProjectDTO
from paytrack.schemas.error_type import ErrorType
from paytrack.schemas.operation_result import OperationResult
from paytrack.services.audit_log_service import AuditLogService
from paytrack.services.schedule_service import PaymentScheduleGenerator, ScheduleResult
from paytrack.store.mappers import map_project
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)

SideEffect = Callable[[ProjectDTO], ScheduleResult]


class ProjectLifecycle:
    """
    Project status changes.

    Any status may move to any other; nothing is rejected for being out of
    order. Side effects are looked up by the (from, to) pair. The only one is
    schedule generation when a project enters "active" from another status.
    """

    def __init__(
        self,
        store: RecordStore,
        audit_log_service: AuditLogService,
        schedule_generator: PaymentScheduleGenerator,
    ):
        self.store = store
        self.audit_log_service = audit_log_service
        self.schedule_generator = schedule_generator
        self._effects: Dict[Tuple[ProjectStatus, ProjectStatus], SideEffect] = {
            (status, ProjectStatus.active): self._generate_schedule
            for status in ProjectStatus
            if status is not ProjectStatus.active
        }

    def side_effect_for(self, previous: ProjectStatus, new: ProjectStatus) -> Optional[SideEffect]:
        return self._effects.get((previous, new))

    def transition(
        self,
        *,
        project_id: str,
        new_status: Union[str, ProjectStatus],
        operator_id: str,
    ) -> OperationResult:
        '''
        Move a project to another kanban column.

        :param project_id: project ID
        :param new_status: target status, enum or its value
        :param operator_id: who moved the card
        :return: ok with the updated project (and generated payments), or the failure
        '''
        try:
            target = ProjectStatus(new_status)
        except ValueError:
            return OperationResult.failure(ErrorType.INPUT_ERROR, f"Unknown project status: {new_status}")

        try:
            row = self.store.get("projects", project_id)
        except PersistenceError as e:
            return OperationResult.failure(ErrorType.DATABASE_ERROR, e.message)
        if row is None:
            return OperationResult.failure(ErrorType.NOT_FOUND, f"Project not found: {project_id}")

        project = map_project(row)
        previous = project.status
        effect = self.side_effect_for(previous, target)

        # 1. 写状态之前先校验副作用需要的输入
        if effect is not None:
            try:
                self.schedule_generator.validate(project)
            except ValidationError as e:
                return OperationResult.failure(ErrorType.VALIDATION_ERROR, e.message)

        # 2. 写状态；失败则副作用不执行
        try:
            updated = map_project(self.store.update("projects", project_id, {"status": target}))
        except (PersistenceError, NotFoundError) as e:
            logger.error(f"Status change {previous.value} -> {target.value} failed for project {project_id}: {e}")
            return OperationResult.failure(ErrorType.DATABASE_ERROR, f"Could not update project status: {e}")

        self.audit_log_service.record_update(
            project_id=project_id,
            entity_type=AuditEntityType.Project,
            entity_id=project_id,
            changed_attribute="status",
            before_value=previous,
            after_value=target,
            operator_id=operator_id,
        )
        logger.info(f"Project {project_id} moved {previous.value} -> {target.value}")

        data = {"project": updated.to_api()}
        if effect is None:
            return OperationResult.success(data)

        # 3. 副作用：同步执行一次
        schedule = effect(updated)
        data["payments"] = [payment.to_api() for payment in schedule.created]
        data["schedule"] = {
            "ok": schedule.ok,
            "failedNumbers": schedule.failed_numbers,
            "rolledBack": schedule.rolled_back,
        }
        explanation = None
        if not schedule.ok or schedule.failed_numbers:
            explanation = f"Status updated, but the payment schedule is incomplete: {schedule.error_message}"
        return OperationResult.success(data, explanation=explanation)

    def _generate_schedule(self, project: ProjectDTO) -> ScheduleResult:
        result = self.schedule_generator.generate_for_project(project)
        if result.created:
            self.audit_log_service.record_system_update(
                project_id=project.id,
                entity_type=AuditEntityType.Project,
                entity_id=project.id,
                changed_attribute="payment_schedule",
                before_value=None,
                after_value=len(result.created),
            )
        return result
