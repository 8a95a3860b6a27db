from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from paytrack.db.enums import AuditEntityType, ProjectStatus
from paytrack.exceptions import NotFoundError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.dto.project_dto import ProjectDTO, ProjectWithPaymentsDTO
from paytrack.schemas.operation_result import OperationResult
from paytrack.services.audit_log_service import AuditLogService
from paytrack.services.ledger_service import aggregate
from paytrack.services.lifecycle_service import ProjectLifecycle
from paytrack.store.mappers import map_payment, map_project, map_task, to_wire_value
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)

# 用户可编辑字段；status 只能通过 transition_status 修改
EDITABLE_FIELDS = (
    "name",
    "client",
    "client_id",
    "total_value",
    "team_members",
    "deadline",
    "description",
    "is_recurring",
    "payment_date",
    "has_implementation_fee",
    "implementation_fee",
    "is_installment",
    "installment_count",
    "developer_shares",
)

# 开关关闭时清空对应字段
DEPENDENT_FIELDS = {
    "is_recurring": "payment_date",
    "has_implementation_fee": "implementation_fee",
    "is_installment": "installment_count",
}


class ProjectService:
    """
    Service for managing Project lifecycle and metadata.
    status is never written here directly: it goes through ProjectLifecycle,
    which owns the activation side effect.
    Deleting a project removes its payments, tasks and attachments.
    """

    def __init__(
        self,
        store: RecordStore,
        audit_log_service: AuditLogService,
        lifecycle: ProjectLifecycle,
    ):
        self.store = store
        self.audit_log_service = audit_log_service
        self.lifecycle = lifecycle

    def create_project(
        self,
        *,
        name: str,
        operator_id: str,
        client: str = "",
        client_id: Optional[str] = None,
        total_value: Optional[Decimal] = None,
        team_members: Optional[List[str]] = None,
        deadline: Optional[date] = None,
        description: str = "",
        is_recurring: bool = False,
        payment_date: Optional[date] = None,
        has_implementation_fee: bool = False,
        implementation_fee: Optional[Decimal] = None,
        is_installment: bool = False,
        installment_count: Optional[int] = None,
        developer_shares: Optional[Dict[str, float]] = None,
    ) -> ProjectDTO:
        '''
        Create a new project card.

        :param name: project name, required
        :param operator_id: who created it
        :param total_value: contract value; may stay empty until activation
        :param is_recurring: bill monthly once the project becomes active
        :param payment_date: anchor date of the monthly billing
        :param is_installment: split the value into installment_count payments
        :param developer_shares: user id -> percentage of the value
        :return: the created project
        '''
        # 新项目总是从 new 开始；进入 active 只能经过 lifecycle
        values = {
            "name": (name or "").strip(),
            "client": client or "",
            "client_id": client_id,
            "total_value": total_value,
            "status": ProjectStatus.new,
            "team_members": team_members or [],
            "deadline": deadline,
            "description": description or "",
            "is_recurring": is_recurring,
            "payment_date": payment_date if is_recurring else None,
            "has_implementation_fee": has_implementation_fee,
            "implementation_fee": implementation_fee if has_implementation_fee else None,
            "is_installment": is_installment,
            "installment_count": installment_count if is_installment else None,
            "developer_shares": developer_shares or {},
        }
        self._validate(values)

        project = map_project(self.store.insert("projects", values))

        self.audit_log_service.record_create(
            project_id=project.id,
            entity_type=AuditEntityType.Project,
            entity_id=project.id,
            operator_id=operator_id,
        )
        return project

    def update_project(
        self,
        *,
        project_id: str,
        changes: Dict[str, Any],
        operator_id: str,
    ) -> ProjectDTO:
        '''
        Patch editable project fields; every changed attribute is audited.

        :param project_id: project ID
        :param changes: field -> new value, None values are ignored
        :param operator_id: who edited it
        :return: the updated project
        '''
        current = self.get_project(project_id)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

        patch = {
            key: value
            for key, value in changes.items()
            if value is not None and value != getattr(current, key)
        }
        if not patch:
            return current  # 无需更新

        merged = current.model_dump()
        merged.update(patch)
        for flag, field in DEPENDENT_FIELDS.items():
            if not merged[flag] and merged[field] is not None:
                merged[field] = None
                patch[field] = None
        patch = {key: value for key, value in patch.items() if value != getattr(current, key)}
        if not patch:
            return current
        self._validate(merged)

        updated = map_project(self.store.update("projects", project_id, patch))

        for key, value in patch.items():
            self.audit_log_service.record_update(
                project_id=project_id,
                entity_type=AuditEntityType.Project,
                entity_id=project_id,
                changed_attribute=key,
                before_value=to_wire_value(getattr(current, key)),
                after_value=to_wire_value(value),
                operator_id=operator_id,
            )
        return updated

    def transition_status(
        self,
        *,
        project_id: str,
        new_status: Union[str, ProjectStatus],
        operator_id: str,
    ) -> OperationResult:
        return self.lifecycle.transition(
            project_id=project_id,
            new_status=new_status,
            operator_id=operator_id,
        )

    def get_project(self, project_id: str) -> ProjectDTO:
        row = self.store.get("projects", project_id)
        if row is None:
            raise NotFoundError("Project", project_id)
        return map_project(row)

    def list_projects(self, *, status: Optional[Union[str, ProjectStatus]] = None) -> List[ProjectDTO]:
        filters = {"status": status} if status else None
        rows = self.store.query("projects", filters, order_by="created_at", descending=True)
        return [map_project(row) for row in rows]

    def get_project_with_payments(self, project_id: str) -> ProjectWithPaymentsDTO:
        project = self.get_project(project_id)
        return self._with_payments(project)

    def list_projects_with_payments(
        self,
        *,
        status: Optional[Union[str, ProjectStatus]] = None,
    ) -> List[ProjectWithPaymentsDTO]:
        return [self._with_payments(project) for project in self.list_projects(status=status)]

    def delete_project(self, *, project_id: str, operator_id: str) -> None:
        self.get_project(project_id)

        # 先删子记录，再删项目
        for collection in ("payments", "tasks", "attachments"):
            for row in self.store.query(collection, {"project_id": project_id}):
                self.store.delete(collection, row["id"])
        self.store.delete("projects", project_id)

        self.audit_log_service.record_delete(
            project_id=project_id,
            entity_type=AuditEntityType.Project,
            entity_id=project_id,
            operator_id=operator_id,
        )
        logger.info(f"Project {project_id} deleted by {operator_id}")

    def _with_payments(self, project: ProjectDTO) -> ProjectWithPaymentsDTO:
        payments = [
            map_payment(row)
            for row in self.store.query("payments", {"project_id": project.id}, order_by="due_date")
        ]
        tasks = [
            map_task(row)
            for row in self.store.query("tasks", {"project_id": project.id}, order_by="created_at")
        ]
        totals = aggregate(payments, project.total_value)
        return ProjectWithPaymentsDTO(
            **project.model_dump(),
            payments=payments,
            tasks=tasks,
            paid_amount=totals.paid_amount,
            remaining_amount=totals.remaining_amount,
        )

    def _validate(self, values: Dict[str, Any]) -> None:
        if not values.get("name"):
            raise ValidationError("Project name is required", field="name")

        total_value = values.get("total_value")
        if total_value is not None and Decimal(str(total_value)) < 0:
            raise ValidationError("Total value cannot be negative", field="total_value")

        if values.get("is_installment"):
            count = values.get("installment_count")
            if count is not None and count < 1:
                raise ValidationError("Installment count must be at least 1", field="installment_count")

        if values.get("has_implementation_fee"):
            fee = values.get("implementation_fee")
            if fee is not None and Decimal(str(fee)) < 0:
                raise ValidationError("Implementation fee cannot be negative", field="implementation_fee")

        for member_id, share in (values.get("developer_shares") or {}).items():
            if share < 0 or share > 100:
                raise ValidationError(
                    f"Share of {member_id} must be between 0 and 100, got {share}",
                    field="developer_shares",
                )
