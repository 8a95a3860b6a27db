from datetime import date
from typing import Any, Dict, List, Optional

from paytrack.db.enums import AuditEntityType
from paytrack.exceptions import NotFoundError, ValidationError
from paytrack.schemas.dto.task_dto import TaskDTO
from paytrack.services.audit_log_service import AuditLogService
from paytrack.store.mappers import map_task
from paytrack.store.record_store import RecordStore

TASK_FIELDS = ("title", "description", "due_date", "project_id", "assigned_to", "completed")


class TaskService:
    """
    Project tasks. Independent of payments.
    """

    def __init__(self, store: RecordStore, audit_log_service: AuditLogService):
        self.store = store
        self.audit_log_service = audit_log_service

    def create_task(
        self,
        *,
        title: str,
        project_id: str,
        operator_id: str,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        assigned_to: Optional[str] = None,
        completed: bool = False,
    ) -> TaskDTO:
        if not (title or "").strip():
            raise ValidationError("Task title is required", field="title")
        self._require_project(project_id)
        if assigned_to:
            self._require_member(assigned_to)

        task = map_task(self.store.insert("tasks", {
            "title": title.strip(),
            "project_id": project_id,
            "description": description,
            "due_date": due_date,
            "assigned_to": assigned_to,
            "completed": completed,
        }))
        self.audit_log_service.record_create(
            project_id=project_id,
            entity_type=AuditEntityType.Task,
            entity_id=task.id,
            operator_id=operator_id,
        )
        return task

    def update_task(self, *, task_id: str, changes: Dict[str, Any], operator_id: str) -> TaskDTO:
        current = self.get_task(task_id)

        unknown = set(changes) - set(TASK_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        patch = {key: value for key, value in changes.items() if value is not None}
        if "title" in patch and not patch["title"].strip():
            raise ValidationError("Task title is required", field="title")
        if "project_id" in patch:
            self._require_project(patch["project_id"])
        if patch.get("assigned_to"):
            self._require_member(patch["assigned_to"])
        if not patch:
            return current

        task = map_task(self.store.update("tasks", task_id, patch))
        for key, value in patch.items():
            if getattr(current, key) != getattr(task, key):
                self.audit_log_service.record_update(
                    project_id=task.project_id,
                    entity_type=AuditEntityType.Task,
                    entity_id=task_id,
                    changed_attribute=key,
                    before_value=getattr(current, key),
                    after_value=getattr(task, key),
                    operator_id=operator_id,
                )
        return task

    def set_completed(self, *, task_id: str, completed: bool, operator_id: str) -> TaskDTO:
        return self.update_task(task_id=task_id, changes={"completed": completed}, operator_id=operator_id)

    def delete_task(self, *, task_id: str, operator_id: str) -> None:
        current = self.get_task(task_id)
        self.store.delete("tasks", task_id)
        self.audit_log_service.record_delete(
            project_id=current.project_id,
            entity_type=AuditEntityType.Task,
            entity_id=task_id,
            operator_id=operator_id,
        )

    def get_task(self, task_id: str) -> TaskDTO:
        row = self.store.get("tasks", task_id)
        if row is None:
            raise NotFoundError("Task", task_id)
        return map_task(row)

    def list_tasks(self, *, project_id: Optional[str] = None) -> List[TaskDTO]:
        filters = {"project_id": project_id} if project_id else None
        rows = self.store.query("tasks", filters, order_by="created_at", descending=True)
        return [map_task(row) for row in rows]

    def _require_project(self, project_id: str) -> None:
        if self.store.get("projects", project_id) is None:
            raise NotFoundError("Project", project_id)

    def _require_member(self, member_id: str) -> None:
        if self.store.get("team_members", member_id) is None:
            raise NotFoundError("Team member", member_id)
