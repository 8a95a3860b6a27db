from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from paytrack.clock import Clock
from paytrack.db.enums import AuditAction, AuditEntityType
from paytrack.exceptions import PersistenceError
from paytrack.logger import get_logger
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)

SYSTEM_OPERATOR = "SYSTEM"


class AuditLogService:
    """
    Centralized service for recording auditable actions.
    This service is the ONLY place where audit_logs rows are created.

    Audit rows are written after the business write has been committed, so a
    failing audit insert is logged and does not undo the user's action.
    """

    def __init__(self, store: RecordStore, clock: Clock):
        self.store = store
        self.clock = clock

    def serialize_audit_value(self, value) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if hasattr(value, "value"):  # Enum
            return value.value
        if isinstance(value, (int, float, str, bool, list, dict)):
            return value
        return str(value)

    def _normalize_entity_type(self, entity_type: Union[str, AuditEntityType]) -> AuditEntityType:
        if isinstance(entity_type, AuditEntityType):
            return entity_type
        text = str(entity_type).strip().lower()
        for member in AuditEntityType:
            if member.value == text or member.name.lower() == text:
                return member
        raise ValueError(f"Unknown entity_type: {entity_type}. Valid values: {[e.value for e in AuditEntityType]}")

    def _write(
        self,
        *,
        project_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        action: AuditAction,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> None:
        record = {
            "id": str(uuid4()),
            "project_id": project_id,
            "entity_type": self._normalize_entity_type(entity_type),
            "entity_id": entity_id,
            "action": action,
            "changed_attribute": changed_attribute,
            "before_value": self.serialize_audit_value(before_value),
            "after_value": self.serialize_audit_value(after_value),
            "operator_id": operator_id,
            "timestamp": self.clock.now(),
        }
        try:
            self.store.insert("audit_logs", record)
        except PersistenceError as e:
            logger.warning(
                f"Audit entry lost: {action.value} {record['entity_type'].value} {entity_id} ({e.message})"
            )

    def record_create(
        self,
        *,
        project_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        operator_id: str,
    ) -> None:
        '''
        Record the creation of a project, payment, task, client, member or attachment.

        :param project_id: owning project ID, optional
        :param entity_type: entity type, string or AuditEntityType
        :param entity_id: created entity ID
        :param operator_id: who created it
        '''
        self._write(
            project_id=project_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.create,
            changed_attribute="__all__",
            before_value=None,
            after_value=None,
            operator_id=operator_id,
        )

    def record_update(
        self,
        *,
        project_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> None:
        '''
        Record a user change of a single attribute.

        :param changed_attribute: attribute name, e.g. "status"
        :param before_value: value before the change
        :param after_value: value after the change
        '''
        self._write(
            project_id=project_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.update,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id=operator_id,
        )

    def record_delete(
        self,
        *,
        project_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        operator_id: str,
    ) -> None:
        self._write(
            project_id=project_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.delete,
            changed_attribute="__all__",
            before_value=None,
            after_value=None,
            operator_id=operator_id,
        )

    def record_system_update(
        self,
        *,
        project_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
    ) -> None:
        '''
        Record a change made by the system rather than a user:
        schedule generation on activation, the overdue sweep.
        '''
        self._write(
            project_id=project_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.system,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id=SYSTEM_OPERATOR,
        )

    def list_for_entity(
        self,
        *,
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
    ) -> List[Dict[str, Any]]:
        return self.store.query(
            "audit_logs",
            {
                "entity_type": self._normalize_entity_type(entity_type),
                "entity_id": entity_id,
            },
            order_by="timestamp",
        )

    def list_for_project(self, project_id: str) -> List[Dict[str, Any]]:
        '''Full audit trail of a project: the project itself and its payments, tasks and attachments.'''
        return self.store.query("audit_logs", {"project_id": project_id}, order_by="timestamp")
