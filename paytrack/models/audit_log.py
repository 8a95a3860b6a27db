# paytrack/models/audit_log.py
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Enum, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base
from paytrack.db.enums import AuditAction, AuditEntityType


class AuditLog(Base):
    __tablename__ = "audit_logs"

    # =========
    # 🔒 Immutable fields (no update, no delete)
    # =========
    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="Audit log UUID")

    project_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        comment="Associated project ID, if applicable")

    entity_type: Mapped[AuditEntityType] = mapped_column(
        Enum(AuditEntityType, name="audit_entity_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        comment="Type of the audited entity")

    entity_id: Mapped[str] = mapped_column(String(36), nullable=False, comment="UUID of the audited entity")

    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action"),
        nullable=False,
        comment="Type of action performed on the entity")

    changed_attribute: Mapped[str] = mapped_column(String(100), nullable=False, comment="Attribute that was changed")

    # create 没有前值，delete 没有后值
    before_value: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True, comment="Value before the change")
    after_value: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True, comment="Value after the change")

    operator_id: Mapped[str] = mapped_column(String(36), nullable=False, comment="Who performed the action")

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when the action was performed")

    def __repr__(self) -> str:
        return (
            f"<AuditLog entity={self.entity_type.value} "
            f"entity_id={self.entity_id} "
            f"action={self.action.value}>"
        )
