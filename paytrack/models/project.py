# paytrack/models/project.py
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import Boolean, Date, DateTime, Enum, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base
from paytrack.db.enums import ProjectStatus


class Project(Base):
    __tablename__ = "projects"

    # =========
    # 🔒 Immutable facts
    # =========
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Project UUID")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp")

    # =========
    # ✍️ Business editable
    # =========
    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Project name")
    client: Mapped[str] = mapped_column(String(255), nullable=False, default="", comment="Client display name")
    client_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, comment="Client ID, if linked")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    team_members: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
        comment="User IDs working on the project")

    # =========
    # 📌 Kanban status
    # =========
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        nullable=False,
        default=ProjectStatus.new,
        comment="Kanban column of the project",
    )

    # =========
    # 💰 Billing configuration
    # =========
    total_value: Mapped[Optional[Decimal]] = mapped_column(nullable=True, comment="Contract value, required before activation")
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Anchor day of month for recurring billing")
    has_implementation_fee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    implementation_fee: Mapped[Optional[Decimal]] = mapped_column(nullable=True)
    is_installment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    installment_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    developer_shares: Mapped[Optional[Dict[str, float]]] = mapped_column(
        JSON,
        nullable=True,
        comment="user id -> percentage, no sum constraint")

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name} status={self.status.value}>"
