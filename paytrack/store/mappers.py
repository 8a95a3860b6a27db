# paytrack/store/mappers.py
"""
Row <-> DTO mapping.

Rows use the storage column names (snake_case); DTO attributes use the same
names and only their API aliases are camelCase, so the mapping is a field for
field copy plus ISO date / decimal string conversion and the defaults the
dashboard expects for missing values.
"""
from datetime import date, datetime
from decimal import Decimal
import enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from paytrack.db.enums import PaymentStatus, ProjectStatus, UserRole
from paytrack.schemas.dto.directory_dto import AttachmentDTO, ClientDTO, TeamMemberDTO
from paytrack.schemas.dto.payment_dto import PaymentDTO
from paytrack.schemas.dto.project_dto import ProjectDTO
from paytrack.schemas.dto.task_dto import TaskDTO


def to_wire_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def to_row(dto: BaseModel, *, exclude: Optional[set] = None) -> Dict[str, Any]:
    """Inverse of the map_* functions: DTO -> storage row."""
    return {
        key: to_wire_value(value)
        for key, value in dto.model_dump(exclude=exclude).items()
    }


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value))


def parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def map_project(row: Dict[str, Any]) -> ProjectDTO:
    return ProjectDTO(
        id=row["id"],
        name=row["name"],
        client=row.get("client") or "",
        client_id=row.get("client_id") or None,
        total_value=parse_decimal(row.get("total_value")),
        status=ProjectStatus(row.get("status") or ProjectStatus.new.value),
        team_members=row.get("team_members") or [],
        deadline=parse_date(row.get("deadline")),
        description=row.get("description") or "",
        created_at=parse_datetime(row.get("created_at")),
        is_recurring=bool(row.get("is_recurring")),
        payment_date=parse_date(row.get("payment_date")),
        has_implementation_fee=bool(row.get("has_implementation_fee")),
        implementation_fee=parse_decimal(row.get("implementation_fee")),
        is_installment=bool(row.get("is_installment")),
        installment_count=row.get("installment_count"),
        developer_shares=row.get("developer_shares") or {},
    )


def map_payment(row: Dict[str, Any]) -> PaymentDTO:
    return PaymentDTO(
        id=row["id"],
        project_id=row["project_id"],
        amount=parse_decimal(row["amount"]),
        due_date=parse_date(row["due_date"]),
        status=PaymentStatus(row.get("status") or PaymentStatus.pending.value),
        paid_date=parse_datetime(row.get("paid_date")),
        description=row.get("description") or "",
    )


def map_task(row: Dict[str, Any]) -> TaskDTO:
    return TaskDTO(
        id=row["id"],
        project_id=row["project_id"],
        title=row["title"],
        description=row.get("description") or None,
        due_date=parse_date(row.get("due_date")),
        assigned_to=row.get("assigned_to") or None,
        completed=bool(row.get("completed")),
        created_at=parse_datetime(row.get("created_at")),
    )


def map_client(row: Dict[str, Any]) -> ClientDTO:
    return ClientDTO(
        id=row["id"],
        name=row["name"],
        email=row.get("email"),
        phone=row.get("phone"),
        address=row.get("address"),
        city=row.get("city"),
        state=row.get("state"),
        notes=row.get("notes"),
        created_at=parse_datetime(row.get("created_at")),
    )


def map_team_member(row: Dict[str, Any]) -> TeamMemberDTO:
    return TeamMemberDTO(
        id=row["id"],
        name=row.get("name") or "Unknown User",
        email=row.get("email") or "",
        role=UserRole(row.get("role") or UserRole.developer.value),
        avatar_url=row.get("avatar_url"),
    )


def map_attachment(row: Dict[str, Any]) -> AttachmentDTO:
    return AttachmentDTO(
        id=row["id"],
        project_id=row["project_id"],
        file_name=row["file_name"],
        content_type=row.get("content_type"),
        size_bytes=row.get("size_bytes") or 0,
        sha256=row["sha256"],
        uploaded_by=row["uploaded_by"],
        created_at=parse_datetime(row.get("created_at")),
    )
