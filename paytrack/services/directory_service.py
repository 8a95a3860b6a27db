from typing import Any, Dict, List, Optional

from paytrack.db.enums import AuditEntityType, UserRole
from paytrack.exceptions import NotFoundError, ValidationError
from paytrack.schemas.dto.directory_dto import ClientDTO, TeamMemberDTO
from paytrack.services.audit_log_service import AuditLogService
from paytrack.store.mappers import map_client, map_team_member
from paytrack.store.record_store import RecordStore

CLIENT_FIELDS = ("name", "email", "phone", "address", "city", "state", "notes")
MEMBER_FIELDS = ("name", "email", "role", "avatar_url")


class ClientService:
    """Client directory: the companies projects are billed to."""

    def __init__(self, store: RecordStore, audit_log_service: AuditLogService):
        self.store = store
        self.audit_log_service = audit_log_service

    def create_client(self, *, name: str, operator_id: str, **details: Optional[str]) -> ClientDTO:
        if not (name or "").strip():
            raise ValidationError("Client name is required", field="name")
        unknown = set(details) - set(CLIENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown client fields: {', '.join(sorted(unknown))}")

        # 空字符串统一存为 NULL
        record = {key: (value or None) for key, value in details.items()}
        record["name"] = name.strip()
        client = map_client(self.store.insert("clients", record))

        self.audit_log_service.record_create(
            project_id=None,
            entity_type=AuditEntityType.Client,
            entity_id=client.id,
            operator_id=operator_id,
        )
        return client

    def update_client(self, *, client_id: str, changes: Dict[str, Any], operator_id: str) -> ClientDTO:
        current = self.get_client(client_id)
        unknown = set(changes) - set(CLIENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown client fields: {', '.join(sorted(unknown))}")
        patch = {key: value for key, value in changes.items() if value is not None}
        if "name" in patch and not patch["name"].strip():
            raise ValidationError("Client name is required", field="name")
        if not patch:
            return current

        client = map_client(self.store.update("clients", client_id, patch))
        for key in patch:
            if getattr(current, key) != getattr(client, key):
                self.audit_log_service.record_update(
                    project_id=None,
                    entity_type=AuditEntityType.Client,
                    entity_id=client_id,
                    changed_attribute=key,
                    before_value=getattr(current, key),
                    after_value=getattr(client, key),
                    operator_id=operator_id,
                )
        return client

    def delete_client(self, *, client_id: str, operator_id: str) -> None:
        self.get_client(client_id)
        self.store.delete("clients", client_id)
        self.audit_log_service.record_delete(
            project_id=None,
            entity_type=AuditEntityType.Client,
            entity_id=client_id,
            operator_id=operator_id,
        )

    def get_client(self, client_id: str) -> ClientDTO:
        row = self.store.get("clients", client_id)
        if row is None:
            raise NotFoundError("Client", client_id)
        return map_client(row)

    def list_clients(self) -> List[ClientDTO]:
        return [map_client(row) for row in self.store.query("clients", order_by="name")]


class TeamService:
    """
    Studio member profiles used for task assignment and developer shares.
    No credentials are stored here.
    """

    def __init__(self, store: RecordStore, audit_log_service: AuditLogService):
        self.store = store
        self.audit_log_service = audit_log_service

    def create_member(
        self,
        *,
        name: str,
        operator_id: str,
        email: Optional[str] = None,
        role: str = UserRole.developer.value,
        avatar_url: Optional[str] = None,
    ) -> TeamMemberDTO:
        if not (name or "").strip():
            raise ValidationError("Member name is required", field="name")
        role = self._role(role)
        self._check_email(email)

        member = map_team_member(self.store.insert("team_members", {
            "name": name.strip(),
            "email": email or None,
            "role": role,
            "avatar_url": avatar_url,
        }))
        self.audit_log_service.record_create(
            project_id=None,
            entity_type=AuditEntityType.User,
            entity_id=member.id,
            operator_id=operator_id,
        )
        return member

    def update_member(self, *, member_id: str, changes: Dict[str, Any], operator_id: str) -> TeamMemberDTO:
        current = self.get_member(member_id)
        unknown = set(changes) - set(MEMBER_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown member fields: {', '.join(sorted(unknown))}")
        patch = {key: value for key, value in changes.items() if value is not None}
        if "role" in patch:
            patch["role"] = self._role(patch["role"])
        if "email" in patch:
            self._check_email(patch["email"], member_id=member_id)
        if not patch:
            return current

        member = map_team_member(self.store.update("team_members", member_id, patch))
        for key in patch:
            if getattr(current, key) != getattr(member, key):
                self.audit_log_service.record_update(
                    project_id=None,
                    entity_type=AuditEntityType.User,
                    entity_id=member_id,
                    changed_attribute=key,
                    before_value=getattr(current, key),
                    after_value=getattr(member, key),
                    operator_id=operator_id,
                )
        return member

    def delete_member(self, *, member_id: str, operator_id: str) -> None:
        self.get_member(member_id)
        self.store.delete("team_members", member_id)
        self.audit_log_service.record_delete(
            project_id=None,
            entity_type=AuditEntityType.User,
            entity_id=member_id,
            operator_id=operator_id,
        )

    def get_member(self, member_id: str) -> TeamMemberDTO:
        row = self.store.get("team_members", member_id)
        if row is None:
            raise NotFoundError("Team member", member_id)
        return map_team_member(row)

    def list_members(self) -> List[TeamMemberDTO]:
        return [map_team_member(row) for row in self.store.query("team_members", order_by="name")]

    def _check_email(self, email: Optional[str], member_id: Optional[str] = None) -> None:
        if not email:
            return
        taken = [row for row in self.store.query("team_members", {"email": email}) if row["id"] != member_id]
        if taken:
            raise ValidationError(f"Email '{email}' already in use", field="email")

    @staticmethod
    def _role(role) -> UserRole:
        try:
            return UserRole(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role}", field="role") from e
