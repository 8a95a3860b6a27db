from datetime import datetime
from typing import Optional

from paytrack.db.enums import UserRole
from paytrack.schemas.dto.base_dto import BaseDTO


class ClientDTO(BaseDTO):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class TeamMemberDTO(BaseDTO):
    id: str
    name: str = "Unknown User"
    email: str = ""
    role: UserRole = UserRole.developer
    avatar_url: Optional[str] = None


class AttachmentDTO(BaseDTO):
    id: str
    project_id: str
    file_name: str
    content_type: Optional[str] = None
    size_bytes: int = 0
    sha256: str
    uploaded_by: str
    created_at: Optional[datetime] = None
