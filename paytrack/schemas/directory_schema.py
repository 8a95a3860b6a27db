# paytrack/schemas/directory_schema.py

from typing import Optional

from paytrack.schemas.project_schema import RequestSchema


class ClientCreate(RequestSchema):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    notes: Optional[str] = None


class ClientUpdate(RequestSchema):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    notes: Optional[str] = None


class TeamMemberCreate(RequestSchema):
    name: str
    email: Optional[str] = None
    role: str = "developer"
    avatar_url: Optional[str] = None


class TeamMemberUpdate(RequestSchema):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
