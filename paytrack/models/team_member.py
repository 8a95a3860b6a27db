# paytrack/models/team_member.py
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base
from paytrack.db.enums import UserRole


class TeamMember(Base):
    """
    Studio member profile (developer / finance / admin).
    Login is handled by the external identity provider, not here.
    """

    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="User UUID")
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown User")
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.developer,
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False)
