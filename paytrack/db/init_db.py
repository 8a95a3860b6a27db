from sqlalchemy.engine import Engine

from paytrack.db.base import Base

# 注册所有表
from paytrack.models.project import Project  # noqa: F401
from paytrack.models.payment import Payment  # noqa: F401
from paytrack.models.task import Task  # noqa: F401
from paytrack.models.client import Client  # noqa: F401
from paytrack.models.team_member import TeamMember  # noqa: F401
from paytrack.models.attachment import Attachment  # noqa: F401
from paytrack.models.audit_log import AuditLog  # noqa: F401


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
