from datetime import date, datetime
from typing import Optional

from paytrack.schemas.dto.base_dto import BaseDTO


class TaskDTO(BaseDTO):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[str] = None
    completed: bool = False
    created_at: Optional[datetime] = None
