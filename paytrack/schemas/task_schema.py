# paytrack/schemas/task_schema.py

from datetime import date
from typing import Optional

from paytrack.schemas.project_schema import RequestSchema


class TaskCreate(RequestSchema):
    title: str
    project_id: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[str] = None
    completed: bool = False


class TaskUpdate(RequestSchema):
    title: Optional[str] = None
    project_id: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[str] = None
    completed: Optional[bool] = None
