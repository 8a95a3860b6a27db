# paytrack/schemas/project_schema.py

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------- For creating a project (POST) ---------
class ProjectCreate(RequestSchema):
    name: str
    client: str = ""
    client_id: Optional[str] = None
    total_value: Optional[Decimal] = None
    team_members: List[str] = []
    deadline: Optional[date] = None
    description: str = ""

    # billing options
    is_recurring: bool = False
    payment_date: Optional[date] = None
    has_implementation_fee: bool = False
    implementation_fee: Optional[Decimal] = None
    is_installment: bool = False
    installment_count: Optional[int] = None
    developer_shares: Dict[str, float] = {}


# --------- For updating a project (PATCH) ---------
class ProjectUpdate(RequestSchema):
    name: Optional[str] = None
    client: Optional[str] = None
    client_id: Optional[str] = None
    total_value: Optional[Decimal] = None
    team_members: Optional[List[str]] = None
    deadline: Optional[date] = None
    description: Optional[str] = None
    is_recurring: Optional[bool] = None
    payment_date: Optional[date] = None
    has_implementation_fee: Optional[bool] = None
    implementation_fee: Optional[Decimal] = None
    is_installment: Optional[bool] = None
    installment_count: Optional[int] = None
    developer_shares: Optional[Dict[str, float]] = None


# --------- Kanban drop ---------
class StatusChange(RequestSchema):
    status: str
