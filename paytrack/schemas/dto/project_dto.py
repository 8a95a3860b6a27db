from datetime import date, datetime
from typing import Dict, List, Optional

from paytrack.db.enums import ProjectStatus
from paytrack.schemas.dto.base_dto import BaseDTO, Money
from paytrack.schemas.dto.payment_dto import PaymentDTO
from paytrack.schemas.dto.task_dto import TaskDTO


class ProjectDTO(BaseDTO):
    id: str
    name: str
    client: str = ""
    client_id: Optional[str] = None
    total_value: Optional[Money] = None
    status: ProjectStatus = ProjectStatus.new
    team_members: List[str] = []
    deadline: Optional[date] = None
    description: str = ""
    created_at: Optional[datetime] = None

    is_recurring: bool = False
    payment_date: Optional[date] = None
    has_implementation_fee: bool = False
    implementation_fee: Optional[Money] = None
    is_installment: bool = False
    installment_count: Optional[int] = None
    developer_shares: Dict[str, float] = {}


class ProjectWithPaymentsDTO(ProjectDTO):
    payments: List[PaymentDTO] = []
    paid_amount: Money
    remaining_amount: Money
    tasks: List[TaskDTO] = []
