# paytrack/schemas/payment_schema.py

from datetime import date
from decimal import Decimal

from paytrack.schemas.project_schema import RequestSchema


class PaymentCreate(RequestSchema):
    project_id: str
    amount: Decimal
    due_date: date
    description: str = ""
