from datetime import date
from decimal import Decimal
import io
from typing import Dict, Optional

import pandas as pd

from paytrack.db.enums import PaymentStatus, ProjectStatus
from paytrack.schemas.dto.base_dto import BaseDTO, Money
from paytrack.store.mappers import map_payment, map_project, map_task
from paytrack.store.record_store import RecordStore

PAYMENT_COLUMNS = [
    "id",
    "project_id",
    "project_name",
    "description",
    "amount",
    "due_date",
    "paid_date",
    "status",
    "effective_date",
]

EXPORT_HEADERS = {
    "project_name": "Project",
    "description": "Description",
    "amount": "Amount",
    "due_date": "Due date",
    "paid_date": "Paid date",
    "status": "Status",
}


class ReportSummary(BaseDTO):
    total_project_value: Money
    total_paid_amount: Money
    total_pending_amount: Money
    total_overdue_amount: Money
    task_completion_rate: float  # percentage 0..100
    project_status_counts: Dict[str, int]
    payment_count: int


def _money(value) -> Decimal:
    return Decimal(str(round(float(value or 0), 2)))


class ReportService:
    """
    Read-only financial reports over projects, payments and tasks.

    Payments fall inside a date range by their paid date when paid, by their
    due date otherwise. Project value and task completion are not date filtered.
    This service does NOT persist data.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def projects_frame(self, project_id: Optional[str] = None) -> pd.DataFrame:
        filters = {"id": project_id} if project_id else None
        projects = [map_project(row) for row in self.store.query("projects", filters)]
        return pd.DataFrame(
            [
                {
                    "id": p.id,
                    "name": p.name,
                    "status": p.status.value,
                    "total_value": float(p.total_value or 0),
                }
                for p in projects
            ],
            columns=["id", "name", "status", "total_value"],
        )

    def payments_frame(
        self,
        project_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> pd.DataFrame:
        '''
        Payments as a DataFrame, one row per payment, ordered by due date.

        :param project_id: only this project's payments
        :param date_from: inclusive lower bound on paid date / due date
        :param date_to: inclusive upper bound on paid date / due date
        '''
        filters = {"project_id": project_id} if project_id else None
        payments = [map_payment(row) for row in self.store.query("payments", filters, order_by="due_date")]
        names = {row["id"]: row["name"] for row in self.store.query("projects")}

        rows = []
        for p in payments:
            paid_day = p.paid_date.date() if p.paid_date else None
            rows.append({
                "id": p.id,
                "project_id": p.project_id,
                "project_name": names.get(p.project_id, ""),
                "description": p.description,
                "amount": float(p.amount),
                "due_date": p.due_date,
                "paid_date": paid_day,
                "status": p.status.value,
                "effective_date": paid_day or p.due_date,
            })
        df = pd.DataFrame(rows, columns=PAYMENT_COLUMNS)
        if df.empty:
            return df

        effective = pd.to_datetime(df["effective_date"])
        mask = pd.Series(True, index=df.index)
        if date_from is not None:
            mask &= effective >= pd.Timestamp(date_from)
        if date_to is not None:
            mask &= effective <= pd.Timestamp(date_to)
        return df[mask].reset_index(drop=True)

    def build_summary(
        self,
        project_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> ReportSummary:
        projects = self.projects_frame(project_id)
        payments = self.payments_frame(project_id, date_from, date_to)

        by_status = payments.groupby("status")["amount"].sum() if not payments.empty else pd.Series(dtype=float)

        task_filters = {"project_id": project_id} if project_id else None
        tasks = [map_task(row) for row in self.store.query("tasks", task_filters)]
        completion_rate = 0.0
        if tasks:
            completion_rate = sum(1 for t in tasks if t.completed) / len(tasks) * 100

        counts = {status.value: 0 for status in ProjectStatus}
        for status, count in projects["status"].value_counts().items():
            counts[status] = int(count)

        return ReportSummary(
            total_project_value=_money(projects["total_value"].sum()),
            total_paid_amount=_money(by_status.get(PaymentStatus.paid.value, 0)),
            total_pending_amount=_money(by_status.get(PaymentStatus.pending.value, 0)),
            total_overdue_amount=_money(by_status.get(PaymentStatus.overdue.value, 0)),
            task_completion_rate=round(completion_rate, 2),
            project_status_counts=counts,
            payment_count=len(payments),
        )

    def export_payments_excel(
        self,
        project_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> bytes:
        df = self.payments_frame(project_id, date_from, date_to)
        df = df[list(EXPORT_HEADERS)].rename(columns=EXPORT_HEADERS)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Payments")
        return output.getvalue()
