# paytrack/models/payment.py
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base
from paytrack.db.enums import PaymentStatus


class Payment(Base):
    """
    A single payment obligation of a project.
    Only "mark as paid", the overdue sweep and delete touch a row after insert.
    """

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="Payment UUID")
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning project ID")

    amount: Mapped[Decimal] = mapped_column(nullable=False, comment="Amount due")
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.pending,
    )
    paid_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set iff status = paid")
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Payment id={self.id} "
            f"project={self.project_id} "
            f"amount={self.amount} "
            f"status={self.status.value}>"
        )
