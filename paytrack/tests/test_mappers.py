# paytrack/tests/test_mappers.py
from datetime import date, datetime
from decimal import Decimal

from paytrack.db.enums import PaymentStatus, ProjectStatus, UserRole
from paytrack.store.mappers import (
    map_payment,
    map_project,
    map_team_member,
    parse_date,
    to_row,
    to_wire_value,
)


def test_project_defaults_for_sparse_row():
    project = map_project({"id": "p-1", "name": "Landing page"})

    assert project.client == ""
    assert project.status == ProjectStatus.new
    assert project.total_value is None
    assert project.team_members == []
    assert project.developer_shares == {}
    assert project.is_recurring is False


def test_project_row_conversion():
    project = map_project({
        "id": "p-1",
        "name": "Landing page",
        "status": "active",
        "total_value": "1500.50",
        "deadline": "2024-06-30",
        "created_at": "2024-01-02T10:00:00",
        "developer_shares": {"u-1": 60.0},
    })

    assert project.total_value == Decimal("1500.50")
    assert project.deadline == date(2024, 6, 30)
    assert project.created_at == datetime(2024, 1, 2, 10, 0)

    row = to_row(project)
    assert row["status"] == "active"
    assert row["total_value"] == "1500.50"
    assert row["deadline"] == "2024-06-30"
    assert row["developer_shares"] == {"u-1": 60.0}


def test_payment_api_shape_is_camel_case():
    payment = map_payment({
        "id": "pay-1",
        "project_id": "p-1",
        "amount": "250.00",
        "due_date": "2024-02-01",
        "status": "paid",
        "paid_date": "2024-02-03T08:30:00",
    })

    assert payment.status == PaymentStatus.paid
    assert payment.to_api() == {
        "id": "pay-1",
        "projectId": "p-1",
        "amount": 250.0,
        "dueDate": "2024-02-01",
        "status": "paid",
        "paidDate": "2024-02-03T08:30:00",
        "description": "",
    }


def test_team_member_defaults():
    member = map_team_member({"id": "u-1"})

    assert member.name == "Unknown User"
    assert member.email == ""
    assert member.role == UserRole.developer


def test_parse_date_accepts_datetime_strings():
    assert parse_date("2024-01-10T00:00:00") == date(2024, 1, 10)
    assert parse_date("") is None
    assert parse_date(datetime(2024, 1, 10, 5)) == date(2024, 1, 10)


def test_wire_values():
    assert to_wire_value(ProjectStatus.in_production) == "in_production"
    assert to_wire_value(Decimal("3.10")) == "3.10"
    assert to_wire_value(None) is None
