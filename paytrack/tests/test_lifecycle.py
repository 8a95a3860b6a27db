# paytrack/tests/test_lifecycle.py
from datetime import date
from decimal import Decimal

import pytest

from paytrack.db.enums import ProjectStatus
from paytrack.schemas.error_type import ErrorType
from paytrack.services.lifecycle_service import ProjectLifecycle
from paytrack.services.schedule_service import AllOrNothingInsert, PaymentScheduleGenerator


def payments_of(store, project_id):
    return store.query("payments", {"project_id": project_id})


@pytest.mark.parametrize("previous", [s for s in ProjectStatus if s is not ProjectStatus.active])
def test_every_entry_into_active_has_schedule_effect(lifecycle, previous):
    assert lifecycle.side_effect_for(previous, ProjectStatus.active) is not None


@pytest.mark.parametrize("previous, new", [
    (ProjectStatus.active, ProjectStatus.active),
    (ProjectStatus.new, ProjectStatus.in_progress),
    (ProjectStatus.active, ProjectStatus.completed),
    (ProjectStatus.in_production, ProjectStatus.cancelled),
])
def test_other_transitions_have_no_effect(lifecycle, previous, new):
    assert lifecycle.side_effect_for(previous, new) is None


def test_plain_move_writes_status_only(store, lifecycle, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))

    result = lifecycle.transition(project_id=project.id, new_status="in_progress", operator_id="tester")

    assert result.ok
    assert result.data["project"]["status"] == "in_progress"
    assert "payments" not in result.data
    assert payments_of(store, project.id) == []


def test_any_status_may_move_to_any_other(lifecycle, make_project):
    project = make_project()

    for status in ("completed", "new", "cancelled", "in_production"):
        result = lifecycle.transition(project_id=project.id, new_status=status, operator_id="tester")
        assert result.ok, result.error_message


def test_activation_generates_schedule(store, lifecycle, audit_log_service, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))

    result = lifecycle.transition(project_id=project.id, new_status=ProjectStatus.active, operator_id="tester")

    assert result.ok
    assert result.explanation is None
    assert len(result.data["payments"]) == 12
    assert result.data["payments"][0]["amount"] == 1000.0
    assert result.data["schedule"] == {"ok": True, "failedNumbers": [], "rolledBack": False}
    assert len(payments_of(store, project.id)) == 12

    logs = audit_log_service.list_for_entity(entity_type="project", entity_id=project.id)
    status_log = [log for log in logs if log["changed_attribute"] == "status"][0]
    assert (status_log["before_value"], status_log["after_value"]) == ("new", "active")
    assert status_log["operator_id"] == "tester"
    system_log = [log for log in logs if log["changed_attribute"] == "payment_schedule"][0]
    assert system_log["operator_id"] == "SYSTEM"


def test_activating_non_recurring_project_creates_nothing(store, lifecycle, make_project):
    project = make_project(is_recurring=False)

    result = lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert result.ok
    assert result.data["payments"] == []
    assert payments_of(store, project.id) == []


def test_moving_within_active_does_not_regenerate(store, lifecycle, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert len(payments_of(store, project.id)) == 12


def test_reactivation_appends_a_second_batch(store, lifecycle, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")
    lifecycle.transition(project_id=project.id, new_status="completed", operator_id="tester")

    lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert len(payments_of(store, project.id)) == 24


def test_unknown_status_is_input_error(lifecycle, make_project):
    project = make_project()

    result = lifecycle.transition(project_id=project.id, new_status="archived", operator_id="tester")

    assert not result.ok
    assert result.error_type == ErrorType.INPUT_ERROR


def test_missing_project_is_not_found(lifecycle):
    result = lifecycle.transition(project_id="missing", new_status="active", operator_id="tester")

    assert not result.ok
    assert result.error_type == ErrorType.NOT_FOUND


def test_invalid_billing_blocks_activation_before_any_write(store, lifecycle):
    row = store.insert("projects", {
        "name": "Broken",
        "status": "in_production",
        "total_value": "9000",
        "is_recurring": True,
        "is_installment": True,
        "installment_count": 0,
    })

    result = lifecycle.transition(project_id=row["id"], new_status="active", operator_id="tester")

    assert not result.ok
    assert result.error_type == ErrorType.VALIDATION_ERROR
    assert store.get("projects", row["id"])["status"] == "in_production"
    assert payments_of(store, row["id"]) == []


def test_missing_total_value_blocks_activation(store, lifecycle, make_project):
    project = make_project(total_value=None, is_recurring=True)

    result = lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert result.error_type == ErrorType.VALIDATION_ERROR
    assert store.get("projects", project.id)["status"] == "new"


def test_failed_status_write_skips_schedule(store, lifecycle, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    store.fail_updates.add("projects")

    result = lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert not result.ok
    assert result.error_type == ErrorType.DATABASE_ERROR
    assert store.get("projects", project.id)["status"] == "new"
    assert payments_of(store, project.id) == []


def test_partial_schedule_keeps_status_and_explains(store, lifecycle, make_project):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    store.fail_inserts["payments"] = {3}

    result = lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert result.ok
    assert "incomplete" in result.explanation
    assert result.data["schedule"]["failedNumbers"] == [3]
    assert len(payments_of(store, project.id)) == 11
    assert store.get("projects", project.id)["status"] == "active"


def test_all_or_nothing_schedule_leaves_no_payments(store, clock, audit_log_service, make_project):
    generator = PaymentScheduleGenerator(store, clock, AllOrNothingInsert())
    lifecycle = ProjectLifecycle(store, audit_log_service, generator)
    project = make_project(total_value=Decimal("6000"), is_recurring=True, payment_date=date(2024, 1, 10))
    store.fail_inserts["payments"] = {5}

    result = lifecycle.transition(project_id=project.id, new_status="active", operator_id="tester")

    assert result.ok
    assert result.data["payments"] == []
    assert result.data["schedule"]["rolledBack"] is True
    assert payments_of(store, project.id) == []
