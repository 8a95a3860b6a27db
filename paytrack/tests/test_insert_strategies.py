# paytrack/tests/test_insert_strategies.py
from datetime import date

import pytest

from paytrack.db.enums import ScheduleInsertMode
from paytrack.services.schedule_service import (
    AllOrNothingInsert,
    BestEffortInsert,
    build_insert_strategy,
    generate_schedule,
)


@pytest.fixture
def drafts(make_project, clock):
    project = make_project(is_recurring=True, payment_date=date(2024, 1, 10))
    return generate_schedule(project, clock.today())


def test_best_effort_skips_failed_items(store, drafts):
    store.fail_inserts["payments"] = {2, 4}

    result = BestEffortInsert().insert(store, drafts)

    assert result.ok
    assert result.failed_numbers == [2, 4]
    assert len(result.created) == 10
    assert result.error_message == "2 of 12 payments could not be written"
    assert len(store.query("payments")) == 10


def test_best_effort_fails_when_nothing_written(store, drafts):
    store.fail_inserts["payments"] = "all"

    result = BestEffortInsert().insert(store, drafts)

    assert not result.ok
    assert result.created == []
    assert result.failed_numbers == list(range(1, 13))


def test_all_or_nothing_writes_full_batch(store, drafts):
    result = AllOrNothingInsert().insert(store, drafts)

    assert result.ok
    assert [p.due_date for p in result.created] == [d.due_date for d in drafts]


def test_all_or_nothing_rolls_back_written_items(store, drafts):
    store.fail_inserts["payments"] = {5}

    result = AllOrNothingInsert().insert(store, drafts)

    assert not result.ok
    assert result.rolled_back
    assert result.failed_numbers == list(range(5, 13))
    assert store.query("payments") == []


def test_all_or_nothing_reports_leftovers_when_compensation_fails(store, drafts):
    store.fail_inserts["payments"] = {5}
    store.fail_deletes.add("payments")

    result = AllOrNothingInsert().insert(store, drafts)

    assert not result.ok
    assert not result.rolled_back
    assert len(result.created) == 4
    assert len(store.query("payments")) == 4


@pytest.mark.parametrize("mode, expected", [
    ("best_effort", BestEffortInsert),
    ("all_or_nothing", AllOrNothingInsert),
    (ScheduleInsertMode.all_or_nothing, AllOrNothingInsert),
])
def test_build_insert_strategy(mode, expected):
    assert isinstance(build_insert_strategy(mode), expected)


def test_unknown_insert_mode_is_rejected():
    with pytest.raises(ValueError):
        build_insert_strategy("sometimes")
