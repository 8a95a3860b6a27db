# paytrack/tests/conftest.py
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from paytrack.app_factory import create_app
from paytrack.clock import FixedClock
from paytrack.db.init_db import init_db
from paytrack.db.session import build_engine, build_session_factory
from paytrack.exceptions import PersistenceError
from paytrack.services.audit_log_service import AuditLogService
from paytrack.services.lifecycle_service import ProjectLifecycle
from paytrack.services.payment_service import PaymentService
from paytrack.services.project_service import ProjectService
from paytrack.services.schedule_service import BestEffortInsert, PaymentScheduleGenerator
from paytrack.store.record_store import RecordStore

FIXED_NOW = datetime(2024, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


class FlakyStore(RecordStore):
    """
    RecordStore that fails chosen writes.

    fail_inserts: collection -> 1-based call numbers that fail ("all" fails every call)
    fail_updates / fail_deletes: collections whose updates / deletes always fail
    """

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.fail_inserts = {}
        self.fail_updates = set()
        self.fail_deletes = set()
        self.insert_calls = defaultdict(int)

    def insert(self, collection, record):
        self.insert_calls[collection] += 1
        failing = self.fail_inserts.get(collection, ())
        if failing == "all" or self.insert_calls[collection] in failing:
            raise PersistenceError(f"simulated insert failure on {collection}", collection)
        return super().insert(collection, record)

    def update(self, collection, record_id, patch):
        if collection in self.fail_updates:
            raise PersistenceError(f"simulated update failure on {collection}", collection)
        return super().update(collection, record_id, patch)

    def delete(self, collection, record_id):
        if collection in self.fail_deletes:
            raise PersistenceError(f"simulated delete failure on {collection}", collection)
        return super().delete(collection, record_id)


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return FlakyStore(session_factory)


@pytest.fixture
def clock():
    return FixedClock(FIXED_NOW)


@pytest.fixture
def audit_log_service(store, clock):
    return AuditLogService(store, clock)


@pytest.fixture
def generator(store, clock):
    return PaymentScheduleGenerator(store, clock, BestEffortInsert())


@pytest.fixture
def lifecycle(store, audit_log_service, generator):
    return ProjectLifecycle(store, audit_log_service, generator)


@pytest.fixture
def project_service(store, audit_log_service, lifecycle):
    return ProjectService(store, audit_log_service, lifecycle)


@pytest.fixture
def payment_service(store, audit_log_service, clock):
    return PaymentService(store, audit_log_service, clock)


@pytest.fixture
def make_project(project_service):
    def _make(**overrides):
        values = {
            "name": "Website revamp",
            "client": "Acme",
            "total_value": Decimal("12000"),
            "operator_id": "tester",
        }
        values.update(overrides)
        return project_service.create_project(**values)
    return _make


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DATABASE_URL": "sqlite://",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "CLOCK": FixedClock(FIXED_NOW),
    })
    yield app
    app.extensions["paytrack"]["engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()
