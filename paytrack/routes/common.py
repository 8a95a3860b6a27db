# paytrack/routes/common.py
from datetime import date
from typing import Optional

from flask import current_app, request

from paytrack.clock import Clock
from paytrack.exceptions import ValidationError
from paytrack.schemas.error_type import ErrorType
from paytrack.services.audit_log_service import AuditLogService
from paytrack.services.lifecycle_service import ProjectLifecycle
from paytrack.services.project_service import ProjectService
from paytrack.services.schedule_service import PaymentScheduleGenerator, build_insert_strategy
from paytrack.store.mappers import parse_date
from paytrack.store.record_store import RecordStore

ANONYMOUS_OPERATOR = "anonymous"

# OperationResult 失败类型 -> HTTP 状态码
RESULT_STATUS = {
    ErrorType.INPUT_ERROR: 400,
    ErrorType.VALIDATION_ERROR: 400,
    ErrorType.NOT_FOUND: 404,
    ErrorType.DATABASE_ERROR: 503,
    ErrorType.PARTIAL_FAILURE: 207,
    ErrorType.SYSTEM_ERROR: 500,
}


def get_store() -> RecordStore:
    return current_app.extensions["paytrack"]["store"]


def get_clock() -> Clock:
    return current_app.extensions["paytrack"]["clock"]


def operator_id() -> str:
    """Operator identity comes from the identity provider in front of the API."""
    return request.headers.get("X-Operator-Id", "").strip() or ANONYMOUS_OPERATOR


def get_json() -> dict:
    return request.get_json(silent=True) or {}


def query_date(name: str) -> Optional[date]:
    value = request.args.get(name, "").strip()
    try:
        return parse_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date for '{name}': {value}", field=name) from e


def build_audit_log_service() -> AuditLogService:
    return AuditLogService(get_store(), get_clock())


def build_project_service() -> ProjectService:
    store = get_store()
    clock = get_clock()
    audit_log_service = AuditLogService(store, clock)
    generator = PaymentScheduleGenerator(
        store,
        clock,
        build_insert_strategy(current_app.config["SCHEDULE_INSERT_MODE"]),
    )
    lifecycle = ProjectLifecycle(store, audit_log_service, generator)
    return ProjectService(store, audit_log_service, lifecycle)
