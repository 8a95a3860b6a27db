# paytrack/routes/tasks.py
from flask import Blueprint, jsonify, request

from paytrack.routes.common import build_audit_log_service, get_json, get_store, operator_id
from paytrack.schemas.task_schema import TaskCreate, TaskUpdate
from paytrack.services.task_service import TaskService

task_bp = Blueprint('task', __name__, url_prefix='/tasks')


def build_task_service() -> TaskService:
    return TaskService(get_store(), build_audit_log_service())


@task_bp.route('', methods=['GET'])
def list_tasks():
    tasks = build_task_service().list_tasks(project_id=request.args.get('projectId', '').strip() or None)
    return jsonify([task.to_api() for task in tasks])


@task_bp.route('', methods=['POST'])
def create_task():
    body = TaskCreate.model_validate(get_json())
    task = build_task_service().create_task(operator_id=operator_id(), **body.model_dump())
    return jsonify(task.to_api()), 201


@task_bp.route('/<task_id>', methods=['PATCH'])
def update_task(task_id):
    body = TaskUpdate.model_validate(get_json())
    task = build_task_service().update_task(
        task_id=task_id,
        changes=body.model_dump(exclude_none=True),
        operator_id=operator_id(),
    )
    return jsonify(task.to_api())


@task_bp.route('/<task_id>', methods=['DELETE'])
def delete_task(task_id):
    build_task_service().delete_task(task_id=task_id, operator_id=operator_id())
    return jsonify({"deleted": task_id})
