# paytrack/routes/projects.py
from flask import Blueprint, jsonify, request

from paytrack.routes.common import (
    RESULT_STATUS,
    build_audit_log_service,
    build_project_service,
    get_json,
    get_store,
    operator_id,
)
from paytrack.schemas.project_schema import ProjectCreate, ProjectUpdate, StatusChange
from paytrack.services.kanban_board import KanbanBoard

project_bp = Blueprint('project', __name__, url_prefix='/projects')


@project_bp.route('', methods=['GET'])
def list_projects():
    """项目列表（含付款与汇总）"""
    status = request.args.get('status', '').strip() or None
    projects = build_project_service().list_projects_with_payments(status=status)
    return jsonify([project.to_api() for project in projects])


@project_bp.route('', methods=['POST'])
def create_project():
    body = ProjectCreate.model_validate(get_json())
    project = build_project_service().create_project(operator_id=operator_id(), **body.model_dump())
    return jsonify(project.to_api()), 201


@project_bp.route('/board', methods=['GET'])
def board():
    """看板：按状态分列"""
    board = KanbanBoard(build_project_service(), get_store())
    try:
        board.refresh()
        columns = board.columns()
    finally:
        board.close()
    return jsonify({
        status: [card.to_api() for card in cards]
        for status, cards in columns.items()
    })


@project_bp.route('/<project_id>', methods=['GET'])
def get_project(project_id):
    return jsonify(build_project_service().get_project_with_payments(project_id).to_api())


@project_bp.route('/<project_id>', methods=['PATCH'])
def update_project(project_id):
    body = ProjectUpdate.model_validate(get_json())
    project = build_project_service().update_project(
        project_id=project_id,
        changes=body.model_dump(exclude_none=True),
        operator_id=operator_id(),
    )
    return jsonify(project.to_api())


@project_bp.route('/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    build_project_service().delete_project(project_id=project_id, operator_id=operator_id())
    return jsonify({"deleted": project_id})


@project_bp.route('/<project_id>/status', methods=['POST'])
def change_status(project_id):
    """看板拖拽：状态变更（进入 active 时生成付款计划）"""
    body = StatusChange.model_validate(get_json())
    result = build_project_service().transition_status(
        project_id=project_id,
        new_status=body.status,
        operator_id=operator_id(),
    )
    status_code = 200 if result.ok else RESULT_STATUS[result.error_type]
    return jsonify(result.to_api()), status_code


@project_bp.route('/<project_id>/audit-logs', methods=['GET'])
def project_audit_logs(project_id):
    build_project_service().get_project(project_id)
    logs = build_audit_log_service().list_for_project(project_id)
    return jsonify(logs)
