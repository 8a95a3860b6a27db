# paytrack/routes/team.py
from flask import Blueprint, jsonify

from paytrack.routes.common import build_audit_log_service, get_json, get_store, operator_id
from paytrack.schemas.directory_schema import TeamMemberCreate, TeamMemberUpdate
from paytrack.services.directory_service import TeamService

team_bp = Blueprint('team', __name__, url_prefix='/team')


def build_team_service() -> TeamService:
    return TeamService(get_store(), build_audit_log_service())


@team_bp.route('', methods=['GET'])
def list_members():
    return jsonify([member.to_api() for member in build_team_service().list_members()])


@team_bp.route('', methods=['POST'])
def create_member():
    body = TeamMemberCreate.model_validate(get_json())
    member = build_team_service().create_member(operator_id=operator_id(), **body.model_dump())
    return jsonify(member.to_api()), 201


@team_bp.route('/<member_id>', methods=['GET'])
def get_member(member_id):
    return jsonify(build_team_service().get_member(member_id).to_api())


@team_bp.route('/<member_id>', methods=['PATCH'])
def update_member(member_id):
    body = TeamMemberUpdate.model_validate(get_json())
    member = build_team_service().update_member(
        member_id=member_id,
        changes=body.model_dump(exclude_none=True),
        operator_id=operator_id(),
    )
    return jsonify(member.to_api())


@team_bp.route('/<member_id>', methods=['DELETE'])
def delete_member(member_id):
    build_team_service().delete_member(member_id=member_id, operator_id=operator_id())
    return jsonify({"deleted": member_id})
