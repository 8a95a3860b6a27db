# paytrack/routes/clients.py
from flask import Blueprint, jsonify

from paytrack.routes.common import build_audit_log_service, get_json, get_store, operator_id
from paytrack.schemas.directory_schema import ClientCreate, ClientUpdate
from paytrack.services.directory_service import ClientService

client_bp = Blueprint('client', __name__, url_prefix='/clients')


def build_client_service() -> ClientService:
    return ClientService(get_store(), build_audit_log_service())


@client_bp.route('', methods=['GET'])
def list_clients():
    return jsonify([client.to_api() for client in build_client_service().list_clients()])


@client_bp.route('', methods=['POST'])
def create_client():
    body = ClientCreate.model_validate(get_json())
    client = build_client_service().create_client(operator_id=operator_id(), **body.model_dump())
    return jsonify(client.to_api()), 201


@client_bp.route('/<client_id>', methods=['GET'])
def get_client(client_id):
    return jsonify(build_client_service().get_client(client_id).to_api())


@client_bp.route('/<client_id>', methods=['PATCH'])
def update_client(client_id):
    body = ClientUpdate.model_validate(get_json())
    client = build_client_service().update_client(
        client_id=client_id,
        changes=body.model_dump(exclude_none=True),
        operator_id=operator_id(),
    )
    return jsonify(client.to_api())


@client_bp.route('/<client_id>', methods=['DELETE'])
def delete_client(client_id):
    build_client_service().delete_client(client_id=client_id, operator_id=operator_id())
    return jsonify({"deleted": client_id})
