# paytrack/routes/payments.py
from flask import Blueprint, jsonify, request

from paytrack.exceptions import ValidationError
from paytrack.routes.common import build_audit_log_service, get_clock, get_json, get_store, operator_id
from paytrack.schemas.payment_schema import PaymentCreate
from paytrack.services.payment_service import PaymentService
from paytrack.store.mappers import parse_date

payment_bp = Blueprint('payment', __name__, url_prefix='/payments')


def build_payment_service() -> PaymentService:
    return PaymentService(get_store(), build_audit_log_service(), get_clock())


@payment_bp.route('', methods=['GET'])
def list_payments():
    payments = build_payment_service().list_payments(
        project_id=request.args.get('projectId', '').strip() or None,
        status=request.args.get('status', '').strip() or None,
    )
    return jsonify([payment.to_api() for payment in payments])


@payment_bp.route('', methods=['POST'])
def create_payment():
    body = PaymentCreate.model_validate(get_json())
    payment = build_payment_service().create_payment(operator_id=operator_id(), **body.model_dump())
    return jsonify(payment.to_api()), 201


@payment_bp.route('/overdue', methods=['POST'])
def mark_overdue():
    """把过期未付的付款标记为 overdue"""
    as_of = get_json().get('asOf')
    try:
        as_of = parse_date(as_of)
    except ValueError as e:
        raise ValidationError(f"Invalid date for 'asOf': {as_of}", field="asOf") from e
    changed = build_payment_service().mark_overdue_payments(as_of=as_of)
    return jsonify([payment.to_api() for payment in changed])


@payment_bp.route('/<payment_id>', methods=['GET'])
def get_payment(payment_id):
    return jsonify(build_payment_service().get_payment(payment_id).to_api())


@payment_bp.route('/<payment_id>/paid', methods=['POST'])
def mark_as_paid(payment_id):
    payment = build_payment_service().mark_as_paid(payment_id=payment_id, operator_id=operator_id())
    return jsonify(payment.to_api())


@payment_bp.route('/<payment_id>', methods=['DELETE'])
def delete_payment(payment_id):
    build_payment_service().delete_payment(payment_id=payment_id, operator_id=operator_id())
    return jsonify({"deleted": payment_id})
