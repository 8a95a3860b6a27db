# paytrack/routes/attachments.py
from flask import Blueprint, current_app, jsonify, request, send_file

from paytrack.exceptions import ValidationError
from paytrack.routes.common import build_audit_log_service, get_store, operator_id
from paytrack.services.attachment_service import AttachmentService

attachment_bp = Blueprint('attachment', __name__, url_prefix='/projects/<project_id>/attachments')


def build_attachment_service() -> AttachmentService:
    return AttachmentService(
        get_store(),
        build_audit_log_service(),
        current_app.config["UPLOAD_FOLDER"],
        current_app.config["MAX_CONTENT_LENGTH"],
    )


@attachment_bp.route('', methods=['GET'])
def list_attachments(project_id):
    attachments = build_attachment_service().list_attachments(project_id)
    return jsonify([attachment.to_api() for attachment in attachments])


@attachment_bp.route('', methods=['POST'])
def upload_attachment(project_id):
    """上传附件（multipart，字段名 file）"""
    file = request.files.get('file')
    if file is None or not file.filename:
        raise ValidationError("Please choose a file", field="file")

    attachment = build_attachment_service().upload_attachment(
        project_id=project_id,
        file_name=file.filename,
        file_bytes=file.read(),
        content_type=file.mimetype,
        operator_id=operator_id(),
    )
    return jsonify(attachment.to_api()), 201


@attachment_bp.route('/<attachment_id>', methods=['GET'])
def download_attachment(project_id, attachment_id):
    service = build_attachment_service()
    attachment = service.get_attachment(attachment_id)
    if attachment.project_id != project_id:
        raise ValidationError("Attachment does not belong to this project")
    return send_file(
        service.get_attachment_path(attachment_id),
        mimetype=attachment.content_type or 'application/octet-stream',
        as_attachment=True,
        download_name=attachment.file_name,
    )


@attachment_bp.route('/<attachment_id>', methods=['DELETE'])
def delete_attachment(project_id, attachment_id):
    service = build_attachment_service()
    if service.get_attachment(attachment_id).project_id != project_id:
        raise ValidationError("Attachment does not belong to this project")
    service.delete_attachment(attachment_id=attachment_id, operator_id=operator_id())
    return jsonify({"deleted": attachment_id})
