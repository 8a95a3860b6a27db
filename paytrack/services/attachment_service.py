from hashlib import sha256
import os
from typing import List, Optional
from uuid import uuid4

from werkzeug.utils import secure_filename

from paytrack.db.enums import AuditEntityType
from paytrack.exceptions import NotFoundError, PersistenceError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.dto.directory_dto import AttachmentDTO
from paytrack.services.audit_log_service import AuditLogService
from paytrack.store.mappers import map_attachment
from paytrack.store.record_store import RecordStore

logger = get_logger(__name__)

DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024


class AttachmentService:
    """
    Files attached to a project.

    Responsibilities:
    - Save uploaded bytes under the upload folder and record them (sha256 as evidence)
    - Remove the saved file again when the record cannot be written
    - Delete file + record together
    """

    def __init__(
        self,
        store: RecordStore,
        audit_log_service: AuditLogService,
        upload_folder: str,
        max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE,
    ):
        self.store = store
        self.audit_log_service = audit_log_service
        self.upload_folder = upload_folder
        self.max_upload_size = max_upload_size

    def upload_attachment(
        self,
        *,
        project_id: str,
        file_name: str,
        file_bytes: bytes,
        operator_id: str,
        content_type: Optional[str] = None,
    ) -> AttachmentDTO:
        '''
        Store a file for a project.

        :param project_id: owning project ID
        :param file_name: original file name as uploaded
        :param file_bytes: raw bytes of the file
        :param operator_id: who uploaded it
        :param content_type: MIME type reported by the client
        :return: the attachment record
        '''
        if self.store.get("projects", project_id) is None:
            raise NotFoundError("Project", project_id)

        safe_name = secure_filename(file_name or "")
        if not safe_name:
            raise ValidationError("File name is required", field="file_name")
        if not file_bytes:
            raise ValidationError("File is empty", field="file")
        if len(file_bytes) > self.max_upload_size:
            raise ValidationError(
                f"File exceeds the {self.max_upload_size} byte upload limit",
                field="file",
            )

        # 1. 保存文件：<upload>/<project_id>/<uuid>_<name>
        attachment_id = str(uuid4())
        project_folder = os.path.join(self.upload_folder, project_id)
        os.makedirs(project_folder, exist_ok=True)
        storage_path = os.path.join(project_folder, f"{attachment_id}_{safe_name}")
        with open(storage_path, "wb") as f:
            f.write(file_bytes)

        # 2. 记录；失败则删除已保存的文件
        try:
            row = self.store.insert("attachments", {
                "id": attachment_id,
                "project_id": project_id,
                "file_name": safe_name,
                "storage_path": storage_path,
                "content_type": content_type,
                "size_bytes": len(file_bytes),
                "sha256": sha256(file_bytes).hexdigest(),
                "uploaded_by": operator_id,
            })
        except PersistenceError:
            logger.error(f"Attachment record for {safe_name} not written, removing {storage_path}")
            self._remove_file(storage_path)
            raise

        attachment = map_attachment(row)
        self.audit_log_service.record_create(
            project_id=project_id,
            entity_type=AuditEntityType.Attachment,
            entity_id=attachment.id,
            operator_id=operator_id,
        )
        return attachment

    def list_attachments(self, project_id: str) -> List[AttachmentDTO]:
        rows = self.store.query("attachments", {"project_id": project_id}, order_by="created_at", descending=True)
        return [map_attachment(row) for row in rows]

    def get_attachment(self, attachment_id: str) -> AttachmentDTO:
        return map_attachment(self._row(attachment_id))

    def get_attachment_path(self, attachment_id: str) -> str:
        path = self._row(attachment_id)["storage_path"]
        if not os.path.exists(path):
            raise NotFoundError("Attachment file", attachment_id)
        return path

    def delete_attachment(self, *, attachment_id: str, operator_id: str) -> None:
        row = self._row(attachment_id)
        self._remove_file(row["storage_path"])
        self.store.delete("attachments", attachment_id)

        self.audit_log_service.record_delete(
            project_id=row["project_id"],
            entity_type=AuditEntityType.Attachment,
            entity_id=attachment_id,
            operator_id=operator_id,
        )

    def _row(self, attachment_id: str):
        row = self.store.get("attachments", attachment_id)
        if row is None:
            raise NotFoundError("Attachment", attachment_id)
        return row

    def _remove_file(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Attachment file already gone: {path}")
