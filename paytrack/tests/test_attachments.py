# paytrack/tests/test_attachments.py
from hashlib import sha256
import os

import pytest

from paytrack.exceptions import NotFoundError, PersistenceError, ValidationError
from paytrack.services.attachment_service import AttachmentService


@pytest.fixture
def attachment_service(store, audit_log_service, tmp_path):
    return AttachmentService(store, audit_log_service, str(tmp_path / "uploads"), max_upload_size=1024)


def test_upload_stores_file_and_hash(make_project, attachment_service):
    project = make_project()
    content = b"signed contract"

    attachment = attachment_service.upload_attachment(
        project_id=project.id,
        file_name="../contract v1.pdf",
        file_bytes=content,
        content_type="application/pdf",
        operator_id="tester",
    )

    assert attachment.file_name == "contract_v1.pdf"
    assert attachment.sha256 == sha256(content).hexdigest()
    assert attachment.size_bytes == len(content)
    path = attachment_service.get_attachment_path(attachment.id)
    assert path.startswith(attachment_service.upload_folder)
    with open(path, "rb") as f:
        assert f.read() == content
    assert [a.id for a in attachment_service.list_attachments(project.id)] == [attachment.id]


def test_failed_record_removes_saved_file(make_project, attachment_service, store):
    project = make_project()
    store.fail_inserts["attachments"] = "all"

    with pytest.raises(PersistenceError):
        attachment_service.upload_attachment(
            project_id=project.id, file_name="notes.txt", file_bytes=b"hello", operator_id="tester"
        )

    project_folder = os.path.join(attachment_service.upload_folder, project.id)
    assert os.listdir(project_folder) == []


def test_delete_removes_file_and_row(make_project, attachment_service):
    project = make_project()
    attachment = attachment_service.upload_attachment(
        project_id=project.id, file_name="notes.txt", file_bytes=b"hello", operator_id="tester"
    )
    path = attachment_service.get_attachment_path(attachment.id)

    attachment_service.delete_attachment(attachment_id=attachment.id, operator_id="tester")

    assert not os.path.exists(path)
    with pytest.raises(NotFoundError):
        attachment_service.get_attachment(attachment.id)


@pytest.mark.parametrize("file_name, file_bytes", [
    ("", b"data"),
    ("empty.txt", b""),
    ("big.bin", b"x" * 2048),
])
def test_upload_rejects_bad_files(make_project, attachment_service, file_name, file_bytes):
    project = make_project()

    with pytest.raises(ValidationError):
        attachment_service.upload_attachment(
            project_id=project.id, file_name=file_name, file_bytes=file_bytes, operator_id="tester"
        )


def test_upload_to_unknown_project(attachment_service):
    with pytest.raises(NotFoundError):
        attachment_service.upload_attachment(
            project_id="missing", file_name="notes.txt", file_bytes=b"hello", operator_id="tester"
        )
