"""Tests for document upload, review and checklist."""
from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from marketplace.core.auth import SessionContext
from marketplace.core.errors import (
    BackendUnavailableError,
    ConflictError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.models.application import ApplicationStatus
from marketplace.models.document import ApplicantType, DocumentStatus
from marketplace.repositories import applications as applications_repo
from marketplace.repositories import documents as documents_repo
from marketplace.repositories import profiles as profiles_repo
from marketplace.repositories import properties as properties_repo
from marketplace.schemas import documents as schemas
from marketplace.services import documents as documents_service

OWNER = SessionContext(user_id="owner-1")
APPLICANT = SessionContext(user_id="user-2")
NOW = datetime(2025, 10, 10, tzinfo=timezone.utc)


class DummySession:
    def __init__(self) -> None:
        self.added: list[object] = []

    def add(self, obj: object) -> None:
        self.added.append(obj)

    def begin(self):  # noqa: D401 - mimic SQLAlchemy's async begin
        session = self

        class _Tx:
            async def __aenter__(self_inner):
                return session

            async def __aexit__(self_inner, exc_type, exc, tb):
                return False

        return _Tx()


class CommitFailingSession(DummySession):
    """Session whose transaction fails when it commits."""

    def begin(self):
        class _Tx:
            async def __aenter__(self_inner):
                return self

            async def __aexit__(self_inner, exc_type, exc, tb):
                if exc_type is None:
                    raise BackendUnavailableError("Commit failed")
                return False

        return _Tx()


class MemoryBucket:
    name = "application-documents"

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    async def upload(self, path: str, data: bytes, *, upsert: bool = False) -> str:
        self.files[path] = data
        return path

    async def download(self, path: str) -> bytes:
        return self.files[path]

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.files.pop(path, None)

    async def list(self, prefix: str = "") -> list[str]:
        return sorted(path for path in self.files if path.startswith(prefix))


def stub_application(monkeypatch):
    application = SimpleNamespace(
        id="app-1", property_id="prop-1", applicant_id=APPLICANT.user_id, status=ApplicationStatus.PENDING
    )
    monkeypatch.setattr(applications_repo, "get_by_id", AsyncMock(return_value=application))
    monkeypatch.setattr(
        properties_repo, "get_by_id", AsyncMock(return_value=SimpleNamespace(id="prop-1", owner_id=OWNER.user_id))
    )
    monkeypatch.setattr(
        profiles_repo,
        "get_by_id",
        AsyncMock(
            return_value=SimpleNamespace(
                first_name="Tomás", paternal_last_name="Rojas Díaz", full_name="Tomás Rojas Díaz"
            )
        ),
    )
    monkeypatch.setattr(applications_repo, "list_guarantors", AsyncMock(return_value=[]))
    return application


def test_stored_file_name_replaces_unsafe_characters():
    name = documents_service.stored_file_name(
        "Tomás", "Rojas Díaz", "National identity card", "scan (1).PDF", millis=1700000000000
    )

    assert name == "Tom_s_Rojas_D_az_National_identity_card_1700000000000.pdf"


@pytest.mark.asyncio
async def test_upload_stores_file_under_application_and_applicant(monkeypatch):
    stub_application(monkeypatch)

    async def create_stub(session, **fields):
        return SimpleNamespace(id="doc-1", status=DocumentStatus.UPLOADED, uploaded_at=NOW, rejection_reason=None, **fields)

    monkeypatch.setattr(documents_repo, "create", create_stub)
    bucket = MemoryBucket()

    document = await documents_service.upload_document(
        "app-1",
        applicant_id=APPLICANT.user_id,
        applicant_type=ApplicantType.POSTULANT,
        document_type="cedula",
        file_name="id.pdf",
        content=b"%PDF",
        content_type="application/pdf",
        ctx=APPLICANT,
        session=DummySession(),
        bucket=bucket,
    )

    assert document.file_path.startswith("app-1/user-2/Tom_s_Rojas_D_az_National_identity_card_")
    assert document.file_path in bucket.files
    assert document.status is DocumentStatus.UPLOADED


@pytest.mark.asyncio
async def test_upload_removes_file_when_insert_fails(monkeypatch):
    stub_application(monkeypatch)
    monkeypatch.setattr(documents_repo, "create", AsyncMock(side_effect=ConflictError("Saving document failed")))
    bucket = MemoryBucket()

    with pytest.raises(ConflictError):
        await documents_service.upload_document(
            "app-1",
            applicant_id=APPLICANT.user_id,
            applicant_type=ApplicantType.POSTULANT,
            document_type="dicom",
            file_name="dicom.pdf",
            content=b"%PDF",
            content_type="application/pdf",
            ctx=APPLICANT,
            session=DummySession(),
            bucket=bucket,
        )

    assert bucket.files == {}


@pytest.mark.asyncio
async def test_upload_rejects_unknown_guarantor(monkeypatch):
    stub_application(monkeypatch)

    with pytest.raises(ValidationFailedError):
        await documents_service.upload_document(
            "app-1",
            applicant_id="guar-404",
            applicant_type=ApplicantType.GUARANTOR,
            document_type="cedula",
            file_name="id.pdf",
            content=b"%PDF",
            content_type="application/pdf",
            ctx=APPLICANT,
            session=DummySession(),
            bucket=MemoryBucket(),
        )


@pytest.mark.asyncio
async def test_rejection_requires_reason_and_owner(monkeypatch):
    stub_application(monkeypatch)
    document = SimpleNamespace(id="doc-1", application_id="app-1", status=DocumentStatus.UPLOADED)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))

    with pytest.raises(ValidationFailedError):
        await documents_service.review_document(
            "doc-1", schemas.DocumentReviewRequest(status=DocumentStatus.REJECTED), OWNER, DummySession()
        )

    with pytest.raises(PermissionDeniedError):
        await documents_service.review_document(
            "doc-1", schemas.DocumentReviewRequest(status=DocumentStatus.VERIFIED), APPLICANT, DummySession()
        )


@pytest.mark.asyncio
async def test_checklist_counts_rejected_documents(monkeypatch):
    stub_application(monkeypatch)
    monkeypatch.setattr(
        documents_repo,
        "list_for_application",
        AsyncMock(
            return_value=[
                SimpleNamespace(applicant_id="user-2", document_type="cedula", status=DocumentStatus.REJECTED),
            ]
        ),
    )

    response = await documents_service.get_checklist("app-1", OWNER, DummySession())

    postulant = response.applicants[0]
    assert postulant.name == "Tomás Rojas Díaz"
    assert "cedula" in postulant.satisfied
    assert len(postulant.missing) == 6
    assert postulant.complete is False


@pytest.mark.asyncio
async def test_upload_removes_file_when_commit_fails(monkeypatch):
    stub_application(monkeypatch)

    async def create_stub(session, **fields):
        return SimpleNamespace(id="doc-1", status=DocumentStatus.UPLOADED, uploaded_at=NOW, rejection_reason=None, **fields)

    monkeypatch.setattr(documents_repo, "create", create_stub)
    bucket = MemoryBucket()

    with pytest.raises(BackendUnavailableError):
        await documents_service.upload_document(
            "app-1",
            applicant_id=APPLICANT.user_id,
            applicant_type=ApplicantType.POSTULANT,
            document_type="cedula",
            file_name="id.pdf",
            content=b"%PDF",
            content_type="application/pdf",
            ctx=APPLICANT,
            session=CommitFailingSession(),
            bucket=bucket,
        )

    assert bucket.files == {}


def stored_document(bucket: MemoryBucket, **overrides):
    path = "app-1/user-2/Tom_s_Rojas_cedula_1.pdf"
    bucket.files[path] = b"%PDF"
    values = dict(
        id="doc-1",
        application_id="app-1",
        uploaded_by=APPLICANT.user_id,
        file_name="Tom_s_Rojas_cedula_1.pdf",
        file_path=path,
        mime_type=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.asyncio
async def test_delete_removes_row_then_file(monkeypatch):
    stub_application(monkeypatch)
    bucket = MemoryBucket()
    document = stored_document(bucket)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))
    delete = AsyncMock()
    monkeypatch.setattr(documents_repo, "delete", delete)

    await documents_service.delete_document("doc-1", OWNER, DummySession(), bucket)

    delete.assert_awaited_once()
    assert bucket.files == {}


@pytest.mark.asyncio
async def test_delete_keeps_file_when_row_delete_fails(monkeypatch):
    stub_application(monkeypatch)
    bucket = MemoryBucket()
    document = stored_document(bucket)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))
    monkeypatch.setattr(documents_repo, "delete", AsyncMock(side_effect=RuntimeError("db down")))

    with pytest.raises(RuntimeError):
        await documents_service.delete_document("doc-1", APPLICANT, DummySession(), bucket)

    assert document.file_path in bucket.files


@pytest.mark.asyncio
async def test_delete_keeps_file_when_commit_fails(monkeypatch):
    stub_application(monkeypatch)
    bucket = MemoryBucket()
    document = stored_document(bucket)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))
    monkeypatch.setattr(documents_repo, "delete", AsyncMock())

    with pytest.raises(BackendUnavailableError):
        await documents_service.delete_document("doc-1", OWNER, CommitFailingSession(), bucket)

    assert document.file_path in bucket.files


@pytest.mark.asyncio
async def test_delete_refuses_strangers(monkeypatch):
    stub_application(monkeypatch)
    bucket = MemoryBucket()
    document = stored_document(bucket)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))
    delete = AsyncMock()
    monkeypatch.setattr(documents_repo, "delete", delete)

    with pytest.raises(PermissionDeniedError):
        await documents_service.delete_document("doc-1", SessionContext(user_id="stranger"), DummySession(), bucket)

    delete.assert_not_awaited()
    assert document.file_path in bucket.files


@pytest.mark.asyncio
async def test_download_guesses_media_type(monkeypatch):
    stub_application(monkeypatch)
    bucket = MemoryBucket()
    document = stored_document(bucket)
    monkeypatch.setattr(documents_repo, "get_by_id", AsyncMock(return_value=document))

    downloaded = await documents_service.download_document("doc-1", OWNER, DummySession(), bucket)

    assert downloaded.content == b"%PDF"
    assert downloaded.media_type == "application/pdf"
    assert downloaded.file_name == "Tom_s_Rojas_cedula_1.pdf"

    with pytest.raises(PermissionDeniedError):
        await documents_service.download_document("doc-1", SessionContext(user_id="stranger"), DummySession(), bucket)
