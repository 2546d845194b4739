from __future__ import annotations

from pathlib import Path

import pytest

from marketplace.core.errors import BackendUnavailableError, ConflictError, NotFoundError, ValidationFailedError
from marketplace.services.storage import LocalStorage


@pytest.mark.asyncio
async def test_upload_download_and_remove(tmp_path):
    bucket = LocalStorage("docs", root=tmp_path)

    await bucket.upload("app-1/user-2/id.pdf", b"%PDF")

    assert await bucket.download("app-1/user-2/id.pdf") == b"%PDF"
    assert await bucket.list("app-1") == ["app-1/user-2/id.pdf"]

    await bucket.remove(["app-1/user-2/id.pdf"])

    with pytest.raises(NotFoundError):
        await bucket.download("app-1/user-2/id.pdf")


@pytest.mark.asyncio
async def test_upload_refuses_overwrite_without_upsert(tmp_path):
    bucket = LocalStorage("docs", root=tmp_path)
    await bucket.upload("a.txt", b"one")

    with pytest.raises(ConflictError):
        await bucket.upload("a.txt", b"two")

    await bucket.upload("a.txt", b"two", upsert=True)
    assert await bucket.download("a.txt") == b"two"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["../escape.txt", "/etc/passwd", "a/../../b"])
async def test_path_traversal_is_rejected(tmp_path, path):
    bucket = LocalStorage("docs", root=tmp_path)

    with pytest.raises(ValidationFailedError):
        await bucket.upload(path, b"x")


@pytest.mark.asyncio
async def test_disk_failures_surface_as_unavailable(tmp_path, monkeypatch):
    bucket = LocalStorage("docs", root=tmp_path)

    def failing_write(self, data):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "write_bytes", failing_write)

    with pytest.raises(BackendUnavailableError):
        await bucket.upload("a.txt", b"x")
