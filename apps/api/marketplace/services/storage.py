"""File storage buckets."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Protocol

from ..core.config import settings
from ..core.errors import (
    BackendUnavailableError,
    ConflictError,
    MarketplaceError,
    NotFoundError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _storage_errors(bucket: str, path: str) -> AsyncIterator[None]:
    """Re-raise filesystem failures as marketplace errors."""

    try:
        yield
    except FileExistsError as exc:
        raise ConflictError(f"File already exists: {path}") from exc
    except OSError as exc:
        logger.error("Storage failure on %s/%s: %s", bucket, path, exc)
        raise BackendUnavailableError(f"Storage unavailable for {path}") from exc


class StorageBucket(Protocol):
    name: str

    async def upload(self, path: str, data: bytes, *, upsert: bool = False) -> str: ...

    async def download(self, path: str) -> bytes: ...

    async def remove(self, paths: list[str]) -> None: ...

    async def list(self, prefix: str = "") -> list[str]: ...


class LocalStorage:
    """Bucket stored as a directory under ``storage_root``."""

    def __init__(self, name: str, root: str | Path | None = None) -> None:
        self.name = name
        self._root = Path(root or settings.storage_root).resolve() / name

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise ValidationFailedError(f"Invalid storage path: {path!r}")
        return self._root.joinpath(*relative.parts)

    async def upload(self, path: str, data: bytes, *, upsert: bool = False) -> str:
        target = self._resolve(path)

        def _write() -> None:
            if target.exists() and not upsert:
                raise FileExistsError(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        loop = asyncio.get_running_loop()
        async with _storage_errors(self.name, path):
            await loop.run_in_executor(None, _write)
        logger.debug("Stored %s bytes at %s/%s", len(data), self.name, path)
        return path

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(f"File not found: {path}")
        loop = asyncio.get_running_loop()
        async with _storage_errors(self.name, path):
            return await loop.run_in_executor(None, target.read_bytes)

    async def remove(self, paths: list[str]) -> None:
        targets = [self._resolve(path) for path in paths]

        def _unlink() -> None:
            for target in targets:
                target.unlink(missing_ok=True)

        loop = asyncio.get_running_loop()
        async with _storage_errors(self.name, ", ".join(paths)):
            await loop.run_in_executor(None, _unlink)

    async def list(self, prefix: str = "") -> list[str]:
        base = self._resolve(prefix) if prefix else self._root

        def _walk() -> list[str]:
            if not base.exists():
                return []
            return sorted(p.relative_to(self._root).as_posix() for p in base.rglob("*") if p.is_file())

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _walk)


async def discard(bucket: StorageBucket, paths: list[str]) -> None:
    """Remove stored objects, logging instead of raising when storage fails."""

    try:
        await bucket.remove(paths)
    except MarketplaceError as exc:
        logger.warning("Could not remove %s from %s: %s", paths, bucket.name, exc)


def get_documents_bucket() -> StorageBucket:
    return LocalStorage(settings.application_documents_bucket)


def get_images_bucket() -> StorageBucket:
    return LocalStorage(settings.property_images_bucket)
