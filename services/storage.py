"""
Document blob store. The engine only needs upload / remove / public_url; the default
implementation keeps blobs on the local filesystem under settings.storage_root.
"""
from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    pass


class BlobStore(Protocol):
    async def upload(self, path: str, data: bytes) -> None: ...

    async def remove(self, paths: list[str]) -> None: ...

    def public_url(self, path: str) -> str: ...


def build_storage_path(user_id: str, application_id: str, category: str, filename: str) -> str:
    """'{user}/{application}/{category}/{timestamp_ms}_{random}.{ext}', unique per upload."""
    ext = PurePosixPath(filename).suffix.lstrip(".").lower() or "bin"
    timestamp = int(time.time() * 1000)
    return f"{user_id}/{application_id}/{category}/{timestamp}_{secrets.token_hex(4)}.{ext}"


class LocalBlobStore:
    def __init__(self, root: str | Path | None = None, base_url: str | None = None):
        self.root = Path(root or settings.storage_root)
        self.base_url = (base_url or settings.public_storage_base_url).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise BlobStoreError(f"Invalid storage path: {path}")
        return target

    def _write(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        if target.exists():
            raise BlobStoreError(f"Blob already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "xb" refuses to overwrite a blob written since the check above
            with open(target, "xb") as fh:
                fh.write(data)
        except OSError as e:
            raise BlobStoreError(f"Upload failed for {path}: {e}") from e

    def _unlink(self, paths: list[str]) -> None:
        # Missing blobs count as removed so a retried delete converges
        for path in paths:
            try:
                self._resolve(path).unlink(missing_ok=True)
            except OSError as e:
                raise BlobStoreError(f"Remove failed for {path}: {e}") from e

    async def upload(self, path: str, data: bytes) -> None:
        await run_in_threadpool(self._write, path, data)
        logger.debug("Stored blob %s (%d bytes)", path, len(data))

    async def remove(self, paths: list[str]) -> None:
        await run_in_threadpool(self._unlink, list(paths))

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"
