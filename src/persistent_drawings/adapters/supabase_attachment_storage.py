"""Supabase Storage bucket holding encrypted attachment blobs."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
from storage3.exceptions import StorageApiError
from supabase import Client

from persistent_drawings.errors import NotFoundError, StoreUnavailableError
from persistent_drawings.services.attachments import AttachmentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Storage answers a missing object with 400 on older deployments.
_MISSING_STATUSES = {"400", "404"}
_UPLOAD_OPTIONS = {"content-type": "application/octet-stream", "x-upsert": "true"}


@dataclass
class SupabaseAttachmentStorage(AttachmentStore):
    """Attachment store over a Supabase Storage bucket."""

    client: Client
    bucket: str

    async def upload_object(self, path: str, data: bytes) -> None:
        """Upload bytes, overwriting any previous object at path."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            await self._run(
                "upload", path, lambda: bucket.upload(path, data, dict(_UPLOAD_OPTIONS))
            )
        except StorageApiError as exc:
            logger.warning("Storage upload failed for %s: %s", path, exc)
            raise StoreUnavailableError() from exc

    async def download_object(self, path: str) -> bytes:
        """Download object bytes."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            return await self._run("download", path, lambda: bucket.download(path))
        except StorageApiError as exc:
            if str(exc.status) in _MISSING_STATUSES:
                raise NotFoundError("Attachment", path) from exc
            logger.warning("Storage download failed for %s: %s", path, exc)
            raise StoreUnavailableError() from exc

    async def _run(self, operation: str, path: str, call: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(call)
        except httpx.HTTPError as exc:
            logger.warning("Storage %s failed for %s: %s", operation, path, exc)
            raise StoreUnavailableError() from exc
