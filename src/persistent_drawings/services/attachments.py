"""Encrypted attachment uploads and downloads scoped per drawing."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from persistent_drawings.domain.attachments import (
    DownloadResult,
    EncodedFiles,
    UploadResult,
)
from persistent_drawings.errors import CodecError, DrawingError
from persistent_drawings.services.codec import PayloadCodec

logger = logging.getLogger(__name__)


class AttachmentStore(Protocol):
    """Object storage interface for encrypted attachment blobs."""

    async def upload_object(self, path: str, data: bytes) -> None:
        """Store (or overwrite) an object at path."""

    async def download_object(self, path: str) -> bytes:
        """Return object bytes; raise NotFoundError when absent."""


@dataclass
class AttachmentClient:
    """Encrypts attachments with the drawing key and moves them to storage."""

    store: AttachmentStore
    codec: PayloadCodec
    prefix: str
    max_bytes: int

    def scope_prefix(self, scope_id: str) -> str:
        """Return the storage prefix isolating one drawing's attachments."""
        return f"{self.prefix.strip('/')}/{scope_id}"

    def encode_files(self, files: dict[str, bytes], key: str) -> EncodedFiles:
        """Encrypt each attachment and reject those above the size limit."""
        accepted: dict[str, bytes] = {}
        rejected: dict[str, str] = {}
        for file_id, data in files.items():
            encoded = self.codec.encrypt_bytes(data, key)
            if len(encoded) > self.max_bytes:
                rejected[file_id] = (
                    f"{len(encoded)} bytes exceeds the limit of {self.max_bytes} bytes"
                )
                continue
            accepted[file_id] = encoded
        return EncodedFiles(accepted=accepted, rejected=rejected)

    async def upload(
        self, scope_id: str, files: dict[str, bytes], key: str
    ) -> UploadResult:
        """Encrypt and upload attachments, reporting rejects and failures."""
        return await self.upload_encoded(scope_id, self.encode_files(files, key))

    async def upload_encoded(self, scope_id: str, encoded: EncodedFiles) -> UploadResult:
        """Upload already encrypted attachments concurrently."""
        prefix = self.scope_prefix(scope_id)
        file_ids = list(encoded.accepted)
        outcomes = await asyncio.gather(
            *(
                self._upload_one(prefix, file_id, encoded.accepted[file_id])
                for file_id in file_ids
            )
        )
        saved = {
            file_id for file_id, error in zip(file_ids, outcomes, strict=True) if not error
        }
        errored = {
            file_id: error
            for file_id, error in zip(file_ids, outcomes, strict=True)
            if error
        }
        return UploadResult(
            saved=frozenset(saved), rejected=dict(encoded.rejected), errored=errored
        )

    async def download(
        self, scope_id: str, key: str, file_ids: Iterable[str]
    ) -> DownloadResult:
        """Download and decrypt attachments; failures are reported per id."""
        prefix = self.scope_prefix(scope_id)
        requested = sorted(set(file_ids))
        outcomes = await asyncio.gather(
            *(self._download_one(prefix, file_id, key) for file_id in requested)
        )
        loaded: dict[str, bytes] = {}
        errored: set[str] = set()
        for file_id, data in zip(requested, outcomes, strict=True):
            if data is None:
                errored.add(file_id)
            else:
                loaded[file_id] = data
        return DownloadResult(loaded=loaded, errored=frozenset(errored))

    async def _upload_one(self, prefix: str, file_id: str, data: bytes) -> str | None:
        try:
            await self.store.upload_object(f"{prefix}/{file_id}", data)
        except DrawingError as exc:
            logger.warning(
                "Attachment upload failed (scope=%s, file=%s): %s",
                prefix,
                file_id,
                exc.message,
            )
            return exc.message
        return None

    async def _download_one(self, prefix: str, file_id: str, key: str) -> bytes | None:
        try:
            encrypted = await self.store.download_object(f"{prefix}/{file_id}")
            return self.codec.decrypt_bytes(encrypted, key)
        except CodecError:
            logger.warning(
                "Attachment could not be decrypted (scope=%s, file=%s)", prefix, file_id
            )
        except DrawingError as exc:
            logger.warning(
                "Attachment download failed (scope=%s, file=%s): %s",
                prefix,
                file_id,
                exc.message,
            )
        return None
