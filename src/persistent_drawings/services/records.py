"""Record store interface and the validated service boundary over it."""

import base64
import binascii
from dataclasses import dataclass
from typing import Protocol

from persistent_drawings.domain.drawings import (
    DrawingRecord,
    DrawingSummary,
    validate_slug,
)
from persistent_drawings.errors import InvalidInputError

ENCRYPTION_KEY_MAX_LENGTH = 255


class RecordStore(Protocol):
    """Persistence interface for drawing records keyed by slug."""

    async def exists(self, slug: str) -> bool:
        """Return True when a record with this slug exists."""

    async def create(
        self, slug: str, encrypted_payload: bytes, encryption_key: str
    ) -> DrawingRecord:
        """Insert a record at version 1; raise SlugConflictError if taken."""

    async def read(self, slug: str) -> DrawingRecord:
        """Return a record and touch last_accessed_at; raise NotFoundError."""

    async def update(
        self,
        slug: str,
        encrypted_payload: bytes,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> DrawingRecord:
        """Replace the payload and bump the version by one."""

    async def list_recent(self, limit: int) -> list[DrawingSummary]:
        """Return metadata of the most recently updated records."""


@dataclass
class DrawingRecordService:
    """Validates boundary input before it reaches the record store."""

    store: RecordStore

    async def check_slug_exists(self, slug: str) -> bool:
        """Return whether the slug is taken."""
        return await self.store.exists(validate_slug(slug))

    async def get_drawing(self, slug: str) -> DrawingRecord:
        """Return the stored record for a slug."""
        return await self.store.read(validate_slug(slug))

    async def create_drawing(
        self, slug: str, encrypted_data: str, encryption_key: str
    ) -> DrawingRecord:
        """Create a drawing from a base64 payload."""
        validate_slug(slug)
        payload = decode_payload(encrypted_data)
        return await self.store.create(slug, payload, validate_key(encryption_key))

    async def update_drawing(
        self,
        slug: str,
        encrypted_data: str,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> DrawingRecord:
        """Replace a drawing payload from a base64 payload."""
        validate_slug(slug)
        payload = decode_payload(encrypted_data)
        if expected_version is not None and expected_version < 1:
            raise InvalidInputError("expected_version must be a positive integer")
        return await self.store.update(
            slug,
            payload,
            validate_key(encryption_key),
            expected_version=expected_version,
        )

    async def list_recent(self, limit: int = 20) -> list[DrawingSummary]:
        """Return recently updated drawings."""
        if limit < 1 or limit > 100:
            raise InvalidInputError("limit must be between 1 and 100")
        return await self.store.list_recent(limit)


def decode_payload(encrypted_data: str) -> bytes:
    """Decode a non-empty base64 payload."""
    if not isinstance(encrypted_data, str) or not encrypted_data.strip():
        raise InvalidInputError("encrypted_data is required")
    try:
        payload = base64.b64decode(encrypted_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("encrypted_data must be base64 encoded") from exc
    if not payload:
        raise InvalidInputError("encrypted_data is required")
    return payload


def encode_payload(payload: bytes) -> str:
    """Encode payload bytes for transport."""
    return base64.b64encode(payload).decode("ascii")


def validate_key(encryption_key: str) -> str:
    """Return the key if it is a non-empty string of bounded length."""
    if not isinstance(encryption_key, str) or not encryption_key.strip():
        raise InvalidInputError("encryption_key is required")
    if len(encryption_key) > ENCRYPTION_KEY_MAX_LENGTH:
        raise InvalidInputError("encryption_key is too long")
    return encryption_key
