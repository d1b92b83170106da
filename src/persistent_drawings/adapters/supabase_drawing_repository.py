"""Supabase-backed drawing record repository."""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from persistent_drawings.domain.drawings import DrawingRecord, DrawingSummary
from persistent_drawings.errors import (
    CodecError,
    NotFoundError,
    SlugConflictError,
    StaleVersionError,
    StoreUnavailableError,
)
from persistent_drawings.services.records import RecordStore

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
_RECORD_COLUMNS = (
    "id, slug, encrypted_payload, encryption_key, version, "
    "created_at, updated_at, last_accessed_at"
)
_SUMMARY_COLUMNS = "id, slug, version, created_at, updated_at"


@dataclass
class SupabaseDrawingRepository(RecordStore):
    """Supabase implementation for drawing records.

    Slug uniqueness is enforced by the table's unique constraint and version
    bumps run inside the ``update_drawing`` database function, so concurrent
    writers never need a check-then-write round trip.
    """

    client: Client
    table_name: str = "drawings"

    async def exists(self, slug: str) -> bool:
        """Return True when a row with this slug exists."""
        query = self.client.table(self.table_name).select("id").eq("slug", slug).limit(1)
        response = await self._execute("exists", slug, query)
        return bool(response.data)

    async def create(
        self, slug: str, encrypted_payload: bytes, encryption_key: str
    ) -> DrawingRecord:
        """Insert a drawing row at version 1."""
        query = self.client.table(self.table_name).insert(
            {
                "slug": slug,
                "encrypted_payload": _to_bytea(encrypted_payload),
                "encryption_key": encryption_key,
                "version": 1,
            }
        )
        response = await self._execute("create", slug, query)
        if not response.data:
            logger.error("Insert for drawing %s returned no row", slug)
            raise StoreUnavailableError()
        return _parse_record(response.data[0])

    async def read(self, slug: str) -> DrawingRecord:
        """Return a drawing row and refresh its last access time."""
        query = (
            self.client.table(self.table_name)
            .select(_RECORD_COLUMNS)
            .eq("slug", slug)
            .limit(1)
        )
        response = await self._execute("read", slug, query)
        if not response.data:
            raise NotFoundError("Drawing", slug)
        record = _parse_record(response.data[0])
        accessed_at = datetime.now(tz=UTC)
        touch = self.client.table(self.table_name).update(
            {"last_accessed_at": accessed_at.isoformat()}
        ).eq("slug", slug)
        try:
            await self._execute("touch", slug, touch)
        except StoreUnavailableError:
            return record
        return replace(record, last_accessed_at=accessed_at)

    async def update(
        self,
        slug: str,
        encrypted_payload: bytes,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> DrawingRecord:
        """Replace the payload and bump the version in one statement."""
        query = self.client.rpc(
            "update_drawing",
            {
                "p_slug": slug,
                "p_encrypted_payload": _to_bytea(encrypted_payload),
                "p_encryption_key": encryption_key,
                "p_expected_version": expected_version,
            },
        )
        response = await self._execute("update", slug, query)
        if response.data:
            rows = response.data if isinstance(response.data, list) else [response.data]
            return _parse_record(rows[0])
        if expected_version is not None and await self.exists(slug):
            raise StaleVersionError(slug, expected_version)
        raise NotFoundError("Drawing", slug)

    async def list_recent(self, limit: int) -> list[DrawingSummary]:
        """Return the most recently updated drawings."""
        query = (
            self.client.table(self.table_name)
            .select(_SUMMARY_COLUMNS)
            .order("updated_at", desc=True)
            .limit(limit)
        )
        response = await self._execute("list_recent", "*", query)
        return [_parse_summary(row) for row in response.data or []]

    async def _execute(self, operation: str, slug: str, query):  # type: ignore[no-untyped-def]
        try:
            return await asyncio.to_thread(query.execute)
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise SlugConflictError(slug) from exc
            logger.exception("Drawing store %s failed for slug %s", operation, slug)
            raise StoreUnavailableError() from exc
        except httpx.HTTPError as exc:
            logger.exception("Drawing store %s failed for slug %s", operation, slug)
            raise StoreUnavailableError() from exc


def _to_bytea(data: bytes) -> str:
    return "\\x" + data.hex()


def _from_bytea(value: object) -> bytes:
    if isinstance(value, str) and value.startswith("\\x"):
        try:
            return bytes.fromhex(value[2:])
        except ValueError as exc:
            raise CodecError("Stored payload is not valid hex") from exc
    raise CodecError("Stored payload has an unknown encoding")


def _parse_timestamp(value: object) -> datetime:
    if not isinstance(value, str) or not value:
        logger.error("Drawing row has a missing timestamp: %r", value)
        raise StoreUnavailableError()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        logger.error("Drawing row has a malformed timestamp: %r", value)
        raise StoreUnavailableError() from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _parse_record(row: dict[str, object]) -> DrawingRecord:
    last_accessed_raw = row.get("last_accessed_at")
    return DrawingRecord(
        id=UUID(str(row["id"])),
        slug=str(row["slug"]),
        encrypted_payload=_from_bytea(row.get("encrypted_payload")),
        encryption_key=str(row["encryption_key"]),
        version=int(row["version"]),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
        last_accessed_at=(
            _parse_timestamp(last_accessed_raw) if last_accessed_raw else None
        ),
    )


def _parse_summary(row: dict[str, object]) -> DrawingSummary:
    return DrawingSummary(
        id=UUID(str(row["id"])),
        slug=str(row["slug"]),
        version=int(row["version"]),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )
