"""Domain models for persisted drawing records."""

import re
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from persistent_drawings.errors import InvalidSlugError

SLUG_MAX_LENGTH = 100
SLUG_PATTERN = re.compile(r"^[a-z0-9-]{1,100}$")


@dataclass(frozen=True)
class DrawingRecord:
    """Represents a drawing row stored in the record store."""

    id: UUID
    slug: str
    encrypted_payload: bytes
    encryption_key: str
    version: int
    created_at: datetime
    updated_at: datetime
    last_accessed_at: datetime | None = None


@dataclass(frozen=True)
class DrawingSummary:
    """Metadata of a drawing without its payload."""

    id: UUID
    slug: str
    version: int
    created_at: datetime
    updated_at: datetime


def is_valid_slug(slug: object) -> bool:
    """Return True when the slug matches the allowed format."""
    return isinstance(slug, str) and SLUG_PATTERN.fullmatch(slug) is not None


def validate_slug(slug: object) -> str:
    """Return the slug unchanged or raise InvalidSlugError."""
    if not is_valid_slug(slug):
        raise InvalidSlugError()
    return slug  # type: ignore[return-value]


def drawing_url(base_url: str, slug: str) -> str:
    """Build the shareable URL for a drawing slug."""
    return f"{base_url.rstrip('/')}/d/{slug}"
