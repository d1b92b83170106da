"""Pydantic models for the drawings HTTP boundary."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from persistent_drawings.domain.drawings import DrawingRecord, DrawingSummary
from persistent_drawings.services.records import encode_payload


class CreateDrawingRequest(BaseModel):
    """Body of a drawing creation request."""

    slug: str
    encrypted_data: str
    encryption_key: str


class UpdateDrawingRequest(BaseModel):
    """Body of a drawing update request."""

    encrypted_data: str
    encryption_key: str
    expected_version: int | None = None


class SlugExistsResponse(BaseModel):
    """Slug availability check result."""

    exists: bool


class DrawingMetadataResponse(BaseModel):
    """Drawing metadata without payload or key."""

    id: UUID
    slug: str
    version: int = Field(ge=1)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(
        cls, record: DrawingRecord | DrawingSummary
    ) -> "DrawingMetadataResponse":
        """Build the response from a stored record."""
        return cls(
            id=record.id,
            slug=record.slug,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DrawingResponse(DrawingMetadataResponse):
    """Full drawing including the base64 payload and its key."""

    encrypted_data: str
    encryption_key: str

    @classmethod
    def from_record(cls, record: DrawingRecord) -> "DrawingResponse":  # type: ignore[override]
        """Build the response from a stored record."""
        return cls(
            id=record.id,
            slug=record.slug,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
            encrypted_data=encode_payload(record.encrypted_payload),
            encryption_key=record.encryption_key,
        )


class DrawingListResponse(BaseModel):
    """Recently updated drawings."""

    drawings: list[DrawingMetadataResponse]
