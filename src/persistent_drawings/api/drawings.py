"""Drawings API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status

from persistent_drawings.api.drawing_models import (
    CreateDrawingRequest,
    DrawingListResponse,
    DrawingMetadataResponse,
    DrawingResponse,
    SlugExistsResponse,
    UpdateDrawingRequest,
)

if TYPE_CHECKING:
    from persistent_drawings.services.records import DrawingRecordService

router = APIRouter(prefix="/api/drawings", tags=["drawings"])


def _records(request: Request) -> DrawingRecordService:
    return request.app.state.container.record_service


@router.get("")
async def list_drawings(request: Request, limit: int = 20) -> DrawingListResponse:
    """Return recently updated drawings."""
    summaries = await _records(request).list_recent(limit)
    return DrawingListResponse(
        drawings=[DrawingMetadataResponse.from_record(item) for item in summaries]
    )


@router.get("/{slug}/exists")
async def slug_exists(slug: str, request: Request) -> SlugExistsResponse:
    """Check whether a slug is taken."""
    return SlugExistsResponse(exists=await _records(request).check_slug_exists(slug))


@router.get("/{slug}")
async def get_drawing(slug: str, request: Request) -> DrawingResponse:
    """Return an encrypted drawing and its key."""
    record = await _records(request).get_drawing(slug)
    return DrawingResponse.from_record(record)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_drawing(
    body: CreateDrawingRequest, request: Request
) -> DrawingMetadataResponse:
    """Create a drawing under a new slug."""
    record = await _records(request).create_drawing(
        body.slug, body.encrypted_data, body.encryption_key
    )
    return DrawingMetadataResponse.from_record(record)


@router.put("/{slug}")
async def update_drawing(
    slug: str, body: UpdateDrawingRequest, request: Request
) -> DrawingMetadataResponse:
    """Replace the payload of an existing drawing."""
    record = await _records(request).update_drawing(
        slug,
        body.encrypted_data,
        body.encryption_key,
        expected_version=body.expected_version,
    )
    return DrawingMetadataResponse.from_record(record)
