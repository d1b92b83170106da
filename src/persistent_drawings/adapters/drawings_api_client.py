"""HTTP client reaching the record store through the drawings API."""

import base64
import binascii
import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from persistent_drawings.api.drawing_models import (
    DrawingListResponse,
    DrawingMetadataResponse,
    DrawingResponse,
    SlugExistsResponse,
)
from persistent_drawings.domain.drawings import DrawingRecord, DrawingSummary
from persistent_drawings.errors import (
    CodecError,
    InvalidInputError,
    NotFoundError,
    SlugConflictError,
    StaleVersionError,
    StoreUnavailableError,
)
from persistent_drawings.services.records import RecordStore, encode_payload

logger = logging.getLogger(__name__)


@dataclass
class HttpxDrawingApiClient(RecordStore):
    """Record store backed by the drawings HTTP API."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def from_base_url(cls, base_url: str) -> "HttpxDrawingApiClient":
        """Create an API client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient())

    async def exists(self, slug: str) -> bool:
        """Ask the API whether the slug is taken."""
        response = await self._send("GET", f"/drawings/{slug}/exists", slug)
        return self._parse(SlugExistsResponse, response).exists

    async def create(
        self, slug: str, encrypted_payload: bytes, encryption_key: str
    ) -> DrawingRecord:
        """Create a drawing through the API."""
        response = await self._send(
            "POST",
            "/drawings",
            slug,
            json={
                "slug": slug,
                "encrypted_data": encode_payload(encrypted_payload),
                "encryption_key": encryption_key,
            },
        )
        metadata = self._parse(DrawingMetadataResponse, response)
        return _record_from_metadata(metadata, encrypted_payload, encryption_key)

    async def read(self, slug: str) -> DrawingRecord:
        """Fetch a drawing through the API."""
        response = await self._send("GET", f"/drawings/{slug}", slug)
        body = self._parse(DrawingResponse, response)
        try:
            payload = base64.b64decode(body.encrypted_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CodecError() from exc
        return _record_from_metadata(body, payload, body.encryption_key)

    async def update(
        self,
        slug: str,
        encrypted_payload: bytes,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> DrawingRecord:
        """Update a drawing through the API."""
        body: dict[str, object] = {
            "encrypted_data": encode_payload(encrypted_payload),
            "encryption_key": encryption_key,
        }
        if expected_version is not None:
            body["expected_version"] = expected_version
        response = await self._send("PUT", f"/drawings/{slug}", slug, json=body)
        metadata = self._parse(DrawingMetadataResponse, response)
        return _record_from_metadata(metadata, encrypted_payload, encryption_key)

    async def list_recent(self, limit: int) -> list[DrawingSummary]:
        """List recently updated drawings through the API."""
        response = await self._send("GET", "/drawings", "*", params={"limit": limit})
        body = self._parse(DrawingListResponse, response)
        return [
            DrawingSummary(
                id=item.id,
                slug=item.slug,
                version=item.version,
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
            for item in body.drawings
        ]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self, method: str, path: str, slug: str, **kwargs: object
    ) -> httpx.Response:
        url = f"{self.base_url.rstrip('/')}{path}"
        try:
            response = await self.http_client.request(
                method, url, timeout=15, **kwargs  # type: ignore[arg-type]
            )
        except httpx.HTTPError as exc:
            logger.warning("Drawings API %s %s failed: %s", method, path, exc)
            raise StoreUnavailableError() from exc
        if response.status_code == 404:
            raise NotFoundError("Drawing", slug)
        if response.status_code == 409:
            if method == "PUT":
                raise StaleVersionError(slug)
            raise SlugConflictError(slug)
        if response.status_code == 400:
            raise InvalidInputError(_error_message(response))
        if response.status_code == 422:
            raise CodecError(_error_message(response, CodecError().message))
        if response.is_error:
            logger.warning(
                "Drawings API %s %s returned HTTP %s",
                method,
                path,
                response.status_code,
            )
            raise StoreUnavailableError()
        return response

    def _parse(self, model, response: httpx.Response):  # type: ignore[no-untyped-def]
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning("Drawings API returned an unexpected body: %s", exc)
            raise StoreUnavailableError() from exc


def _error_message(response: httpx.Response, default: str = "Invalid input") -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return default


def _record_from_metadata(
    metadata: DrawingMetadataResponse, encrypted_payload: bytes, encryption_key: str
) -> DrawingRecord:
    return DrawingRecord(
        id=metadata.id,
        slug=metadata.slug,
        encrypted_payload=encrypted_payload,
        encryption_key=encryption_key,
        version=metadata.version,
        created_at=metadata.created_at,
        updated_at=metadata.updated_at,
    )
