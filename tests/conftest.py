"""Shared test fixtures."""

import itertools
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from persistent_drawings.config import Settings
from persistent_drawings.containers import AppContainer
from persistent_drawings.domain.drawings import DrawingRecord, DrawingSummary
from persistent_drawings.domain.scene import BinaryFile, Scene, SceneElement, ViewState
from persistent_drawings.errors import (
    NotFoundError,
    SlugConflictError,
    StaleVersionError,
    StoreUnavailableError,
)
from persistent_drawings.services.attachments import AttachmentClient, AttachmentStore
from persistent_drawings.services.codec import PayloadCodec
from persistent_drawings.services.drawings import DrawingService
from persistent_drawings.services.records import DrawingRecordService, RecordStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00fake-image-data" * 8
SERVICE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJlLWZvci10ZXN0cw"
)


@dataclass
class InMemoryRecordStore(RecordStore):
    """In-memory record store with strictly increasing timestamps."""

    records: dict[str, DrawingRecord] = field(default_factory=dict)
    reads: list[str] = field(default_factory=list)
    unavailable: bool = False
    _ticks: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def exists(self, slug: str) -> bool:
        self._check_available()
        return slug in self.records

    async def create(
        self, slug: str, encrypted_payload: bytes, encryption_key: str
    ) -> DrawingRecord:
        self._check_available()
        if slug in self.records:
            raise SlugConflictError(slug)
        now = self._now()
        record = DrawingRecord(
            id=uuid4(),
            slug=slug,
            encrypted_payload=encrypted_payload,
            encryption_key=encryption_key,
            version=1,
            created_at=now,
            updated_at=now,
            last_accessed_at=now,
        )
        self.records[slug] = record
        return record

    async def read(self, slug: str) -> DrawingRecord:
        self._check_available()
        record = self.records.get(slug)
        if record is None:
            raise NotFoundError("Drawing", slug)
        record = replace(record, last_accessed_at=self._now())
        self.records[slug] = record
        self.reads.append(slug)
        return record

    async def update(
        self,
        slug: str,
        encrypted_payload: bytes,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> DrawingRecord:
        self._check_available()
        current = self.records.get(slug)
        if current is None:
            raise NotFoundError("Drawing", slug)
        if expected_version is not None and expected_version != current.version:
            raise StaleVersionError(slug, expected_version)
        record = replace(
            current,
            encrypted_payload=encrypted_payload,
            encryption_key=encryption_key,
            version=current.version + 1,
            updated_at=self._now(),
        )
        self.records[slug] = record
        return record

    async def list_recent(self, limit: int) -> list[DrawingSummary]:
        self._check_available()
        ordered = sorted(
            self.records.values(), key=lambda record: record.updated_at, reverse=True
        )
        return [
            DrawingSummary(
                id=record.id,
                slug=record.slug,
                version=record.version,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            for record in ordered[:limit]
        ]

    def _now(self) -> datetime:
        return datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=next(self._ticks))

    def _check_available(self) -> None:
        if self.unavailable:
            raise StoreUnavailableError()


@dataclass
class InMemoryAttachmentStore(AttachmentStore):
    """In-memory object storage with injectable failures."""

    objects: dict[str, bytes] = field(default_factory=dict)
    failing_paths: set[str] = field(default_factory=set)
    unavailable: bool = False

    async def upload_object(self, path: str, data: bytes) -> None:
        if self.unavailable or path in self.failing_paths:
            raise StoreUnavailableError()
        self.objects[path] = data

    async def download_object(self, path: str) -> bytes:
        if self.unavailable:
            raise StoreUnavailableError()
        if path not in self.objects:
            raise NotFoundError("Attachment", path)
        return self.objects[path]


def make_scene(
    shapes: int = 1, image_file_id: str | None = "file-1", theme: str | None = None
) -> Scene:
    """Build a scene with rectangles and optionally one image element."""
    elements = [
        SceneElement(
            id=f"rect-{index}",
            type="rectangle",
            x=10.0 * index,
            y=20.0,
            width=100.0,
            height=50.0,
            strokeColor="#1e1e1e",
        )
        for index in range(shapes)
    ]
    files: dict[str, BinaryFile] = {}
    if image_file_id:
        elements.append(
            SceneElement(
                id=f"image-{image_file_id}",
                type="image",
                width=64.0,
                height=64.0,
                file_id=image_file_id,
                status="saved",
            )
        )
        files[image_file_id] = BinaryFile(
            id=image_file_id,
            mime_type="image/png",
            data=PNG_BYTES,
            created=1_700_000_000_000,
        )
    return Scene(
        elements=elements,
        view_state=ViewState(theme=theme, name="Roadmap"),
        files=files,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=SERVICE_KEY,
        public_base_url="https://draw.example.com",
    )


@pytest.fixture
def codec() -> PayloadCodec:
    return PayloadCodec()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def attachment_store() -> InMemoryAttachmentStore:
    return InMemoryAttachmentStore()


@pytest.fixture
def attachment_client(
    attachment_store: InMemoryAttachmentStore, codec: PayloadCodec
) -> AttachmentClient:
    return AttachmentClient(
        store=attachment_store,
        codec=codec,
        prefix="files/persistent-drawings",
        max_bytes=4 * 1024 * 1024,
    )


@pytest.fixture
def drawing_service(
    record_store: InMemoryRecordStore,
    attachment_client: AttachmentClient,
    codec: PayloadCodec,
    settings: Settings,
) -> DrawingService:
    return DrawingService(
        records=record_store,
        attachments=attachment_client,
        codec=codec,
        public_base_url=settings.public_base_url,
    )


@pytest.fixture
def container(
    settings: Settings,
    record_store: InMemoryRecordStore,
    drawing_service: DrawingService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        record_service=DrawingRecordService(record_store),
        drawing_service=drawing_service,
        close_resources=close_resources,
    )
