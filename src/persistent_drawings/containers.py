"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from persistent_drawings.adapters.drawings_api_client import HttpxDrawingApiClient
from persistent_drawings.adapters.supabase_attachment_storage import (
    SupabaseAttachmentStorage,
)
from persistent_drawings.adapters.supabase_drawing_repository import (
    SupabaseDrawingRepository,
)
from persistent_drawings.config import Settings
from persistent_drawings.services.attachments import AttachmentClient
from persistent_drawings.services.codec import PayloadCodec
from persistent_drawings.services.drawings import DrawingService
from persistent_drawings.services.records import DrawingRecordService, RecordStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    record_service: DrawingRecordService
    drawing_service: DrawingService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    With ``drawings_api_url`` set, records go through the drawings API and no
    table repository is built; attachments always go to the storage bucket.
    """
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    codec = PayloadCodec()
    attachment_client = AttachmentClient(
        store=SupabaseAttachmentStorage(
            supabase_client, bucket=resolved_settings.attachments_bucket
        ),
        codec=codec,
        prefix=resolved_settings.attachment_prefix,
        max_bytes=resolved_settings.attachment_max_bytes,
    )
    api_client: HttpxDrawingApiClient | None = None
    record_store: RecordStore
    if resolved_settings.drawings_api_url:
        api_client = HttpxDrawingApiClient.from_base_url(
            resolved_settings.drawings_api_url
        )
        record_store = api_client
    else:
        record_store = SupabaseDrawingRepository(
            supabase_client, table_name=resolved_settings.drawings_table
        )
    drawing_service = DrawingService(
        records=record_store,
        attachments=attachment_client,
        codec=codec,
        public_base_url=resolved_settings.public_base_url,
        skip_oversized_attachments=resolved_settings.skip_oversized_attachments,
    )

    async def close_resources() -> None:
        if api_client is not None:
            await api_client.close()

    return AppContainer(
        settings=resolved_settings,
        record_service=DrawingRecordService(record_store),
        drawing_service=drawing_service,
        close_resources=close_resources,
    )
