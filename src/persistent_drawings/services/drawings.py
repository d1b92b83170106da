"""Create, update and load persistent drawings across both stores."""

import logging
from dataclasses import dataclass

from persistent_drawings.domain.attachments import (
    DownloadResult,
    EncodedFiles,
    UploadResult,
)
from persistent_drawings.domain.drawings import (
    DrawingRecord,
    drawing_url,
    is_valid_slug,
    validate_slug,
)
from persistent_drawings.domain.scene import Scene
from persistent_drawings.errors import (
    AttachmentTooLargeError,
    CodecError,
    InvalidInputError,
    InvalidSlugError,
)
from persistent_drawings.services.attachments import AttachmentClient
from persistent_drawings.services.codec import PayloadCodec, generate_key
from persistent_drawings.services.records import RecordStore, validate_key

logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Could not create persistent link"
UPDATE_FAILED_MESSAGE = "Could not update persistent link"


@dataclass(frozen=True)
class CreateDrawingResult:
    """Outcome of creating a drawing.

    ``record`` is always set: when attachments fail the record has already
    been committed and ``error_message`` explains the partial state.
    """

    slug: str
    url: str
    encryption_key: str
    record: DrawingRecord
    attachments: UploadResult
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """True when record and attachments were both stored."""
        return self.error_message is None


@dataclass(frozen=True)
class UpdateDrawingResult:
    """Outcome of updating a drawing."""

    record: DrawingRecord
    attachments: UploadResult
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """True when record and attachments were both stored."""
        return self.error_message is None


@dataclass(frozen=True)
class LoadDrawingResult:
    """A reconstituted scene plus the key needed for later updates."""

    scene: Scene
    encryption_key: str
    record: DrawingRecord
    errored_file_ids: frozenset[str] = frozenset()


@dataclass
class DrawingService:
    """Orchestrates the codec, the record store and the attachment store."""

    records: RecordStore
    attachments: AttachmentClient
    codec: PayloadCodec
    public_base_url: str
    skip_oversized_attachments: bool = False

    async def check_slug_availability(self, slug: str) -> bool:
        """Return True when the slug is well formed and not taken."""
        if not is_valid_slug(slug):
            raise InvalidSlugError()
        return not await self.records.exists(slug)

    async def create_drawing(self, slug: str, scene: Scene) -> CreateDrawingResult:
        """Persist a new drawing under a slug with a freshly generated key.

        SlugConflictError propagates untouched; the caller must pick another
        slug. Attachment failures leave the committed record in place.
        """
        validate_slug(slug)
        key = generate_key()
        payload = self.codec.encode(scene, key)
        encoded = self._encode_attachments(slug, scene, key)
        record = await self.records.create(slug, payload, key)
        logger.info("Created drawing %s (version %s)", slug, record.version)
        upload = await self.attachments.upload_encoded(slug, encoded)
        error_message = None
        if upload.errored:
            logger.error(
                "Drawing %s created but %d attachment(s) failed to upload: %s",
                slug,
                len(upload.errored),
                ", ".join(sorted(upload.errored)),
            )
            error_message = CREATE_FAILED_MESSAGE
        return CreateDrawingResult(
            slug=record.slug,
            url=drawing_url(self.public_base_url, record.slug),
            encryption_key=key,
            record=record,
            attachments=upload,
            error_message=error_message,
        )

    async def update_drawing(
        self,
        slug: str,
        scene: Scene,
        encryption_key: str,
        expected_version: int | None = None,
    ) -> UpdateDrawingResult:
        """Replace a drawing's payload and re-upload its attachments.

        NotFoundError is raised when the drawing no longer exists, which
        callers can tell apart from a result whose attachments failed.
        """
        validate_slug(slug)
        validate_key(encryption_key)
        try:
            payload = self.codec.encode(scene, encryption_key)
        except CodecError as exc:
            raise InvalidInputError("Invalid encryption key") from exc
        encoded = self._encode_attachments(slug, scene, encryption_key)
        record = await self.records.update(
            slug, payload, encryption_key, expected_version=expected_version
        )
        logger.info("Updated drawing %s to version %s", slug, record.version)
        upload = await self.attachments.upload_encoded(slug, encoded)
        error_message = None
        if upload.errored:
            logger.error(
                "Drawing %s updated but %d attachment(s) failed to upload: %s",
                slug,
                len(upload.errored),
                ", ".join(sorted(upload.errored)),
            )
            error_message = UPDATE_FAILED_MESSAGE
        return UpdateDrawingResult(
            record=record, attachments=upload, error_message=error_message
        )

    async def load_drawing(self, slug: str) -> LoadDrawingResult:
        """Read, decrypt and restore a drawing with whatever attachments load."""
        validate_slug(slug)
        record = await self.records.read(slug)
        try:
            payload = self.codec.decode(record.encrypted_payload, record.encryption_key)
        except CodecError:
            logger.error("Stored payload for drawing %s could not be decoded", slug)
            raise
        file_ids = payload.attachment_ids()
        download = DownloadResult()
        if file_ids:
            download = await self.attachments.download(
                slug, record.encryption_key, file_ids
            )
            if download.errored:
                logger.warning(
                    "Drawing %s loaded without %d attachment(s)",
                    slug,
                    len(download.errored),
                )
        return LoadDrawingResult(
            scene=payload.restore(download.loaded),
            encryption_key=record.encryption_key,
            record=record,
            errored_file_ids=download.errored,
        )

    def _encode_attachments(self, slug: str, scene: Scene, key: str) -> EncodedFiles:
        encoded = self.attachments.encode_files(scene.referenced_files(), key)
        if encoded.rejected:
            if not self.skip_oversized_attachments:
                raise AttachmentTooLargeError(encoded.rejected)
            logger.warning(
                "Skipping oversized attachment(s) for drawing %s: %s",
                slug,
                ", ".join(sorted(encoded.rejected)),
            )
        return encoded
