"""Error taxonomy for persistent drawing operations."""


class DrawingError(Exception):
    """Base exception for persistent drawing errors."""

    def __init__(self, message: str = "Drawing operation failed") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputError(DrawingError):
    """Raised when a slug, payload or key is malformed."""

    def __init__(self, message: str = "Invalid input") -> None:
        super().__init__(message)


class InvalidSlugError(InvalidInputError):
    """Raised when a slug does not match the allowed format."""

    def __init__(
        self,
        message: str = (
            "Slug must be 1-100 characters, lowercase letters, numbers and hyphens"
        ),
    ) -> None:
        super().__init__(message)


class AttachmentTooLargeError(InvalidInputError):
    """Raised when attachments exceed the upload size limit."""

    def __init__(self, rejected: dict[str, str]) -> None:
        self.rejected = dict(rejected)
        ids = ", ".join(sorted(self.rejected))
        super().__init__(f"Attachments exceed the size limit: {ids}")


class ConflictError(DrawingError):
    """Raised when a write conflicts with the stored state."""

    def __init__(self, message: str = "Drawing conflict") -> None:
        super().__init__(message)


class SlugConflictError(ConflictError):
    """Raised when a slug is already taken."""

    def __init__(self, slug: str = "") -> None:
        self.slug = slug
        super().__init__("Slug already exists")


class StaleVersionError(ConflictError):
    """Raised on optimistic update conflicts (stale version)."""

    def __init__(self, slug: str = "", expected_version: int | None = None) -> None:
        self.slug = slug
        self.expected_version = expected_version
        super().__init__("Drawing was modified by another writer")


class NotFoundError(DrawingError):
    """Raised when a drawing or attachment does not exist."""

    def __init__(self, resource: str = "Drawing", id: str = "") -> None:
        self.resource = resource
        self.id = id
        super().__init__(f"{resource} not found")


class CodecError(DrawingError):
    """Raised when a payload cannot be decrypted, decompressed or parsed."""

    def __init__(self, message: str = "Could not read this drawing") -> None:
        super().__init__(message)


class StoreUnavailableError(DrawingError):
    """Raised on transient failures of the record or attachment store."""

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(message)
