"""Models for attachment transfer results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EncodedFiles:
    """Encrypted attachments ready for upload, split by size policy."""

    accepted: dict[str, bytes] = field(default_factory=dict)
    rejected: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an attachment upload."""

    saved: frozenset[str] = frozenset()
    rejected: dict[str, str] = field(default_factory=dict)
    errored: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when every attachment was stored."""
        return not self.rejected and not self.errored


@dataclass(frozen=True)
class DownloadResult:
    """Attachments partitioned into loaded bytes and errored ids."""

    loaded: dict[str, bytes] = field(default_factory=dict)
    errored: frozenset[str] = frozenset()
