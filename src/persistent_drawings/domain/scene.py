"""Typed scene models and the serialized payload document."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PAYLOAD_TYPE = "excalidraw"
PAYLOAD_VERSION = 2
PAYLOAD_SOURCE = "persistent-drawings"
DEFAULT_MIME_TYPE = "application/octet-stream"


class SceneElement(BaseModel):
    """Single vector element; unknown element properties are preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    angle: float = 0.0
    version: int = Field(default=1, ge=1)
    is_deleted: bool = Field(default=False, alias="isDeleted")
    file_id: str | None = Field(default=None, alias="fileId")
    status: str | None = None

    @property
    def references_file(self) -> bool:
        """True for image elements bound to an attachment."""
        return self.type == "image" and bool(self.file_id)


class ViewState(BaseModel):
    """Exportable view state of the editor."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    theme: Literal["light", "dark"] | None = None
    view_background_color: str = Field(
        default="#ffffff", alias="viewBackgroundColor"
    )
    name: str | None = None
    scroll_x: float = Field(default=0.0, alias="scrollX")
    scroll_y: float = Field(default=0.0, alias="scrollY")
    zoom: float = Field(default=1.0, gt=0)
    grid_size: int | None = Field(default=None, alias="gridSize", gt=0)


class BinaryFile(BaseModel):
    """Binary attachment held in memory alongside a scene."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    mime_type: str = Field(default=DEFAULT_MIME_TYPE, alias="mimeType")
    data: bytes
    created: int = 0


class FileManifestEntry(BaseModel):
    """Attachment metadata recorded inside the payload."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(min_length=1)
    mime_type: str = Field(default=DEFAULT_MIME_TYPE, alias="mimeType")
    created: int = 0


class Scene(BaseModel):
    """Elements, view state and attachments of a drawing."""

    elements: list[SceneElement] = Field(default_factory=list)
    view_state: ViewState = Field(default_factory=ViewState)
    files: dict[str, BinaryFile] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the scene has no visible elements."""
        return not any(not element.is_deleted for element in self.elements)

    def referenced_file_ids(self) -> set[str]:
        """Return attachment ids referenced by visible image elements."""
        return {
            element.file_id
            for element in self.elements
            if element.references_file and not element.is_deleted and element.file_id
        }

    def referenced_files(self) -> dict[str, bytes]:
        """Return bytes of referenced attachments that are present in memory."""
        return {
            file_id: self.files[file_id].data
            for file_id in sorted(self.referenced_file_ids())
            if file_id in self.files
        }


class ScenePayload(BaseModel):
    """Serialized drawing document stored inside the encrypted payload."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: Literal["excalidraw"] = PAYLOAD_TYPE
    version: int = Field(default=PAYLOAD_VERSION, ge=1)
    source: str = PAYLOAD_SOURCE
    elements: list[SceneElement]
    view_state: ViewState = Field(default_factory=ViewState, alias="appState")
    files: dict[str, FileManifestEntry] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_manifest_keys(self) -> "ScenePayload":
        for key, entry in self.files.items():
            if key != entry.id:
                raise ValueError(f"manifest key {key!r} does not match file id")
        return self

    @classmethod
    def from_scene(cls, scene: Scene) -> "ScenePayload":
        """Build the payload document for a scene, keeping only file metadata."""
        manifest = {
            file_id: FileManifestEntry(
                id=file_id,
                mime_type=scene.files[file_id].mime_type,
                created=scene.files[file_id].created,
            )
            for file_id in sorted(scene.referenced_file_ids())
            if file_id in scene.files
        }
        return cls(
            elements=list(scene.elements),
            view_state=scene.view_state,
            files=manifest,
        )

    def attachment_ids(self) -> set[str]:
        """Return attachment ids referenced by visible image elements."""
        return {
            element.file_id
            for element in self.elements
            if element.references_file and not element.is_deleted and element.file_id
        }

    def restore(self, loaded: dict[str, bytes] | None = None) -> Scene:
        """Rebuild an editor scene, dropping deleted elements."""
        files: dict[str, BinaryFile] = {}
        for file_id, data in (loaded or {}).items():
            entry = self.files.get(file_id)
            files[file_id] = BinaryFile(
                id=file_id,
                mime_type=entry.mime_type if entry else DEFAULT_MIME_TYPE,
                created=entry.created if entry else 0,
                data=data,
            )
        return Scene(
            elements=[element for element in self.elements if not element.is_deleted],
            view_state=self.view_state,
            files=files,
        )
