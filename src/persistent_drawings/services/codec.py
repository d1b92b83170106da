"""Compression and encryption of drawing payloads and attachments."""

import json
import zlib
from dataclasses import dataclass

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from persistent_drawings.domain.scene import Scene, ScenePayload
from persistent_drawings.errors import CodecError


def generate_key() -> str:
    """Return a fresh url-safe encoded symmetric key for one drawing."""
    return Fernet.generate_key().decode("ascii")


@dataclass(frozen=True)
class PayloadCodec:
    """Stateless codec: JSON document -> zlib -> Fernet token."""

    compression_level: int = 6

    def encode(self, scene: Scene, key: str) -> bytes:
        """Serialize, compress and encrypt a scene."""
        document = ScenePayload.from_scene(scene).model_dump(mode="json", by_alias=True)
        raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
        return self.encrypt_bytes(raw, key)

    def decode(self, payload: bytes, key: str) -> ScenePayload:
        """Decrypt, decompress and validate a payload document."""
        raw = self.decrypt_bytes(payload, key)
        try:
            return ScenePayload.model_validate_json(raw)
        except ValidationError as exc:
            raise CodecError("Drawing payload has an unexpected structure") from exc

    def encrypt_bytes(self, data: bytes, key: str) -> bytes:
        """Compress and encrypt arbitrary bytes."""
        return _fernet(key).encrypt(zlib.compress(data, self.compression_level))

    def decrypt_bytes(self, token: bytes, key: str) -> bytes:
        """Reverse encrypt_bytes; never returns partially decrypted data."""
        fernet = _fernet(key)
        try:
            compressed = fernet.decrypt(token)
        except (InvalidToken, TypeError) as exc:
            raise CodecError() from exc
        try:
            return zlib.decompress(compressed)
        except zlib.error as exc:
            raise CodecError() from exc


def _fernet(key: str) -> Fernet:
    try:
        return Fernet(key)
    except (TypeError, ValueError) as exc:
        raise CodecError("Invalid encryption key") from exc
