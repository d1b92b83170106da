"""Tests for the payload codec."""

import json

import pytest
from cryptography.fernet import Fernet

from persistent_drawings.domain.scene import ScenePayload, ViewState
from persistent_drawings.errors import CodecError
from persistent_drawings.services.codec import PayloadCodec, generate_key
from tests.conftest import make_scene


def test_generate_key_returns_fresh_fernet_keys() -> None:
    first = generate_key()
    second = generate_key()

    assert first != second
    Fernet(first)


def test_decode_restores_elements_view_state_and_manifest(codec: PayloadCodec) -> None:
    scene = make_scene(shapes=2, theme="dark")
    key = generate_key()

    decoded = codec.decode(codec.encode(scene, key), key)

    assert decoded == ScenePayload.from_scene(scene)
    assert [element.id for element in decoded.elements] == [
        "rect-0",
        "rect-1",
        "image-file-1",
    ]
    assert decoded.view_state.theme == "dark"
    assert decoded.files["file-1"].mime_type == "image/png"
    assert decoded.model_extra is None


def test_payload_keeps_unknown_element_properties(codec: PayloadCodec) -> None:
    key = generate_key()

    decoded = codec.decode(codec.encode(make_scene(), key), key)

    assert decoded.elements[0].model_extra == {"strokeColor": "#1e1e1e"}


def test_payload_does_not_embed_attachment_bytes(codec: PayloadCodec) -> None:
    key = generate_key()
    payload = codec.encode(make_scene(), key)

    document = json.loads(codec.decrypt_bytes(payload, key))

    assert document["type"] == "excalidraw"
    assert document["files"]["file-1"] == {
        "id": "file-1",
        "mimeType": "image/png",
        "created": 1_700_000_000_000,
    }
    assert "data" not in json.dumps(document["files"])


def test_decode_with_wrong_key_fails(codec: PayloadCodec) -> None:
    payload = codec.encode(make_scene(), generate_key())

    with pytest.raises(CodecError):
        codec.decode(payload, generate_key())


def test_decode_truncated_payload_fails(codec: PayloadCodec) -> None:
    key = generate_key()
    payload = codec.encode(make_scene(), key)

    with pytest.raises(CodecError):
        codec.decode(payload[: len(payload) // 2], key)


def test_malformed_key_is_a_codec_error(codec: PayloadCodec) -> None:
    with pytest.raises(CodecError):
        codec.encode(make_scene(), "not-a-key")


def test_decode_rejects_structural_mismatch(codec: PayloadCodec) -> None:
    key = generate_key()
    bogus = json.dumps({"type": "excalidraw", "elements": "nope"}).encode()

    with pytest.raises(CodecError):
        codec.decode(codec.encrypt_bytes(bogus, key), key)


def test_decode_rejects_non_json_content(codec: PayloadCodec) -> None:
    key = generate_key()

    with pytest.raises(CodecError):
        codec.decode(codec.encrypt_bytes(b"\xff\xfe not json", key), key)


def test_decode_rejects_mismatched_manifest_key(codec: PayloadCodec) -> None:
    key = generate_key()
    document = {
        "type": "excalidraw",
        "elements": [],
        "appState": {},
        "files": {"file-1": {"id": "file-2"}},
    }

    with pytest.raises(CodecError):
        codec.decode(codec.encrypt_bytes(json.dumps(document).encode(), key), key)


def test_restore_drops_deleted_elements_and_fills_defaults(codec: PayloadCodec) -> None:
    key = generate_key()
    document = {
        "type": "excalidraw",
        "version": 2,
        "source": "test",
        "elements": [
            {"id": "a", "type": "rectangle"},
            {"id": "b", "type": "ellipse", "isDeleted": True},
        ],
        "appState": {"theme": "dark", "selectedElementIds": {"a": True}},
    }
    payload = codec.decode(codec.encrypt_bytes(json.dumps(document).encode(), key), key)

    scene = payload.restore({})

    assert [element.id for element in scene.elements] == ["a"]
    assert scene.view_state == ViewState(theme="dark")
    assert scene.view_state.view_background_color == "#ffffff"
    assert scene.files == {}
