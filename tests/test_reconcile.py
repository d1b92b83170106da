"""Tests for the load reconciler."""

import asyncio
from dataclasses import dataclass, field

import pytest

from persistent_drawings.domain.scene import Scene, ViewState
from persistent_drawings.errors import NotFoundError
from persistent_drawings.services.drawings import DrawingService, LoadDrawingResult
from persistent_drawings.services.reconcile import (
    ReconcileDecision,
    apply_decision,
    decide,
    merge_view_state,
    open_shared_drawing,
)
from tests.conftest import make_scene


@dataclass
class RecordingConfirm:
    answer: bool
    calls: list[None] = field(default_factory=list)

    async def __call__(self) -> bool:
        self.calls.append(None)
        return self.answer


@dataclass
class FailingLoader:
    async def load_drawing(self, slug: str) -> LoadDrawingResult:
        raise NotFoundError("Drawing", slug)


@pytest.mark.parametrize(
    ("has_local", "external", "confirmed", "expected"),
    [
        (False, False, None, ReconcileDecision.KEEP_LOCAL),
        (True, False, None, ReconcileDecision.KEEP_LOCAL),
        (False, True, None, ReconcileDecision.LOAD_REMOTE),
        (True, True, None, ReconcileDecision.CONFIRM),
        (True, True, True, ReconcileDecision.LOAD_REMOTE),
        (True, True, False, ReconcileDecision.DISCARD_REMOTE),
    ],
)
def test_decide(
    has_local: bool,
    external: bool,
    confirmed: bool | None,
    expected: ReconcileDecision,
) -> None:
    assert decide(has_local, external, confirmed) is expected


def test_local_theme_wins_over_remote() -> None:
    remote = ViewState(theme="light", name="Remote")
    local = ViewState(theme="dark", name="Local")

    merged = merge_view_state(remote, local)

    assert merged.theme == "dark"
    assert merged.name == "Remote"


def test_remote_theme_kept_when_local_has_none() -> None:
    remote = ViewState(theme="light")

    assert merge_view_state(remote, ViewState()).theme == "light"
    assert merge_view_state(remote, None).theme == "light"


def test_discard_keeps_local_scene_and_resets_address() -> None:
    local = make_scene(shapes=2)

    outcome = apply_decision(ReconcileDecision.DISCARD_REMOTE, make_scene(), local)

    assert outcome.scene == local
    assert outcome.reset_address


def test_open_into_empty_scene_loads_without_confirmation(
    drawing_service: DrawingService,
) -> None:
    asyncio.run(drawing_service.create_drawing("shared", make_scene(shapes=2)))
    confirm = RecordingConfirm(answer=False)

    outcome = asyncio.run(
        open_shared_drawing(drawing_service, "shared", Scene(), confirm)
    )

    assert confirm.calls == []
    assert outcome.decision is ReconcileDecision.LOAD_REMOTE
    assert len(outcome.scene.elements) == 3
    assert outcome.encryption_key is not None
    assert not outcome.reset_address


def test_declined_confirmation_keeps_local_content(
    drawing_service: DrawingService,
) -> None:
    asyncio.run(drawing_service.create_drawing("shared", make_scene(shapes=2)))
    local = make_scene(shapes=1, image_file_id=None)
    confirm = RecordingConfirm(answer=False)

    outcome = asyncio.run(open_shared_drawing(drawing_service, "shared", local, confirm))

    assert len(confirm.calls) == 1
    assert outcome.decision is ReconcileDecision.DISCARD_REMOTE
    assert outcome.scene == local
    assert outcome.reset_address
    assert outcome.encryption_key is None


def test_confirmed_load_replaces_content_but_keeps_local_theme(
    drawing_service: DrawingService,
) -> None:
    asyncio.run(
        drawing_service.create_drawing("shared", make_scene(shapes=2, theme="light"))
    )
    local = make_scene(shapes=1, image_file_id=None, theme="dark")
    confirm = RecordingConfirm(answer=True)

    outcome = asyncio.run(open_shared_drawing(drawing_service, "shared", local, confirm))

    assert outcome.decision is ReconcileDecision.LOAD_REMOTE
    assert len(outcome.scene.elements) == 3
    assert outcome.scene.view_state.theme == "dark"


def test_failed_load_yields_empty_scene_with_message() -> None:
    outcome = asyncio.run(
        open_shared_drawing(
            FailingLoader(), "gone", Scene(), RecordingConfirm(answer=True)
        )
    )

    assert outcome.scene.elements == []
    assert outcome.error_message == "Drawing not found"
