"""Policy for combining a loaded remote scene with the caller's local scene."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from persistent_drawings.domain.scene import Scene, ViewState
from persistent_drawings.errors import DrawingError
from persistent_drawings.services.drawings import LoadDrawingResult

logger = logging.getLogger(__name__)

LOCAL_VIEW_FIELDS = ("theme",)


class ReconcileDecision(StrEnum):
    """What to do with remote and local content."""

    KEEP_LOCAL = "keep_local"
    CONFIRM = "confirm"
    LOAD_REMOTE = "load_remote"
    DISCARD_REMOTE = "discard_remote"


class DrawingLoader(Protocol):
    """Anything able to load a drawing by slug."""

    async def load_drawing(self, slug: str) -> LoadDrawingResult:
        """Load a drawing by slug."""


@dataclass(frozen=True)
class ReconcileOutcome:
    """Scene to show and whether the external address must be cleared."""

    scene: Scene
    decision: ReconcileDecision
    reset_address: bool = False
    encryption_key: str | None = None
    errored_file_ids: frozenset[str] = frozenset()
    error_message: str | None = None


def decide(
    has_local_content: bool,
    is_external_reference: bool,
    user_confirmed: bool | None,
) -> ReconcileDecision:
    """Pure decision table; ``user_confirmed`` is None until the user is asked."""
    if not is_external_reference:
        return ReconcileDecision.KEEP_LOCAL
    if not has_local_content:
        return ReconcileDecision.LOAD_REMOTE
    if user_confirmed is None:
        return ReconcileDecision.CONFIRM
    if user_confirmed:
        return ReconcileDecision.LOAD_REMOTE
    return ReconcileDecision.DISCARD_REMOTE


def merge_view_state(remote: ViewState, local: ViewState | None) -> ViewState:
    """Keep the local viewing preferences over the remote ones when set."""
    if local is None:
        return remote
    overrides = {
        name: getattr(local, name)
        for name in LOCAL_VIEW_FIELDS
        if getattr(local, name) is not None
    }
    return remote.model_copy(update=overrides) if overrides else remote


def apply_decision(
    decision: ReconcileDecision, remote: Scene | None, local: Scene | None
) -> ReconcileOutcome:
    """Turn a decision into the scene the editor should hold."""
    local_scene = local or Scene()
    if decision is ReconcileDecision.LOAD_REMOTE and remote is not None:
        merged = remote.model_copy(
            update={
                "view_state": merge_view_state(
                    remote.view_state, local.view_state if local else None
                )
            }
        )
        return ReconcileOutcome(scene=merged, decision=decision)
    if decision is ReconcileDecision.DISCARD_REMOTE:
        return ReconcileOutcome(scene=local_scene, decision=decision, reset_address=True)
    return ReconcileOutcome(scene=local_scene, decision=decision)


async def open_shared_drawing(
    loader: DrawingLoader,
    slug: str,
    local: Scene | None,
    confirm: Callable[[], Awaitable[bool]],
) -> ReconcileOutcome:
    """Open a slug-addressed drawing, asking before local content is replaced."""
    has_local_content = local is not None and not local.is_empty
    decision = decide(has_local_content, True, None)
    if decision is ReconcileDecision.CONFIRM:
        decision = decide(has_local_content, True, await confirm())
    if decision is not ReconcileDecision.LOAD_REMOTE:
        return apply_decision(decision, None, local)

    try:
        result = await loader.load_drawing(slug)
    except DrawingError as exc:
        logger.warning("Could not open drawing %s: %s", slug, exc.message)
        return ReconcileOutcome(
            scene=Scene(
                view_state=merge_view_state(
                    ViewState(), local.view_state if local else None
                )
            ),
            decision=decision,
            error_message=exc.message,
        )
    outcome = apply_decision(decision, result.scene, local)
    return ReconcileOutcome(
        scene=outcome.scene,
        decision=decision,
        encryption_key=result.encryption_key,
        errored_file_ids=result.errored_file_ids,
    )
