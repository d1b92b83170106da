"""Awaitable save/load operations with observable status."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from persistent_drawings.errors import DrawingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED_REASON = "Operation was abandoned"
UNEXPECTED_REASON = "Unexpected error"


class OperationStatus(StrEnum):
    """Lifecycle of a tracked operation."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TrackedOperation(Generic[T]):
    """Wraps an asyncio task so callers can poll or await its outcome.

    A completed result carrying an ``error_message`` (a partially failed
    save) counts as failed with that message as the reason.
    """

    task: "asyncio.Task[T]"

    @classmethod
    def start(cls, coro: Coroutine[Any, Any, T]) -> "TrackedOperation[T]":
        """Schedule the coroutine on the running loop."""
        task = asyncio.get_running_loop().create_task(coro)
        task.add_done_callback(_log_unexpected_failure)
        return cls(task=task)

    @property
    def status(self) -> OperationStatus:
        """Current status."""
        if not self.task.done():
            return OperationStatus.PENDING
        if self.task.cancelled() or self.task.exception() is not None:
            return OperationStatus.FAILED
        if getattr(self.task.result(), "error_message", None):
            return OperationStatus.FAILED
        return OperationStatus.SUCCEEDED

    @property
    def reason(self) -> str | None:
        """Failure reason, or None while pending or after success."""
        if not self.task.done():
            return None
        if self.task.cancelled():
            return CANCELLED_REASON
        error = self.task.exception()
        if isinstance(error, DrawingError):
            return error.message
        if error is not None:
            return UNEXPECTED_REASON
        return getattr(self.task.result(), "error_message", None)

    @property
    def result(self) -> T | None:
        """Result of a finished operation that raised nothing."""
        if not self.task.done() or self.task.cancelled():
            return None
        if self.task.exception() is not None:
            return None
        return self.task.result()

    async def wait(self) -> OperationStatus:
        """Wait for completion without raising and return the final status."""
        await asyncio.wait({self.task})
        return self.status

    def cancel(self) -> None:
        """Abandon the operation; server-side effects already made persist."""
        self.task.cancel()


def _log_unexpected_failure(task: "asyncio.Task[Any]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None and not isinstance(error, DrawingError):
        logger.error("Tracked operation failed", exc_info=error)
