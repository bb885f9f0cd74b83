"""Supervised background tasks for in-flight requests."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Coroutine

_T = TypeVar("_T")
log = logging.getLogger(__name__)


class BackgroundTasks:
    """Track per-request tasks so none of them runs unobserved.

    Failures are logged when a task finishes; callers are expected to turn
    handler errors into responses themselves, so anything reaching the done
    callback is a bug in the response path.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def register(self, task: asyncio.Task[_T]) -> asyncio.Task[_T]:
        """Register an existing task and remove it once it completes."""
        self._tasks.add(task)

        def _on_done(done_task: asyncio.Task[object]) -> None:
            self._tasks.discard(done_task)
            if done_task.cancelled():
                return
            with contextlib.suppress(asyncio.CancelledError):
                exc = done_task.exception()
            if exc is None:
                return
            log.error(
                "Background task failed",
                extra={"task_name": done_task.get_name()},
                exc_info=(type(exc), exc, exc.__traceback__),
            )

        task.add_done_callback(_on_done)
        return task

    def spawn(
        self,
        coro: Coroutine[Any, Any, _T],
        *,
        name: str | None = None,
    ) -> asyncio.Task[_T]:
        """Create and register a background task."""
        return self.register(asyncio.create_task(coro, name=name))

    async def wait_idle(self) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["BackgroundTasks"]
