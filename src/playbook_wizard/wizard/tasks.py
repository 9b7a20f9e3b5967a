"""Tracking for fire-and-forget coroutines spawned by the wizard."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

LOGGER = logging.getLogger(__name__)

ErrorCallback = Callable[[BaseException], None]


class BackgroundTasks:
    """Keeps strong references to spawned tasks and reports their failures.

    Tasks run to completion; nothing here cancels them. ``drain`` lets
    callers (tests, shutdown) wait for everything outstanding.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        awaitable: Awaitable[Any],
        *,
        name: str | None = None,
        on_error: ErrorCallback | None = None,
    ) -> asyncio.Task[Any]:
        """Schedule *awaitable* on the running loop and track it until done.

        Raises ``RuntimeError`` when no event loop is running; the awaitable
        is closed first so it is not left pending.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise
        task = loop.create_task(_as_coroutine(awaitable))
        if name:
            task.set_name(name)
        self._tasks.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is None:
                return
            LOGGER.warning("Background task %s failed: %s", finished.get_name(), exc)
            if on_error is not None:
                try:
                    on_error(exc)
                except Exception:  # pragma: no cover - error reporters must not raise
                    LOGGER.debug("Error callback for %s failed", finished.get_name(), exc_info=True)

        task.add_done_callback(_done)
        return task

    async def drain(self) -> None:
        """Wait until every outstanding task (including ones spawned meanwhile) finished."""

        while self._tasks:
            pending = list(self._tasks)
            await asyncio.gather(*pending, return_exceptions=True)
            # Let done-callbacks run before re-checking.
            await asyncio.sleep(0)


async def _as_coroutine(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


__all__ = ["BackgroundTasks"]
