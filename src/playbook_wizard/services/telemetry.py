"""Feedback sinks and in-process telemetry listeners."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Any, Awaitable, Callable, Mapping, Protocol

LOGGER = logging.getLogger(__name__)

EventListener = Callable[[dict[str, Any]], None]

_EVENT_LISTENERS: dict[str, list[EventListener]] = {}


@dataclass(slots=True)
class FeedbackRecord:
    """A feedback payload as it was handed to a sink."""

    payload: dict[str, Any]
    in_test_mode: bool


class FeedbackSink(Protocol):
    """Sink accepting feedback payloads; may return an awaitable."""

    def feedback_request(
        self, payload: Mapping[str, Any], in_test_mode: bool = False
    ) -> Awaitable[Any] | None:  # pragma: no cover - protocol stub
        ...


class InMemoryFeedbackSink:
    """Bounded feedback sink that keeps the most recent payloads in memory."""

    def __init__(self, capacity: int = 200) -> None:
        self._records: deque[FeedbackRecord] = deque(maxlen=max(10, capacity))
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def feedback_request(self, payload: Mapping[str, Any], in_test_mode: bool = False) -> None:
        record = FeedbackRecord(payload=dict(payload), in_test_mode=in_test_mode)
        with self._lock:
            self._records.append(record)

    def tail(self, limit: int | None = None) -> list[FeedbackRecord]:
        with self._lock:
            snapshot = list(self._records)
        if limit is None:
            return snapshot
        return snapshot[-limit:] if limit > 0 else []

    def actions(self) -> list[dict[str, Any]]:
        """Return the ``playbookGenerationAction`` bodies recorded so far."""

        bodies = (record.payload.get("playbookGenerationAction") for record in self.tail())
        return [dict(body) for body in bodies if isinstance(body, Mapping)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# ----------------------------------------------------------------------
# In-process listeners
# ----------------------------------------------------------------------


def register_event_listener(event_name: str, callback: EventListener) -> None:
    """Call *callback* with the payload of every *event_name* emission."""

    listeners = _EVENT_LISTENERS.setdefault(event_name, [])
    if callback not in listeners:
        listeners.append(callback)


def unregister_event_listener(event_name: str, callback: EventListener) -> None:
    listeners = _EVENT_LISTENERS.get(event_name, [])
    if callback in listeners:
        listeners.remove(callback)


def emit(event_name: str, payload: Mapping[str, Any] | None = None) -> None:
    """Deliver ``{"event": event_name, **payload}`` to the registered listeners.

    A failing listener is logged and skipped; it never affects the caller
    or the remaining listeners.
    """

    event = {"event": event_name, **(payload or {})}
    LOGGER.debug("Telemetry event %s: %s", event_name, event)
    for callback in tuple(_EVENT_LISTENERS.get(event_name, ())):
        try:
            callback(dict(event))
        except Exception:
            LOGGER.warning("Telemetry listener %r failed for %s", callback, event_name, exc_info=True)


__all__ = [
    "EventListener",
    "FeedbackRecord",
    "FeedbackSink",
    "InMemoryFeedbackSink",
    "emit",
    "register_event_listener",
    "unregister_event_listener",
]
