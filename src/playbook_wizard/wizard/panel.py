"""In-process panel host and default collaborator implementations."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Sequence

from .interfaces import DisposeListener, MessageListener
from .models import ContentMatchSuggestion

LOGGER = logging.getLogger(__name__)


class HeadlessPanel:
    """Panel host that records outbound messages instead of rendering them.

    Inbound UI messages are delivered with :meth:`receive`. Disposal runs
    the dispose listeners synchronously, in registration order.
    """

    def __init__(self, title: str = "") -> None:
        self.title = title
        self.html = ""
        self.messages: list[dict[str, Any]] = []
        self.reveal_count = 0
        self._disposed = False
        self._dispose_listeners: list[DisposeListener] = []
        self._message_listeners: list[MessageListener] = []

    @property
    def disposed(self) -> bool:
        return self._disposed

    def post_message(self, message: Mapping[str, Any]) -> bool:
        if self._disposed:
            LOGGER.debug("Dropping %s; panel disposed", message.get("command"))
            return False
        self.messages.append(dict(message))
        return True

    def reveal(self) -> None:
        self.reveal_count += 1

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for listener in list(self._dispose_listeners):
            listener()
        self._dispose_listeners.clear()
        self._message_listeners.clear()

    def on_did_dispose(self, listener: DisposeListener) -> None:
        self._dispose_listeners.append(listener)

    def on_did_receive_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    async def receive(self, message: Mapping[str, Any]) -> None:
        """Deliver a UI-originated message to the registered listeners."""

        for listener in list(self._message_listeners):
            result = listener(message)
            if inspect.isawaitable(result):
                await result

    def commands(self) -> list[str]:
        return [str(message.get("command")) for message in self.messages]


class StaticTokenProvider:
    """Credential provider returning a fixed access token."""

    def __init__(self, token: str | None) -> None:
        self._token = token

    async def get_access_token(self) -> str | None:
        return self._token


class LoggingNotifier:
    """Notifier that logs messages and keeps them for inspection."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def show_error_message(self, message: str) -> None:
        LOGGER.error("%s", message)
        self.errors.append(message)


class ContentMatchRecorder:
    """Keeps the latest accepted suggestions and triggers a training-match fetch."""

    def __init__(self, fetch: Callable[[Sequence[ContentMatchSuggestion]], Awaitable[Any] | None] | None = None) -> None:
        self.suggestion_details: list[ContentMatchSuggestion] = []
        self._fetch = fetch

    def notify(self, suggestions: Sequence[ContentMatchSuggestion]) -> Awaitable[Any] | None:
        self.suggestion_details = list(suggestions)
        LOGGER.debug(
            "Content match requested for %s",
            [item.suggestion_id for item in self.suggestion_details],
        )
        if self._fetch is None:
            return None
        return self._fetch(self.suggestion_details)


__all__ = [
    "ContentMatchRecorder",
    "HeadlessPanel",
    "LoggingNotifier",
    "StaticTokenProvider",
]
