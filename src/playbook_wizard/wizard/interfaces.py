"""Protocols for the collaborators the wizard talks to.

The panel host, the credential source, the editor and the various
notification surfaces are provided by the embedding application.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence, runtime_checkable

from .models import ContentMatchSuggestion

MessageListener = Callable[[Mapping[str, Any]], Awaitable[None] | None]
DisposeListener = Callable[[], None]


@runtime_checkable
class WizardPanel(Protocol):
    """An interactive panel hosting the wizard pages."""

    title: str

    @property
    def disposed(self) -> bool:  # pragma: no cover - protocol stub
        ...

    def post_message(self, message: Mapping[str, Any]) -> bool:  # pragma: no cover - protocol stub
        ...

    def reveal(self) -> None:  # pragma: no cover - protocol stub
        ...

    def dispose(self) -> None:  # pragma: no cover - protocol stub
        ...

    def on_did_dispose(self, listener: DisposeListener) -> None:  # pragma: no cover - protocol stub
        ...

    def on_did_receive_message(self, listener: MessageListener) -> None:  # pragma: no cover - protocol stub
        ...


class PanelFactory(Protocol):
    def __call__(self, title: str) -> WizardPanel:  # pragma: no cover - protocol stub
        ...


class CredentialProvider(Protocol):
    async def get_access_token(self) -> str | None:  # pragma: no cover - protocol stub
        ...


class RequestSender(Protocol):
    """Single request/response capability reaching the backend."""

    async def send_request(self, method: str, params: Mapping[str, Any]) -> Any:  # pragma: no cover - protocol stub
        ...


class Notifier(Protocol):
    """Non-blocking user notification surface."""

    def show_error_message(self, message: str) -> None:  # pragma: no cover - protocol stub
        ...


class EditorHost(Protocol):
    async def open_document(self, content: str, language: str) -> None:  # pragma: no cover - protocol stub
        ...


class ContentMatchNotifier(Protocol):
    """Receives accepted suggestions and looks up their training matches."""

    def notify(
        self, suggestions: Sequence[ContentMatchSuggestion]
    ) -> Awaitable[Any] | None:  # pragma: no cover - protocol stub
        ...


class PlaybookRenderer(Protocol):
    def code_to_html(self, code: str, theme: str, language: str) -> str:  # pragma: no cover - protocol stub
        ...


__all__ = [
    "ContentMatchNotifier",
    "CredentialProvider",
    "DisposeListener",
    "EditorHost",
    "MessageListener",
    "Notifier",
    "PanelFactory",
    "PlaybookRenderer",
    "RequestSender",
    "WizardPanel",
]
