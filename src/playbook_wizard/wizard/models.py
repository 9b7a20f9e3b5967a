"""Wizard state and message models.

These dataclasses describe the session, the telemetry action events and
the normalized generation results that flow between the router, the
orchestrator and the state machine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Mapping

from ..errors import ErrorCode, GenerationError, is_error

LOGGER = logging.getLogger(__name__)


class PlaybookGenerationAction(IntEnum):
    """Kinds of wizard actions reported to the feedback service.

    Values:
        OPEN: The wizard panel was opened.
        CLOSE_CANCEL: The panel was closed without accepting a playbook.
        TRANSITION: The user moved between wizard pages.
        CLOSE_ACCEPT: The user opened the generated playbook in an editor.
    """

    OPEN = 1
    CLOSE_CANCEL = 2
    TRANSITION = 3
    CLOSE_ACCEPT = 4


@dataclass(slots=True)
class ActionEvent:
    """A single wizard action, built and forwarded immediately."""

    wizard_id: str
    action: PlaybookGenerationAction
    from_page: int | None = None
    to_page: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "playbookGenerationAction": {
                "wizardId": self.wizard_id,
                "action": int(self.action),
                "fromPage": self.from_page,
                "toPage": self.to_page,
            }
        }


@dataclass(slots=True)
class GenerationResult:
    """Either a generated playbook payload or a typed error, never both."""

    playbook: str | None = None
    generation_id: str | None = None
    outline: Any = None
    error: GenerationError | None = None
    raw: dict[str, Any] | None = field(default=None, repr=False)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> dict[str, Any]:
        """Shape used by the outbound ``outline`` message.

        Backend payloads are echoed verbatim so the panel receives exactly
        what the service produced.
        """
        if self.error is not None:
            return self.error.to_dict()
        if self.raw is not None:
            return dict(self.raw)
        return {
            "playbook": self.playbook,
            "generationId": self.generation_id,
            "outline": self.outline,
        }

    @classmethod
    def from_response(cls, response: Any) -> "GenerationResult":
        if isinstance(response, GenerationError):
            return cls(error=response)
        if not isinstance(response, Mapping):
            return cls(error=GenerationError(code=ErrorCode.INVALID_RESPONSE))
        if is_error(response):
            return cls(error=GenerationError.from_payload(response))
        return cls(
            playbook=response.get("playbook"),
            generation_id=response.get("generationId"),
            outline=response.get("outline"),
            raw=dict(response),
        )

    @classmethod
    def failure(cls, error: GenerationError) -> "GenerationResult":
        return cls(error=error)


# -----------------------------------------------------------------------------
# Inbound panel messages
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class OutlineRequest:
    text: str = ""
    outline: Any = None
    playbook: str | None = None
    generation_id: str | None = None

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "OutlineRequest":
        return cls(
            text=str(message.get("text") or ""),
            outline=message.get("outline") or None,
            playbook=message.get("playbook"),
            generation_id=message.get("generationId"),
        )


@dataclass(slots=True)
class GenerateCodeRequest:
    text: str = ""
    outline: Any = None
    playbook: str | None = None
    generation_id: str | None = None
    dark_mode: bool = False

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "GenerateCodeRequest":
        return cls(
            text=str(message.get("text") or ""),
            outline=message.get("outline"),
            playbook=message.get("playbook") or None,
            generation_id=message.get("generationId"),
            dark_mode=bool(message.get("darkMode")),
        )


@dataclass(slots=True)
class TransitionRequest:
    to_page: int | None = None

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "TransitionRequest":
        return cls(to_page=_page_number(message.get("toPage")))


def _page_number(value: Any) -> int | None:
    """Return *value* as a positive page number, or None when it is not one."""

    page: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        page = value
    elif isinstance(value, float) and value.is_integer():
        page = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        page = int(value.strip())
    if page is None or page < 1:
        if value is not None:
            LOGGER.warning("Ignoring invalid page number %r", value)
        return None
    return page


@dataclass(slots=True)
class OpenEditorRequest:
    playbook: str = ""

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "OpenEditorRequest":
        return cls(playbook=str(message.get("playbook") or ""))


@dataclass(slots=True)
class ContentMatchSuggestion:
    """Accepted suggestion handed to the training-match lookup."""

    suggestion_id: str | None
    suggestion: str
    is_playbook: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestionId": self.suggestion_id,
            "suggestion": self.suggestion,
            "isPlaybook": self.is_playbook,
        }


@dataclass(slots=True)
class Classification:
    """Outcome of running a result through the error classifier."""

    handled: bool = False
    user_message: str | None = None
    error: GenerationError | None = field(default=None, repr=False)


__all__ = [
    "ActionEvent",
    "Classification",
    "ContentMatchSuggestion",
    "GenerateCodeRequest",
    "GenerationResult",
    "OpenEditorRequest",
    "OutlineRequest",
    "PlaybookGenerationAction",
    "TransitionRequest",
]
