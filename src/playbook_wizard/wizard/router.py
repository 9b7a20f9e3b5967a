"""Routing of inbound panel messages to the wizard components."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping

from ..errors import UNKNOWN_ERROR
from .interfaces import ContentMatchNotifier, EditorHost, Notifier, PlaybookRenderer, WizardPanel
from .models import (
    ContentMatchSuggestion,
    GenerateCodeRequest,
    OpenEditorRequest,
    OutlineRequest,
    TransitionRequest,
)
from .orchestrator import GenerationOrchestrator
from .rendering import PLAYBOOK_LANGUAGE, theme_for
from .session_store import WizardSessionStore
from .state_machine import WizardStateMachine
from .tasks import BackgroundTasks
from .trial import ErrorClassifier

LOGGER = logging.getLogger(__name__)

EDITOR_LANGUAGE = "ansible"


class WizardMessageRouter:
    """Dispatches UI messages for one panel and posts the outcomes back.

    Each handler is wrapped so that an unexpected fault becomes a user
    notification instead of escaping into the host's message loop.
    """

    def __init__(
        self,
        panel: WizardPanel,
        *,
        store: WizardSessionStore,
        state_machine: WizardStateMachine,
        orchestrator: GenerationOrchestrator,
        classifier: ErrorClassifier,
        renderer: PlaybookRenderer,
        editor: EditorHost,
        content_matches: ContentMatchNotifier,
        notifier: Notifier,
        tasks: BackgroundTasks,
    ) -> None:
        self._panel = panel
        self._store = store
        self._state_machine = state_machine
        self._orchestrator = orchestrator
        self._classifier = classifier
        self._renderer = renderer
        self._editor = editor
        self._content_matches = content_matches
        self._notifier = notifier
        self._tasks = tasks
        self._handlers: dict[str, Callable[[Mapping[str, Any]], Awaitable[None]]] = {
            "outline": self._on_outline,
            "generateCode": self._on_generate_code,
            "transition": self._on_transition,
            "openEditor": self._on_open_editor,
        }

    async def handle(self, message: Mapping[str, Any]) -> None:
        command = str(message.get("command") or "")
        handler = self._handlers.get(command)
        if handler is None:
            LOGGER.debug("Ignoring unknown panel command %r", command)
            return
        LOGGER.debug("Handling panel command %s", command)
        try:
            await handler(message)
        except Exception as exc:
            LOGGER.exception("Panel command %s failed", command)
            self._surface_fault(exc)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_outline(self, message: Mapping[str, Any]) -> None:
        request = OutlineRequest.from_message(message)
        if request.outline is None:
            self._tasks.spawn(
                self._request_outline(request),
                name="outline-request",
                on_error=self._surface_fault,
            )
            return
        self._panel.post_message(
            {
                "command": "outline",
                "outline": {
                    "playbook": request.playbook,
                    "outline": request.outline,
                    "generationId": request.generation_id,
                },
            }
        )

    async def _request_outline(self, request: OutlineRequest) -> None:
        result = await self._orchestrator.generate(
            request.text,
            None,
            request.generation_id,
            panel=self._panel,
            wizard_id=self._store.wizard_id,
        )
        if result.is_error:
            await self._classifier.classify(result)
            return
        if self._panel.disposed:
            LOGGER.debug("Outline for %s arrived after the panel closed", request.generation_id)
            return
        self._panel.post_message({"command": "outline", "outline": result.to_payload()})

    async def _on_generate_code(self, message: Mapping[str, Any]) -> None:
        request = GenerateCodeRequest.from_message(message)
        playbook = request.playbook
        generation_id = request.generation_id
        if not playbook:
            try:
                result = await self._orchestrator.generate(
                    request.text,
                    request.outline,
                    request.generation_id,
                    panel=self._panel,
                    wizard_id=self._store.wizard_id,
                )
            except Exception as exc:
                LOGGER.warning("Playbook generation failed: %s", exc)
                self._surface_fault(exc)
                return
            if result.error is not None:
                self._notifier.show_error_message(result.error.user_message)
                return
            playbook = result.playbook or ""
            generation_id = result.generation_id

        html = self._renderer.code_to_html(playbook, theme_for(request.dark_mode), PLAYBOOK_LANGUAGE)
        self._panel.post_message(
            {
                "command": "playbook",
                "playbook": {
                    "playbook": playbook,
                    "generationId": generation_id,
                    "outline": request.outline,
                    "html": html,
                },
            }
        )
        self._content_match(generation_id, playbook)

    async def _on_transition(self, message: Mapping[str, Any]) -> None:
        request = TransitionRequest.from_message(message)
        if request.to_page is None:
            LOGGER.debug("Dropping transition without a valid target page")
            return
        self._state_machine.transition(request.to_page)

    async def _on_open_editor(self, message: Mapping[str, Any]) -> None:
        request = OpenEditorRequest.from_message(message)
        await self._editor.open_document(request.playbook, EDITOR_LANGUAGE)
        self._state_machine.accept()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _content_match(self, generation_id: str | None, playbook: str) -> None:
        suggestion = ContentMatchSuggestion(suggestion_id=generation_id, suggestion=playbook)
        pending = self._content_matches.notify([suggestion])
        if inspect.isawaitable(pending):
            self._tasks.spawn(pending, name="training-matches", on_error=self._log_only)

    def _surface_fault(self, exc: BaseException) -> None:
        self._notifier.show_error_message(str(exc) or UNKNOWN_ERROR)

    @staticmethod
    def _log_only(exc: BaseException) -> None:
        LOGGER.debug("Training match lookup failed: %s", exc)


__all__ = ["EDITOR_LANGUAGE", "WizardMessageRouter"]
