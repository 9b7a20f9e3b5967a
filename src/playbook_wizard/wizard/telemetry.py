"""Wizard action telemetry emitter."""

from __future__ import annotations

import inspect
import logging

from ..errors import UNKNOWN_ERROR
from ..services import telemetry as telemetry_service
from ..services.telemetry import FeedbackSink
from .interfaces import Notifier
from .models import ActionEvent, PlaybookGenerationAction
from .session_store import WizardSessionStore
from .tasks import BackgroundTasks

LOGGER = logging.getLogger(__name__)

ACTION_EVENT_NAME = "wizard.action"


class ActionTelemetryEmitter:
    """Turns wizard actions into fire-and-forget feedback calls.

    Delivery failures are reported through the notifier and never reach
    the caller.
    """

    def __init__(
        self,
        store: WizardSessionStore,
        sink: FeedbackSink,
        notifier: Notifier,
        *,
        tasks: BackgroundTasks | None = None,
        test_mode: bool = False,
    ) -> None:
        self._store = store
        self._sink = sink
        self._notifier = notifier
        self._tasks = tasks if tasks is not None else BackgroundTasks()
        self._test_mode = test_mode

    def send(self, action: PlaybookGenerationAction, to_page: int | None = None) -> ActionEvent | None:
        """Emit *action* moving to *to_page*; no-op without an active session."""

        wizard_id = self._store.wizard_id
        if not self._store.has_panel() or not wizard_id:
            LOGGER.debug("Skipping %s; no active wizard session", action.name)
            return None

        from_page = self._store.advance_page(to_page)
        event = ActionEvent(wizard_id=wizard_id, action=action, from_page=from_page, to_page=to_page)
        LOGGER.debug(
            "Wizard action %s: wizard_id=%s from=%s to=%s",
            action.name,
            wizard_id,
            from_page,
            to_page,
        )
        try:
            pending = self._sink.feedback_request(event.to_payload(), self._test_mode)
            if inspect.isawaitable(pending):
                self._tasks.spawn(pending, name=f"feedback-{action.name.lower()}", on_error=self._report)
        except Exception as exc:
            self._report(exc)

        telemetry_service.emit(
            ACTION_EVENT_NAME,
            {"wizard_id": wizard_id, "action": action.name, "from_page": from_page, "to_page": to_page},
        )
        return event

    def _report(self, exc: BaseException) -> None:
        LOGGER.warning("Feedback delivery failed: %s", exc)
        self._notifier.show_error_message(str(exc) or UNKNOWN_ERROR)


__all__ = ["ACTION_EVENT_NAME", "ActionTelemetryEmitter"]
