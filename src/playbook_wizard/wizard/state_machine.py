"""Session/page state machine for the wizard.

States are ``Closed`` and ``Open(page)``. Every transition reports one
action through the :class:`ActionTelemetryEmitter`.
"""

from __future__ import annotations

import logging

from .interfaces import WizardPanel
from .models import ActionEvent, PlaybookGenerationAction
from .session_store import WizardSessionStore
from .telemetry import ActionTelemetryEmitter

LOGGER = logging.getLogger(__name__)

FIRST_PAGE = 1


class WizardStateMachine:
    """Legal wizard transitions and the action each one implies."""

    def __init__(self, store: WizardSessionStore, emitter: ActionTelemetryEmitter) -> None:
        self._store = store
        self._emitter = emitter

    @property
    def store(self) -> WizardSessionStore:
        return self._store

    def open(self, panel: WizardPanel) -> str:
        """Closed -> Open(1). Attaches *panel* and returns the new wizard id.

        The ``OPEN`` action is emitted separately by :meth:`announce_open`
        once the panel is initialised.
        """
        wizard_id = self._store.open(panel)
        panel.on_did_dispose(lambda: self.panel_disposed(panel))
        return wizard_id

    def announce_open(self) -> ActionEvent | None:
        return self._emitter.send(PlaybookGenerationAction.OPEN, FIRST_PAGE)

    def transition(self, to_page: int | None) -> ActionEvent | None:
        """Open(a) -> Open(b)."""
        return self._emitter.send(PlaybookGenerationAction.TRANSITION, to_page)

    def accept(self) -> ActionEvent | None:
        """Open -> Closed on accept, then dispose the panel.

        The wizard id is cleared before disposal so the dispose handler
        sees no active session and stays silent.
        """
        try:
            event = self._emitter.send(PlaybookGenerationAction.CLOSE_ACCEPT, None)
        finally:
            self._store.clear_wizard_id()
            panel = self._store.panel
            if panel is not None:
                panel.dispose()
        return event

    def panel_disposed(self, panel: WizardPanel | None = None) -> ActionEvent | None:
        """Open -> Closed when the panel goes away without an accept."""
        if panel is not None and panel is not self._store.panel:
            LOGGER.debug("Ignoring disposal of a panel that is no longer tracked")
            return None
        try:
            event = self._emitter.send(PlaybookGenerationAction.CLOSE_CANCEL, None)
        finally:
            self._store.clear()
        LOGGER.debug("Wizard panel disposed (cancel reported=%s)", event is not None)
        return event


__all__ = ["FIRST_PAGE", "WizardStateMachine"]
