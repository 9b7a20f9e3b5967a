"""Wizard session store.

Holds the single active wizard session: the panel, the wizard id and the
page the user last moved to. One store is owned by each controller.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from .interfaces import WizardPanel

LOGGER = logging.getLogger(__name__)


def _new_wizard_id() -> str:
    return str(uuid.uuid4())


class WizardSessionStore:
    """Owner of the process-wide wizard session state.

    All mutators are synchronous. :meth:`clear_wizard_id` must run before
    any panel disposal that should not be reported as a cancel.
    """

    def __init__(self, id_factory: Callable[[], str] = _new_wizard_id) -> None:
        self._id_factory = id_factory
        self._panel: WizardPanel | None = None
        self._wizard_id: str | None = None
        self._current_page: int | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def panel(self) -> WizardPanel | None:
        return self._panel

    @property
    def wizard_id(self) -> str | None:
        return self._wizard_id

    @property
    def current_page(self) -> int | None:
        return self._current_page

    def has_panel(self) -> bool:
        return self._panel is not None

    def is_active(self) -> bool:
        """True while a panel exists and its session has not been closed."""
        return self._panel is not None and self._wizard_id is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, panel: WizardPanel) -> str:
        """Attach *panel* and assign a fresh wizard id."""

        if self._panel is not None:
            raise RuntimeError("A wizard panel is already open")
        self._panel = panel
        self._wizard_id = self._id_factory()
        self._current_page = None
        LOGGER.debug("WizardSessionStore.open: wizard_id=%s", self._wizard_id)
        return self._wizard_id

    def advance_page(self, to_page: int | None) -> int | None:
        """Record *to_page* as current and return the page it replaced."""

        from_page = self._current_page
        self._current_page = to_page
        return from_page

    def clear_wizard_id(self) -> None:
        LOGGER.debug("WizardSessionStore.clear_wizard_id: %s", self._wizard_id)
        self._wizard_id = None

    def clear(self) -> None:
        """Forget the panel and the session entirely."""

        LOGGER.debug("WizardSessionStore.clear: wizard_id=%s", self._wizard_id)
        self._panel = None
        self._wizard_id = None
        self._current_page = None


__all__ = ["WizardSessionStore"]
