"""Top-level controller owning the wizard panel and its session."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable

from ..services.settings import Settings, in_test_mode
from ..services.telemetry import FeedbackSink
from .interfaces import (
    ContentMatchNotifier,
    CredentialProvider,
    EditorHost,
    Notifier,
    PanelFactory,
    PlaybookRenderer,
    RequestSender,
    WizardPanel,
)
from .orchestrator import GenerationOrchestrator
from .panel import ContentMatchRecorder
from .rendering import MarkdownPlaybookRenderer
from .router import WizardMessageRouter
from .session_store import WizardSessionStore
from .state_machine import WizardStateMachine
from .tasks import BackgroundTasks
from .telemetry import ActionTelemetryEmitter
from .trial import ErrorClassifier, NullTrialPolicy, TrialPolicy

LOGGER = logging.getLogger(__name__)

EnabledCheck = Callable[[], Awaitable[bool] | bool]


class PlaybookGenerationController:
    """Opens the wizard panel and wires it to the wizard components.

    At most one panel exists per controller; asking for another reveals
    the open one.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        panel_factory: PanelFactory,
        sender: RequestSender,
        credentials: CredentialProvider,
        feedback: FeedbackSink,
        notifier: Notifier,
        editor: EditorHost,
        trial_policy: TrialPolicy | None = None,
        renderer: PlaybookRenderer | None = None,
        content_matches: ContentMatchNotifier | None = None,
        is_enabled: EnabledCheck | None = None,
        store: WizardSessionStore | None = None,
        test_mode: bool | None = None,
    ) -> None:
        self._settings = settings
        self._panel_factory = panel_factory
        self._credentials = credentials
        self._notifier = notifier
        self._editor = editor
        self._renderer = renderer or MarkdownPlaybookRenderer()
        self._content_matches = content_matches or ContentMatchRecorder()
        self._is_enabled = is_enabled
        self._tasks = BackgroundTasks()
        self._store = store or WizardSessionStore()
        self._emitter = ActionTelemetryEmitter(
            self._store,
            feedback,
            notifier,
            tasks=self._tasks,
            test_mode=in_test_mode() if test_mode is None else test_mode,
        )
        self._state_machine = WizardStateMachine(self._store, self._emitter)
        self._orchestrator = GenerationOrchestrator(
            sender,
            credentials,
            service_url=lambda: self._settings.service_url,
        )
        self._classifier = ErrorClassifier(trial_policy or NullTrialPolicy(), notifier)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def store(self) -> WizardSessionStore:
        return self._store

    @property
    def state_machine(self) -> WizardStateMachine:
        return self._state_machine

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def show(self) -> WizardPanel | None:
        """Open the wizard panel, or reveal it when one is already open.

        Returns ``None`` when the feature is disabled or no access token
        is available.
        """
        if not await self._enabled():
            LOGGER.debug("Playbook generation disabled; not opening the wizard")
            return None

        access_token = await self._credentials.get_access_token()
        if not access_token:
            LOGGER.debug("No access token available; not opening the wizard")
            return None

        existing = self._store.panel
        if existing is not None:
            LOGGER.debug("Wizard already open (wizard_id=%s); revealing", self._store.wizard_id)
            existing.reveal()
            return existing

        panel = self._panel_factory(self._settings.panel_title)
        wizard_id = self._state_machine.open(panel)
        router = WizardMessageRouter(
            panel,
            store=self._store,
            state_machine=self._state_machine,
            orchestrator=self._orchestrator,
            classifier=self._classifier,
            renderer=self._renderer,
            editor=self._editor,
            content_matches=self._content_matches,
            notifier=self._notifier,
            tasks=self._tasks,
        )
        panel.on_did_receive_message(router.handle)

        panel.title = self._settings.panel_title
        panel.post_message({"command": "init"})
        self._state_machine.announce_open()
        LOGGER.info("Playbook generation wizard opened (wizard_id=%s)", wizard_id)
        return panel

    async def drain(self) -> None:
        """Wait for outstanding outline requests and feedback deliveries."""

        await self._tasks.drain()

    async def _enabled(self) -> bool:
        if not self._settings.enabled:
            return False
        if self._is_enabled is None:
            return True
        result = self._is_enabled()
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


__all__ = ["PlaybookGenerationController"]
