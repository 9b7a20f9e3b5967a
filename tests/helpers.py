"""Shared test helpers and stub collaborators.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from playbook_wizard.services.settings import Settings
from playbook_wizard.services.telemetry import InMemoryFeedbackSink
from playbook_wizard.wizard import (
    ContentMatchRecorder,
    HeadlessPanel,
    LoggingNotifier,
    PlaybookGenerationController,
    StaticTokenProvider,
    WizardSessionStore,
)
from playbook_wizard.wizard.models import ContentMatchSuggestion


class FakeSender:
    """Request sender returning queued responses and recording each call."""

    def __init__(self, responses: Sequence[Any] | None = None, *, error: BaseException | None = None) -> None:
        self.responses: list[Any] = list(responses or [])
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.gate: asyncio.Event | None = None

    async def send_request(self, method: str, params: Mapping[str, Any]) -> Any:
        self.calls.append((method, dict(params)))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return {"playbook": "- hosts: all\n", "generationId": "default"}


class FakeEditor:
    """Editor host that remembers the documents it was asked to open."""

    def __init__(self, *, error: BaseException | None = None) -> None:
        self.documents: list[tuple[str, str]] = []
        self.error = error

    async def open_document(self, content: str, language: str) -> None:
        if self.error is not None:
            raise self.error
        self.documents.append((content, language))


class FailingSink:
    """Feedback sink whose delivery always fails."""

    def __init__(self, *, asynchronous: bool = False) -> None:
        self.asynchronous = asynchronous
        self.calls = 0

    def feedback_request(self, payload: Mapping[str, Any], in_test_mode: bool = False) -> Any:
        self.calls += 1
        if self.asynchronous:
            return self._fail()
        raise RuntimeError("feedback endpoint unavailable")

    async def _fail(self) -> None:
        raise RuntimeError("feedback endpoint unavailable")


class RecordingPanelFactory:
    """Panel factory creating :class:`HeadlessPanel` instances."""

    def __init__(self) -> None:
        self.panels: list[HeadlessPanel] = []

    def __call__(self, title: str) -> HeadlessPanel:
        panel = HeadlessPanel(title)
        self.panels.append(panel)
        return panel


class RecordingTrialPolicy:
    """Trial policy that records interactions and answers as configured."""

    def __init__(self, *, handled: bool = False) -> None:
        self.handled = handled
        self.mapped: list[Any] = []
        self.popups: list[Any] = []

    def map_error(self, error: Any) -> Any:
        self.mapped.append(error)
        return error

    async def show_popup(self, error: Any) -> bool:
        self.popups.append(error)
        return self.handled


@dataclass
class WizardHarness:
    """A controller wired to fake collaborators."""

    controller: PlaybookGenerationController
    sender: FakeSender
    sink: Any
    notifier: LoggingNotifier
    editor: FakeEditor
    factory: RecordingPanelFactory
    trial_policy: RecordingTrialPolicy
    content_matches: ContentMatchRecorder
    fetched: list[Sequence[ContentMatchSuggestion]] = field(default_factory=list)

    def actions(self) -> list[dict[str, Any]]:
        return self.sink.actions()


def build_harness(
    *,
    responses: Sequence[Any] | None = None,
    sender_error: BaseException | None = None,
    token: str | None = "token-123",
    settings: Settings | None = None,
    sink: Any = None,
    editor: FakeEditor | None = None,
    trial_handled: bool = False,
    wizard_ids: Sequence[str] | None = None,
) -> WizardHarness:
    fetched: list[Sequence[ContentMatchSuggestion]] = []
    sender = FakeSender(responses, error=sender_error)
    notifier = LoggingNotifier()
    feedback = sink if sink is not None else InMemoryFeedbackSink()
    editor = editor or FakeEditor()
    factory = RecordingPanelFactory()
    trial_policy = RecordingTrialPolicy(handled=trial_handled)
    content_matches = ContentMatchRecorder(fetch=fetched.append)
    store = None
    if wizard_ids is not None:
        ids = iter(wizard_ids)
        store = WizardSessionStore(id_factory=lambda: next(ids))
    controller = PlaybookGenerationController(
        settings or Settings(service_url="https://lightspeed.example"),
        panel_factory=factory,
        sender=sender,
        credentials=StaticTokenProvider(token),
        feedback=feedback,
        notifier=notifier,
        editor=editor,
        trial_policy=trial_policy,
        content_matches=content_matches,
        store=store,
        test_mode=False,
    )
    return WizardHarness(
        controller=controller,
        sender=sender,
        sink=feedback,
        notifier=notifier,
        editor=editor,
        factory=factory,
        trial_policy=trial_policy,
        content_matches=content_matches,
        fetched=fetched,
    )
