"""End-to-end tests for PlaybookGenerationController wired to fake collaborators."""

from __future__ import annotations

import asyncio

import pytest

from playbook_wizard.errors import UNKNOWN_ERROR
from playbook_wizard.services.settings import Settings
from playbook_wizard.wizard import HeadlessPanel, PlaybookGenerationAction

from tests.helpers import FailingSink, FakeEditor, WizardHarness, build_harness

OPEN = int(PlaybookGenerationAction.OPEN)
TRANSITION = int(PlaybookGenerationAction.TRANSITION)
CLOSE_ACCEPT = int(PlaybookGenerationAction.CLOSE_ACCEPT)
CLOSE_CANCEL = int(PlaybookGenerationAction.CLOSE_CANCEL)


async def _open(harness: WizardHarness) -> HeadlessPanel:
    panel = await harness.controller.show()
    assert isinstance(panel, HeadlessPanel)
    return panel


def _pages(harness: WizardHarness) -> list[tuple[int, int | None, int | None]]:
    return [(a["action"], a["fromPage"], a["toPage"]) for a in harness.actions()]


# =============================================================================
# Opening the wizard
# =============================================================================


class TestShow:
    @pytest.mark.asyncio
    async def test_show_initialises_panel(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        assert panel.title == "Ansible Lightspeed"
        assert panel.commands() == ["init"]
        assert harness.controller.store.current_page == 1
        assert _pages(harness) == [(OPEN, None, 1)]
        assert harness.actions()[0]["wizardId"] == harness.controller.store.wizard_id

    @pytest.mark.asyncio
    async def test_second_show_reveals_existing_panel(self, harness: WizardHarness) -> None:
        panel = await _open(harness)
        wizard_id = harness.controller.store.wizard_id

        again = await harness.controller.show()

        assert again is panel
        assert panel.reveal_count == 1
        assert len(harness.factory.panels) == 1
        assert harness.controller.store.wizard_id == wizard_id
        assert _pages(harness) == [(OPEN, None, 1)]

    @pytest.mark.asyncio
    async def test_show_without_token_does_nothing(self) -> None:
        harness = build_harness(token=None)

        assert await harness.controller.show() is None
        assert harness.factory.panels == []
        assert harness.actions() == []

    @pytest.mark.asyncio
    async def test_show_when_disabled_does_nothing(self) -> None:
        harness = build_harness(settings=Settings(enabled=False))

        assert await harness.controller.show() is None
        assert harness.factory.panels == []

    @pytest.mark.asyncio
    async def test_show_consults_async_enablement_check(self) -> None:
        harness = build_harness()
        checks: list[bool] = []

        async def is_enabled() -> bool:
            checks.append(True)
            return False

        harness.controller._is_enabled = is_enabled

        assert await harness.controller.show() is None
        assert checks == [True]

    @pytest.mark.asyncio
    async def test_new_session_after_close_gets_new_id(self) -> None:
        harness = build_harness(wizard_ids=["w-1", "w-2"])
        panel = await _open(harness)
        panel.dispose()

        second = await _open(harness)

        assert second is not panel
        assert harness.controller.store.wizard_id == "w-2"
        assert [a["wizardId"] for a in harness.actions()] == ["w-1", "w-1", "w-2"]


# =============================================================================
# Page transitions and closing
# =============================================================================


class TestTransitions:
    @pytest.mark.asyncio
    async def test_transition_bookkeeping(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        await panel.receive({"command": "transition", "toPage": 2})
        await panel.receive({"command": "transition", "toPage": 3})

        assert _pages(harness) == [
            (OPEN, None, 1),
            (TRANSITION, 1, 2),
            (TRANSITION, 2, 3),
        ]

    @pytest.mark.asyncio
    async def test_backward_transition(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        await panel.receive({"command": "transition", "toPage": 2})
        await panel.receive({"command": "transition", "toPage": 1})

        assert _pages(harness)[-1] == (TRANSITION, 2, 1)

    @pytest.mark.asyncio
    async def test_accept_suppresses_cancel(self, harness: WizardHarness) -> None:
        panel = await _open(harness)
        await panel.receive({"command": "transition", "toPage": 3})

        await panel.receive({"command": "openEditor", "playbook": "- hosts: all\n"})

        assert panel.disposed
        assert harness.editor.documents == [("- hosts: all\n", "ansible")]
        assert _pages(harness)[-1] == (CLOSE_ACCEPT, 3, None)
        assert CLOSE_CANCEL not in [a["action"] for a in harness.actions()]
        assert harness.controller.store.panel is None
        assert harness.controller.store.wizard_id is None

    @pytest.mark.asyncio
    async def test_external_dispose_reports_cancel(self, harness: WizardHarness) -> None:
        panel = await _open(harness)
        await panel.receive({"command": "transition", "toPage": 2})

        panel.dispose()

        assert _pages(harness)[-1] == (CLOSE_CANCEL, 2, None)
        assert harness.controller.store.panel is None
        assert harness.controller.store.wizard_id is None
        assert harness.controller.store.current_page is None

    @pytest.mark.asyncio
    async def test_open_editor_failure_keeps_session(self) -> None:
        harness = build_harness(editor=FakeEditor(error=OSError("cannot open")))
        panel = await _open(harness)

        await panel.receive({"command": "openEditor", "playbook": "x"})

        assert harness.notifier.errors == ["cannot open"]
        assert not panel.disposed
        assert harness.controller.store.is_active()
        assert CLOSE_ACCEPT not in [a["action"] for a in harness.actions()]


# =============================================================================
# Outline requests
# =============================================================================


class TestOutline:
    @pytest.mark.asyncio
    async def test_outline_request_end_to_end(self) -> None:
        response = {"outline": ["Receive events from kafka", "Run a job template"], "generationId": "g1"}
        harness = build_harness(responses=[response])
        panel = await _open(harness)
        text = "receives events from kafka on host 127.0.0.1"

        await panel.receive({"command": "outline", "text": text, "generationId": "g0"})
        await harness.controller.drain()

        method, params = harness.sender.calls[0]
        assert method == "playbook/generation"
        assert params == {
            "accessToken": "token-123",
            "URL": "https://lightspeed.example",
            "text": text,
            "outline": None,
            "createOutline": True,
            "generationId": "g0",
            "wizardId": harness.controller.store.wizard_id,
        }
        assert panel.messages[-1] == {"command": "outline", "outline": response}
        assert harness.trial_policy.mapped == []
        assert harness.notifier.errors == []

    @pytest.mark.asyncio
    async def test_outline_pass_through(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        await panel.receive(
            {
                "command": "outline",
                "text": "ignored",
                "outline": "1. Step one",
                "playbook": "- hosts: all",
                "generationId": "g7",
            }
        )
        await harness.controller.drain()

        assert harness.sender.calls == []
        assert panel.messages[-1] == {
            "command": "outline",
            "outline": {"playbook": "- hosts: all", "outline": "1. Step one", "generationId": "g7"},
        }
        assert "startSpinner" not in panel.commands()

    @pytest.mark.asyncio
    async def test_outline_error_with_empty_message_uses_fallback(self) -> None:
        harness = build_harness(responses=[{"code": "internal_error", "message": ""}])
        panel = await _open(harness)

        await panel.receive({"command": "outline", "text": "t", "generationId": "g"})
        await harness.controller.drain()

        assert harness.notifier.errors == [UNKNOWN_ERROR]
        assert len(harness.trial_policy.mapped) == 1
        assert len(harness.trial_policy.popups) == 1
        assert "outline" not in panel.commands()

    @pytest.mark.asyncio
    async def test_outline_error_handled_by_trial_popup(self) -> None:
        harness = build_harness(
            responses=[{"code": "permission_denied__user_trial_expired", "message": "expired"}],
            trial_handled=True,
        )
        panel = await _open(harness)

        await panel.receive({"command": "outline", "text": "t", "generationId": "g"})
        await harness.controller.drain()

        assert harness.notifier.errors == []
        assert harness.trial_policy.popups[0].code == "permission_denied__user_trial_expired"

    @pytest.mark.asyncio
    async def test_outline_fault_is_surfaced(self) -> None:
        harness = build_harness(sender_error=RuntimeError("backend exploded"))
        panel = await _open(harness)

        await panel.receive({"command": "outline", "text": "t", "generationId": "g"})
        await harness.controller.drain()

        assert harness.notifier.errors == ["backend exploded"]
        assert panel.commands().count("startSpinner") == 1
        assert panel.commands().count("stopSpinner") == 1

    @pytest.mark.asyncio
    async def test_outline_request_does_not_block_other_messages(self, harness: WizardHarness) -> None:
        harness.sender.gate = asyncio.Event()
        panel = await _open(harness)

        await panel.receive({"command": "outline", "text": "t", "generationId": "g"})
        await panel.receive({"command": "transition", "toPage": 2})

        assert _pages(harness)[-1] == (TRANSITION, 1, 2)
        assert "outline" not in panel.commands()

        harness.sender.gate.set()
        await harness.controller.drain()
        assert panel.commands()[-1] == "outline"

    @pytest.mark.asyncio
    async def test_outline_arriving_after_close_is_dropped(self, harness: WizardHarness) -> None:
        harness.sender.gate = asyncio.Event()
        panel = await _open(harness)
        await panel.receive({"command": "outline", "text": "t", "generationId": "g"})
        await asyncio.sleep(0)

        panel.dispose()
        harness.sender.gate.set()
        await harness.controller.drain()

        assert "outline" not in panel.commands()
        assert harness.notifier.errors == []
        assert harness.controller.store.panel is None


# =============================================================================
# Playbook generation
# =============================================================================


class TestGenerateCode:
    @pytest.mark.asyncio
    async def test_generate_from_outline(self) -> None:
        harness = build_harness(responses=[{"playbook": "- hosts: all\n", "generationId": "g2"}])
        panel = await _open(harness)

        await panel.receive(
            {
                "command": "generateCode",
                "text": "prompt",
                "outline": "1. Do it",
                "generationId": "g1",
                "darkMode": True,
            }
        )

        _, params = harness.sender.calls[0]
        assert params["createOutline"] is False
        assert params["outline"] == "1. Do it"
        message = panel.messages[-1]
        assert message["command"] == "playbook"
        payload = message["playbook"]
        assert payload["playbook"] == "- hosts: all\n"
        assert payload["generationId"] == "g2"
        assert payload["outline"] == "1. Do it"
        assert "dark-plus" in payload["html"]
        assert "hosts: all" in payload["html"]
        suggestions = harness.content_matches.suggestion_details
        assert [s.to_dict() for s in suggestions] == [
            {"suggestionId": "g2", "suggestion": "- hosts: all\n", "isPlaybook": True}
        ]
        assert len(harness.fetched) == 1

    @pytest.mark.asyncio
    async def test_supplied_playbook_skips_backend(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        await panel.receive(
            {
                "command": "generateCode",
                "playbook": "- name: cached",
                "generationId": "g9",
                "outline": "1. cached",
                "darkMode": False,
            }
        )

        assert harness.sender.calls == []
        payload = panel.messages[-1]["playbook"]
        assert payload["generationId"] == "g9"
        assert "light-plus" in payload["html"]
        assert harness.content_matches.suggestion_details[0].suggestion_id == "g9"

    @pytest.mark.asyncio
    async def test_generate_error_skips_trial_interception(self) -> None:
        harness = build_harness(
            responses=[{"code": "permission_denied__user_trial_expired", "message": "Trial expired"}],
            trial_handled=True,
        )
        panel = await _open(harness)

        await panel.receive({"command": "generateCode", "text": "t", "outline": "1.", "generationId": "g"})

        assert harness.notifier.errors == ["Trial expired"]
        assert harness.trial_policy.mapped == []
        assert "playbook" not in panel.commands()
        assert harness.content_matches.suggestion_details == []

    @pytest.mark.asyncio
    async def test_generate_error_without_message_uses_fallback(self) -> None:
        harness = build_harness(responses=[{"code": "internal_error"}])
        panel = await _open(harness)

        await panel.receive({"command": "generateCode", "text": "t", "outline": "1.", "generationId": "g"})

        assert harness.notifier.errors == [UNKNOWN_ERROR]

    @pytest.mark.asyncio
    async def test_generate_fault_stops_spinner(self) -> None:
        harness = build_harness(sender_error=RuntimeError("boom"))
        panel = await _open(harness)

        await panel.receive({"command": "generateCode", "text": "t", "outline": "1.", "generationId": "g"})

        assert harness.notifier.errors == ["boom"]
        assert panel.commands() == ["init", "startSpinner", "stopSpinner"]


# =============================================================================
# Telemetry failures and routing edge cases
# =============================================================================


class TestRobustness:
    @pytest.mark.asyncio
    async def test_feedback_failure_does_not_abort_open(self) -> None:
        sink = FailingSink()
        harness = build_harness(sink=sink)

        panel = await harness.controller.show()

        assert isinstance(panel, HeadlessPanel)
        assert sink.calls == 1
        assert harness.notifier.errors == ["feedback endpoint unavailable"]

    @pytest.mark.asyncio
    async def test_async_feedback_failure_is_reported(self) -> None:
        sink = FailingSink(asynchronous=True)
        harness = build_harness(sink=sink)
        panel = await _open(harness)

        await panel.receive({"command": "transition", "toPage": 2})
        await harness.controller.drain()

        assert harness.controller.store.current_page == 2
        assert harness.notifier.errors == ["feedback endpoint unavailable"] * 2

    @pytest.mark.asyncio
    async def test_drain_waits_for_feedback_deliveries(self) -> None:
        sink = FailingSink(asynchronous=True)
        harness = build_harness(sink=sink)
        await _open(harness)

        await harness.controller.drain()

        assert harness.notifier.errors == ["feedback endpoint unavailable"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("to_page", [2.5, "two", None, 0, True])
    async def test_invalid_transition_target_is_ignored(self, harness: WizardHarness, to_page: object) -> None:
        panel = await _open(harness)

        await panel.receive({"command": "transition", "toPage": to_page})

        assert _pages(harness) == [(OPEN, None, 1)]
        assert harness.controller.store.current_page == 1
        assert harness.notifier.errors == []

    @pytest.mark.asyncio
    async def test_unknown_command_is_ignored(self, harness: WizardHarness) -> None:
        panel = await _open(harness)

        await panel.receive({"command": "resize"})

        assert panel.commands() == ["init"]
        assert harness.notifier.errors == []
