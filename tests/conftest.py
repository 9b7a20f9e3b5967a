"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from playbook_wizard.services import telemetry as telemetry_service

from tests.helpers import WizardHarness, build_harness


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TEST_LIGHTSPEED_ACCESS_TOKEN",
        "PLAYBOOK_WIZARD_SERVICE_URL",
        "PLAYBOOK_WIZARD_ENABLED",
        "PLAYBOOK_WIZARD_REQUEST_TIMEOUT",
        "PLAYBOOK_WIZARD_MAX_RETRIES",
        "PLAYBOOK_WIZARD_DEBUG_LOGGING",
        "PLAYBOOK_WIZARD_PANEL_TITLE",
        "PLAYBOOK_WIZARD_DEBUG",
        "PLAYBOOK_WIZARD_SETTINGS_PATH",
        "PLAYBOOK_WIZARD_ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(telemetry_service, "_EVENT_LISTENERS", {})


@pytest.fixture
def harness() -> WizardHarness:
    return build_harness()
