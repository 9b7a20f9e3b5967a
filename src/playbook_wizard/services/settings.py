"""Wizard settings and their JSON persistence.

Values are resolved in three layers: the settings file, then runtime
overrides (the CLI ``--set`` flags), then ``PLAYBOOK_WIZARD_*``
environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "TEST_MODE_ENV",
    "in_test_mode",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".playbook_wizard" / "settings.json"
SETTINGS_VERSION = 1

# Presence of this variable marks feedback as originating from a test run.
TEST_MODE_ENV = "TEST_LIGHTSPEED_ACCESS_TOKEN"

_TRUTHY = frozenset({"1", "true", "yes", "on", "debug"})


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


# env var -> (field, parser)
_ENVIRONMENT: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "PLAYBOOK_WIZARD_SERVICE_URL": ("service_url", str),
    "PLAYBOOK_WIZARD_PANEL_TITLE": ("panel_title", str),
    "PLAYBOOK_WIZARD_ENABLED": ("enabled", _parse_bool),
    "PLAYBOOK_WIZARD_DEBUG_LOGGING": ("debug_logging", _parse_bool),
    "PLAYBOOK_WIZARD_REQUEST_TIMEOUT": ("request_timeout", float),
    "PLAYBOOK_WIZARD_MAX_RETRIES": ("max_retries", lambda raw: int(raw, 10)),
}


@dataclass(slots=True)
class Settings:
    """User-configurable wizard settings.

    Attributes:
        service_url: Base URL of the generation service.
        enabled: Feature flag; the wizard refuses to open when False.
        request_timeout: Per-request timeout in seconds, owned by the transport.
        max_retries: Attempts for connection failures and timeouts.
        retry_min_seconds: Exponential backoff multiplier.
        retry_max_seconds: Upper bound for a single backoff wait.
        panel_title: Title given to the wizard panel.
        debug_logging: Log request payloads (tokens redacted).
        default_headers: Extra HTTP headers sent with every request.
        metadata: Free-form data merged rather than replaced by overrides.
    """

    service_url: str = "https://c.ai.ansible.redhat.com"
    enabled: bool = True
    request_timeout: float = 60.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    panel_title: str = "Ansible Lightspeed"
    debug_logging: bool = False
    default_headers: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


def in_test_mode(environ: Mapping[str, str] | None = None) -> bool:
    """Return True when feedback should be flagged as test traffic."""

    env = os.environ if environ is None else environ
    return TEST_MODE_ENV in env


class SettingsStore:
    """Reads and writes :class:`Settings` as a JSON document."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Resolve settings from the file, *overrides* and the environment."""

        stored = self._read()
        known = _known_fields()
        try:
            settings = Settings(**{key: value for key, value in stored.items() if key in known})
        except TypeError as exc:
            LOGGER.warning("Ignoring malformed settings in %s: %s", self._path, exc)
            settings = Settings()

        if overrides:
            settings = _merge(settings, overrides, layer="runtime")
        environment = _environment_overrides(os.environ)
        if environment:
            settings = _merge(settings, environment, layer="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        """Write *settings* through a temporary file so readers never see a partial file."""

        document = {**asdict(settings), "version": SETTINGS_VERSION}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings written to %s", self._path)
        return self._path

    def _read(self) -> Dict[str, Any]:
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            LOGGER.debug("No settings file at %s; using defaults", self._path)
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            LOGGER.warning("Settings file %s does not hold a JSON object", self._path)
            return {}
        return document


def _known_fields() -> set[str]:
    return {item.name for item in fields(Settings)}


def _merge(settings: Settings, values: Mapping[str, Any], *, layer: str) -> Settings:
    known = _known_fields()
    changes = {key: value for key, value in values.items() if key in known and value is not None}
    if not changes:
        return settings
    if isinstance(changes.get("metadata"), Mapping):
        changes["metadata"] = {**settings.metadata, **changes["metadata"]}
    LOGGER.debug("Applying %s overrides: %s", layer, sorted(changes))
    return replace(settings, **changes)


def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for variable, (name, parse) in _ENVIRONMENT.items():
        raw = environ.get(variable)
        if raw is None:
            continue
        try:
            values[name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring %s=%r: cannot parse a value for %s", variable, raw, name)
    return values
