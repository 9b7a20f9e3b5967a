"""Application bootstrap helpers and the ``playbook-wizard`` console script."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO

from .backend.client import ClientSettings, FeedbackClient, JsonRpcTransport
from .services.settings import Settings, SettingsStore
from .utils import logging as logging_utils
from .wizard import HeadlessPanel, LoggingNotifier, PlaybookGenerationController, StaticTokenProvider
from .wizard.trial import OneClickTrialPolicy

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_LOGGER = logging.getLogger(__name__)
_TOKEN_ENV = "PLAYBOOK_WIZARD_ACCESS_TOKEN"


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure structured logging for the application."""

    level = logging.DEBUG if debug else logging.INFO
    log_file = logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(level), log_file)


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except Exception as exc:  # pragma: no cover
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


class StreamEditorHost:
    """Editor host that writes opened documents to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout
        self.documents: list[tuple[str, str]] = []

    async def open_document(self, content: str, language: str) -> None:
        self.documents.append((content, language))
        self._stream.write(content)
        if not content.endswith("\n"):
            self._stream.write("\n")
        self._stream.flush()


async def run_headless(
    prompt: str,
    settings: Settings,
    *,
    access_token: str | None,
    stream: TextIO | None = None,
) -> int:
    """Drive one wizard session end to end without a UI."""

    client_settings = ClientSettings.from_settings(settings)
    credentials = StaticTokenProvider(access_token)
    transport = JsonRpcTransport(client_settings)
    feedback = FeedbackClient(client_settings, credentials)
    notifier = LoggingNotifier()
    editor = StreamEditorHost(stream)
    controller = PlaybookGenerationController(
        settings,
        panel_factory=HeadlessPanel,
        sender=transport,
        credentials=credentials,
        feedback=feedback,
        notifier=notifier,
        editor=editor,
        trial_policy=OneClickTrialPolicy(),
    )
    try:
        panel = await controller.show()
        if not isinstance(panel, HeadlessPanel):
            _LOGGER.error("Wizard unavailable: feature disabled or no access token")
            return 1

        generation_id = str(uuid.uuid4())
        await panel.receive({"command": "outline", "text": prompt, "generationId": generation_id})
        await controller.drain()
        outline_payload = _last_payload(panel, "outline")
        if outline_payload is None:
            panel.dispose()
            return 1

        await panel.receive({"command": "transition", "toPage": 2})
        await panel.receive(
            {
                "command": "generateCode",
                "text": prompt,
                "outline": outline_payload.get("outline"),
                "generationId": outline_payload.get("generationId") or generation_id,
                "darkMode": False,
            }
        )
        playbook_payload = _last_payload(panel, "playbook")
        if playbook_payload is None:
            panel.dispose()
            return 1

        await panel.receive({"command": "transition", "toPage": 3})
        await panel.receive({"command": "openEditor", "playbook": playbook_payload.get("playbook")})
        await controller.drain()
        return 0 if not notifier.errors else 1
    finally:
        await transport.aclose()
        await feedback.aclose()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `playbook-wizard` console script."""

    args = _parse_cli_args(argv)

    debug = args.debug or _env_flag("PLAYBOOK_WIZARD_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("PLAYBOOK_WIZARD_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)

    if args.dump_settings:
        _dump_settings(settings, settings_store)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    if not args.prompt:
        print("Nothing to do: pass --prompt TEXT or --dump-settings", file=sys.stderr)
        raise SystemExit(2)

    token = args.token or os.environ.get(_TOKEN_ENV)
    exit_code = asyncio.run(run_headless(args.prompt, settings, access_token=token))
    if exit_code:
        raise SystemExit(exit_code)


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="playbook-wizard", description="Generate a playbook from a prompt.")
    parser.add_argument("--settings", dest="settings_path", help="Path to a settings JSON file")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Override a settings field (repeatable)",
    )
    parser.add_argument("--dump-settings", action="store_true", help="Print the effective settings and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--prompt", help="Prompt describing the playbook to generate")
    parser.add_argument("--token", help=f"Access token (defaults to ${_TOKEN_ENV})")
    return parser.parse_args(list(argv) if argv is not None else None)


def _coerce_cli_overrides(pairs: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    defaults = Settings()
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        key, raw = pair.split("=", 1)
        key = key.strip()
        if not hasattr(defaults, key):
            raise ValueError(f"unknown setting {key!r}")
        overrides[key] = _coerce_value(getattr(defaults, key), raw.strip())
    return overrides


def _coerce_value(template: Any, raw: str) -> Any:
    if isinstance(template, bool):
        return raw.lower() in _TRUE_VALUES
    if isinstance(template, int):
        return int(raw, 10)
    if isinstance(template, float):
        return float(raw)
    if isinstance(template, (dict, list)):
        value = json.loads(raw)
        if not isinstance(value, type(template)):
            raise ValueError(f"expected JSON {type(template).__name__}")
        return value
    return raw


def _dump_settings(settings: Settings, store: SettingsStore, stream: TextIO | None = None) -> None:
    target = stream or sys.stdout
    payload = {"path": str(store.path), "settings": asdict(settings)}
    target.write(json.dumps(payload, indent=2, sort_keys=True))
    target.write("\n")


def _last_payload(panel: HeadlessPanel, command: str) -> Mapping[str, Any] | None:
    for message in reversed(panel.messages):
        if message.get("command") == command:
            payload = message.get(command)
            if isinstance(payload, Mapping):
                return payload
    return None


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


if __name__ == "__main__":  # pragma: no cover
    main()
