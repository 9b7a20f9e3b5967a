"""Generation request orchestrator.

Wraps one ``playbook/generation`` round-trip with the panel's loading
indicator and normalizes the response into a :class:`GenerationResult`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from ..errors import TransportError
from .interfaces import CredentialProvider, RequestSender, WizardPanel
from .models import GenerationResult

LOGGER = logging.getLogger(__name__)

GENERATION_METHOD = "playbook/generation"


class GenerationOrchestrator:
    """Issues generation requests on behalf of the active wizard session.

    The orchestrator neither retries nor times out; both belong to the
    transport. Backend errors and :class:`TransportError` come back as
    error results. Any other exception propagates after the loading
    indicator has been stopped.
    """

    def __init__(
        self,
        sender: RequestSender,
        credentials: CredentialProvider,
        *,
        service_url: Callable[[], str] | str,
    ) -> None:
        self._sender = sender
        self._credentials = credentials
        self._service_url = service_url

    @property
    def service_url(self) -> str:
        value = self._service_url
        return value() if callable(value) else value

    async def generate(
        self,
        text: str,
        outline: Any | None,
        generation_id: str | None,
        *,
        panel: WizardPanel,
        wizard_id: str | None,
    ) -> GenerationResult:
        """Request an outline (``outline is None``) or a playbook from *outline*."""

        access_token = await self._credentials.get_access_token()
        create_outline = outline is None
        params = {
            "accessToken": access_token,
            "URL": self.service_url,
            "text": text,
            "outline": outline,
            "createOutline": create_outline,
            "generationId": generation_id,
            "wizardId": wizard_id,
        }
        LOGGER.debug(
            "GenerationOrchestrator.generate: wizard_id=%s generation_id=%s create_outline=%s",
            wizard_id,
            generation_id,
            create_outline,
        )
        with _loading(panel):
            try:
                response = await self._sender.send_request(GENERATION_METHOD, params)
            except TransportError as exc:
                LOGGER.warning("Generation request failed: %s", exc)
                return GenerationResult.failure(exc.to_generation_error())
        result = GenerationResult.from_response(response)
        if result.is_error:
            LOGGER.debug("Generation returned error code=%s", result.error.code)
        return result


@contextmanager
def _loading(panel: WizardPanel) -> Iterator[None]:
    panel.post_message({"command": "startSpinner"})
    try:
        yield
    finally:
        panel.post_message({"command": "stopSpinner"})


__all__ = ["GENERATION_METHOD", "GenerationOrchestrator"]
