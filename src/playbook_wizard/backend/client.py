"""Async HTTP clients for the language-processing backend."""

from __future__ import annotations

import inspect
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import ErrorCode, TransportError

LOGGER = logging.getLogger(__name__)
_FEEDBACK_PATH = "/api/v0/ai/feedback/"


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the backend clients."""

    base_url: str
    request_timeout: float | None = 60.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False

    @classmethod
    def from_settings(cls, settings: Any, *, base_url: str | None = None) -> "ClientSettings":
        return cls(
            base_url=base_url or settings.service_url,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_min_seconds=settings.retry_min_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            default_headers=dict(settings.default_headers or {}),
            debug_logging=settings.debug_logging,
        )


class _RetryingClient:
    """Shared httpx plumbing with retry semantics."""

    def __init__(self, settings: ClientSettings, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def _build_client(self, settings: ClientSettings) -> httpx.AsyncClient:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            headers=headers,
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        )

    async def _post(self, url: str, body: Mapping[str, Any], *, headers: Mapping[str, str] | None = None) -> httpx.Response:
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._client.post(url, json=dict(body), headers=headers)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            raise TransportError(
                str(last) or "Unable to reach the generation service",
                code=ErrorCode.CONNECTION_ERROR,
            ) from last
        if response.status_code >= 400:
            raise TransportError(
                _error_message(response),
                code=ErrorCode.HTTP_ERROR,
                detail={"status_code": response.status_code},
            )
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP client to release network resources."""

        close = getattr(self._client, "aclose", None)
        if close is None:
            return
        try:
            result = close()
        except Exception as exc:  # pragma: no cover
            LOGGER.debug("HTTP client close failed to start: %s", exc)
            return
        if inspect.isawaitable(result):
            await result


class JsonRpcTransport(_RetryingClient):
    """Single request/response transport speaking JSON-RPC 2.0 over HTTP."""

    def __init__(self, settings: ClientSettings, *, client: httpx.AsyncClient | None = None, endpoint: str = "/rpc") -> None:
        super().__init__(settings, client=client)
        self._endpoint = endpoint
        self._ids = itertools.count(1)

    async def send_request(self, method: str, params: Mapping[str, Any]) -> Any:
        """Send *method* with *params* and return the ``result`` member."""

        envelope: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": dict(params),
        }
        LOGGER.debug("Sending %s (id=%s)", method, envelope["id"])
        if self._settings.debug_logging:
            _log_payload(envelope)
        response = await self._post(self._endpoint, envelope)
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError("Backend returned a non-JSON response", code=ErrorCode.RPC_ERROR) from exc
        if not isinstance(body, Mapping):
            raise TransportError("Backend returned an invalid JSON-RPC envelope", code=ErrorCode.RPC_ERROR)
        error = body.get("error")
        if error is not None:
            message = error.get("message", "") if isinstance(error, Mapping) else str(error)
            data = error.get("data") if isinstance(error, Mapping) else None
            raise TransportError(
                str(message),
                code=ErrorCode.RPC_ERROR,
                detail={"data": data} if data is not None else None,
            )
        return body.get("result")


class FeedbackClient(_RetryingClient):
    """Posts feedback events to the service's feedback endpoint."""

    def __init__(
        self,
        settings: ClientSettings,
        token_provider: Any,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings, client=client)
        self._token_provider = token_provider

    async def feedback_request(self, payload: Mapping[str, Any], in_test_mode: bool = False) -> None:
        if in_test_mode:
            LOGGER.debug("Feedback suppressed in test mode: %s", payload)
            return
        token = await self._token_provider.get_access_token()
        if not token:
            LOGGER.debug("Feedback skipped; no access token available")
            return
        await self._post(_FEEDBACK_PATH, payload, headers={"Authorization": f"Bearer {token}"})
        LOGGER.debug("Feedback delivered: %s", sorted(payload))


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Backend responded with HTTP {response.status_code}"


def _log_payload(payload: Mapping[str, Any]) -> None:
    redacted = dict(payload)
    params = redacted.get("params")
    if isinstance(params, Mapping) and "accessToken" in params:
        redacted["params"] = {**params, "accessToken": "***"}
    try:
        serialized = json.dumps(redacted, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        LOGGER.debug("Request payload (unserializable): %s", redacted)
    else:
        LOGGER.debug("Request payload:\n%s", serialized)


__all__ = ["ClientSettings", "FeedbackClient", "JsonRpcTransport"]
