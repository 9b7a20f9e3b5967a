"""Trial interception and error classification for generation results."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Protocol

from ..errors import ErrorCode, GenerationError
from .interfaces import Notifier
from .models import Classification, GenerationResult

LOGGER = logging.getLogger(__name__)

TRIAL_MESSAGE = "Your trial has ended or no seat is assigned to you. Start a trial to keep generating playbooks."

PopupHandler = Callable[[GenerationError], Awaitable[bool] | bool]


class TrialPolicy(Protocol):
    """Decides whether an error means the user needs a trial."""

    def map_error(self, error: GenerationError) -> GenerationError:  # pragma: no cover - protocol stub
        ...

    async def show_popup(self, error: GenerationError) -> bool:  # pragma: no cover - protocol stub
        ...


class NullTrialPolicy:
    """Policy that never intercepts anything."""

    def map_error(self, error: GenerationError) -> GenerationError:
        return error

    async def show_popup(self, error: GenerationError) -> bool:
        return False


class OneClickTrialPolicy:
    """Remaps entitlement errors and offers a trial through *popup*.

    ``map_error`` turns any of the entitlement codes into
    ``CAN_APPLY_FOR_TRIAL``. ``show_popup`` only acts on that code and
    reports the error as handled once the popup has been presented.
    """

    TRIAL_CODES: frozenset[str] = frozenset(
        {ErrorCode.USER_TRIAL_EXPIRED, ErrorCode.USER_WITH_NO_SEAT}
    )

    def __init__(self, popup: PopupHandler | None = None, *, enabled: bool = True) -> None:
        self._popup = popup
        self._enabled = enabled

    def map_error(self, error: GenerationError) -> GenerationError:
        if not self._enabled or error.code not in self.TRIAL_CODES:
            return error
        LOGGER.debug("Remapping %s to %s", error.code, ErrorCode.CAN_APPLY_FOR_TRIAL)
        return GenerationError(
            code=ErrorCode.CAN_APPLY_FOR_TRIAL,
            message=TRIAL_MESSAGE,
            detail={"original_code": error.code, **error.detail},
        )

    async def show_popup(self, error: GenerationError) -> bool:
        if not self._enabled or self._popup is None:
            return False
        if error.code != ErrorCode.CAN_APPLY_FOR_TRIAL:
            return False
        result: Any = self._popup(error)
        if inspect.isawaitable(result):
            result = await result
        LOGGER.debug("Trial popup presented (accepted=%s)", result)
        return True


class ErrorClassifier:
    """Runs error results past the trial policy before surfacing them."""

    def __init__(self, policy: TrialPolicy, notifier: Notifier) -> None:
        self._policy = policy
        self._notifier = notifier

    async def classify(self, result: GenerationResult) -> Classification:
        if result.error is None:
            return Classification()
        error = self._policy.map_error(result.error)
        if await self._policy.show_popup(error):
            LOGGER.debug("Error %s handled by trial popup", error.code)
            return Classification(handled=True, error=error)
        message = error.user_message
        self._notifier.show_error_message(message)
        return Classification(handled=False, user_message=message, error=error)


__all__ = [
    "ErrorClassifier",
    "NullTrialPolicy",
    "OneClickTrialPolicy",
    "TRIAL_MESSAGE",
    "TrialPolicy",
]
