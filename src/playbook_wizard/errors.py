"""Error types shared by the playbook generation wizard.

Backend failures travel as :class:`GenerationError` values rather than
exceptions; only transport faults raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

UNKNOWN_ERROR = "An error occurred attempting to complete your request. Please try again later."


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes carried by backend error payloads."""

    # Trial / entitlement
    USER_TRIAL_EXPIRED = "permission_denied__user_trial_expired"
    USER_WITH_NO_SEAT = "permission_denied__user_with_no_seat"
    CAN_APPLY_FOR_TRIAL = "permission_denied__can_apply_for_trial"

    # Transport
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    RPC_ERROR = "rpc_error"

    # General
    INTERNAL_ERROR = "internal_error"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


# -----------------------------------------------------------------------------
# Error values
# -----------------------------------------------------------------------------

@dataclass(slots=True)
class GenerationError:
    """Typed error returned by the backend instead of a generation payload.

    Attributes:
        code: Machine-readable error identifier.
        message: Human-readable description, possibly empty.
        detail: Additional structured remediation metadata.
    """

    code: str
    message: str = ""
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def user_message(self) -> str:
        """Message to surface to the user, never empty."""
        return self.message or UNKNOWN_ERROR

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.detail:
            result["detail"] = dict(self.detail)
        return result

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GenerationError":
        detail = payload.get("detail")
        if not isinstance(detail, Mapping):
            detail = {"detail": detail} if detail is not None else {}
        return cls(
            code=str(payload.get("code") or ErrorCode.UNKNOWN),
            message=str(payload.get("message") or ""),
            detail=dict(detail),
        )


def is_error(response: Any) -> bool:
    """Return True when *response* is a backend error rather than a payload."""

    if isinstance(response, GenerationError):
        return True
    if isinstance(response, Mapping):
        return response.get("code") is not None
    return False


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------

class WizardError(Exception):
    """Base exception for the wizard package."""


class TransportError(WizardError):
    """Raised when the remote call cannot produce a response."""

    def __init__(self, message: str, *, code: str = ErrorCode.CONNECTION_ERROR, detail: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.detail = dict(detail or {})

    def to_generation_error(self) -> GenerationError:
        return GenerationError(code=self.code, message=self.message, detail=dict(self.detail))

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


__all__ = [
    "ErrorCode",
    "GenerationError",
    "TransportError",
    "UNKNOWN_ERROR",
    "WizardError",
    "is_error",
]
