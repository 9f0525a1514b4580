"""Error taxonomy shared by the update and verification workflows."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class ControllerSyncError(RuntimeError):
    """Base class for every error raised by :mod:`controller_sync`."""

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class ApiError(ControllerSyncError):
    """Raised when the backend answers with an error status or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, reason="http_error" if status is not None else "transport_error")
        self.status = status
        self.data: dict[str, Any] = dict(data or {})

    @property
    def message(self) -> str:
        return str(self)


class ConflictError(ApiError):
    """Revision mismatch reported by the backend."""

    def __init__(self, message: str, *, status: int | None = 409, data: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, status=status, data=data)
        self.reason = "conflict"


class ValidationError(ControllerSyncError, ValueError):
    """A payload or option failed local validation; never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason="invalid_payload")


class RequestIdError(ControllerSyncError):
    """The verification-creation response did not carry a usable identifier."""

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message, reason="unresolved_request_id")
        self.response = response


class VerificationDeletedError(ControllerSyncError):
    """The verification job vanished before any snapshot could be read."""

    def __init__(self, message: str = "Verification request was deleted before results could be retrieved") -> None:
        super().__init__(message, reason="deleted")


class VerificationTimeoutError(ControllerSyncError, TimeoutError):
    """Polling hit its cycle cap without a single successful snapshot."""

    def __init__(self, message: str = "Verification request timed out") -> None:
        super().__init__(message, reason="timeout")


__all__ = [
    "ApiError",
    "ConflictError",
    "ControllerSyncError",
    "RequestIdError",
    "ValidationError",
    "VerificationDeletedError",
    "VerificationTimeoutError",
]
