from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from .const import UPDATE_FAILED_MESSAGE

CONFLICT_STATUS = 409
WRAPPED_CONFLICT_STATUS = 500
CONFLICT_MARKER = "409"


class ConflictKind(str, Enum):
    """Outcome of classifying a failed write."""

    CONFLICT = "conflict"
    OTHER = "other"


def _status(error: BaseException) -> int | None:
    status = getattr(error, "status", None)
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    return status


def _body(error: BaseException) -> Mapping[str, Any]:
    data = getattr(error, "data", None)
    return data if isinstance(data, Mapping) else {}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    return _text(message) if message is not None else str(error)


def classify_error(error: BaseException) -> ConflictKind:
    """Map a failed update to :class:`ConflictKind`.

    A 409 is a conflict. A 500 whose message, ``details`` or ``error`` text
    contains ``"409"`` is treated as one too: some backends wrap the real
    conflict in a generic server error. That second rule is a compatibility
    shim for those backends, not a general way to detect conflicts.
    """
    status = _status(error)
    if status == CONFLICT_STATUS:
        return ConflictKind.CONFLICT
    if status == WRAPPED_CONFLICT_STATUS:
        body = _body(error)
        texts = (_message(error), _text(body.get("details")), _text(body.get("error")))
        if any(CONFLICT_MARKER in text for text in texts):
            return ConflictKind.CONFLICT
    return ConflictKind.OTHER


def is_conflict_error(error: BaseException) -> bool:
    return classify_error(error) is ConflictKind.CONFLICT


def extract_error_message(error: BaseException | None, fallback: str = UPDATE_FAILED_MESSAGE) -> str:
    """Best-effort human readable message for a failed operation.

    Priority: response ``message``, response ``error``, the exception
    message, then ``fallback``.
    """
    if error is None:
        return fallback
    body = _body(error)
    for key in ("message", "error"):
        value = body.get(key)
        if value:
            return str(value)
    message = _message(error)
    return message or fallback


__all__ = ["ConflictKind", "classify_error", "extract_error_message", "is_conflict_error"]
