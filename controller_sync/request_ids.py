"""Resolve the verification job id from a loosely shaped creation response.

Different backend versions answer the creation call with different
shapes, so the id is looked up through an ordered list of extractors. The
first one that yields an id wins; the result says which shape matched.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import RequestIdError

# Paths tried in order when the response is not a bare job object
NESTED_PATHS: tuple[tuple[str, ...], ...] = (
    ("request", "id"),
    ("request", "requestId"),
    ("verificationRequest", "id"),
    ("verificationRequest", "requestId"),
    ("verificationRequestId",),
    ("id",),
    ("requestId",),
)

# Last resort inside a ``request`` object
REQUEST_PATHS: tuple[tuple[str, ...], ...] = (
    ("request", "id"),
    ("request", "requestId"),
    ("request", "verificationRequestId"),
)


@dataclass(frozen=True, slots=True)
class DirectId:
    """The response itself is the job object."""

    request_id: str


@dataclass(frozen=True, slots=True)
class NestedRequest:
    """The id sits under one of the known nested paths."""

    request_id: str
    path: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ArrayWrapped:
    """The response is a list whose first element carries the id."""

    request_id: str
    inner: DirectId | NestedRequest


@dataclass(frozen=True, slots=True)
class Unresolved:
    """No extractor matched."""

    response: Any
    request_id: None = None


RequestIdResolution = DirectId | NestedRequest | ArrayWrapped | Unresolved
Extractor = Callable[[Any], DirectId | NestedRequest | ArrayWrapped | None]


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def _lookup(payload: Any, path: tuple[str, ...]) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _first_path(payload: Any, paths: tuple[tuple[str, ...], ...]) -> NestedRequest | None:
    for path in paths:
        request_id = _coerce_id(_lookup(payload, path))
        if request_id:
            return NestedRequest(request_id=request_id, path=path)
    return None


def extract_direct(response: Any) -> DirectId | None:
    if not isinstance(response, Mapping) or response.get("request"):
        return None
    request_id = _coerce_id(response.get("id"))
    return DirectId(request_id) if request_id else None


def extract_nested(response: Any) -> NestedRequest | None:
    if not isinstance(response, Mapping):
        return None
    return _first_path(response, NESTED_PATHS)


def extract_array(response: Any) -> ArrayWrapped | None:
    if isinstance(response, str | bytes | bytearray) or not isinstance(response, Sequence):
        return None
    if not response:
        return None
    first = response[0]
    inner = extract_direct(first) or extract_nested(first)
    if inner is None:
        return None
    return ArrayWrapped(request_id=inner.request_id, inner=inner)


def extract_request_object(response: Any) -> NestedRequest | None:
    if not isinstance(response, Mapping) or not isinstance(response.get("request"), Mapping):
        return None
    return _first_path(response, REQUEST_PATHS)


EXTRACTORS: tuple[Extractor, ...] = (
    extract_direct,
    extract_nested,
    extract_array,
    extract_request_object,
)


def resolve_request_id(response: Any) -> RequestIdResolution:
    """Run :data:`EXTRACTORS` in order and return the first match."""

    for extractor in EXTRACTORS:
        resolved = extractor(response)
        if resolved is not None:
            return resolved
    return Unresolved(response=response)


def describe_response(response: Any) -> str:
    try:
        return json.dumps(response, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(response)


def require_request_id(response: Any) -> str:
    """Return the job id or raise :class:`RequestIdError` with the raw response."""

    resolved = resolve_request_id(response)
    if isinstance(resolved, Unresolved):
        raise RequestIdError(
            f"Failed to get verification request ID. Response: {describe_response(response)}",
            response=response,
        )
    return resolved.request_id


__all__ = [
    "EXTRACTORS",
    "ArrayWrapped",
    "DirectId",
    "NestedRequest",
    "RequestIdResolution",
    "Unresolved",
    "describe_response",
    "extract_array",
    "extract_direct",
    "extract_nested",
    "extract_request_object",
    "require_request_id",
    "resolve_request_id",
]
