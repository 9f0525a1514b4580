"""Revision bookkeeping for optimistic-concurrency writes."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

_LOGGER = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Mapping[str, Any]]]


def new_client_id() -> str:
    """Return a fresh writer identifier."""
    return uuid.uuid4().hex


def normalise_version(value: Any) -> int:
    """Coerce a server revision version to a non-negative integer.

    Missing, boolean, non-numeric, NaN, infinite and negative values all
    collapse to ``0`` so a payload never carries an unusable version.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = int(value)
    return value if value >= 0 else 0


@dataclass(frozen=True, slots=True)
class Revision:
    """Version counter plus the identifier of the writer using it."""

    version: int = 0
    client_id: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> Revision:
        """Build a revision from a resource payload with a brand new client id.

        The server's ``clientId`` is ignored on purpose: each refresh gets its
        own writer identity.
        """
        revision = payload.get("revision") if isinstance(payload, Mapping) else None
        version = revision.get("version") if isinstance(revision, Mapping) else None
        return cls(version=normalise_version(version), client_id=new_client_id())

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "clientId": self.client_id}


class RevisionStore:
    """Last known revision per resource, refreshed from the backend.

    Only the retry orchestrator working on a resource writes its entry.
    """

    def __init__(self, fetch: Fetcher) -> None:
        self._fetch = fetch
        self._revisions: dict[str, Revision] = {}
        self._details: dict[str, Mapping[str, Any]] = {}

    def get(self, resource_id: str) -> Revision | None:
        return self._revisions.get(resource_id)

    def details(self, resource_id: str) -> Mapping[str, Any] | None:
        """Return the resource payload seen by the last refresh."""
        return self._details.get(resource_id)

    def remember(self, resource_id: str, revision: Revision) -> None:
        self._revisions[resource_id] = revision

    async def refresh(self, resource_id: str) -> Revision:
        """Fetch the authoritative revision and assign a new client id."""
        payload = await self._fetch(resource_id)
        revision = Revision.from_payload(payload)
        self._revisions[resource_id] = revision
        self._details[resource_id] = payload if isinstance(payload, Mapping) else {}
        _LOGGER.debug("Refreshed revision for %s: version=%s", resource_id, revision.version)
        return revision

    def forget(self, resource_id: str) -> None:
        self._revisions.pop(resource_id, None)
        self._details.pop(resource_id, None)


__all__ = ["Revision", "RevisionStore", "new_client_id", "normalise_version"]
