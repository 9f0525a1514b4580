"""Optimistic-concurrency writes with bounded conflict retries."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from .conflict import ConflictKind, classify_error
from .const import (
    DEFAULT_BACKOFF_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_SETTLE_DELAY,
    RUN_STATES,
)
from .errors import ValidationError
from .revision import Revision, RevisionStore

_LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]
Mutator = Callable[[str, dict[str, Any]], Awaitable[Any]]


class RevisionedPayload(Protocol):
    """Anything the orchestrator can send, refresh and resend."""

    revision: Revision

    @property
    def resource_id(self) -> str: ...

    def validate(self) -> None: ...

    def with_revision(self, revision: Revision) -> RevisionedPayload: ...

    def to_dict(self) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class UpdatePayload:
    """Component update sent with the revision it was based on.

    ``component`` is frozen at construction; only ``revision`` changes
    between attempts, through :meth:`with_revision`.
    """

    revision: Revision
    component: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "component", MappingProxyType(copy.deepcopy(dict(self.component))))

    @property
    def resource_id(self) -> str:
        return str(self.component.get("id") or "")

    @property
    def name(self) -> str:
        value = self.component.get("name")
        return str(value).strip() if value is not None else ""

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("Service name is required but not available")

    def with_revision(self, revision: Revision) -> UpdatePayload:
        return UpdatePayload(revision=revision, component=self.component)

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": self.revision.to_dict(),
            "disconnectedNodeAcknowledged": False,
            "component": copy.deepcopy(dict(self.component)),
        }


@dataclass(frozen=True, slots=True)
class RunStatePayload:
    """Enable or disable request for a controller service."""

    revision: Revision
    service_id: str
    state: str

    @property
    def resource_id(self) -> str:
        return self.service_id

    def validate(self) -> None:
        if not self.service_id:
            raise ValidationError("Service id is required")
        if self.state not in RUN_STATES:
            raise ValidationError(f"Unsupported run state: {self.state}")

    def with_revision(self, revision: Revision) -> RunStatePayload:
        return RunStatePayload(revision=revision, service_id=self.service_id, state=self.state)

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": self.revision.to_dict(),
            "state": self.state,
            "disconnectedNodeAcknowledged": False,
        }


class RetryOrchestrator:
    """Send a revisioned payload, refreshing the revision after each conflict.

    Attempt ``n`` that fails with a conflict while ``n <= max_retries`` waits
    ``settle_delay * n``, refetches the revision, waits ``backoff_delay * n``
    and tries again. Any other failure, or a conflict on the last attempt,
    propagates the error of that attempt.
    """

    def __init__(
        self,
        mutate: Mutator,
        store: RevisionStore,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        backoff_delay: float = DEFAULT_BACKOFF_DELAY,
        sleep: Sleep | None = None,
    ) -> None:
        self._mutate = mutate
        self.store = store
        self.max_retries = max(0, int(max_retries))
        self.settle_delay = settle_delay
        self.backoff_delay = backoff_delay
        self._sleep = sleep or asyncio.sleep
        self.last_attempts = 0

    async def apply_update(
        self,
        payload: RevisionedPayload,
        max_retries: int | None = None,
        resource_id: str | None = None,
        *,
        mutate: Mutator | None = None,
    ) -> Any:
        """Apply ``payload`` and return the backend response."""

        payload.validate()
        resource_id = resource_id or payload.resource_id
        if not resource_id:
            raise ValidationError("Resource id is required")
        retries = self.max_retries if max_retries is None else max(0, int(max_retries))
        send = mutate or self._mutate

        attempt = 0
        self.last_attempts = 0
        while True:
            attempt += 1
            self.last_attempts = attempt
            try:
                result = await send(resource_id, payload.to_dict())
            except Exception as err:
                if classify_error(err) is ConflictKind.OTHER:
                    raise
                if attempt > retries:
                    _LOGGER.warning(
                        "Giving up on %s after %s conflicting attempts",
                        resource_id,
                        attempt,
                    )
                    raise
                _LOGGER.debug(
                    "Revision conflict on %s (attempt %s of %s); refreshing",
                    resource_id,
                    attempt,
                    retries + 1,
                )
                payload = await self._refresh(payload, resource_id, attempt)
                continue
            self.store.remember(resource_id, payload.revision)
            return result

    async def _refresh(self, payload: RevisionedPayload, resource_id: str, attempt: int) -> RevisionedPayload:
        await self._sleep(self.settle_delay * attempt)
        revision = await self.store.refresh(resource_id)
        refreshed = payload.with_revision(revision)
        await self._sleep(self.backoff_delay * attempt)
        return refreshed


__all__ = ["RetryOrchestrator", "RevisionedPayload", "RunStatePayload", "UpdatePayload"]
