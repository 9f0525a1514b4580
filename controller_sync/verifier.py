"""Verification job lifecycle: create, poll, clean up."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from .jobs import VerificationJob
from .poller import VerificationPoller
from .request_ids import require_request_id

_LOGGER = logging.getLogger(__name__)


class VerificationBackend(Protocol):
    async def analyze_config(self, resource_id: str, properties: dict[str, Any] | None = None) -> Any: ...

    async def create_verification_job(
        self,
        resource_id: str,
        properties: dict[str, Any] | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> Any: ...

    async def fetch_verification_job(self, resource_id: str, job_id: str) -> Any: ...

    async def delete_verification_job(self, resource_id: str, job_id: str) -> Any: ...


@dataclass(slots=True)
class VerificationSession:
    """State of one verification interaction on one resource.

    ``try_begin`` checks and sets ``is_verifying`` with no await in between,
    which makes it atomic on the event loop.
    """

    is_verifying: bool = False
    last_error: str | None = None
    result: VerificationJob | None = None
    job_id: str | None = None

    def try_begin(self) -> bool:
        if self.is_verifying:
            return False
        self.is_verifying = True
        self.last_error = None
        self.result = None
        self.job_id = None
        return True

    def finish(self) -> None:
        self.is_verifying = False

    def reset(self) -> None:
        self.is_verifying = False
        self.last_error = None
        self.result = None
        self.job_id = None


class VerificationRequestManager:
    """Create a verification job and resolve its identifier."""

    def __init__(self, backend: VerificationBackend) -> None:
        self._backend = backend

    async def start(self, resource_id: str) -> str:
        # Analysis result is not used
        await self._backend.analyze_config(resource_id, {})
        response = await self._backend.create_verification_job(resource_id, {}, {})
        _LOGGER.debug("Verification request response for %s: %r", resource_id, response)
        job_id = require_request_id(response)
        _LOGGER.debug("Verification request id for %s: %s", resource_id, job_id)
        return job_id


async def cleanup_verification_job(backend: VerificationBackend, resource_id: str, job_id: str) -> bool:
    """Delete a verification job, logging and swallowing any failure."""

    try:
        await backend.delete_verification_job(resource_id, job_id)
    except Exception as err:
        _LOGGER.warning("Failed to clean up verification request %s: %s", job_id, err)
        return False
    return True


class Verifier:
    """Run a full verification for a resource inside a session."""

    def __init__(
        self,
        backend: VerificationBackend,
        poller: VerificationPoller | None = None,
        requests: VerificationRequestManager | None = None,
    ) -> None:
        self._backend = backend
        self.poller = poller or VerificationPoller(backend.fetch_verification_job)
        self.requests = requests or VerificationRequestManager(backend)

    async def run(self, resource_id: str, session: VerificationSession) -> VerificationJob | None:
        """Verify ``resource_id``; returns ``None`` if ``session`` is already busy.

        Errors are recorded on the session and re-raised. The job, once
        created, is deleted exactly once before the session is released.
        """
        if not session.try_begin():
            _LOGGER.debug("Verification already running for %s", resource_id)
            return None

        job_id: str | None = None
        try:
            job_id = await self.requests.start(resource_id)
            session.job_id = job_id
            job = await self.poller.poll(resource_id, job_id)
            session.result = job
            return job
        except Exception as err:
            session.last_error = str(err) or type(err).__name__
            raise
        finally:
            try:
                if job_id is not None:
                    await cleanup_verification_job(self._backend, resource_id, job_id)
            finally:
                session.finish()


__all__ = [
    "VerificationBackend",
    "VerificationRequestManager",
    "VerificationSession",
    "Verifier",
    "cleanup_verification_job",
]
