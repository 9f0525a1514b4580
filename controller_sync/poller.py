"""Poll a verification job until it completes, disappears or runs out of cycles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .const import DEFAULT_NOT_FOUND_GRACE, DEFAULT_POLL_INTERVAL, DEFAULT_POLL_MAX_ATTEMPTS
from .errors import VerificationDeletedError, VerificationTimeoutError
from .jobs import VerificationJob
from .utils.logging import warn_once

_LOGGER = logging.getLogger(__name__)

NOT_FOUND_STATUS = 404

JobFetcher = Callable[[str, str], Awaitable[Mapping[str, Any]]]
Sleep = Callable[[float], Awaitable[Any]]


def is_not_found(error: BaseException) -> bool:
    return getattr(error, "status", None) == NOT_FOUND_STATUS


class VerificationPoller:
    """Sequential, fixed-interval polling of one verification job.

    A 404 after at least one successful read returns that last snapshot,
    since jobs are often collected right after they finish. A 404 before
    any read gets one grace retry. Other fetch errors are logged and
    polling goes on. Once ``max_attempts`` cycles pass the last snapshot is
    returned, or :class:`VerificationTimeoutError` if there never was one.
    """

    def __init__(
        self,
        fetch: JobFetcher,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        not_found_grace: float = DEFAULT_NOT_FOUND_GRACE,
        sleep: Sleep | None = None,
    ) -> None:
        self._fetch = fetch
        self.interval = interval
        self.max_attempts = max(1, int(max_attempts))
        self.not_found_grace = not_found_grace
        self._sleep = sleep or asyncio.sleep

    async def poll(self, resource_id: str, job_id: str) -> VerificationJob:
        last_good: VerificationJob | None = None
        attempts = 0
        while attempts < self.max_attempts:
            await self._sleep(self.interval)
            try:
                payload = await self._fetch(resource_id, job_id)
            except Exception as err:
                if is_not_found(err):
                    return await self._handle_missing(resource_id, job_id, last_good)
                attempts += 1
                warn_once(
                    _LOGGER,
                    f"verification_poll_{job_id}",
                    f"Error polling verification request {job_id}: {err}",
                )
                continue

            last_good = VerificationJob.from_payload(payload)
            if last_good.is_complete:
                _LOGGER.debug("Verification %s complete after %s polls", job_id, attempts + 1)
                return last_good
            attempts += 1

        if last_good is None:
            raise VerificationTimeoutError()
        _LOGGER.debug("Verification %s never completed; returning last snapshot", job_id)
        return last_good

    async def _handle_missing(
        self,
        resource_id: str,
        job_id: str,
        last_good: VerificationJob | None,
    ) -> VerificationJob:
        if last_good is not None:
            return last_good
        await self._sleep(self.not_found_grace)
        try:
            payload = await self._fetch(resource_id, job_id)
        except Exception as err:
            raise VerificationDeletedError() from err
        return VerificationJob.from_payload(payload)


__all__ = ["VerificationPoller", "is_not_found"]
