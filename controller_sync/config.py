"""Runtime options for the controller service client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    CONF_ACCESS_TOKEN,
    CONF_BACKOFF_DELAY,
    CONF_BASE_URL,
    CONF_MAX_RETRIES,
    CONF_NOT_FOUND_GRACE,
    CONF_POLL_INTERVAL,
    CONF_POLL_MAX_ATTEMPTS,
    CONF_REQUEST_TIMEOUT,
    CONF_SETTLE_DELAY,
    CONF_VERIFY_SSL,
    DEFAULT_BACKOFF_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NOT_FOUND_GRACE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SETTLE_DELAY,
)
from .errors import ValidationError

_DELAY = vol.All(vol.Coerce(float), vol.Range(min=0))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_BASE_URL, default=""): vol.Any(None, vol.All(str, vol.Strip)),
        vol.Optional(CONF_ACCESS_TOKEN, default=None): vol.Any(None, vol.All(str, vol.Strip)),
        vol.Optional(CONF_VERIFY_SSL, default=True): vol.Boolean(),
        vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=1)
        ),
        vol.Optional(CONF_MAX_RETRIES, default=DEFAULT_MAX_RETRIES): vol.All(vol.Coerce(int), vol.Range(min=0, max=10)),
        vol.Optional(CONF_SETTLE_DELAY, default=DEFAULT_SETTLE_DELAY): _DELAY,
        vol.Optional(CONF_BACKOFF_DELAY, default=DEFAULT_BACKOFF_DELAY): _DELAY,
        vol.Optional(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL): _DELAY,
        vol.Optional(CONF_POLL_MAX_ATTEMPTS, default=DEFAULT_POLL_MAX_ATTEMPTS): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(CONF_NOT_FOUND_GRACE, default=DEFAULT_NOT_FOUND_GRACE): _DELAY,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(slots=True)
class ControllerSyncConfig:
    """Validated client options."""

    base_url: str = ""
    access_token: str | None = None
    verify_ssl: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    settle_delay: float = DEFAULT_SETTLE_DELAY
    backoff_delay: float = DEFAULT_BACKOFF_DELAY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    not_found_grace: float = DEFAULT_NOT_FOUND_GRACE

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> ControllerSyncConfig:
        try:
            data = CONFIG_SCHEMA(dict(options or {}))
        except vol.Invalid as err:
            raise ValidationError(f"invalid options: {err}") from err
        return cls(
            base_url=(data[CONF_BASE_URL] or "").rstrip("/"),
            access_token=data[CONF_ACCESS_TOKEN] or None,
            verify_ssl=data[CONF_VERIFY_SSL],
            request_timeout=data[CONF_REQUEST_TIMEOUT],
            max_retries=data[CONF_MAX_RETRIES],
            settle_delay=data[CONF_SETTLE_DELAY],
            backoff_delay=data[CONF_BACKOFF_DELAY],
            poll_interval=data[CONF_POLL_INTERVAL],
            poll_max_attempts=data[CONF_POLL_MAX_ATTEMPTS],
            not_found_grace=data[CONF_NOT_FOUND_GRACE],
        )

    @property
    def ready(self) -> bool:
        return bool(self.base_url)

    def retry_kwargs(self) -> dict[str, Any]:
        return {
            "max_retries": self.max_retries,
            "settle_delay": self.settle_delay,
            "backoff_delay": self.backoff_delay,
        }

    def poll_kwargs(self) -> dict[str, Any]:
        return {
            "interval": self.poll_interval,
            "max_attempts": self.poll_max_attempts,
            "not_found_grace": self.not_found_grace,
        }

    def to_options(self) -> dict[str, Any]:
        options = {
            CONF_BASE_URL: self.base_url,
            CONF_VERIFY_SSL: self.verify_ssl,
            CONF_REQUEST_TIMEOUT: self.request_timeout,
            CONF_MAX_RETRIES: self.max_retries,
            CONF_SETTLE_DELAY: self.settle_delay,
            CONF_BACKOFF_DELAY: self.backoff_delay,
            CONF_POLL_INTERVAL: self.poll_interval,
            CONF_POLL_MAX_ATTEMPTS: self.poll_max_attempts,
            CONF_NOT_FOUND_GRACE: self.not_found_grace,
        }
        if self.access_token:
            options[CONF_ACCESS_TOKEN] = self.access_token
        return options


__all__ = ["CONFIG_SCHEMA", "ControllerSyncConfig"]
