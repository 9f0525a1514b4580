from __future__ import annotations

import pytest

from controller_sync.config import ControllerSyncConfig
from controller_sync.errors import ValidationError


def test_defaults() -> None:
    config = ControllerSyncConfig.from_options({})
    assert config.base_url == ""
    assert not config.ready
    assert config.retry_kwargs() == {"max_retries": 3, "settle_delay": 0.1, "backoff_delay": 0.5}
    assert config.poll_kwargs() == {"interval": 1.0, "max_attempts": 30, "not_found_grace": 0.5}


def test_coercion_and_cleanup() -> None:
    config = ControllerSyncConfig.from_options(
        {
            "base_url": " https://nifi:8443/ ",
            "access_token": "  ",
            "verify_ssl": "false",
            "max_retries": "5",
            "poll_interval": "0.25",
            "unknown": "ignored",
        }
    )
    assert config.base_url == "https://nifi:8443"
    assert config.ready
    assert config.access_token is None
    assert config.verify_ssl is False
    assert config.max_retries == 5
    assert config.poll_interval == 0.25
    assert "unknown" not in config.to_options()


@pytest.mark.parametrize(
    "options",
    [
        {"max_retries": -1},
        {"poll_max_attempts": 0},
        {"settle_delay": "soon"},
        {"request_timeout": 0},
    ],
)
def test_invalid_options(options) -> None:
    with pytest.raises(ValidationError):
        ControllerSyncConfig.from_options(options)


def test_options_roundtrip() -> None:
    config = ControllerSyncConfig.from_options({"base_url": "http://x", "access_token": "t"})
    assert ControllerSyncConfig.from_options(config.to_options()) == config
