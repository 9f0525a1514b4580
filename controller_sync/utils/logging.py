from __future__ import annotations

import logging
import time

_LAST: dict[str, float] = {}
_MAX_CODES = 1024


def warn_once(logger: logging.Logger, code: str, message: str, window: int = 60) -> bool:
    """Log a warning at most once per ``window`` seconds for ``code``.

    Returns ``True`` when the warning was emitted. The cache of codes is
    bounded; the oldest code is evicted once it is full.
    """
    now = time.monotonic()
    last = _LAST.get(code)
    if last is not None and now - last <= window:
        logger.debug("%s: %s", code, message)
        return False
    if last is None and len(_LAST) >= _MAX_CODES:
        oldest = min(_LAST, key=_LAST.get)
        _LAST.pop(oldest, None)
    _LAST[code] = now
    logger.warning("%s: %s", code, message)
    return True


def reset_warnings() -> None:
    """Forget every recorded code."""
    _LAST.clear()
