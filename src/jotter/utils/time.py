"""Time helpers."""

from __future__ import annotations

import datetime as dt
import threading
import time

_clock_lock = threading.Lock()
_last_ms = 0


def now_ms() -> int:
    """Epoch milliseconds, strictly increasing within the process."""
    global _last_ms
    with _clock_lock:
        current = int(time.time() * 1000)
        if current <= _last_ms:
            current = _last_ms + 1
        _last_ms = current
        return current


def from_ms(value: int) -> dt.datetime:
    return dt.datetime.fromtimestamp(value / 1000, tz=dt.UTC)
