# src/lighter_engine/core/utils/idempotency.py
from __future__ import annotations

import hashlib
import threading
import time


def make_tx_hash(*parts: object, max_len: int = 64) -> str:
    raw = "|".join(str(p) for p in parts if p is not None and p != "")
    h = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    return h[:max_len]


class ClientOrderIndexer:
    """
    Millisecond-timestamp client order indices, strictly increasing per
    process even when two orders land in the same millisecond.
    """

    def __init__(self, clock=time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            self._last = now_ms if now_ms > self._last else self._last + 1
            return self._last
