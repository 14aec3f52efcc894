# src/lighter_engine/core/engine/symbol_locks.py
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator


class SymbolLocks:
    """
    One lock per market key. Locks are created lazily and never dropped,
    so two callers on the same key always share the same lock object.
    """

    def __init__(self, key_fn: Callable[[str], str] = lambda s: str(s).strip().upper()) -> None:
        self._key_fn = key_fn
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, symbol: str) -> threading.Lock:
        key = self._key_fn(symbol)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, symbol: str) -> Iterator[None]:
        lock = self.lock_for(symbol)
        with lock:
            yield
