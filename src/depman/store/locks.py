"""Per-key locks serializing read-then-establish sequences."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class KeyedLocks:
    """Registry of one ``threading.Lock`` per record path.

    Locks are created on first use and kept for the registry's lifetime; the
    number of keys is bounded by the number of distinct dependencies.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, path: str | Path) -> Iterator[None]:
        lock = self._lock_for(str(Path(path).absolute()))
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_PROCESS_LOCKS = KeyedLocks()


def process_locks() -> KeyedLocks:
    """Return the registry shared by every store in this process."""
    return _PROCESS_LOCKS


__all__ = ["KeyedLocks", "process_locks"]
