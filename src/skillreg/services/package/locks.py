# src/skillreg/services/package/locks.py
from __future__ import annotations
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from skillreg.domain.errors import LockTimeoutError


class DestinationLocks:
    """Таблица блокировок записи, по одной на каталог назначения.

    Locks are keyed by the resolved destination path, so two spellings of the
    same directory share one lock while different directories never contend.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._locks: Dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, destination: Path) -> threading.Lock:
        key = Path(destination).resolve()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def is_locked(self, destination: Path) -> bool:
        return self._lock_for(destination).locked()

    @contextmanager
    def hold(self, destination: Path, *, package: str = "-", timeout: Optional[float] = None) -> Iterator[None]:
        """Holds the destination's write lock; released on every exit path."""
        lock = self._lock_for(destination)
        wait = self.timeout if timeout is None else timeout
        acquired = lock.acquire() if wait is None else lock.acquire(timeout=wait)
        if not acquired:
            raise LockTimeoutError(str(destination), float(wait or 0), package=package)
        try:
            yield
        finally:
            lock.release()


class CancelToken:
    """Cooperative cancellation for an in-flight install."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
