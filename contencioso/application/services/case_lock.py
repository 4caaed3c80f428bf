"""Per-case locks.

At most one transition per case is in flight at any time. Transitions of
different cases proceed in parallel.

A case's lock lives only while some thread holds or waits for it, so the
registry stays as small as the number of cases being worked on.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID


class _CaseLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Threads holding or waiting for the lock
        self.holders = 0


class CaseLockRegistry:
    """Hands out one ``threading.Lock`` per case ID."""

    def __init__(self) -> None:
        self._locks: dict[UUID, _CaseLock] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def hold(self, case_id: UUID) -> Iterator[None]:
        """Hold the case lock for the duration of the block."""
        with self._registry_lock:
            entry = self._locks.get(case_id)
            if entry is None:
                entry = self._locks[case_id] = _CaseLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[case_id]

    def is_held(self, case_id: UUID) -> bool:
        """Whether some thread currently holds the lock of ``case_id``."""
        with self._registry_lock:
            entry = self._locks.get(case_id)
            return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
