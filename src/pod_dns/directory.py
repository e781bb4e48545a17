"""In-memory pod directory shared by the synchronizer and query handlers."""
from __future__ import annotations

import threading
from typing import Iterable

from .records import PodRecord


class PodDirectory:
    """Concurrency-safe holder of the current pod record snapshot.

    The snapshot is an immutable tuple whose reference is swapped on
    `replace`. The lock covers only the swap and the read of that
    reference, so readers never wait on a fetch or on record building.
    """

    def __init__(self, records: Iterable[PodRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: tuple[PodRecord, ...] = tuple(records)

    def replace(self, records: Iterable[PodRecord]) -> None:
        """Install a new complete snapshot, discarding the previous one."""
        snapshot = tuple(records)
        with self._lock:
            self._records = snapshot

    def snapshot(self) -> list[PodRecord]:
        """Return an independent copy of the current records."""
        with self._lock:
            current = self._records
        return list(current)

    def __len__(self) -> int:
        """Number of records in the current snapshot."""
        with self._lock:
            return len(self._records)
