"""Shared snapshot store read by request handlers and written by the publisher."""

import threading

from pycpu.models import EMPTY_SNAPSHOT, Snapshot


class SharedState:
    """
    Holds the latest Snapshot for one writer and many concurrent readers.

    Snapshots are immutable, so the lock only guards the reference swap.
    Readers never see a partially written snapshot and never hold the lock
    long enough to starve the writer.
    """

    def __init__(self, initial: Snapshot = EMPTY_SNAPSHOT) -> None:
        self._lock = threading.Lock()
        self._snapshot = initial
        self._version = 0

    @property
    def version(self) -> int:
        """Number of completed writes."""
        with self._lock:
            return self._version

    def read(self) -> Snapshot:
        """Return the most recently written snapshot."""
        with self._lock:
            return self._snapshot

    def write(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1
