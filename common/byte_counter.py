"""
Thread-safe byte counters shared by all workers of a phase.
"""

import threading
import logging
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

DOWNLOAD = "download"
UPLOAD = "upload"
DIRECTIONS = (DOWNLOAD, UPLOAD)


class _LockedInt:
    """Integer guarded by its own lock so each counter can be updated independently."""

    __slots__ = ("_value", "_lock")

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def add(self, n: int) -> int:
        with self._lock:
            self._value += n
            return self._value

    def load(self) -> int:
        with self._lock:
            return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value


class ByteCounter:
    """Accumulates bytes transferred per direction.

    Every counter has a dedicated lock, so a download worker never contends
    with an upload worker and a snapshot never blocks writers for longer than
    a single read. Snapshots are per-counter consistent only; there is no
    cross-counter transaction.
    """

    def __init__(self):
        self._bytes: Dict[str, _LockedInt] = {d: _LockedInt() for d in DIRECTIONS}
        self._failures: Dict[str, _LockedInt] = {d: _LockedInt() for d in DIRECTIONS}

    def _counter(self, table: Dict[str, _LockedInt], which: str) -> _LockedInt:
        try:
            return table[which]
        except KeyError:
            raise ValueError(f"Unknown counter: {which!r}. Must be one of {DIRECTIONS}") from None

    def add_download(self, n: int) -> int:
        """Add ``n`` downloaded bytes; returns the new total."""
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        return self._bytes[DOWNLOAD].add(n)

    def add_upload(self, n: int) -> int:
        """Add ``n`` uploaded bytes; returns the new total."""
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        return self._bytes[UPLOAD].add(n)

    def add_failure(self, which: str) -> int:
        """Record one failed transfer attempt for a direction."""
        return self._counter(self._failures, which).add(1)

    @property
    def download_bytes(self) -> int:
        return self._bytes[DOWNLOAD].load()

    @property
    def upload_bytes(self) -> int:
        return self._bytes[UPLOAD].load()

    def failures(self, which: str) -> int:
        return self._counter(self._failures, which).load()

    def snapshot(self) -> Tuple[int, int]:
        """Return ``(download_bytes, upload_bytes)``."""
        return self._bytes[DOWNLOAD].load(), self._bytes[UPLOAD].load()

    def reset(self, which: str) -> None:
        """Zero the byte counter and failure tally of a direction.

        Must only be called while no worker of that direction is running.
        """
        self._counter(self._bytes, which).store(0)
        self._failures[which].store(0)
        logger.debug(f"Reset {which} counter")

    def __repr__(self) -> str:
        down, up = self.snapshot()
        return f"ByteCounter(download={down}, upload={up})"
