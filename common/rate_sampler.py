"""
Instantaneous throughput derived from byte counters and elapsed phase time.
"""

import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from configuration import BITS_PER_BYTE, BITS_PER_MEGABIT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateSample:
    """Point-in-time bandwidth estimate in megabits per second."""

    download_mbps: float = 0.0
    upload_mbps: float = 0.0
    elapsed_seconds: float = 0.0


def bytes_to_mbps(total_bytes: int, elapsed_seconds: float) -> float:
    """Convert a byte count over a duration to Mbps (``bits / s / 1e6``)."""
    return total_bytes * BITS_PER_BYTE / elapsed_seconds / BITS_PER_MEGABIT


class RateSampler:
    """Computes rates from a ByteCounter relative to a phase start anchor.

    When the elapsed time is not positive the previous rates are returned
    unchanged, so callers never see a division error, NaN or infinity.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._last = RateSample()
        self._lock = threading.Lock()

    @property
    def last(self) -> RateSample:
        with self._lock:
            return self._last

    def now(self) -> float:
        return self._clock()

    def sample(self, counter, phase_start: float) -> RateSample:
        """Sample both directions of ``counter`` since ``phase_start``.

        Args:
            counter: ByteCounter to read
            phase_start: Phase anchor, from the same clock as the sampler

        Returns:
            RateSample with download and upload Mbps
        """
        elapsed = self._clock() - phase_start
        down, up = counter.snapshot()
        return self.sample_bytes(down, up, elapsed)

    def sample_bytes(self, download_bytes: int, upload_bytes: int, elapsed: float) -> RateSample:
        """Compute a sample from raw byte counts and an elapsed duration."""
        with self._lock:
            if elapsed <= 0:
                return self._last
            self._last = RateSample(
                download_mbps=bytes_to_mbps(download_bytes, elapsed),
                upload_mbps=bytes_to_mbps(upload_bytes, elapsed),
                elapsed_seconds=elapsed,
            )
            return self._last
