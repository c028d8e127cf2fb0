"""
Phase manager for tracking the current measurement phase and its time anchor.
"""

import time
import logging
from typing import Callable, Optional, Dict, Any

logger = logging.getLogger(__name__)


class PhaseManager:
    """Tracks which phase is running and when it started."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """Initialize the phase manager.

        Args:
            clock: Monotonic time source (defaults to time.monotonic)
        """
        self._clock = clock or time.monotonic
        self.phase_id: str = ""
        self.concurrency: int = 0
        self.phase_start_ts: Optional[float] = None
        self.phase_end_ts: Optional[float] = None

    def begin_phase(self, phase_id: str, concurrency: int) -> float:
        """Begin a new phase and return its start anchor.

        Args:
            phase_id: Phase identifier ("download" or "upload")
            concurrency: Number of workers launched for this phase
        """
        self.phase_id = phase_id
        self.concurrency = concurrency
        self.phase_start_ts = self._clock()
        self.phase_end_ts = None

        logger.info(f"Began phase: {phase_id} with {concurrency} workers")
        return self.phase_start_ts

    def end_phase(self) -> float:
        """Mark the phase finished and return its elapsed seconds."""
        if self.phase_start_ts is None:
            raise RuntimeError("end_phase() called before begin_phase()")
        self.phase_end_ts = self._clock()
        elapsed = self.phase_end_ts - self.phase_start_ts
        logger.info(f"Phase {self.phase_id} finished after {elapsed:.2f}s")
        return elapsed

    def elapsed(self) -> float:
        """Seconds since the current phase started (0 if none)."""
        if self.phase_start_ts is None:
            return 0.0
        end = self.phase_end_ts if self.phase_end_ts is not None else self._clock()
        return end - self.phase_start_ts

    def get_phase_info(self) -> Dict[str, Any]:
        return {
            'phase_id': self.phase_id,
            'concurrency': self.concurrency,
            'phase_start_ts': self.phase_start_ts,
            'phase_end_ts': self.phase_end_ts,
            'phase_duration': self.elapsed(),
        }

    def is_phase_active(self) -> bool:
        return self.phase_start_ts is not None and self.phase_end_ts is None

    def __repr__(self) -> str:
        return f"PhaseManager(phase_id='{self.phase_id}', concurrency={self.concurrency}, active={self.is_phase_active()})"
