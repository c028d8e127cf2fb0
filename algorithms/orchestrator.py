"""
Two-phase measurement orchestrator: concurrent downloads, then concurrent uploads.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from algorithms.downloader import DownloadWorker
from algorithms.uploader import UploadWorker, generate_test_data
from common.byte_counter import ByteCounter, DOWNLOAD, UPLOAD
from common.phase_manager import PhaseManager
from common.rate_sampler import RateSample, RateSampler
from configuration import (
    DEFAULT_CONCURRENCY,
    DURATION_SECONDS,
    SAMPLE_INTERVAL_SECONDS,
    SAMPLE_INITIAL_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, RateSample], None]


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of one phase, handed to the reporting layer."""

    phase: str
    total_bytes: int
    elapsed_seconds: float
    mbps: float
    workers: int = 0
    failures: int = 0
    samples: Tuple[RateSample, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SpeedTestResult:
    download: PhaseResult
    upload: PhaseResult


class MeasurementOrchestrator:
    """Runs the download phase and then the upload phase against HTTP endpoints."""

    def __init__(
        self,
        download_url: str,
        upload_url: str,
        concurrency: int = None,
        duration_seconds: float = None,
        progress_callback: Optional[ProgressCallback] = None,
        exporter=None,
        sample_interval: float = SAMPLE_INTERVAL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the orchestrator.

        Args:
            download_url: GET endpoint serving the download body
            upload_url: POST endpoint accepting the upload body
            concurrency: Workers per phase (default: from configuration)
            duration_seconds: Time limit of each phase (default: from configuration)
            progress_callback: Called with (phase, RateSample) on every live sample
            exporter: Optional SimplePrometheusExporter
            sample_interval: Seconds between live samples
            clock: Monotonic time source shared by the phase anchor and the sampler
        """
        self.download_url = download_url
        self.upload_url = upload_url
        self.concurrency = concurrency if concurrency is not None else DEFAULT_CONCURRENCY
        self.duration_seconds = duration_seconds if duration_seconds is not None else DURATION_SECONDS
        self.progress_callback = progress_callback
        self.exporter = exporter
        self.sample_interval = sample_interval

        if self.concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {self.concurrency}")
        if self.duration_seconds < 0:
            raise ValueError(f"Duration must be non-negative, got {self.duration_seconds}")

        clock = clock or time.monotonic
        self.counter = ByteCounter()
        self.sampler = RateSampler(clock)
        self.phase_manager = PhaseManager(clock)
        self.payload: Optional[bytes] = None

        logger.info(
            f"Initialized orchestrator: {self.concurrency} workers, "
            f"{self.duration_seconds}s per phase"
        )

    def reset(self) -> None:
        """Start a new run: fresh counter and payload."""
        self.counter = ByteCounter()
        self.payload = generate_test_data()

    def run(self) -> SpeedTestResult:
        """Run both phases with a fresh counter and payload."""
        self.reset()
        download = self.run_download()
        upload = self.run_upload()
        return SpeedTestResult(download=download, upload=upload)

    def run_download(self) -> PhaseResult:
        """Phase 1: one time-bounded GET per worker, joined before the rate is final."""
        self.counter.reset(DOWNLOAD)
        phase_start = self.phase_manager.begin_phase(DOWNLOAD, self.concurrency)

        workers = [DownloadWorker(worker_id=i) for i in range(self.concurrency)]
        threads = [
            threading.Thread(
                target=worker.run,
                args=(self.download_url, self.duration_seconds, self.counter),
                name=f"download-{i}",
                daemon=True,
            )
            for i, worker in enumerate(workers)
        ]

        with self._sampling(DOWNLOAD, phase_start) as samples:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        return self._finish_phase(DOWNLOAD, samples)

    def run_upload(self) -> PhaseResult:
        """Phase 2: workers POST the payload until the stop signal fires after the duration."""
        if self.payload is None:
            self.payload = generate_test_data()

        self.counter.reset(UPLOAD)
        phase_start = self.phase_manager.begin_phase(UPLOAD, self.concurrency)

        stop_signal = threading.Event()
        workers = [UploadWorker(worker_id=i) for i in range(self.concurrency)]
        threads = [
            threading.Thread(
                target=worker.run,
                args=(self.upload_url, self.payload, self.duration_seconds, self.counter, stop_signal),
                name=f"upload-{i}",
                daemon=True,
            )
            for i, worker in enumerate(workers)
        ]

        with self._sampling(UPLOAD, phase_start) as samples:
            for thread in threads:
                thread.start()
            stop_signal.wait(self.duration_seconds)
            stop_signal.set()
            for thread in threads:
                thread.join()

        return self._finish_phase(UPLOAD, samples)

    def _finish_phase(self, phase: str, samples: List[RateSample]) -> PhaseResult:
        elapsed = self.phase_manager.end_phase()
        download_bytes, upload_bytes = self.counter.snapshot()
        final = self.sampler.sample_bytes(download_bytes, upload_bytes, elapsed)
        if phase == DOWNLOAD:
            total_bytes, mbps = download_bytes, final.download_mbps
        else:
            total_bytes, mbps = upload_bytes, final.upload_mbps
        failures = self.counter.failures(phase)

        result = PhaseResult(
            phase=phase,
            total_bytes=total_bytes,
            elapsed_seconds=elapsed,
            mbps=mbps,
            workers=self.concurrency,
            failures=failures,
            samples=tuple(samples),
        )

        if failures:
            logger.warning(f"{phase.capitalize()} phase: {failures} failed transfer attempts")
        logger.info(
            f"{phase.capitalize()} phase: {total_bytes} bytes in {elapsed:.2f}s "
            f"({result.mbps:.2f} Mbps)"
        )

        if self.exporter is not None:
            self.exporter.update_throughput(phase, result.mbps)
            self.exporter.record_phase(phase, total_bytes, failures)

        return result

    def _sampling(self, phase: str, phase_start: float) -> "_SamplingLoop":
        return _SamplingLoop(self, phase, phase_start)

    def _take_sample(self, phase: str, phase_start: float) -> RateSample:
        sample = self.sampler.sample(self.counter, phase_start)
        if self.progress_callback is not None:
            self.progress_callback(phase, sample)
        if self.exporter is not None:
            mbps = sample.download_mbps if phase == DOWNLOAD else sample.upload_mbps
            self.exporter.update_throughput(phase, mbps)
        return sample


class _SamplingLoop:
    """Context manager running the periodic rate sampler on a background thread.

    Sampling only runs when there is a consumer for it (progress callback or
    exporter). The collected samples are available as the ``with`` target.
    """

    def __init__(self, orchestrator: MeasurementOrchestrator, phase: str, phase_start: float):
        self.orchestrator = orchestrator
        self.phase = phase
        self.phase_start = phase_start
        self.samples: List[RateSample] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> List[RateSample]:
        orch = self.orchestrator
        if orch.progress_callback is not None or orch.exporter is not None:
            self._thread = threading.Thread(
                target=self._loop, name=f"{self.phase}-sampler", daemon=True
            )
            self._thread.start()
        return self.samples

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        return False

    def _loop(self):
        if self._stop.wait(SAMPLE_INITIAL_DELAY_SECONDS):
            return
        while not self._stop.wait(self.orchestrator.sample_interval):
            try:
                self.samples.append(self.orchestrator._take_sample(self.phase, self.phase_start))
            except Exception as e:
                logger.error(f"Sampling error during {self.phase} phase: {e}")
