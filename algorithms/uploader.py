"""
Upload worker and test payload for the speed test.
"""

import logging
import threading
from typing import Optional

import requests

from common.byte_counter import UPLOAD
from configuration import UPLOAD_PAYLOAD_SIZE, MIN_REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def generate_test_data(size: int = UPLOAD_PAYLOAD_SIZE) -> bytes:
    """Generate the upload payload: ``size`` bytes where byte ``i`` is ``i % 256``."""
    if size < 0:
        raise ValueError(f"Payload size must be non-negative, got {size}")
    pattern = bytes(range(256))
    return (pattern * (size // len(pattern) + 1))[:size]


class UploadWorker:
    """Repeatedly POSTs the same payload until the stop signal fires."""

    def __init__(self, worker_id: int = 0, session: Optional[requests.Session] = None):
        self.worker_id = worker_id
        self.session = session

        self.bytes_transferred = 0
        self.requests_sent = 0
        self.requests_failed = 0

    def run(
        self,
        url: str,
        payload: bytes,
        time_limit: float,
        counter,
        stop_signal: threading.Event,
    ) -> int:
        """Upload ``payload`` to ``url`` until ``stop_signal`` is set.

        The signal is checked once per iteration, so a request already in
        flight completes (bounded by ``time_limit``) before the worker exits.

        Args:
            url: Upload endpoint
            payload: Immutable request body shared by all workers
            time_limit: Per-request timeout in seconds
            counter: ByteCounter receiving ``len(payload)`` per completed request
            stop_signal: Event shared by all upload workers of the phase

        Returns:
            Bytes uploaded by this worker
        """
        session = self.session or requests.Session()
        timeout = max(time_limit, MIN_REQUEST_TIMEOUT_SECONDS)
        size = len(payload)

        try:
            while not stop_signal.is_set():
                try:
                    request = requests.Request(
                        "POST",
                        url,
                        data=payload,
                        headers={
                            "Content-Type": "application/octet-stream",
                            "Content-Length": str(size),
                        },
                    )
                    prepared = session.prepare_request(request)
                except requests.RequestException as e:
                    logger.warning(f"Upload worker {self.worker_id} invalid request: {e}")
                    self.requests_failed += 1
                    counter.add_failure(UPLOAD)
                    return self.bytes_transferred

                self.requests_sent += 1
                try:
                    response = session.send(prepared, timeout=timeout)
                except requests.RequestException as e:
                    logger.debug(f"Upload worker {self.worker_id} send failed: {e}")
                    self.requests_failed += 1
                    counter.add_failure(UPLOAD)
                    continue

                response.close()
                self.bytes_transferred += size
                counter.add_upload(size)
        finally:
            if self.session is None:
                session.close()

        logger.debug(
            f"Upload worker {self.worker_id} stopped: {self.requests_sent} requests, "
            f"{self.requests_failed} failed, {self.bytes_transferred} bytes"
        )
        return self.bytes_transferred
