"""
Download worker for the speed test.
"""

import logging
import threading
from typing import Optional

import requests

from common.byte_counter import DOWNLOAD
from configuration import DOWNLOAD_CHUNK_SIZE, MIN_REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class DownloadWorker:
    """Performs one time-bounded GET, streaming the body into a discard sink.

    The transfer runs on its own thread so that the deadline does not depend on
    the transport honouring its timeout: ``run`` waits for either the transfer
    to finish or ``time_limit`` to elapse, whichever comes first, and returns
    whatever was accumulated at that point.
    """

    def __init__(
        self,
        worker_id: int = 0,
        session: Optional[requests.Session] = None,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    ):
        self.worker_id = worker_id
        self.session = session
        self.chunk_size = chunk_size

        self.bytes_transferred = 0
        self.failed = False
        self._done = threading.Event()
        self._cancel = threading.Event()

    def run(self, url: str, time_limit: float, counter) -> int:
        """Download from ``url`` for at most ``time_limit`` seconds.

        Args:
            url: Download endpoint
            time_limit: Deadline and request timeout in seconds
            counter: ByteCounter receiving every chunk as it is read

        Returns:
            Bytes transferred before completion or the deadline
        """
        transfer = threading.Thread(
            target=self._transfer,
            args=(url, time_limit, counter),
            name=f"download-transfer-{self.worker_id}",
            daemon=True,
        )
        transfer.start()

        if not self._done.wait(max(time_limit, 0)):
            self._cancel.set()
            logger.debug(
                f"Download worker {self.worker_id} hit {time_limit}s deadline "
                f"after {self.bytes_transferred} bytes"
            )

        return self.bytes_transferred

    def _transfer(self, url: str, time_limit: float, counter) -> None:
        session = self.session or requests.Session()
        try:
            try:
                request = requests.Request(
                    "GET", url, headers={"Accept-Encoding": "identity"}
                )
                prepared = session.prepare_request(request)
            except requests.RequestException as e:
                logger.warning(f"Download worker {self.worker_id} invalid request: {e}")
                self._fail(counter)
                return

            try:
                response = session.send(
                    prepared,
                    stream=True,
                    timeout=max(time_limit, MIN_REQUEST_TIMEOUT_SECONDS),
                )
            except requests.RequestException as e:
                logger.debug(f"Download worker {self.worker_id} connection failed: {e}")
                self._fail(counter)
                return

            with response:
                self._drain(response, counter)
        finally:
            if self.session is None:
                session.close()
            self._done.set()

    def _drain(self, response: requests.Response, counter) -> None:
        """Read the body chunk by chunk, counting every chunk and discarding it."""
        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if self._cancel.is_set():
                    break
                n = len(chunk)
                if n == 0:
                    break
                self.bytes_transferred += n
                counter.add_download(n)
        except (requests.RequestException, OSError) as e:
            # Early termination, the bytes read so far still count
            logger.debug(
                f"Download worker {self.worker_id} read error after "
                f"{self.bytes_transferred} bytes: {e}"
            )
            self._fail(counter)

    def _fail(self, counter) -> None:
        # Errors surfacing after the deadline are part of normal termination
        if self._cancel.is_set():
            return
        self.failed = True
        counter.add_failure(DOWNLOAD)
