"""
Local HTTP endpoints used by the network tests.

GET  /bytes/<n>       -> body of exactly n bytes
GET  /stall/<n>       -> sends n bytes, then stalls with the connection open
POST /upload          -> reads and discards the body, counts received bytes
"""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

STALL_SECONDS = 10.0
WRITE_CHUNK = 65536


class _SpeedTestHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def do_GET(self):
        parts = self.path.strip("/").split("/")
        if len(parts) != 2 or parts[0] not in ("bytes", "stall") or not parts[1].isdigit():
            self.send_error(404)
            return

        size = int(parts[1])
        stall = parts[0] == "stall"

        self.send_response(200)
        self.send_header("Content-Type", "application/octet-stream")
        # A stalled body never reaches its declared length
        self.send_header("Content-Length", str(size * 2 if stall else size))
        self.end_headers()

        remaining = size
        block = b"\x00" * WRITE_CHUNK
        while remaining > 0:
            n = min(remaining, WRITE_CHUNK)
            self.wfile.write(block[:n])
            remaining -= n
        self.wfile.flush()

        if stall:
            deadline = time.monotonic() + STALL_SECONDS
            while time.monotonic() < deadline and not self.server.stopping.is_set():
                time.sleep(0.05)
            self.close_connection = True

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        remaining = length
        while remaining > 0:
            data = self.rfile.read(min(remaining, WRITE_CHUNK))
            if not data:
                break
            remaining -= len(data)

        with self.server.lock:
            self.server.upload_requests += 1
            self.server.upload_bytes += length - remaining
            self.server.content_lengths.append(self.headers.get("Content-Length"))

        self.send_response(200)
        self.send_header("Content-Length", "0")
        self.end_headers()


class LocalSpeedTestServer:
    """Threaded HTTP server bound to an ephemeral localhost port."""

    def __init__(self):
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), _SpeedTestHandler)
        self.httpd.daemon_threads = True
        self.httpd.stopping = threading.Event()
        self.httpd.lock = threading.Lock()
        self.httpd.upload_requests = 0
        self.httpd.upload_bytes = 0
        self.httpd.content_lengths = []
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def base_url(self) -> str:
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}"

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @property
    def upload_requests(self) -> int:
        with self.httpd.lock:
            return self.httpd.upload_requests

    @property
    def upload_bytes(self) -> int:
        with self.httpd.lock:
            return self.httpd.upload_bytes

    @property
    def content_lengths(self):
        with self.httpd.lock:
            return list(self.httpd.content_lengths)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self.httpd.stopping.set()
        self.httpd.shutdown()
        self.httpd.server_close()


# Port 1 (tcpmux) is not served on test hosts; connections are refused at once
UNREACHABLE_URL = "http://127.0.0.1:1/"
