"""
Console reporting for the speed test: live progress line and result blocks.
"""

import sys
import threading
from typing import List, TextIO

from common.byte_counter import DOWNLOAD
from common.metrics_utils import bytes_to_mb, calculate_rate_stats


def _label(phase: str) -> str:
    return "Download" if phase == DOWNLOAD else "Upload"


class ProgressPrinter:
    """Rewrites a single console line with the latest sampled rate of the running phase."""

    def __init__(self, stream: TextIO = None):
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()

    def begin(self, phase: str):
        with self._lock:
            self.stream.write(f"{_label(phase)}: ")
            self.stream.flush()

    def __call__(self, phase: str, sample):
        mbps = sample.download_mbps if phase == DOWNLOAD else sample.upload_mbps
        with self._lock:
            self.stream.write(f"\r{_label(phase)}: {mbps:.2f} Mbps")
            self.stream.flush()

    def finish(self, result):
        with self._lock:
            self.stream.write(f"\r{_label(result.phase)}: {result.mbps:.2f} Mbps\n")
            self.stream.flush()


def format_phase_line(result) -> str:
    return f"{_label(result.phase)}: {result.mbps:.2f} Mbps"


def format_configuration(download_url: str, upload_url: str, duration_seconds: float, concurrency: int) -> str:
    lines = [
        "Configuration:",
        f"  Download URL: {download_url}",
        f"  Upload URL:   {upload_url}",
        f"  Duration:     {duration_seconds:g}s",
        f"  Connections:  {concurrency}",
    ]
    return "\n".join(lines) + "\n"


def format_details(download, upload) -> str:
    """Render the detailed results block shown with ``--info``."""
    lines: List[str] = [
        "Details:",
        f"  Download Speed: {download.mbps:.2f} Mbps",
        f"  Upload Speed:   {upload.mbps:.2f} Mbps",
        f"  Total Bytes (Down): {download.total_bytes} ({bytes_to_mb(download.total_bytes):.2f} MB)",
        f"  Total Bytes (Up):   {upload.total_bytes} ({bytes_to_mb(upload.total_bytes):.2f} MB)",
        f"  Download Time:     {download.elapsed_seconds:.2f} seconds",
        f"  Upload Time:       {upload.elapsed_seconds:.2f} seconds",
        f"  Failed Transfers:  {download.failures} down, {upload.failures} up",
    ]

    for result in (download, upload):
        if not result.samples:
            continue
        stats = calculate_rate_stats(result.samples, result.phase)
        lines.append(
            f"  {_label(result.phase)} Samples:  {stats['count']} "
            f"(mean {stats['mean']:.2f}, p50 {stats['p50']:.2f}, "
            f"p95 {stats['p95']:.2f}, peak {stats['peak']:.2f} Mbps)"
        )

    return "\n".join(lines) + "\n"
