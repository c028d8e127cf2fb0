"""
Tests for sampled-rate statistics, console reporting and the Prometheus exporter.
"""

import sys
import os
import io

from prometheus_client import CollectorRegistry

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from algorithms.orchestrator import PhaseResult
from common.metrics_utils import bytes_to_mb, calculate_rate_stats, samples_to_frame
from common.rate_sampler import RateSample
from observability.prom import SimplePrometheusExporter
from observability.report import (
    ProgressPrinter, format_configuration, format_details, format_phase_line
)


def _samples():
    return [
        RateSample(download_mbps=10.0, upload_mbps=1.0, elapsed_seconds=0.1),
        RateSample(download_mbps=20.0, upload_mbps=2.0, elapsed_seconds=0.2),
        RateSample(download_mbps=30.0, upload_mbps=3.0, elapsed_seconds=0.3),
    ]


def test_bytes_to_mb():
    assert bytes_to_mb(10_000_000) == 10.0
    assert bytes_to_mb(0) == 0.0


def test_samples_to_frame():
    frame = samples_to_frame(_samples())
    assert list(frame.columns) == ['elapsed_seconds', 'download_mbps', 'upload_mbps']
    assert len(frame) == 3


def test_rate_stats():
    stats = calculate_rate_stats(_samples(), 'download')
    assert stats['count'] == 3
    assert stats['mean'] == 20.0
    assert stats['p50'] == 20.0
    assert stats['peak'] == 30.0
    assert 20.0 < stats['p95'] <= 30.0

    upload = calculate_rate_stats(_samples(), 'upload')
    assert upload['peak'] == 3.0


def test_rate_stats_empty():
    stats = calculate_rate_stats([], 'upload')
    assert stats == {'count': 0, 'mean': 0.0, 'p50': 0.0, 'p95': 0.0, 'peak': 0.0}


def test_format_phase_line():
    result = PhaseResult(phase='download', total_bytes=1, elapsed_seconds=1.0, mbps=159.996)
    assert format_phase_line(result) == "Download: 160.00 Mbps"


def test_format_configuration():
    text = format_configuration("http://a/down", "http://a/up", 5, 8)
    assert text.splitlines() == [
        "Configuration:",
        "  Download URL: http://a/down",
        "  Upload URL:   http://a/up",
        "  Duration:     5s",
        "  Connections:  8",
    ]


def test_format_details():
    download = PhaseResult(
        phase='download', total_bytes=10_000_000, elapsed_seconds=0.5, mbps=160.0,
        samples=tuple(_samples()),
    )
    upload = PhaseResult(phase='upload', total_bytes=0, elapsed_seconds=2.0, mbps=0.0, failures=42)

    text = format_details(download, upload)

    assert "  Download Speed: 160.00 Mbps" in text
    assert "  Total Bytes (Down): 10000000 (10.00 MB)" in text
    assert "  Upload Time:       2.00 seconds" in text
    assert "  Failed Transfers:  0 down, 42 up" in text
    assert "Download Samples:  3 (mean 20.00" in text
    assert "Upload Samples" not in text


def test_progress_printer():
    stream = io.StringIO()
    printer = ProgressPrinter(stream)

    printer.begin('upload')
    printer('upload', RateSample(download_mbps=99.0, upload_mbps=12.5))
    printer.finish(PhaseResult(phase='upload', total_bytes=0, elapsed_seconds=1.0, mbps=13.0))

    assert stream.getvalue() == "Upload: \rUpload: 12.50 Mbps\rUpload: 13.00 Mbps\n"


def test_prometheus_exporter():
    registry = CollectorRegistry()
    exporter = SimplePrometheusExporter(port=0, registry=registry)

    exporter.update_throughput('download', 123.4)
    exporter.record_phase('download', 5000, 2)
    exporter.record_phase('download', 1000, 0)

    assert registry.get_sample_value('speedtest_throughput_mbps', {'direction': 'download'}) == 123.4
    assert registry.get_sample_value('speedtest_bytes_total', {'direction': 'download'}) == 6000.0
    assert registry.get_sample_value('speedtest_worker_failures_total', {'direction': 'download'}) == 2.0
