"""
Simple Prometheus metrics exporter for the speed test.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)


class SimplePrometheusExporter:
    """Exposes live throughput, byte totals and failure counts per direction."""

    def __init__(self, port: int = 9100, registry: Optional[CollectorRegistry] = None):
        self.port = port
        self.server_started = False
        self.registry = registry or CollectorRegistry()

        self.throughput = Gauge(
            'speedtest_throughput_mbps', 'Current throughput in Mbps',
            ['direction'], registry=self.registry,
        )
        self.bytes_total = Counter(
            'speedtest_bytes', 'Bytes transferred',
            ['direction'], registry=self.registry,
        )
        self.failures_total = Counter(
            'speedtest_worker_failures', 'Failed transfer attempts',
            ['direction'], registry=self.registry,
        )

    def start_server(self):
        """Start the Prometheus HTTP server."""
        if not self.server_started:
            try:
                start_http_server(self.port, registry=self.registry)
                self.server_started = True
                logger.info(f"Prometheus server started on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def update_throughput(self, direction: str, throughput_mbps: float):
        """Update throughput metric."""
        self.throughput.labels(direction=direction).set(throughput_mbps)

    def record_phase(self, direction: str, total_bytes: int, failures: int):
        """Add the totals of a finished phase."""
        self.bytes_total.labels(direction=direction).inc(total_bytes)
        self.failures_total.labels(direction=direction).inc(failures)
