"""
Configuration constants for the HTTP speed test.

This module contains all configuration parameters including:
- Test endpoints
- Test parameters (duration, concurrency)
- Transfer sizes (chunk size, upload payload size)
- Sampling cadence for live progress
- Unit conversion factors
"""

import os

# =============================================================================
# TEST ENDPOINTS
# =============================================================================

DOWNLOAD_URL: str = os.getenv(
    "SPEEDTEST_DOWNLOAD_URL", "https://speed.cloudflare.com/__down?bytes=100000000"
)
UPLOAD_URL: str = os.getenv("SPEEDTEST_UPLOAD_URL", "https://speed.cloudflare.com/__up")

# =============================================================================
# TEST PARAMETERS
# =============================================================================

# Duration of each phase (download, upload)
DURATION_SECONDS: int = int(os.getenv("SPEEDTEST_DURATION_SECONDS", "5"))

# Number of concurrent connections per phase (default: available parallelism)
DEFAULT_CONCURRENCY: int = int(os.getenv("SPEEDTEST_CONCURRENCY", "0")) or (os.cpu_count() or 1)

# =============================================================================
# TRANSFER SIZES
# =============================================================================

DOWNLOAD_CHUNK_SIZE: int = 32768  # Bytes read from the response body per iteration
UPLOAD_PAYLOAD_SIZE: int = 1_000_000  # Body size of every upload request

# urllib3 rejects a zero timeout; a zero-length phase still needs a finite one
MIN_REQUEST_TIMEOUT_SECONDS: float = 0.001

# =============================================================================
# SAMPLING
# =============================================================================

SAMPLE_INTERVAL_SECONDS: float = 0.1  # Live rate sampling cadence (~10/s)
SAMPLE_INITIAL_DELAY_SECONDS: float = 0.01  # Delay before the first sample of a phase

# =============================================================================
# UNIT CONSTANTS
# =============================================================================

BITS_PER_BYTE: int = 8
BITS_PER_MEGABIT: int = 1_000_000
BYTES_PER_MB: int = 1_000_000  # Decimal megabytes, as reported to the user

# =============================================================================
# OBSERVABILITY
# =============================================================================

METRICS_PORT: int = int(os.getenv("SPEEDTEST_METRICS_PORT", "0"))  # 0 = exporter disabled

# =============================================================================
# VERSION
# =============================================================================

VERSION: str = "0.0.1"
