"""
Shared utilities for speed test metrics: unit conversion and sampled-rate statistics.
"""

import pandas as pd
import logging
from typing import Iterable

from configuration import BYTES_PER_MB

logger = logging.getLogger(__name__)


def bytes_to_mb(total_bytes: float) -> float:
    """Convert bytes to decimal megabytes (MB)."""
    return total_bytes / BYTES_PER_MB


def samples_to_frame(samples: Iterable) -> pd.DataFrame:
    """Convert RateSample objects into a DataFrame with one row per sample."""
    return pd.DataFrame(
        [
            {
                'elapsed_seconds': s.elapsed_seconds,
                'download_mbps': s.download_mbps,
                'upload_mbps': s.upload_mbps,
            }
            for s in samples
        ],
        columns=['elapsed_seconds', 'download_mbps', 'upload_mbps'],
    )


def calculate_rate_stats(samples: Iterable, direction: str) -> dict:
    """
    Calculate statistics over the live rate samples of a phase.

    Args:
        samples: RateSample objects collected during the phase
        direction: 'download' or 'upload'

    Returns:
        Dictionary with count, mean, p50, p95 and peak Mbps
    """
    column = f'{direction}_mbps'
    data = samples_to_frame(samples)

    if len(data) == 0:
        return {'count': 0, 'mean': 0.0, 'p50': 0.0, 'p95': 0.0, 'peak': 0.0}

    rates = data[column]

    return {
        'count': len(rates),
        'mean': float(rates.mean()),
        'p50': float(rates.quantile(0.5)),
        'p95': float(rates.quantile(0.95)),
        'peak': float(rates.max()),
    }
