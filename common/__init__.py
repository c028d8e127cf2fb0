"""
Common utilities for the speed test.
"""

from .byte_counter import ByteCounter
from .phase_manager import PhaseManager
from .rate_sampler import RateSample, RateSampler

__all__ = ['ByteCounter', 'PhaseManager', 'RateSample', 'RateSampler']
