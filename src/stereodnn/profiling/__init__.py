"""
Profiling utilities for the stereodnn kernels.

Measures the runtime of kernel operations on an execution stream, used by
`stereodnn benchmark`.
"""

from .timers import StreamTimer, TimingAccumulator, TimingRecord

__all__ = [
    "StreamTimer",
    "TimingAccumulator",
    "TimingRecord",
]
