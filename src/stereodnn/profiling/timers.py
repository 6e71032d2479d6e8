"""Stream-aware timing utilities for kernel benchmarking."""

import time
import threading
from typing import Dict, List, Optional
from dataclasses import dataclass
from collections import defaultdict

import torch

from ..kernels.runtime.base import Stream
from ..kernels.runtime.cupy_stream import CupyStream
from ..kernels.runtime.torch_stream import TorchStream
from ..kernels.status import DeviceError


@dataclass
class TimingRecord:
    """Single timing measurement."""

    name: str
    elapsed_ms: float
    num_elements: int  # Output elements, for per-element normalisation


class StreamTimer:
    """
    Timer for work enqueued on an execution stream.

    CUDA streams are timed with start/end events recorded on the stream itself
    (torch.cuda.Event for a TorchStream on a CUDA device, cupy.cuda.Event for a
    CupyStream). A CPU TorchStream runs eagerly and is timed with
    time.perf_counter(). The stream is synchronised on entry and exit, and a
    fault reported by the exit barrier is kept in `fault` rather than raised.

    Usage:
        with StreamTimer(stream) as timer:
            compute_cost_volume(...)
        print(timer.elapsed_ms())
    """

    def __init__(self, stream: Stream, enabled: bool = True):
        self.stream = stream
        self.enabled = enabled
        self.fault: Optional[DeviceError] = None
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        self._cuda_stream = None
        self._events = None
        if not enabled:
            return

        if isinstance(stream, CupyStream):
            import cupy as cp

            self._cuda_stream = stream.stream
            self._events = (cp.cuda.Event(), cp.cuda.Event())
            self._elapsed = cp.cuda.get_elapsed_time
        elif isinstance(stream, TorchStream) and stream.device.type == "cuda":
            self._cuda_stream = stream.torch_stream or torch.cuda.current_stream(stream.device)
            self._events = (
                torch.cuda.Event(enable_timing=True),
                torch.cuda.Event(enable_timing=True),
            )
            self._elapsed = lambda start, end: start.elapsed_time(end)

    @property
    def uses_events(self) -> bool:
        return self._events is not None

    def __enter__(self):
        if not self.enabled:
            return self
        self.stream.synchronize()
        if self.uses_events:
            self._events[0].record(self._cuda_stream)
        else:
            self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        if not self.enabled:
            return
        if self.uses_events:
            self._events[1].record(self._cuda_stream)
            self._events[1].synchronize()
        self.fault = self.stream.synchronize()
        if not self.uses_events:
            self.end_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if not self.enabled:
            return 0.0
        if self.uses_events:
            return float(self._elapsed(*self._events))
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000.0


class TimingAccumulator:
    """
    Thread-safe accumulator for timing measurements.

    Collects timing records from repeated runs and provides aggregate statistics.
    """

    def __init__(self):
        self.records: List[TimingRecord] = []
        self.lock = threading.Lock()

    def add(self, name: str, elapsed_ms: float, num_elements: int):
        """Add timing record (thread-safe)."""
        with self.lock:
            self.records.append(
                TimingRecord(name=name, elapsed_ms=elapsed_ms, num_elements=num_elements)
            )

    def get_stats(self) -> Dict[str, Dict[str, float]]:
        """
        Compute aggregate statistics per operation.

        Returns:
            Dict mapping operation name to stats dict containing:
                - total_ms: Total time across all runs
                - count: Number of measurements
                - mean_ms: Average time per measurement
                - min_ms: Minimum time
                - max_ms: Maximum time
                - total_elements: Total output elements produced
                - ns_per_element: Time per output element
        """
        stats = defaultdict(
            lambda: {
                "total_ms": 0.0,
                "count": 0,
                "mean_ms": 0.0,
                "min_ms": float("inf"),
                "max_ms": 0.0,
                "total_elements": 0,
            }
        )

        with self.lock:
            for record in self.records:
                s = stats[record.name]
                s["total_ms"] += record.elapsed_ms
                s["count"] += 1
                s["min_ms"] = min(s["min_ms"], record.elapsed_ms)
                s["max_ms"] = max(s["max_ms"], record.elapsed_ms)
                s["total_elements"] += record.num_elements

        for name, s in stats.items():
            if s["count"] > 0:
                s["mean_ms"] = s["total_ms"] / s["count"]
            if s["total_elements"] > 0:
                s["ns_per_element"] = s["total_ms"] * 1e6 / s["total_elements"]
            else:
                s["ns_per_element"] = 0.0

        return dict(stats)

    def clear(self):
        """Clear all timing records."""
        with self.lock:
            self.records.clear()

    def __len__(self) -> int:
        """Get number of timing records."""
        with self.lock:
            return len(self.records)
