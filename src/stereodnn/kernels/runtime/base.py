"""
Execution-stream interface shared by the torch and cupy backends.

A stream is an ordered work queue. launch() enqueues one kernel and never
raises a DeviceError: a rejected launch or a fault during execution is
recorded and handed back by get_last_error() / synchronize(), mirroring
cudaGetLastError and cudaStreamSynchronize.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..dims import ElementKind
from ..grid import DEFAULT_LIMITS, DeviceLimits, LaunchGeometry
from ..status import DeviceError


@dataclass(frozen=True)
class Kernel:
    """
    One kernel entry point.

    Attributes:
        name: Base symbol in cuda/kernels.cu
        host_body: Per-thread body executed by TorchStream; called as
            host_body(threads, *args) with tensors bound as TorchBuffer
        kind: Element specialisation, None for kernels with fixed types
    """

    name: str
    host_body: Callable[..., None]
    kind: Optional[ElementKind] = None

    @property
    def symbol(self) -> str:
        if self.kind is None:
            return self.name
        return self.kind.symbol(self.name)


class Stream(ABC):
    """Abstract execution stream."""

    backend: str = "abstract"

    def __init__(self, limits: DeviceLimits = DEFAULT_LIMITS):
        self.limits = limits

    @abstractmethod
    def launch(self, kernel: Kernel, geometry: LaunchGeometry, *args: Any) -> None:
        """Enqueue kernel with the given geometry and arguments."""
        pass

    @abstractmethod
    def get_last_error(self) -> Optional[DeviceError]:
        """Return the most recent launch error (clearing it), or None."""
        pass

    @abstractmethod
    def synchronize(self) -> Optional[DeviceError]:
        """Block until all enqueued work completes; return a fault, or None."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Forget recorded launch errors and faults."""
        pass
