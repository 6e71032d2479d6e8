"""
CUDA execution of kernel launches through CuPy.

The kernels in cuda/kernels.cu are compiled once per device with NVRTC
(cupy.RawModule) and enqueued on a CUDA stream. Buffers may be cupy arrays
or torch CUDA tensors (shared zero-copy through __cuda_array_interface__).
"""

import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
import torch

from ..cuda import load_source
from ..dims import Dim3
from ..grid import DEFAULT_LIMITS, DeviceLimits, LaunchGeometry
from ..status import DeviceError, ExecutionFault, LaunchError
from .base import Kernel, Stream

logger = logging.getLogger(__name__)

try:
    import cupy as cp
    CUPY_AVAILABLE = True
except ImportError:
    cp = None
    CUPY_AVAILABLE = False
    logger.debug("CuPy not available - cupy stream backend disabled")

# device id -> compiled module
_MODULE_CACHE: Dict[int, "cp.RawModule"] = {}


def _require_cupy() -> None:
    if not CUPY_AVAILABLE:
        raise RuntimeError(
            "CuPy not available - cannot use the cupy backend. "
            "Install the CUDA extra: pip install 'stereodnn[cuda]'"
        )


def _device_errors() -> Tuple[type, ...]:
    return (cp.cuda.driver.CUDADriverError, cp.cuda.runtime.CUDARuntimeError)


def get_module() -> "cp.RawModule":
    """Compiled kernel module for the current CUDA device."""
    _require_cupy()
    device_id = cp.cuda.Device().id
    module = _MODULE_CACHE.get(device_id)
    if module is None:
        logger.debug(f"Compiling stereodnn kernels for CUDA device {device_id}")
        module = cp.RawModule(code=load_source(), options=("--std=c++11",))
        module.compile()
        _MODULE_CACHE[device_id] = module
    return module


def device_limits(device_id: Optional[int] = None) -> DeviceLimits:
    """Launch limits reported by a CUDA device."""
    _require_cupy()
    device = cp.cuda.Device(device_id)
    attrs = device.attributes
    return DeviceLimits(
        max_threads_per_block=attrs["MaxThreadsPerBlock"],
        max_block=Dim3(attrs["MaxBlockDimX"], attrs["MaxBlockDimY"], attrs["MaxBlockDimZ"]),
        max_grid=Dim3(attrs["MaxGridDimX"], attrs["MaxGridDimY"], attrs["MaxGridDimZ"]),
    )


class CupyStream(Stream):
    """
    Execution stream on a real CUDA stream.

    Args:
        stream: cupy Stream/ExternalStream to enqueue on; a new non-blocking
            stream is created when omitted
        limits: Device limits launches are validated against

    Example:
        ```python
        stream = CupyStream.from_torch()  # share torch's current stream
        status = fp32_to_fp16(src, dst, src.numel(), stream)
        ```
    """

    backend = "cupy"

    def __init__(self, stream: Optional[Any] = None, limits: DeviceLimits = DEFAULT_LIMITS):
        _require_cupy()
        super().__init__(limits)
        self.stream = stream if stream is not None else cp.cuda.Stream(non_blocking=True)
        self._launch_error: Optional[LaunchError] = None
        # Symbol of the most recent launch, blamed for faults found by synchronize().
        self._last_kernel: Optional[str] = None

    @classmethod
    def from_torch(
        cls,
        torch_stream: Optional["torch.cuda.Stream"] = None,
        device: Optional[torch.device] = None,
        **kwargs,
    ) -> "CupyStream":
        """Wrap a torch CUDA stream (default: torch's current stream on device)."""
        _require_cupy()
        torch_stream = torch_stream or torch.cuda.current_stream(device)
        return cls(cp.cuda.ExternalStream(torch_stream.cuda_stream), **kwargs)

    def _convert(self, value: Any, index: int) -> Any:
        if isinstance(value, bool):
            raise LaunchError(f"argument {index} has unsupported type bool")
        if isinstance(value, int):
            return np.int32(value)
        if isinstance(value, torch.Tensor):
            if not value.is_cuda:
                raise LaunchError(f"argument {index} is a host tensor, expected device memory")
            if not value.is_contiguous():
                raise LaunchError(f"argument {index} is not a contiguous buffer")
            return cp.asarray(value)
        if isinstance(value, cp.ndarray):
            if not value.flags.c_contiguous:
                raise LaunchError(f"argument {index} is not a contiguous buffer")
            return value
        raise LaunchError(f"argument {index} has unsupported type {type(value).__name__}")

    def launch(self, kernel: Kernel, geometry: LaunchGeometry, *args: Any) -> None:
        self._last_kernel = kernel.symbol

        problem = geometry.validate(self.limits)
        if problem is not None:
            self._launch_error = LaunchError(f"invalid configuration: {problem}", kernel.symbol)
            return

        try:
            converted = tuple(self._convert(arg, i) for i, arg in enumerate(args))
            function = get_module().get_function(kernel.symbol)
            logger.debug(f"{kernel.symbol}: {geometry} on {self.stream}")
            with self.stream:
                function(geometry.grid.as_tuple(), geometry.block.as_tuple(), converted)
        except LaunchError as e:
            e.kernel = kernel.symbol
            self._launch_error = e
        except cp.cuda.compiler.CompileException as e:
            self._launch_error = LaunchError(f"compilation failed: {e}", kernel.symbol)
        except _device_errors() as e:
            # Includes sticky faults left by earlier kernels on this context.
            self._launch_error = LaunchError(str(e), kernel.symbol)

    def get_last_error(self) -> Optional[DeviceError]:
        error, self._launch_error = self._launch_error, None
        return error

    def synchronize(self) -> Optional[DeviceError]:
        try:
            self.stream.synchronize()
        except _device_errors() as e:
            return ExecutionFault(str(e), self._last_kernel)
        return None

    def reset(self) -> None:
        self._launch_error = None
        self._last_kernel = None

    def __repr__(self) -> str:
        return f"CupyStream(stream={self.stream})"
