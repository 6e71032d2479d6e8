"""
PyTorch execution of kernel launches.

TorchStream runs a kernel's per-thread body once, vectorised over the global
coordinates of every thread in the launched grid (threads past the tensor
extent included; the body masks them out exactly as the CUDA code returns
early). Works on any torch device, so the kernels can be exercised without
a GPU.

Fault model:
- Geometry outside DeviceLimits, or an argument that is not a dense buffer
  on the stream's device, is a launch error: the kernel does not run.
- A load or store outside a buffer is an execution fault. It is visible to
  synchronize() at once, but to get_last_error() only from the next launch
  on, since on a device the kernel would still be running when the launch
  call returns. Faults are sticky: later launches are refused until reset().
"""

import logging
from contextlib import nullcontext
from typing import Any, Optional, Union

import torch

from ..grid import DEFAULT_LIMITS, DeviceLimits, LaunchGeometry
from ..status import DeviceError, ExecutionFault, LaunchError
from .base import Kernel, Stream

logger = logging.getLogger(__name__)


class ThreadGrid:
    """Global (x, y, z) coordinates of all threads of one launch, flattened."""

    def __init__(self, geometry: LaunchGeometry, device: torch.device):
        nx = geometry.grid.x * geometry.block.x
        ny = geometry.grid.y * geometry.block.y
        nz = geometry.grid.z * geometry.block.z
        z, y, x = torch.meshgrid(
            torch.arange(nz, device=device),
            torch.arange(ny, device=device),
            torch.arange(nx, device=device),
            indexing="ij",
        )
        self.geometry = geometry
        self.x = x.reshape(-1)
        self.y = y.reshape(-1)
        self.z = z.reshape(-1)

    def __len__(self) -> int:
        return self.x.numel()


class TorchBuffer:
    """
    Bounds-checked flat view of a caller-owned tensor.

    load() and store() take per-thread offsets and a mask of active threads;
    inactive threads neither read nor write, and load() yields zero for them.
    """

    def __init__(self, tensor: torch.Tensor, name: str = "buffer"):
        if not tensor.is_contiguous():
            raise LaunchError(f"argument '{name}' is not a contiguous buffer")
        self.tensor = tensor
        self.flat = tensor.view(-1)
        self.name = name

    @property
    def dtype(self) -> torch.dtype:
        return self.flat.dtype

    def _active(self, offsets: torch.Tensor, mask: torch.Tensor) -> torch.Tensor:
        active = offsets[mask]
        if active.numel() == 0:
            return active
        low = int(active.min())
        high = int(active.max())
        if low < 0 or high >= self.flat.numel():
            bad = low if low < 0 else high
            raise ExecutionFault(
                f"illegal address: offset {bad} outside '{self.name}' "
                f"({self.flat.numel()} elements)"
            )
        return active

    def load(self, offsets: torch.Tensor, mask: torch.Tensor) -> torch.Tensor:
        active = self._active(offsets, mask)
        values = torch.zeros(offsets.shape, dtype=self.dtype, device=self.flat.device)
        values[mask] = self.flat[active]
        return values

    def store(self, offsets: torch.Tensor, values: torch.Tensor, mask: torch.Tensor) -> None:
        active = self._active(offsets, mask)
        self.flat[active] = values[mask].to(self.dtype)


class TorchStream(Stream):
    """
    Execution stream backed by PyTorch tensor operations.

    Args:
        device: Torch device the thread coordinates live on; every buffer
            argument must be on it
        torch_stream: Optional torch.cuda.Stream to issue the work on
        limits: Device limits launches are validated against

    Example:
        ```python
        stream = TorchStream("cpu")
        status = compute_cost_volume(left, right, in_shape, dst, out_shape, stream)
        ```
    """

    backend = "torch"

    def __init__(
        self,
        device: Union[str, torch.device, None] = None,
        torch_stream: Optional["torch.cuda.Stream"] = None,
        limits: DeviceLimits = DEFAULT_LIMITS,
    ):
        super().__init__(limits)
        if device is None:
            device = torch_stream.device if torch_stream is not None else "cpu"
        self.device = torch.device(device)
        self.torch_stream = torch_stream
        self._launch_error: Optional[LaunchError] = None
        self._fault: Optional[ExecutionFault] = None
        self._fault_visible = False

    def _bind(self, value: Any, index: int) -> Any:
        if not isinstance(value, torch.Tensor):
            return value
        if value.device.type != self.device.type:
            raise LaunchError(
                f"argument {index} is on {value.device}, stream runs on {self.device}"
            )
        return TorchBuffer(value, name=f"arg{index}")

    def launch(self, kernel: Kernel, geometry: LaunchGeometry, *args: Any) -> None:
        if self._fault is not None:
            # Stream poisoned by an earlier fault; by now it has been observed.
            self._fault_visible = True
            return

        problem = geometry.validate(self.limits)
        if problem is not None:
            self._launch_error = LaunchError(f"invalid configuration: {problem}", kernel.symbol)
            return

        try:
            bound = [self._bind(arg, i) for i, arg in enumerate(args)]
        except LaunchError as e:
            e.kernel = kernel.symbol
            self._launch_error = e
            return

        logger.debug(f"{kernel.symbol}: {geometry} ({geometry.total_threads} threads)")
        context = torch.cuda.stream(self.torch_stream) if self.torch_stream is not None else nullcontext()
        try:
            with context:
                kernel.host_body(ThreadGrid(geometry, self.device), *bound)
        except ExecutionFault as fault:
            fault.kernel = kernel.symbol
            self._fault = fault
            self._fault_visible = False

    def get_last_error(self) -> Optional[DeviceError]:
        if self._launch_error is not None:
            error, self._launch_error = self._launch_error, None
            return error
        if self._fault is not None and self._fault_visible:
            return self._fault
        return None

    def synchronize(self) -> Optional[DeviceError]:
        if self.torch_stream is not None:
            self.torch_stream.synchronize()
        if self._fault is not None:
            self._fault_visible = True
            return self._fault
        return None

    def reset(self) -> None:
        self._launch_error = None
        self._fault = None
        self._fault_visible = False

    def __repr__(self) -> str:
        return f"TorchStream(device={self.device})"
