"""
Stereo-disparity tensor kernels.

Operations (each returns a Status):
- compute_cost_volume: [C,H,W] x 2 -> [D, 2C, H, W] disparity cost volume
- add_dbias_to_3d_conv: per-depth bias broadcast over [N, D, H, W]
- fp32_to_fp16 / fp16_to_fp32: elementwise precision conversion

Kernels run on an execution stream: TorchStream (PyTorch, any device) or
CupyStream (CUDA through CuPy/NVRTC). Buffers and shape descriptors are
always supplied by the caller.

Example:
    >>> import torch
    >>> from stereodnn.kernels import Dims, TorchStream, compute_cost_volume
    >>> left, right = torch.rand(8, 4, 6), torch.rand(8, 4, 6)
    >>> dst = torch.empty(3, 16, 4, 6)
    >>> compute_cost_volume(left, right, Dims.of(8, 4, 6), dst, Dims.of(3, 4, 6), TorchStream())
    <Status.SUCCESS: 0>
"""

from .status import (
    Status,
    PreconditionError,
    DeviceError,
    LaunchError,
    ExecutionFault,
)
from .dims import Dims, Dim3, ElementKind
from .grid import block_count, plan_launch, LaunchGeometry, DeviceLimits, DEFAULT_LIMITS
from .errors import ErrorPropagation
from .runtime import Stream, TorchStream, CupyStream, CUPY_AVAILABLE, create_stream
from .cost_volume import compute_cost_volume
from .bias import add_dbias_to_3d_conv
from .precision import fp32_to_fp16, fp16_to_fp32

__all__ = [
    "Status",
    "PreconditionError",
    "DeviceError",
    "LaunchError",
    "ExecutionFault",
    "Dims",
    "Dim3",
    "ElementKind",
    "block_count",
    "plan_launch",
    "LaunchGeometry",
    "DeviceLimits",
    "DEFAULT_LIMITS",
    "ErrorPropagation",
    "Stream",
    "TorchStream",
    "CupyStream",
    "CUPY_AVAILABLE",
    "create_stream",
    "compute_cost_volume",
    "add_dbias_to_3d_conv",
    "fp32_to_fp16",
    "fp16_to_fp32",
]
