"""Execution-stream backends for the stereodnn kernels."""

from typing import Optional

import torch

from ...config.schema import ExecutionConfig
from .base import Kernel, Stream
from .torch_stream import ThreadGrid, TorchBuffer, TorchStream
from .cupy_stream import CUPY_AVAILABLE, CupyStream, device_limits


def create_stream(config: Optional[ExecutionConfig] = None) -> Stream:
    """
    Create an execution stream for the configured backend.

    Raises:
        RuntimeError: If the cupy backend is requested without CuPy installed
    """
    config = config or ExecutionConfig()
    if config.backend == "cupy":
        # Share torch's stream so kernels order with tensor ops on the same device.
        return CupyStream.from_torch(device=torch.device(config.device))
    return TorchStream(config.device)


__all__ = [
    "Kernel",
    "Stream",
    "ThreadGrid",
    "TorchBuffer",
    "TorchStream",
    "CupyStream",
    "CUPY_AVAILABLE",
    "device_limits",
    "create_stream",
]
