"""
Elementwise fp32 <-> fp16 conversion.

One thread per element, threads past size do nothing. fp32 -> fp16 uses
IEEE-754 round-to-nearest-even (values beyond the half range become inf);
fp16 -> fp32 widening is exact.
"""

from typing import Optional

import torch

from ..config.schema import ExecutionConfig
from .dims import ElementKind
from .errors import ErrorPropagation
from .grid import plan_launch
from .launch import Launch, run_launches
from .runtime.base import Kernel, Stream
from .runtime.torch_stream import ThreadGrid, TorchBuffer
from .status import Status, require


def _fp32_to_fp16_body(threads: ThreadGrid, src: TorchBuffer, dst: TorchBuffer, size: int) -> None:
    active = threads.x < size
    dst.store(threads.x, src.load(threads.x, active).to(torch.float16), active)


def _fp16_to_fp32_body(threads: ThreadGrid, src: TorchBuffer, dst: TorchBuffer, size: int) -> None:
    active = threads.x < size
    dst.store(threads.x, src.load(threads.x, active).to(torch.float32), active)


FP32_TO_FP16 = Kernel("fp32_to_fp16", _fp32_to_fp16_body)
FP16_TO_FP32 = Kernel("fp16_to_fp32", _fp16_to_fp32_body)


def _convert(
    kernel: Kernel,
    src,
    dst,
    size: int,
    stream: Stream,
    config: Optional[ExecutionConfig],
    errors: Optional[ErrorPropagation],
    src_kind: ElementKind,
    dst_kind: ElementKind,
) -> Status:
    config = config or ExecutionConfig()
    check = bool(config.check_preconditions)

    require(size >= 0, f"size must be >= 0, got {size}", check)
    require(
        ElementKind.of(src.dtype) is src_kind and ElementKind.of(dst.dtype) is dst_kind,
        f"{kernel.name} expects {src_kind.dtype} -> {dst_kind.dtype}, got {src.dtype} -> {dst.dtype}",
        check,
    )

    geometry = plan_launch(size, config.launch.conversion_block)
    return run_launches(stream, [Launch(kernel, geometry, (src, dst, size))], config, errors)


def fp32_to_fp16(
    src,
    dst,
    size: int,
    stream: Stream,
    config: Optional[ExecutionConfig] = None,
    errors: Optional[ErrorPropagation] = None,
) -> Status:
    """
    Round size float32 values of src to float16 into dst.

    Example:
        ```python
        src = torch.tensor([1.5, -2.0, 0.1])
        dst = torch.empty(3, dtype=torch.float16)
        fp32_to_fp16(src, dst, 3, TorchStream())
        ```
    """
    return _convert(
        FP32_TO_FP16, src, dst, size, stream, config, errors, ElementKind.FLOAT, ElementKind.HALF
    )


def fp16_to_fp32(
    src,
    dst,
    size: int,
    stream: Stream,
    config: Optional[ExecutionConfig] = None,
    errors: Optional[ErrorPropagation] = None,
) -> Status:
    """Widen size float16 values of src to float32 into dst."""
    return _convert(
        FP16_TO_FP32, src, dst, size, stream, config, errors, ElementKind.HALF, ElementKind.FLOAT
    )
