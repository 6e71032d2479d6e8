"""
Per-depth bias addition for 3-D convolution outputs.

conv is [N, D, H, W]; bias holds one scalar per depth index d. Every depth
slice, replicated across the batch and the whole spatial plane, is
incremented by its scalar:

    conv[n, d, y, x] += bias[d]

Each element is updated by exactly one thread, so no atomics are needed.
The launch puts the flattened n*D + d index on the grid's z axis; grid
y/z extents above 65535 are rejected by the launch and reported as a
failure, H and N*D are not grid-strided.
"""

from typing import Optional

from ..config.schema import ExecutionConfig
from .dims import Dims, ElementKind
from .errors import ErrorPropagation
from .grid import plan_launch, require_index_range
from .indexing import bias_offsets, in_bounds
from .launch import Launch, run_launches
from .runtime.base import Kernel, Stream
from .runtime.torch_stream import ThreadGrid, TorchBuffer
from .status import Status, require


def _bias_add_body(
    threads: ThreadGrid, bias: TorchBuffer, depth: int, conv: TorchBuffer, slices: int, h: int, w: int
) -> None:
    active = in_bounds(threads.x, threads.y, threads.z, w, h, slices)
    conv_offset, bias_offset = bias_offsets(threads.x, threads.y, threads.z, depth, h, w)
    # Accumulate in fp32 like the device code does for half.
    total = conv.load(conv_offset, active).float() + bias.load(bias_offset, active).float()
    conv.store(conv_offset, total, active)


BIAS_ADD_KERNELS = {kind: Kernel("bias_add", _bias_add_body, kind) for kind in ElementKind}


def add_dbias_to_3d_conv(
    bias,
    bias_shape: Dims,
    conv,
    conv_shape: Dims,
    stream: Stream,
    config: Optional[ExecutionConfig] = None,
    errors: Optional[ErrorPropagation] = None,
) -> Status:
    """
    Add bias[d] to every element of depth slice d of conv, in place.

    Args:
        bias: Bias buffer, D elements
        bias_shape: Rank-5 descriptor [1, D, 1, 1, 1]; batch must be 1
        conv: Convolution output buffer, N*D*H*W elements, updated in place
        conv_shape: Rank-4 descriptor [N, D, H, W]
        stream: Execution stream to enqueue on
        config: Execution settings (release defaults when omitted)
        errors: Error layer to report through (fresh per call when omitted)

    Returns:
        Status of the operation

    Raises:
        PreconditionError: On rank, batch or depth mismatches when
            preconditions are checked, and always when conv exceeds the
            32-bit index range
        TypeError: If a buffer is neither float32 nor float16

    Example:
        ```python
        conv = torch.tensor([5., 7.])
        bias = torch.tensor([100., 200.])
        add_dbias_to_3d_conv(bias, Dims.of(1, 2, 1, 1, 1), conv, Dims.of(1, 2, 1, 1), TorchStream())
        # conv: [105, 207]
        ```
    """
    config = config or ExecutionConfig()
    check = bool(config.check_preconditions)

    require(bias_shape.rank == 5, f"bias_shape must be rank 5, got {bias_shape.extents}", check)
    require(conv_shape.rank == 4, f"conv_shape must be rank 4 [N,D,H,W], got {conv_shape.extents}", check)
    require(bias_shape[0] == 1, f"bias batch must be 1, got {bias_shape[0]}", check)
    batch, depth, height, width = conv_shape.extents[:4]
    require(
        bias_shape[1] == depth,
        f"bias depth {bias_shape[1]} does not match conv depth {depth}",
        check,
    )

    kind = ElementKind.of(conv.dtype)
    require(
        ElementKind.of(bias.dtype) is kind,
        f"bias and conv must share one element type, got {bias.dtype}, {conv.dtype}",
        check,
    )

    slices = batch * depth
    require_index_range(slices * height * width, "conv output")

    geometry = plan_launch((width, height, slices), config.launch.bias_block)
    kernel = BIAS_ADD_KERNELS[kind]
    return run_launches(
        stream,
        [Launch(kernel, geometry, (bias, depth, conv, slices, height, width))],
        config,
        errors,
    )
