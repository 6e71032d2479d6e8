"""
Per-thread index arithmetic of the kernels.

Every function here is a pure function of a thread's global coordinates
(ix, iy, iz) and the tensor extents. Only arithmetic and comparison
operators are used, so the same code runs on Python ints (one thread at a
time) and on torch integer tensors (every thread of a launch at once). The
torch stream backend executes exactly these functions and the CUDA source in
cuda/kernels.cu mirrors them line for line.

Layouts (row-major):
- feature map:  [C, H, W]         offset (c*H + y)*W + x
- cost volume:  [D, 2C, H, W]     slice d starts at d*2*C*H*W, left half
                                  first, right half at +C*H*W
- conv output:  [N*D, H, W]       offset (k*H + y)*W + x, k = n*D + d
"""

from typing import NamedTuple


def in_bounds(ix, iy, iz, width: int, height: int, depth: int):
    """True for threads inside the W x H x depth extent; the rest are no-ops."""
    return (ix < width) & (iy < height) & (iz < depth)


def feature_offset(ix, iy, iz, height: int, width: int):
    """Flat offset of (c=iz, y=iy, x=ix) in a [C, H, W] feature map."""
    return (iz * height + iy) * width + ix


class CostVolumeOffsets(NamedTuple):
    """Addresses touched by one thread for one disparity level."""

    left_dst: object
    right_dst: object
    right_src: object
    right_valid: object


def cost_volume_offsets(ix, iy, iz, d, channels: int, height: int, width: int) -> CostVolumeOffsets:
    """
    Destination and source offsets for thread (ix, iy, iz) at disparity d.

    left_dst receives left[c, y, x]. right_dst receives right[c, y, x - d]
    when right_valid (x >= d), zero otherwise; right_src is meaningless
    where right_valid is false.

    Example:
        >>> o = cost_volume_offsets(0, 0, 0, 1, channels=1, height=1, width=4)
        >>> (o.left_dst, o.right_dst, o.right_valid)
        (8, 12, False)
    """
    plane = channels * height * width
    slice_base = d * 2 * plane
    pixel = feature_offset(ix, iy, iz, height, width)
    return CostVolumeOffsets(
        left_dst=slice_base + pixel,
        right_dst=slice_base + plane + pixel,
        right_src=pixel - d,
        right_valid=ix >= d,
    )


def cost_volume_size(channels: int, height: int, width: int, disparities: int) -> int:
    """Element count of a [D, 2C, H, W] cost volume."""
    return 2 * channels * height * width * disparities


def bias_offsets(ix, iy, iz, depth: int, height: int, width: int):
    """
    (conv offset, bias offset) for thread (ix, iy, iz).

    iz is the flattened leading index k = n*D + d; the bias scalar is the
    one for depth slice k mod D, shared across batch and spatial plane.
    """
    return feature_offset(ix, iy, iz, height, width), iz % depth
