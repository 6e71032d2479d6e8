"""
Launch-geometry planning.

block_count() is the one primitive: how many blocks of block_size threads
cover total elements. plan_launch() applies it per axis and validate()
checks the resulting geometry against the device limits a real launch
would be rejected by.
"""

from dataclasses import dataclass, field
from typing import Optional

from .dims import Dim3
from .status import PreconditionError

# Kernels index with signed 32-bit integers.
INDEX_MAX = 2**31 - 1


def block_count(total: int, block_size: int) -> int:
    """
    Number of blocks of block_size needed to cover total elements.

    Args:
        total: Number of elements (>= 0)
        block_size: Threads per block along this axis (> 0)

    Returns:
        ceil(total / block_size)

    Raises:
        PreconditionError: On a non-positive block size, negative total, or
            if the covered extent does not fit the 32-bit index range

    Example:
        >>> block_count(17, 16)
        2
    """
    if block_size <= 0:
        raise PreconditionError(f"block_size must be > 0, got {block_size}")
    if total < 0:
        raise PreconditionError(f"total must be >= 0, got {total}")
    if total + block_size - 1 > INDEX_MAX:
        raise PreconditionError(
            f"total={total} with block_size={block_size} overflows the 32-bit index range"
        )
    count = (total + block_size - 1) // block_size
    # Ragged final block is covered, nothing beyond the index range is.
    assert count * block_size >= total
    return count


def require_index_range(total: int, what: str) -> None:
    """
    Reject a buffer whose elements cannot all be addressed with 32-bit offsets.

    Raises:
        PreconditionError: If total exceeds INDEX_MAX, in every configuration
    """
    if total > INDEX_MAX:
        raise PreconditionError(
            f"{what} spans {total} elements, beyond the 32-bit index range ({INDEX_MAX})"
        )


@dataclass(frozen=True)
class DeviceLimits:
    """Per-launch hardware limits (CUDA compute capability 3.0 and later)."""

    max_threads_per_block: int = 1024
    max_block: Dim3 = field(default_factory=lambda: Dim3(1024, 1024, 64))
    max_grid: Dim3 = field(default_factory=lambda: Dim3(INDEX_MAX, 65535, 65535))


DEFAULT_LIMITS = DeviceLimits()


@dataclass(frozen=True)
class LaunchGeometry:
    """Grid and block extents of a single kernel launch."""

    grid: Dim3
    block: Dim3

    @property
    def total_threads(self) -> int:
        return self.grid.volume() * self.block.volume()

    def is_empty(self) -> bool:
        return self.grid.volume() == 0

    def validate(self, limits: DeviceLimits = DEFAULT_LIMITS) -> Optional[str]:
        """
        Check the geometry against device limits.

        Returns:
            None if the launch is valid, otherwise a description of the
            violated limit (the launch must then be refused)
        """
        for axis in ("x", "y", "z"):
            if getattr(self.block, axis) < 1 or getattr(self.grid, axis) < 1:
                return f"grid {self.grid} / block {self.block} has an empty axis"
            if getattr(self.block, axis) > getattr(limits.max_block, axis):
                return (
                    f"block {axis}-extent {getattr(self.block, axis)} exceeds "
                    f"{getattr(limits.max_block, axis)}"
                )
            if getattr(self.grid, axis) > getattr(limits.max_grid, axis):
                return (
                    f"grid {axis}-extent {getattr(self.grid, axis)} exceeds "
                    f"{getattr(limits.max_grid, axis)}"
                )
        if self.block.volume() > limits.max_threads_per_block:
            return (
                f"block {self.block} has {self.block.volume()} threads, "
                f"limit is {limits.max_threads_per_block}"
            )
        return None

    def __str__(self) -> str:
        return f"grid={self.grid} block={self.block}"


def plan_launch(extent, block) -> LaunchGeometry:
    """
    Grid covering a 1-3 dimensional thread extent with the given block shape.

    Args:
        extent: Number of threads needed per axis (int, tuple or Dim3)
        block: Thread-block shape (int, tuple or Dim3)

    Returns:
        LaunchGeometry whose grid covers extent along every axis

    Example:
        >>> str(plan_launch((40, 17, 3), (16, 16, 1)))
        'grid=(3, 2, 3) block=(16, 16, 1)'
    """
    extent = Dim3.of(extent)
    block = Dim3.of(block)
    grid = Dim3(
        block_count(extent.x, block.x),
        block_count(extent.y, block.y),
        block_count(extent.z, block.z),
    )
    return LaunchGeometry(grid=grid, block=block)
