"""Shape descriptors and element kinds used by the kernel operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Tuple

import torch


@dataclass(frozen=True)
class Dims:
    """
    Fixed-rank tensor extent descriptor.

    Descriptors are always supplied by the caller; nothing in this package
    infers them from a buffer's own shape.

    Example:
        >>> Dims.of(8, 32, 64).rank
        3
    """

    extents: Tuple[int, ...]

    @classmethod
    def of(cls, *extents: int) -> "Dims":
        return cls(tuple(int(e) for e in extents))

    @property
    def rank(self) -> int:
        return len(self.extents)

    def volume(self) -> int:
        """Number of elements addressed by this descriptor."""
        total = 1
        for e in self.extents:
            total *= e
        return total

    def __getitem__(self, index: int) -> int:
        return self.extents[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.extents)

    def __len__(self) -> int:
        return len(self.extents)


@dataclass(frozen=True)
class Dim3:
    """CUDA-style (x, y, z) extent used for grids and thread blocks."""

    x: int = 1
    y: int = 1
    z: int = 1

    @classmethod
    def of(cls, value) -> "Dim3":
        """Build from an int, a Dim3 or a 1-3 element sequence."""
        if isinstance(value, Dim3):
            return value
        if isinstance(value, int):
            return cls(value, 1, 1)
        items = tuple(int(v) for v in value)
        if not 1 <= len(items) <= 3:
            raise ValueError(f"Dim3 needs 1-3 extents, got {items}")
        return cls(*items)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def volume(self) -> int:
        return self.x * self.y * self.z

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


class ElementKind(Enum):
    """
    The two element types the kernels are specialised for.

    Each member carries (torch dtype, CUDA element type, kernel-symbol suffix).
    The set is closed: any other dtype is rejected.
    """

    FLOAT = (torch.float32, "float", "f32")
    HALF = (torch.float16, "__half", "f16")

    def __init__(self, dtype: torch.dtype, ctype: str, suffix: str):
        self.dtype = dtype
        self.ctype = ctype
        self.suffix = suffix

    @classmethod
    def of(cls, dtype) -> "ElementKind":
        """Resolve the kind of a torch dtype, numpy/cupy dtype or dtype name."""
        name = getattr(dtype, "name", None) or str(dtype)
        name = name.replace("torch.", "")
        for kind in cls:
            if name in (str(kind.dtype).replace("torch.", ""), kind.name.lower()):
                return kind
        raise TypeError(
            f"Unsupported element type {dtype}; only float32 and float16 buffers are handled"
        )

    def symbol(self, kernel: str) -> str:
        """Name of the specialised kernel entry point, e.g. 'bias_add_f16'."""
        return f"{kernel}_{self.suffix}"
