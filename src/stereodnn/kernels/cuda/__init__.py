"""CUDA C source of the stereodnn kernels.

The source is compiled at runtime by the cupy stream backend (NVRTC through
cupy.RawModule). Entry points are extern "C" so that their symbols match
Kernel.symbol, e.g. 'cost_volume_copy_f32' or 'fp32_to_fp16'.
"""

from pathlib import Path

KERNEL_SOURCE = Path(__file__).parent / "kernels.cu"


def load_source() -> str:
    """Read the kernel source file."""
    with open(KERNEL_SOURCE, "r") as f:
        return f.read()
