"""stereodnn - GPU tensor kernels for stereo-disparity inference."""

__version__ = "0.1.0"
