"""
Info command for the stereodnn CLI.

Displays available backends, library versions and device launch limits.
"""

from argparse import ArgumentParser, Namespace

from .base import CLICommand


class InfoCommand(CLICommand):
    """Command to display backend and device information."""

    @property
    def name(self) -> str:
        return "info"

    @property
    def help(self) -> str:
        return "Display backend and device information"

    @property
    def description(self) -> str:
        return """
Display which execution backends are usable and the launch limits kernels
are validated against.

Examples:
  stereodnn info
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add info command arguments."""
        parser.add_argument(
            "--device-id", type=int, default=None,
            help="CUDA device to query limits for (default: current device)"
        )

    def execute(self, args: Namespace) -> int:
        """Execute info command."""
        import torch

        import stereodnn
        from stereodnn.kernels import CUPY_AVAILABLE, DEFAULT_LIMITS
        from stereodnn.kernels.runtime import device_limits

        print("=" * 60)
        print(f"STEREODNN {stereodnn.__version__}")
        print("=" * 60)
        print(f"torch:  {torch.__version__} (CUDA available: {torch.cuda.is_available()})")
        if CUPY_AVAILABLE:
            import cupy
            print(f"cupy:   {cupy.__version__}")
        else:
            print("cupy:   not installed (cupy backend unavailable)")

        print("\nBackends:")
        print("  torch  ✓")
        print(f"  cupy   {'✓' if CUPY_AVAILABLE and torch.cuda.is_available() else '✗'}")

        limits = DEFAULT_LIMITS
        source = "default"
        if CUPY_AVAILABLE and torch.cuda.is_available():
            try:
                limits = device_limits(args.device_id)
                source = f"CUDA device {args.device_id if args.device_id is not None else 'current'}"
            except Exception as e:
                return self.error(f"Failed to query device limits: {e}")

        print(f"\nLaunch limits ({source}):")
        print(f"  Max threads per block: {limits.max_threads_per_block}")
        print(f"  Max block extents:     {limits.max_block}")
        print(f"  Max grid extents:      {limits.max_grid}")
        print("=" * 60)
        return 0
