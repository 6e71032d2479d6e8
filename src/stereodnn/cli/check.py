"""
Check command for the stereodnn CLI.

Runs every kernel operation on random inputs and compares the results with
the whole-tensor reference implementations.
"""

from argparse import ArgumentParser, Namespace
from typing import List, Tuple

import torch

from .base import ConfigurableCommand
from .workload import Workload


class CheckCommand(ConfigurableCommand):
    """Verify kernel results against reference implementations."""

    @property
    def name(self) -> str:
        return "check"

    @property
    def help(self) -> str:
        return "Verify kernels against reference implementations"

    @property
    def description(self) -> str:
        return """
Run the cost-volume, bias and precision kernels on random inputs and compare
each result with a whole-tensor PyTorch reference.

Exit code is 0 only if every operation reports success and matches.

Examples:
  # Default shapes on the CPU
  stereodnn check

  # Debug mode (synchronise after every launch) on a GPU through CuPy
  stereodnn check --mode debug --backend cupy --device cuda

  # Custom shapes
  stereodnn check --channels 32 --height 64 --width 128 --disparities 24
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add check command arguments."""
        self.add_config_arguments(parser)
        parser.add_argument("--channels", type=int, default=8, help="Feature channels C")
        parser.add_argument("--height", type=int, default=16, help="Feature map height H")
        parser.add_argument("--width", type=int, default=24, help="Feature map width W")
        parser.add_argument("--disparities", type=int, default=6, help="Disparity levels D")
        parser.add_argument("--batch", type=int, default=1, help="Batch N of the conv output")
        parser.add_argument("--seed", type=int, default=0, help="Random seed")

    def execute(self, args: Namespace) -> int:
        """Execute the check command."""
        from stereodnn.config import configure_logging
        from stereodnn.kernels import create_stream

        config = self.resolve_config(args)
        if config is None:
            return 1
        configure_logging(config.logging)

        try:
            stream = create_stream(config.execution)
        except RuntimeError as e:
            return self.error(str(e))

        workload = Workload.random(
            args.channels, args.height, args.width, args.disparities,
            batch=args.batch, seed=args.seed, device=config.execution.device,
        )
        results = run_checks(workload, stream, config.execution)

        print("=" * 60)
        print(f"STEREODNN CHECK ({stream.backend}, {config.execution.mode})")
        print("=" * 60)
        for name, status, matches in results:
            print(format_result(name, status, matches))
        print("=" * 60)

        return 0 if all(status.ok and matches for _, status, matches in results) else 1


def format_result(name: str, status, matches: bool) -> str:
    """One table row; a failed operation shows its status only, nothing was compared."""
    if not status.ok:
        return f"  ✗ {name:<22} {status.name}"
    mark = "✓" if matches else "✗"
    detail = "match" if matches else "MISMATCH"
    return f"  {mark} {name:<22} {status.name:<18} {detail}"


def run_checks(workload: Workload, stream, config) -> List[Tuple[str, object, bool]]:
    """
    Run all operations once and compare them with the references.

    Returns:
        List of (operation name, Status, matches reference)
    """
    from stereodnn.kernels import (
        add_dbias_to_3d_conv,
        compute_cost_volume,
        fp16_to_fp32,
        fp32_to_fp16,
    )
    from stereodnn.kernels.reference import (
        reference_bias_add,
        reference_cost_volume,
        reference_fp16_to_fp32,
        reference_fp32_to_fp16,
    )

    results = []

    dst = workload.empty_cost_volume()
    status = compute_cost_volume(
        workload.left, workload.right, workload.feature_shape,
        dst, workload.volume_shape, stream, config,
    )
    stream.synchronize()
    expected = reference_cost_volume(workload.left, workload.right, workload.disparities)
    results.append(("compute_cost_volume", status, status.ok and torch.equal(dst, expected)))

    conv = workload.conv.clone()
    expected = reference_bias_add(workload.conv, workload.bias)
    status = add_dbias_to_3d_conv(
        workload.bias, workload.bias_shape, conv, workload.conv_shape, stream, config,
    )
    stream.synchronize()
    results.append(("add_dbias_to_3d_conv", status, status.ok and torch.equal(conv, expected)))

    src = workload.left.reshape(-1)
    half = torch.empty(src.shape, dtype=torch.float16, device=src.device)
    status = fp32_to_fp16(src, half, src.numel(), stream, config)
    stream.synchronize()
    results.append(("fp32_to_fp16", status, status.ok and torch.equal(half, reference_fp32_to_fp16(src))))

    widened = torch.empty(src.shape, dtype=torch.float32, device=src.device)
    status = fp16_to_fp32(half, widened, half.numel(), stream, config)
    stream.synchronize()
    results.append(("fp16_to_fp32", status, status.ok and torch.equal(widened, reference_fp16_to_fp32(half))))

    return results
