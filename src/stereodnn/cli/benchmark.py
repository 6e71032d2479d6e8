"""
Benchmark command for the stereodnn CLI.

Times each kernel operation over repeated runs.
"""

from argparse import ArgumentParser, Namespace

import torch

from .base import ConfigurableCommand
from .workload import Workload


class BenchmarkCommand(ConfigurableCommand):
    """Time kernel operations on random inputs."""

    @property
    def name(self) -> str:
        return "benchmark"

    @property
    def help(self) -> str:
        return "Time kernel operations"

    @property
    def description(self) -> str:
        return """
Time the cost-volume, bias and precision kernels on random inputs.

Each measurement synchronises the stream before and after the operation.
Release mode is recommended: debug mode adds a barrier after every launch.

Examples:
  stereodnn benchmark --backend cupy --device cuda --repeats 50
  stereodnn benchmark --channels 32 --height 128 --width 256 --disparities 48
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add benchmark command arguments."""
        self.add_config_arguments(parser)
        parser.add_argument("--channels", type=int, default=32, help="Feature channels C")
        parser.add_argument("--height", type=int, default=64, help="Feature map height H")
        parser.add_argument("--width", type=int, default=128, help="Feature map width W")
        parser.add_argument("--disparities", type=int, default=24, help="Disparity levels D")
        parser.add_argument("--repeats", type=int, default=10, help="Timed runs per operation")
        parser.add_argument("--warmup", type=int, default=2, help="Untimed runs per operation")

    def execute(self, args: Namespace) -> int:
        """Execute the benchmark command."""
        from stereodnn.config import configure_logging
        from stereodnn.kernels import (
            add_dbias_to_3d_conv,
            compute_cost_volume,
            create_stream,
            fp16_to_fp32,
            fp32_to_fp16,
        )
        from stereodnn.profiling import StreamTimer, TimingAccumulator

        config = self.resolve_config(args)
        if config is None:
            return 1
        configure_logging(config.logging)
        execution = config.execution

        try:
            stream = create_stream(execution)
        except RuntimeError as e:
            return self.error(str(e))

        w = Workload.random(
            args.channels, args.height, args.width, args.disparities, device=execution.device
        )
        volume = w.empty_cost_volume()
        conv = w.conv.clone()
        src = w.left.reshape(-1)
        half = torch.empty(src.shape, dtype=torch.float16, device=src.device)
        widened = torch.empty_like(src)

        operations = {
            "compute_cost_volume": (
                lambda: compute_cost_volume(
                    w.left, w.right, w.feature_shape, volume, w.volume_shape, stream, execution
                ),
                volume.numel(),
            ),
            "add_dbias_to_3d_conv": (
                lambda: add_dbias_to_3d_conv(
                    w.bias, w.bias_shape, conv, w.conv_shape, stream, execution
                ),
                conv.numel(),
            ),
            "fp32_to_fp16": (
                lambda: fp32_to_fp16(src, half, src.numel(), stream, execution),
                src.numel(),
            ),
            "fp16_to_fp32": (
                lambda: fp16_to_fp32(half, widened, half.numel(), stream, execution),
                half.numel(),
            ),
        }

        accumulator = TimingAccumulator()
        for name, (run, elements) in operations.items():
            for _ in range(args.warmup):
                run()
            for _ in range(args.repeats):
                with StreamTimer(stream) as timer:
                    status = run()
                if not status.ok or timer.fault is not None:
                    return self.error(f"{name} failed with {status.name}: {timer.fault or ''}")
                accumulator.add(name, timer.elapsed_ms(), elements)

        print("=" * 60)
        print(f"STEREODNN BENCHMARK ({stream.backend}, {execution.mode})")
        print(f"C={args.channels} H={args.height} W={args.width} D={args.disparities}")
        print("=" * 60)
        print(f"  {'operation':<22} {'mean ms':>10} {'min ms':>10} {'ns/elem':>10}")
        for name, s in accumulator.get_stats().items():
            print(f"  {name:<22} {s['mean_ms']:>10.3f} {s['min_ms']:>10.3f} {s['ns_per_element']:>10.3f}")
        print("=" * 60)
        return 0
