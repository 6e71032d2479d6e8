"""Random inputs shared by the check and benchmark commands."""

from dataclasses import dataclass

import torch

from stereodnn.kernels import Dims


@dataclass
class Workload:
    """A stereo feature pair plus a 3-D convolution output of matching size."""

    left: torch.Tensor
    right: torch.Tensor
    conv: torch.Tensor
    bias: torch.Tensor
    disparities: int
    batch: int = 1

    @classmethod
    def random(
        cls,
        channels: int,
        height: int,
        width: int,
        disparities: int,
        batch: int = 1,
        seed: int = 0,
        device: str = "cpu",
    ) -> "Workload":
        generator = torch.Generator().manual_seed(seed)

        def randn(*shape):
            return torch.randn(*shape, generator=generator).to(device)

        return cls(
            left=randn(channels, height, width),
            right=randn(channels, height, width),
            conv=randn(batch, disparities, height, width),
            bias=randn(disparities),
            disparities=disparities,
            batch=batch,
        )

    @property
    def feature_shape(self) -> Dims:
        return Dims.of(*self.left.shape)

    @property
    def volume_shape(self) -> Dims:
        _, height, width = self.left.shape
        return Dims.of(self.disparities, height, width)

    @property
    def conv_shape(self) -> Dims:
        return Dims.of(*self.conv.shape)

    @property
    def bias_shape(self) -> Dims:
        return Dims.of(1, self.disparities, 1, 1, 1)

    def empty_cost_volume(self) -> torch.Tensor:
        channels, height, width = self.left.shape
        return torch.empty(
            self.disparities, 2 * channels, height, width,
            dtype=self.left.dtype, device=self.left.device,
        )
