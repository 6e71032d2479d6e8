"""
Whole-tensor PyTorch formulations of the kernel operations.

These describe the same results as the kernels without any per-thread
index arithmetic and are used to verify them (tests, `stereodnn check`).
"""

import torch
import torch.nn.functional as F


def reference_cost_volume(left: torch.Tensor, right: torch.Tensor, disparities: int) -> torch.Tensor:
    """
    Cost volume of two [C, H, W] feature maps.

    Returns:
        [D, 2C, H, W] tensor; slice d is cat(left, right shifted right by d)
    """
    width = left.shape[-1]
    slices = []
    for d in range(disparities):
        if d == 0:
            shifted = right
        elif d >= width:
            shifted = torch.zeros_like(right)
        else:
            shifted = F.pad(right[..., : width - d], (d, 0))
        slices.append(torch.cat([left, shifted], dim=0))
    return torch.stack(slices, dim=0)


def reference_bias_add(conv: torch.Tensor, bias: torch.Tensor) -> torch.Tensor:
    """conv [N, D, H, W] plus bias [D] broadcast over batch and plane."""
    depth = conv.shape[1]
    total = conv.float() + bias.reshape(1, depth, 1, 1).float()
    return total.to(conv.dtype)


def reference_fp32_to_fp16(src: torch.Tensor) -> torch.Tensor:
    return src.to(torch.float16)


def reference_fp16_to_fp32(src: torch.Tensor) -> torch.Tensor:
    return src.to(torch.float32)
