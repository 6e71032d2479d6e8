"""Tests for per-thread index arithmetic.

The index functions are exercised one thread at a time with plain ints and
checked exhaustively against the cost-volume and bias definitions, then
compared with their vectorised (tensor) evaluation.
"""

import itertools

import pytest
import torch

from stereodnn.kernels.indexing import (
    bias_offsets,
    cost_volume_offsets,
    cost_volume_size,
    feature_offset,
    in_bounds,
)


def simulate_cost_volume(left, right, c, h, w, disp):
    """Run both cost-volume kernels thread by thread over flat Python lists."""
    out = [None] * cost_volume_size(c, h, w, disp)
    for iz, iy, ix in itertools.product(range(c), range(h), range(w)):
        for d in range(disp):
            o = cost_volume_offsets(ix, iy, iz, d, c, h, w)
            assert out[o.left_dst] is None, "left element written twice"
            out[o.left_dst] = left[feature_offset(ix, iy, iz, h, w)]
    for iz, iy, ix in itertools.product(range(c), range(h), range(w)):
        for d in range(disp):
            o = cost_volume_offsets(ix, iy, iz, d, c, h, w)
            assert out[o.right_dst] is None, "right element written twice"
            out[o.right_dst] = right[o.right_src] if o.right_valid else 0
    return out


class TestCostVolumeIndexing:
    """Test cost-volume offsets against the definition."""

    def test_concrete_example(self):
        """Test C=1, H=1, W=4, D=2 with the documented values."""
        out = simulate_cost_volume([1, 2, 3, 4], [10, 20, 30, 40], 1, 1, 4, 2)
        assert out == [1, 2, 3, 4, 10, 20, 30, 40, 1, 2, 3, 4, 0, 10, 20, 30]

    @pytest.mark.parametrize("c,h,w,disp", [
        (1, 1, 1, 1),
        (2, 3, 5, 4),
        (3, 2, 4, 6),  # more disparities than columns
        (1, 4, 7, 7),
    ])
    def test_every_element_matches_definition(self, c, h, w, disp):
        """Test every (d, c, y, x) of both halves."""
        left = [100 + i for i in range(c * h * w)]
        right = [1000 + i for i in range(c * h * w)]
        out = simulate_cost_volume(left, right, c, h, w, disp)

        assert None not in out, "some destination element was never written"
        plane = c * h * w
        for d, ch, y, x in itertools.product(range(disp), range(c), range(h), range(w)):
            base = d * 2 * plane
            pixel = (ch * h + y) * w + x
            assert out[base + pixel] == left[pixel]
            expected = right[(ch * h + y) * w + x - d] if x >= d else 0
            assert out[base + plane + pixel] == expected, (d, ch, y, x)

    def test_left_slices_identical(self):
        c, h, w, disp = 2, 2, 3, 3
        out = simulate_cost_volume(list(range(12)), list(range(12, 24)), c, h, w, disp)
        stride = 2 * c * h * w
        left_slices = [out[d * stride: d * stride + c * h * w] for d in range(disp)]
        assert all(s == left_slices[0] for s in left_slices)

    def test_shift_never_crosses_rows(self):
        """Test that the shifted source stays within the same row."""
        c, h, w = 2, 3, 4
        for iz, iy, ix, d in itertools.product(range(c), range(h), range(w), range(w)):
            o = cost_volume_offsets(ix, iy, iz, d, c, h, w)
            if o.right_valid:
                row_start = (iz * h + iy) * w
                assert row_start <= o.right_src < row_start + w

    def test_tensor_evaluation_matches_scalar(self):
        """Test that the vectorised form computes the same offsets."""
        c, h, w, d = 3, 4, 5, 2
        z, y, x = torch.meshgrid(torch.arange(c), torch.arange(h), torch.arange(w), indexing="ij")
        o = cost_volume_offsets(x.reshape(-1), y.reshape(-1), z.reshape(-1), d, c, h, w)
        for i, (iz, iy, ix) in enumerate(itertools.product(range(c), range(h), range(w))):
            s = cost_volume_offsets(ix, iy, iz, d, c, h, w)
            assert int(o.left_dst[i]) == s.left_dst
            assert int(o.right_dst[i]) == s.right_dst
            assert bool(o.right_valid[i]) == s.right_valid


class TestBiasIndexing:
    """Test depth-broadcast bias selection."""

    def test_bias_index_wraps_depth(self):
        depth, h, w = 3, 2, 2
        for iz in range(4 * depth):
            _, bias_index = bias_offsets(0, 0, iz, depth, h, w)
            assert bias_index == iz % depth

    def test_each_element_updated_once(self):
        batch, depth, h, w = 2, 3, 2, 4
        seen = set()
        for iz, iy, ix in itertools.product(range(batch * depth), range(h), range(w)):
            conv_index, _ = bias_offsets(ix, iy, iz, depth, h, w)
            assert conv_index not in seen
            seen.add(conv_index)
        assert seen == set(range(batch * depth * h * w))

    def test_concrete_example(self):
        """Test D=2, H=1, W=1, conv=[5, 7], bias=[100, 200]."""
        conv, bias = [5, 7], [100, 200]
        for iz in range(2):
            conv_index, bias_index = bias_offsets(0, 0, iz, 2, 1, 1)
            conv[conv_index] += bias[bias_index]
        assert conv == [105, 207]


class TestInBounds:
    def test_scalar(self):
        assert in_bounds(3, 1, 0, width=4, height=2, depth=1)
        assert not in_bounds(4, 1, 0, width=4, height=2, depth=1)
        assert not in_bounds(0, 2, 0, width=4, height=2, depth=1)
        assert not in_bounds(0, 0, 1, width=4, height=2, depth=1)

    def test_tensor(self):
        x = torch.tensor([0, 15, 16, 31])
        mask = in_bounds(x, torch.zeros_like(x), torch.zeros_like(x), 17, 1, 1)
        assert mask.tolist() == [True, True, True, False]
