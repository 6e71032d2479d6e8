"""Tests for launch-geometry planning.

Tests for:
1. block_count: ceil division with coverage guarantees and precondition errors
2. plan_launch: per-axis grids
3. LaunchGeometry.validate: device-limit checks
4. require_index_range: whole-buffer 32-bit addressability
"""

import pytest

from stereodnn.kernels.dims import Dim3
from stereodnn.kernels.grid import (
    DEFAULT_LIMITS,
    INDEX_MAX,
    DeviceLimits,
    LaunchGeometry,
    block_count,
    plan_launch,
    require_index_range,
)
from stereodnn.kernels.status import PreconditionError


# =============================================================================
# block_count Tests
# =============================================================================


class TestBlockCount:
    """Test block_count ceil division."""

    @pytest.mark.parametrize("total,block,expected", [
        (10, 16, 1),
        (32, 16, 2),
        (17, 16, 2),
        (16, 16, 1),
        (1, 256, 1),
        (0, 16, 0),
    ])
    def test_known_values(self, total, block, expected):
        """Test the documented example values."""
        assert block_count(total, block) == expected

    def test_covers_every_element(self):
        """Test result >= 1 and result*block >= total for a range of inputs."""
        for block in (1, 3, 16, 256):
            for total in range(1, 600):
                count = block_count(total, block)
                assert count >= 1
                assert count * block >= total
                # No more than one ragged block.
                assert (count - 1) * block < total

    def test_zero_block_size_rejected(self):
        """Test that a zero block size never validates."""
        with pytest.raises(PreconditionError, match="block_size"):
            block_count(10, 0)

    def test_negative_block_size_rejected(self):
        with pytest.raises(PreconditionError):
            block_count(10, -16)

    def test_negative_total_rejected(self):
        with pytest.raises(PreconditionError, match="total"):
            block_count(-1, 16)

    def test_overflow_rejected(self):
        """Test that totals whose covering extent overflows 32 bits never validate."""
        with pytest.raises(PreconditionError, match="overflows"):
            block_count(INDEX_MAX, 16)
        with pytest.raises(PreconditionError, match="overflows"):
            block_count(2**40, 256)

    def test_largest_valid_total(self):
        """Test the largest total that still fits."""
        total = INDEX_MAX - 15
        count = block_count(total, 16)
        assert count * 16 >= total
        assert count * 16 <= INDEX_MAX


# =============================================================================
# plan_launch Tests
# =============================================================================


class TestPlanLaunch:
    """Test grid planning over 1-3 dimensional extents."""

    def test_three_dimensional(self):
        geometry = plan_launch((40, 17, 3), (16, 16, 1))
        assert geometry.grid == Dim3(3, 2, 3)
        assert geometry.block == Dim3(16, 16, 1)

    def test_one_dimensional_int(self):
        geometry = plan_launch(1000, 256)
        assert geometry.grid == Dim3(4, 1, 1)
        assert geometry.block == Dim3(256, 1, 1)
        assert geometry.total_threads == 1024

    def test_empty_extent(self):
        """Test that a zero extent yields an empty grid."""
        assert plan_launch(0, 256).is_empty()
        assert plan_launch((8, 0, 4), (16, 16, 1)).is_empty()

    def test_str(self):
        assert str(plan_launch((40, 17, 3), (16, 16, 1))) == "grid=(3, 2, 3) block=(16, 16, 1)"


# =============================================================================
# LaunchGeometry.validate Tests
# =============================================================================


class TestValidate:
    """Test launch validation against device limits."""

    def test_valid_geometry(self):
        assert plan_launch((640, 480, 64), (16, 16, 1)).validate() is None

    def test_grid_z_limit(self):
        """Test that a z-extent above 65535 is rejected."""
        geometry = LaunchGeometry(grid=Dim3(1, 1, 65536), block=Dim3(16, 16, 1))
        problem = geometry.validate()
        assert problem is not None
        assert "z-extent" in problem

    def test_grid_y_limit(self):
        geometry = LaunchGeometry(grid=Dim3(1, 65536, 1), block=Dim3(16, 16, 1))
        assert "y-extent" in geometry.validate()

    def test_grid_at_limit_is_valid(self):
        geometry = LaunchGeometry(grid=Dim3(1, 65535, 65535), block=Dim3(1, 1, 1))
        assert geometry.validate() is None

    def test_too_many_threads_per_block(self):
        geometry = LaunchGeometry(grid=Dim3(1, 1, 1), block=Dim3(64, 32, 1))
        assert "threads" in geometry.validate()

    def test_block_z_limit(self):
        geometry = LaunchGeometry(grid=Dim3(1, 1, 1), block=Dim3(1, 1, 128))
        assert "block z-extent" in geometry.validate()

    def test_empty_axis(self):
        geometry = LaunchGeometry(grid=Dim3(0, 1, 1), block=Dim3(16, 1, 1))
        assert "empty" in geometry.validate()

    def test_custom_limits(self):
        """Test validation against tighter, device-reported limits."""
        limits = DeviceLimits(max_threads_per_block=256, max_grid=Dim3(100, 100, 100))
        assert plan_launch((160, 16, 1), (16, 16, 1)).validate(limits) is None
        assert plan_launch((1700, 16, 1), (16, 16, 1)).validate(limits) is not None
        assert DEFAULT_LIMITS.max_threads_per_block == 1024


class TestRequireIndexRange:
    def test_limit_is_inclusive(self):
        require_index_range(INDEX_MAX, "buffer")

    def test_beyond_limit(self):
        # 2 * 32 * 384 * 1248 * 96
        with pytest.raises(PreconditionError, match="cost volume spans 2944401408 elements"):
            require_index_range(2 * 32 * 384 * 1248 * 96, "cost volume")
