"""Tests for post-launch error propagation.

Tests for:
1. Status mapping of launch errors and execution faults
2. Debug (synchronising) vs release attribution of execution faults
3. Sticky faults and stream reset
"""

import logging

import pytest
import torch

from stereodnn.config import ExecutionConfig
from stereodnn.kernels import (
    Dims,
    ErrorPropagation,
    ExecutionFault,
    LaunchError,
    Status,
    add_dbias_to_3d_conv,
    fp32_to_fp16,
)
from stereodnn.kernels.runtime.base import Stream


class ScriptedStream(Stream):
    """Stream that reports preset errors instead of running anything."""

    backend = "scripted"

    def __init__(self, launch_error=None, fault=None):
        super().__init__()
        self.launch_error = launch_error
        self.fault = fault
        self.synchronized = 0
        self.launched = []

    def launch(self, kernel, geometry, *args):
        self.launched.append(kernel.symbol)

    def get_last_error(self):
        return self.launch_error

    def synchronize(self):
        self.synchronized += 1
        return self.fault

    def reset(self):
        self.launch_error = self.fault = None


def overflowing_bias_add(stream, config=None):
    """Bias addition whose descriptor claims more elements than conv holds."""
    conv = torch.zeros(4)
    return add_dbias_to_3d_conv(
        torch.ones(2), Dims.of(1, 2, 1, 1, 1), conv, Dims.of(1, 2, 2, 2), stream, config
    )


# =============================================================================
# ErrorPropagation.check
# =============================================================================


class TestCheck:
    """Test the status mapping in isolation."""

    def test_success(self):
        stream = ScriptedStream()
        assert ErrorPropagation().check(stream, "k") == Status.SUCCESS
        assert stream.synchronized == 0

    def test_launch_error(self):
        stream = ScriptedStream(launch_error=LaunchError("invalid configuration"))
        errors = ErrorPropagation(sync_after_launch=True)
        assert errors.check(stream, "k") == Status.LAUNCH_FAILURE
        assert isinstance(errors.last_error, LaunchError)
        # The barrier is not reached once the launch query failed.
        assert stream.synchronized == 0

    def test_fault_ignored_without_barrier(self):
        stream = ScriptedStream(fault=ExecutionFault("illegal address"))
        assert ErrorPropagation(sync_after_launch=False).check(stream, "k") == Status.SUCCESS

    def test_fault_reported_by_barrier(self):
        stream = ScriptedStream(fault=ExecutionFault("illegal address"))
        errors = ErrorPropagation(sync_after_launch=True)
        assert errors.check(stream, "k") == Status.EXECUTION_FAILURE
        assert stream.synchronized == 1
        assert "illegal address" in str(errors.last_error)

    def test_failure_is_logged(self, caplog):
        stream = ScriptedStream(launch_error=LaunchError("out of resources"))
        with caplog.at_level(logging.ERROR, logger="stereodnn.kernels.errors"):
            ErrorPropagation().check(stream, "bias_add_f32")
        assert "bias_add_f32" in caplog.text
        assert "LAUNCH_FAILURE" in caplog.text

    def test_from_config(self):
        assert ErrorPropagation.from_config(ExecutionConfig(mode="debug")).sync_after_launch
        assert not ErrorPropagation.from_config(ExecutionConfig(mode="release")).sync_after_launch


# =============================================================================
# Fault attribution on a real stream
# =============================================================================


class TestFaultAttribution:
    """Test where an out-of-bounds kernel's fault is reported."""

    def test_debug_attributes_fault_to_faulting_call(self, stream):
        status = overflowing_bias_add(stream, ExecutionConfig(mode="debug"))
        assert status == Status.EXECUTION_FAILURE

    def test_release_reports_fault_on_next_call(self, stream):
        """Test that the faulting call succeeds and the next one fails to launch."""
        assert overflowing_bias_add(stream) == Status.SUCCESS

        dst = torch.empty(2, dtype=torch.float16)
        assert fp32_to_fp16(torch.ones(2), dst, 2, stream) == Status.LAUNCH_FAILURE
        assert stream.launched == ["bias_add_f32", "fp32_to_fp16"]

    def test_barrier_reports_fault_in_release(self, stream):
        overflowing_bias_add(stream)
        fault = stream.synchronize()
        assert isinstance(fault, ExecutionFault)
        assert fault.kernel == "bias_add_f32"
        assert fault.status == Status.EXECUTION_FAILURE

    def test_fault_is_sticky(self, stream):
        overflowing_bias_add(stream, ExecutionConfig(mode="debug"))
        dst = torch.empty(2, dtype=torch.float16)
        for _ in range(3):
            assert fp32_to_fp16(torch.ones(2), dst, 2, stream) == Status.LAUNCH_FAILURE

    def test_reset_clears_fault(self, stream):
        overflowing_bias_add(stream, ExecutionConfig(mode="debug"))
        stream.reset()

        dst = torch.empty(2, dtype=torch.float16)
        assert fp32_to_fp16(torch.ones(2), dst, 2, stream) == Status.SUCCESS
        assert dst.tolist() == [1.0, 1.0]

    def test_launch_error_is_not_sticky(self, stream):
        """Test that a rejected launch does not poison the stream."""
        conv = torch.zeros(1, 70000, 1, 1)
        status = add_dbias_to_3d_conv(
            torch.ones(70000), Dims.of(1, 70000, 1, 1, 1), conv, Dims.of(1, 70000, 1, 1), stream
        )
        assert status == Status.LAUNCH_FAILURE

        dst = torch.empty(2, dtype=torch.float16)
        assert fp32_to_fp16(torch.ones(2), dst, 2, stream) == Status.SUCCESS

    def test_debug_cost_volume_fault_stops_second_launch(self, stream):
        """Test that a faulting left-half launch prevents the right-half launch."""
        from stereodnn.kernels import compute_cost_volume

        left = torch.ones(1, 2, 3)
        dst = torch.zeros(3)  # too small even for the left half
        status = compute_cost_volume(
            left, left, Dims.of(1, 2, 3), dst, Dims.of(1, 2, 3), stream, ExecutionConfig(mode="debug")
        )
        assert status == Status.EXECUTION_FAILURE
        assert stream.launched == ["cost_volume_copy_f32"]
