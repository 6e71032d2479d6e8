"""Shared fixtures for the kernel tests."""

import pytest

from stereodnn.kernels import TorchStream


class RecordingStream(TorchStream):
    """CPU TorchStream that also remembers which kernels it was asked to launch."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.launched = []

    def launch(self, kernel, geometry, *args):
        self.launched.append(kernel.symbol)
        super().launch(kernel, geometry, *args)


@pytest.fixture
def stream():
    """CPU execution stream recording launch order."""
    return RecordingStream("cpu")
