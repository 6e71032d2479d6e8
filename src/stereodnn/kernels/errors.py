"""
Post-launch error propagation.

After every launch the stream's last error is queried; a failure aborts the
operation. With sync_after_launch (debug) the stream is also synchronised so
that a fault raised while the kernel executed is attributed to this call.
Without it (release) such faults may surface on a later, unrelated launch.
"""

import logging
from typing import Optional

from ..config.schema import ExecutionConfig
from .runtime.base import Stream
from .status import DeviceError, Status

logger = logging.getLogger(__name__)


class ErrorPropagation:
    """
    Converts stream errors into a Status after each launch.

    Attributes:
        sync_after_launch: Insert a completion barrier after every launch
        last_error: The DeviceError behind the most recent failure, if any
    """

    def __init__(self, sync_after_launch: bool = False):
        self.sync_after_launch = sync_after_launch
        self.last_error: Optional[DeviceError] = None

    @classmethod
    def from_config(cls, config: ExecutionConfig) -> "ErrorPropagation":
        return cls(sync_after_launch=bool(config.sync_after_launch))

    def check(self, stream: Stream, kernel: str) -> Status:
        """
        Check the outcome of the launch just enqueued on stream.

        Returns:
            SUCCESS, LAUNCH_FAILURE if the launch query reports an error, or
            EXECUTION_FAILURE if the barrier reports a fault
        """
        error = stream.get_last_error()
        if error is not None:
            return self._fail(Status.LAUNCH_FAILURE, error, kernel)

        if self.sync_after_launch:
            error = stream.synchronize()
            if error is not None:
                return self._fail(Status.EXECUTION_FAILURE, error, kernel)

        return Status.SUCCESS

    def _fail(self, status: Status, error: DeviceError, kernel: str) -> Status:
        self.last_error = error
        logger.error(f"{kernel} failed with {status.name}: {error}")
        return status
