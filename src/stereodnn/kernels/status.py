"""
Status codes and exceptions for kernel launches.

Two fault classes reach the caller:
- Launch failures: invalid configuration or resource exhaustion, detected
  right after a kernel is enqueued.
- Execution faults: illegal memory access while a kernel runs, only visible
  through a stream barrier.

Streams never raise DeviceError from launch(); they record it and hand it
back from get_last_error() / synchronize(). Operations translate those into
a Status. Shape/rank preconditions are programming errors and raise
PreconditionError.
"""

from enum import IntEnum
from typing import Optional


class Status(IntEnum):
    """Result of a kernel operation."""

    SUCCESS = 0
    LAUNCH_FAILURE = 1
    EXECUTION_FAILURE = 2

    @property
    def ok(self) -> bool:
        return self is Status.SUCCESS


class PreconditionError(AssertionError):
    """A shape, rank or argument precondition was violated by the caller."""


class DeviceError(RuntimeError):
    """Base class for errors reported by an execution stream."""

    status: Status = Status.LAUNCH_FAILURE

    def __init__(self, message: str, kernel: Optional[str] = None):
        super().__init__(message)
        self.kernel = kernel

    def __str__(self) -> str:
        base = super().__str__()
        if self.kernel:
            return f"{self.kernel}: {base}"
        return base


class LaunchError(DeviceError):
    """Kernel could not be enqueued (bad geometry, compilation, resources)."""

    status = Status.LAUNCH_FAILURE


class ExecutionFault(DeviceError):
    """Kernel faulted while running (e.g. out-of-bounds access)."""

    status = Status.EXECUTION_FAILURE


def require(condition: bool, message: str, enabled: bool = True) -> None:
    """
    Assert a caller precondition.

    Args:
        condition: Value that must be truthy
        message: Error message when it is not
        enabled: When False the check is skipped (release configuration)

    Raises:
        PreconditionError: If enabled and condition is falsy
    """
    if enabled and not condition:
        raise PreconditionError(message)
