"""Issue a sequence of launches on one stream, stopping at the first failure."""

from typing import Any, NamedTuple, Optional, Sequence, Tuple

from ..config.schema import ExecutionConfig
from .errors import ErrorPropagation
from .grid import LaunchGeometry
from .runtime.base import Kernel, Stream
from .status import Status


class Launch(NamedTuple):
    kernel: Kernel
    geometry: LaunchGeometry
    args: Tuple[Any, ...]


def run_launches(
    stream: Stream,
    launches: Sequence[Launch],
    config: ExecutionConfig,
    errors: Optional[ErrorPropagation] = None,
) -> Status:
    """
    Enqueue launches in order, checking each one before issuing the next.

    Launches with an empty grid are skipped. The first non-success status is
    returned immediately; later launches are not enqueued.
    """
    if errors is None:
        errors = ErrorPropagation.from_config(config)
    for launch in launches:
        if launch.geometry.is_empty():
            continue
        stream.launch(launch.kernel, launch.geometry, *launch.args)
        status = errors.check(stream, launch.kernel.symbol)
        if not status.ok:
            return status
    return Status.SUCCESS
