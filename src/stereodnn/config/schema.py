"""
Configuration schemas for stereodnn using Pydantic.

Provides type-safe, validated configuration for:
- Kernel execution (debug/release behaviour, backend, device)
- Launch geometry (thread-block shapes)
- Logging

The debug/release split is an explicit setting rather than a build mode, so
both behaviours can be exercised from the same installation.
"""

from typing import Literal, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Launch Configuration
# =============================================================================


MAX_THREADS_PER_BLOCK = 1024


class LaunchConfig(BaseModel):
    """Thread-block shapes used when planning kernel launches."""

    cost_volume_block: Tuple[int, int, int] = (16, 16, 1)
    bias_block: Tuple[int, int, int] = (16, 16, 1)
    conversion_block: int = Field(default=256, ge=1, le=MAX_THREADS_PER_BLOCK)

    @field_validator('cost_volume_block', 'bias_block')
    @classmethod
    def validate_block(cls, v: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if min(v) < 1:
            raise ValueError(f"Invalid block shape {v}: extents must be >= 1")
        if v[2] != 1:
            # Channel/depth slices map one-to-one onto the grid z axis.
            raise ValueError(f"Invalid block shape {v}: z-extent must be 1")
        if v[0] * v[1] * v[2] > MAX_THREADS_PER_BLOCK:
            raise ValueError(
                f"Invalid block shape {v}: {v[0] * v[1] * v[2]} threads exceeds "
                f"{MAX_THREADS_PER_BLOCK}"
            )
        return v


# =============================================================================
# Execution Configuration
# =============================================================================


class ExecutionConfig(BaseModel):
    """
    How kernel operations run and report errors.

    mode selects the defaults:
    - debug: synchronise the stream after every launch so execution faults
      are attributed to the call that caused them, and assert preconditions
    - release: check launch errors only; execution faults may surface on a
      later operation, preconditions are not checked

    sync_after_launch and check_preconditions override the mode individually.

    Example:
        ```python
        config = ExecutionConfig(mode="debug")
        assert config.sync_after_launch
        ```
    """

    mode: Literal["debug", "release"] = "release"
    sync_after_launch: Optional[bool] = None
    check_preconditions: Optional[bool] = None
    backend: Literal["torch", "cupy"] = "torch"
    device: str = "cpu"
    launch: LaunchConfig = Field(default_factory=LaunchConfig)

    @model_validator(mode='after')
    def resolve_mode_defaults(self) -> 'ExecutionConfig':
        debug = self.mode == "debug"
        if self.sync_after_launch is None:
            self.sync_after_launch = debug
        if self.check_preconditions is None:
            self.check_preconditions = debug
        return self

    @model_validator(mode='after')
    def validate_backend_device(self) -> 'ExecutionConfig':
        if self.backend == "cupy" and not self.device.startswith("cuda"):
            raise ValueError(
                f"backend 'cupy' requires a CUDA device, got device={self.device!r}"
            )
        return self


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["structured", "plain"] = "plain"


# =============================================================================
# Root Configuration
# =============================================================================


class StereoDNNConfig(BaseModel):
    """
    Root configuration model for stereodnn.

    Example:
        ```python
        config = load_config(Path("configs/debug.yaml"))
        stream = create_stream(config.execution)
        ```
    """

    version: str = "1.0"
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
