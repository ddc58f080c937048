"""Exit code taxonomy for the packbuild CLI."""

from __future__ import annotations

from enum import IntEnum

from targetkit import TargetConfigError, TargetExecutionError


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    - 0: Success
    - 1-9: General, usage and configuration errors
    - 10-19: Execution errors (evaluation, materialization, run)
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    CONFIG_ERROR = 4
    EXECUTION_ERROR = 13

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        if isinstance(exc, TargetExecutionError):
            return cls.EXECUTION_ERROR
        if isinstance(exc, (TargetConfigError, ValueError, FileNotFoundError)):
            return cls.CONFIG_ERROR
        return cls.GENERAL_ERROR
