"""Exit codes and the base exception shared by the upgrade services."""
from __future__ import annotations

from enum import IntEnum

__all__ = [
    "ExitCode",
    "UpgradeError",
    "UpgradeInterrupted",
]


class ExitCode(IntEnum):
    SUCCESS = 0
    INTERRUPTED = 1
    ERROR = 2
    NOT_ROOT = 3
    STOP_ERROR = 4
    OPTION_PARSE_ERROR = 101
    VALIDATION_ERROR = 102
    DEPLOYMENT_ERROR = 103
    EXTERNALLY_STOPPED = 127


class UpgradeError(RuntimeError):
    """Raised when the upgrade cannot continue.

    Subclasses pick the process exit code reported for the failure.
    """

    exit_code: ExitCode = ExitCode.ERROR


class UpgradeInterrupted(UpgradeError):
    """Raised when the operator declines a step or a step fails.

    This is not a bug: history reflects every completed step, so running the
    upgrade again resumes where it stopped.
    """

    exit_code = ExitCode.INTERRUPTED
