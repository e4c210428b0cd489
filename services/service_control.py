"""Stop Katello services and verify they are down before upgrading."""
from __future__ import annotations

import logging
import subprocess
from typing import Optional, Protocol, Sequence

from services.errors import ExitCode, UpgradeError
from services.options import UpgradeOptions

LOGGER = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Callable protocol used to execute service control commands."""

    def __call__(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        ...


class ServiceStopError(UpgradeError):
    """Raised when services could not be stopped."""

    exit_code = ExitCode.STOP_ERROR


class ServiceCheckError(UpgradeError):
    """Raised when some services are still running."""


def stop_services(options: UpgradeOptions, runner: Optional[CommandRunner] = None) -> None:
    runner = runner or _run_command
    command = list(options.stop_command)

    if options.dry_run:
        LOGGER.info("Dry run: would stop services with '%s'", " ".join(command))
        return

    LOGGER.info("Stopping services")
    try:
        runner(command)
    except (OSError, subprocess.CalledProcessError) as exc:
        LOGGER.error("Failed to stop services: %s", _describe_failure(exc))
        raise ServiceStopError(
            f"Unable to stop services with '{' '.join(command)}'."
        ) from exc


def check_services_stopped(
    options: UpgradeOptions, runner: Optional[CommandRunner] = None
) -> None:
    runner = runner or _run_command
    command = list(options.check_command)

    if options.dry_run:
        LOGGER.info("Dry run: would verify services are stopped with '%s'", " ".join(command))
        return

    LOGGER.info("Checking that all services are stopped")
    try:
        runner(command)
    except (OSError, subprocess.CalledProcessError) as exc:
        LOGGER.error("Service check failed: %s", _describe_failure(exc))
        raise ServiceCheckError(
            "Some services are still running. Stop them first, use --autostop, "
            "or pass --skip-service-check."
        ) from exc


def _run_command(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(args),
        check=True,
        capture_output=True,
        text=True,
    )


def _describe_failure(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        output = (exc.stderr or exc.stdout or "").strip()
        return output or f"exit status {exc.returncode}"
    return str(exc)
