"""Command-line driver that applies pending Katello upgrade steps."""
from __future__ import annotations

import argparse
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from install_paths import resolve_install_paths
from services.errors import ExitCode, UpgradeError
from services.history import HistoryStore
from services.options import UpgradeOptions
from services.runner import RunSummary, StepPrompt, UpgradeRunner, describe_queue
from services.service_control import CommandRunner
from services.step_queue import build_queue
from services.upgrade_logging import configure_logging, reset_logging

LOGGER = logging.getLogger(__name__)


class OptionParseError(UpgradeError):
    """Raised when the command line cannot be parsed."""

    exit_code = ExitCode.OPTION_PARSE_ERROR


class NotRootError(UpgradeError):
    """Raised when the upgrade is started without root privileges."""

    exit_code = ExitCode.NOT_ROOT


class _OptionParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise OptionParseError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _OptionParser(
        prog="katello-upgrade",
        description="Apply pending Katello upgrade steps in order.",
    )
    parser.add_argument(
        "-a", "--autostop", action="store_true", help="Stop services before upgrading"
    )
    parser.add_argument(
        "-y",
        "--assumeyes",
        dest="assume_yes",
        action="store_true",
        help="Run every step without asking for confirmation",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would run without executing anything",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only write to the log file")
    parser.add_argument(
        "-d",
        "--describe",
        action="store_true",
        help="Describe the pending steps and exit",
    )
    parser.add_argument("--trace", action="store_true", help="Print stack traces on errors")
    parser.add_argument(
        "--skip-service-check",
        action="store_true",
        help="Do not verify that services are stopped",
    )
    parser.add_argument(
        "--skip-root-check",
        action="store_true",
        help="Do not require root privileges",
    )
    parser.add_argument(
        "--deployment",
        help="Force the deployment instead of reading it from the configuration",
    )
    parser.add_argument("--scripts-dir", type=Path, help="Directory holding upgrade steps")
    parser.add_argument("--history-file", type=Path, help="File recording applied steps")
    parser.add_argument("--log-file", type=Path, help="File receiving the upgrade log")
    parser.add_argument(
        "--config-file", type=Path, help="Configuration used to detect the deployment"
    )
    return parser


def parse_options(argv: Optional[Sequence[str]] = None) -> UpgradeOptions:
    """Translate command-line arguments into :class:`UpgradeOptions`.

    Path flags override the locations resolved from the environment.
    """
    args = _build_parser().parse_args(argv)
    paths = resolve_install_paths()

    return UpgradeOptions(
        autostop=args.autostop,
        assume_yes=args.assume_yes,
        dry_run=args.dry_run,
        quiet=args.quiet,
        describe=args.describe,
        trace=args.trace,
        skip_service_check=args.skip_service_check,
        skip_root_check=args.skip_root_check,
        deployment=args.deployment,
        scripts_dir=args.scripts_dir or paths["scripts_dir"],
        history_file=args.history_file or paths["history_file"],
        log_file=args.log_file or paths["log_file"],
        config_file=args.config_file or paths["config_file"],
        working_dir=paths["working_dir"],
    )


def _is_root() -> bool:
    return os.geteuid() == 0


def ensure_root(options: UpgradeOptions) -> None:
    if options.skip_root_check or _is_root():
        return
    raise NotRootError("The upgrade must be run as root (or pass --skip-root-check).")


def run_upgrade(
    options: UpgradeOptions,
    *,
    prompt: Optional[StepPrompt] = None,
    command_runner: Optional[CommandRunner] = None,
) -> Optional[RunSummary]:
    """Build the queue and either describe it or run it.

    Returns ``None`` in describe mode.
    """
    history = HistoryStore(options.history_file)
    queue = build_queue(options, history)

    if options.describe:
        describe_queue(queue)
        return None

    runner = UpgradeRunner(
        options,
        history,
        prompt=prompt,
        command_runner=command_runner,
    )
    return runner.run(queue)


def _report(
    message: str,
    options: Optional[UpgradeOptions],
    logging_ready: bool,
    level: int = logging.ERROR,
) -> None:
    if logging_ready:
        LOGGER.log(level, message)
    elif options is None or not options.quiet:
        print(message, file=sys.stderr)
    if options is not None and options.trace:
        traceback.print_exc()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    prompt: Optional[StepPrompt] = None,
    command_runner: Optional[CommandRunner] = None,
) -> int:
    """Entry-point used by ``upgrade.py`` and the ``katello-upgrade`` script."""

    options: Optional[UpgradeOptions] = None
    handlers: List[logging.Handler] = []
    try:
        options = parse_options(argv)
        ensure_root(options)
        handlers = configure_logging(options)

        summary = run_upgrade(options, prompt=prompt, command_runner=command_runner)
        if summary is not None and not summary.dry_run:
            LOGGER.info("Upgrade completed successfully.")
        return int(ExitCode.SUCCESS)
    except UpgradeError as exc:
        level = logging.WARNING if exc.exit_code == ExitCode.INTERRUPTED else logging.ERROR
        label = "interrupted" if exc.exit_code == ExitCode.INTERRUPTED else "failed"
        _report(
            f"Upgrade {label} (exit code {int(exc.exit_code)}): {exc}",
            options,
            bool(handlers),
            level,
        )
        return int(exc.exit_code)
    except KeyboardInterrupt:
        _report(
            f"Upgrade stopped externally (exit code {int(ExitCode.EXTERNALLY_STOPPED)})",
            options,
            bool(handlers),
        )
        return int(ExitCode.EXTERNALLY_STOPPED)
    except Exception as exc:
        _report(
            f"Upgrade failed (exit code {int(ExitCode.ERROR)}): {exc}",
            options,
            bool(handlers),
        )
        return int(ExitCode.ERROR)
    finally:
        reset_logging(handlers)


if __name__ == "__main__":  # pragma: no cover - CLI behavior
    raise SystemExit(main())
