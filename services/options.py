"""Run configuration passed explicitly to every upgrade component."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from install_paths import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_HISTORY_FILE,
    DEFAULT_LOG_FILE,
    DEFAULT_SCRIPTS_DIR,
    DEFAULT_WORKING_DIR,
)

DEFAULT_STOP_COMMAND: Tuple[str, ...] = ("katello-service", "stop")
DEFAULT_CHECK_COMMAND: Tuple[str, ...] = ("katello-service", "allstopped")


@dataclass(frozen=True)
class UpgradeOptions:
    """Flags and locations for a single upgrade run."""

    autostop: bool = False
    assume_yes: bool = False
    dry_run: bool = False
    quiet: bool = False
    describe: bool = False
    trace: bool = False
    skip_service_check: bool = False
    skip_root_check: bool = False
    deployment: Optional[str] = None
    scripts_dir: Path = DEFAULT_SCRIPTS_DIR
    history_file: Path = DEFAULT_HISTORY_FILE
    log_file: Path = DEFAULT_LOG_FILE
    config_file: Path = DEFAULT_CONFIG_FILE
    working_dir: Path = DEFAULT_WORKING_DIR
    stop_command: Tuple[str, ...] = field(default=DEFAULT_STOP_COMMAND)
    check_command: Tuple[str, ...] = field(default=DEFAULT_CHECK_COMMAND)
