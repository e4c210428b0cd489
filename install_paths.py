"""Centralized helpers for resolving the upgrade tool's filesystem locations."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

KATELLO_ROOT = Path("/usr/share/katello")
DEFAULT_SCRIPTS_DIR = KATELLO_ROOT / "install" / "upgrade-scripts"
DEFAULT_HISTORY_FILE = Path("/var/lib/katello/upgrade-history")
DEFAULT_LOG_FILE = Path("/var/log/katello/katello-upgrade.log")
DEFAULT_CONFIG_FILE = Path("/etc/katello/katello-configure.conf")
DEFAULT_WORKING_DIR = KATELLO_ROOT

_ENVIRONMENT_OVERRIDES = {
    "scripts_dir": ("KATELLO_UPGRADE_SCRIPTS_DIR", DEFAULT_SCRIPTS_DIR),
    "history_file": ("KATELLO_UPGRADE_HISTORY_FILE", DEFAULT_HISTORY_FILE),
    "log_file": ("KATELLO_UPGRADE_LOG_FILE", DEFAULT_LOG_FILE),
    "config_file": ("KATELLO_CONFIGURE_CONF", DEFAULT_CONFIG_FILE),
    "working_dir": ("KATELLO_UPGRADE_WORKDIR", DEFAULT_WORKING_DIR),
}

_environment_loaded = False


def resolve_install_paths() -> dict[str, Path]:
    """Return the default locations, honouring environment overrides.

    A ``.env`` file in the current directory (or any parent) is loaded once
    before the environment is consulted. Variables already present in the
    process environment win over the file.
    """
    global _environment_loaded

    if not _environment_loaded:
        _environment_loaded = True
        load_dotenv()

    paths: dict[str, Path] = {}
    for key, (variable, default) in _ENVIRONMENT_OVERRIDES.items():
        override = os.getenv(variable)
        if override and override.strip():
            LOGGER.debug("Using %s from %s", key, variable)
            paths[key] = Path(override.strip())
        else:
            paths[key] = default
    return paths
