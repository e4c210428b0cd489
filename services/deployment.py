"""Detect which product variant the target installation is configured as."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from services.errors import ExitCode, UpgradeError

LOGGER = logging.getLogger(__name__)

DEFAULT_DEPLOYMENT = "katello"
ALTERNATE_DEPLOYMENT = "headpin"

# Both identifiers select the alternate deployment's step set.
_ALTERNATE_PATTERN = re.compile(r"^\s*deployment\s*=\s*(headpin|sam)\s*$", re.MULTILINE)


class DeploymentDetectionError(UpgradeError):
    """Raised when the deployment configuration cannot be read."""

    exit_code = ExitCode.DEPLOYMENT_ERROR


def detect_deployment(config_file: Path, override: Optional[str] = None) -> str:
    """Return the active deployment name.

    ``override`` wins when given. Otherwise ``config_file`` is searched for a
    ``deployment = headpin`` or ``deployment = sam`` assignment.
    """

    if override:
        LOGGER.debug("Deployment forced to %s", override)
        return override

    try:
        content = Path(config_file).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise DeploymentDetectionError(
            f"Unable to detect deployment from {config_file}: {exc}"
        ) from exc

    if _ALTERNATE_PATTERN.search(content):
        deployment = ALTERNATE_DEPLOYMENT
    else:
        deployment = DEFAULT_DEPLOYMENT
    LOGGER.debug("Detected %s deployment from %s", deployment, config_file)
    return deployment
