"""Build the ordered list of upgrade steps that still need to run."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from services.deployment import detect_deployment
from services.errors import UpgradeError
from services.history import HistoryStore
from services.options import UpgradeOptions
from services.steps import StepDescriptor, load_step

LOGGER = logging.getLogger(__name__)


class QueueError(UpgradeError):
    """Raised when the step scripts directory cannot be listed."""


def discover_steps(scripts_dir: Path) -> List[StepDescriptor]:
    """Load every executable file in ``scripts_dir`` in filename order."""
    scripts_dir = Path(scripts_dir).resolve()
    try:
        names = sorted(os.listdir(scripts_dir))
    except OSError as exc:
        raise QueueError(f"Unable to list upgrade steps in {scripts_dir}: {exc}") from exc

    steps: List[StepDescriptor] = []
    for name in names:
        entry = scripts_dir / name
        if entry.is_dir():
            LOGGER.info("Skipping directory %s", entry)
            continue
        if not os.access(entry, os.X_OK):
            LOGGER.info("Skipping non-executable file %s", entry)
            continue
        steps.append(load_step(entry))
    return steps


def build_queue(options: UpgradeOptions, history: HistoryStore) -> List[StepDescriptor]:
    """Return the steps applicable to the active deployment and not yet done."""

    steps = discover_steps(options.scripts_dir)
    deployment = detect_deployment(options.config_file, options.deployment)

    queue: List[StepDescriptor] = []
    for step in steps:
        if not step.applies_to(deployment):
            LOGGER.debug("Step %s does not apply to %s", step.filename, deployment)
            continue
        if history.is_done(step):
            LOGGER.debug("Step %s already applied", step.filename)
            continue
        queue.append(step)

    LOGGER.debug(
        "%d of %d upgrade steps queued for %s deployment",
        len(queue),
        len(steps),
        deployment,
    )
    return queue
