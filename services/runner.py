"""Execute queued upgrade steps one at a time."""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from services.errors import UpgradeInterrupted
from services.history import HistoryStore
from services.options import UpgradeOptions
from services.prompts import StepAnswer, ask_step
from services.service_control import (
    CommandRunner,
    check_services_stopped,
    stop_services,
)
from services.steps import StepDescriptor
from services.upgrade_logging import DESCRIPTION_PREFIX

LOGGER = logging.getLogger(__name__)

StepExecutor = Callable[[StepDescriptor, UpgradeOptions], int]
StepPrompt = Callable[[str], StepAnswer]


@dataclass
class RunSummary:
    """Steps handled by a successful run."""

    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dry_run: bool = False


def describe_queue(queue: Sequence[StepDescriptor]) -> None:
    """Log each queued step without running anything."""
    if not queue:
        LOGGER.info("No upgrade steps need to run.")
        return

    for index, step in enumerate(queue, start=1):
        LOGGER.info("Step %d/%d: %s (%s)", index, len(queue), step.name, step.run_mode.value)
        LOGGER.info("%s %s", DESCRIPTION_PREFIX, step.description or "(none)")


def execute_step(step: StepDescriptor, options: UpgradeOptions) -> int:
    """Run the step script and log its combined output line by line.

    The child is started with ``options.working_dir`` as its working directory;
    the tool's own working directory is never changed.
    """
    LOGGER.info("Running %s", step.path)
    with subprocess.Popen(
        [str(step.path.absolute())],
        cwd=str(options.working_dir),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
    ) as process:
        assert process.stdout is not None
        for line in process.stdout:
            LOGGER.info("%s", line.rstrip("\n"))
        return process.wait()


class UpgradeRunner:
    """Walks the queue, asking the operator before each step."""

    def __init__(
        self,
        options: UpgradeOptions,
        history: HistoryStore,
        *,
        prompt: Optional[StepPrompt] = None,
        executor: Optional[StepExecutor] = None,
        command_runner: Optional[CommandRunner] = None,
    ) -> None:
        self.options = options
        self.history = history
        self._prompt = prompt or ask_step
        self._executor = executor or execute_step
        self._command_runner = command_runner

    def run(self, queue: Sequence[StepDescriptor]) -> RunSummary:
        """Run every queued step.

        Raises :class:`UpgradeInterrupted` when the operator answers ``no`` or a
        step exits non-zero. Steps completed before that point stay recorded.
        """
        if self.options.autostop:
            stop_services(self.options, self._command_runner)
        if not self.options.skip_service_check:
            check_services_stopped(self.options, self._command_runner)

        summary = RunSummary(dry_run=self.options.dry_run)
        if not queue:
            LOGGER.info("No upgrade steps need to run.")
            return summary

        total = len(queue)
        for index, step in enumerate(queue, start=1):
            LOGGER.info("Step %d/%d: %s", index, total, step.name)

            if not self.options.assume_yes:
                answer = self._prompt(step.name)
                if answer is StepAnswer.SKIP:
                    LOGGER.info("Skipping %s", step.filename)
                    summary.skipped.append(step.filename)
                    continue
                if answer is StepAnswer.NO:
                    LOGGER.warning("Upgrade stopped by operator before %s", step.filename)
                    raise UpgradeInterrupted(
                        f"Upgrade interrupted before step {step.filename}. "
                        "Run the upgrade again to continue."
                    )

            self._apply(step)
            summary.executed.append(step.filename)

        LOGGER.info(
            "Upgrade finished: %d step(s) run, %d skipped%s",
            len(summary.executed),
            len(summary.skipped),
            " (dry run)" if summary.dry_run else "",
        )
        return summary

    def _apply(self, step: StepDescriptor) -> None:
        if self.options.dry_run:
            LOGGER.info("Dry run: would run %s", step.path)
            return

        try:
            status = self._executor(step, self.options)
        except OSError as exc:
            LOGGER.error("Unable to start %s: %s", step.filename, exc)
            raise UpgradeInterrupted(
                f"Upgrade step {step.filename} could not be started. "
                "Fix the problem and run the upgrade again."
            ) from exc

        if status != 0:
            LOGGER.error("Step %s failed with exit status %s", step.filename, status)
            raise UpgradeInterrupted(
                f"Upgrade step {step.filename} failed. "
                "Fix the problem and run the upgrade again."
            )

        self.history.mark_done(step)
        LOGGER.info("Step %s completed successfully", step.filename)
