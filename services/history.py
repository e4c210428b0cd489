"""Append-only record of upgrade steps that already ran."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from services.errors import UpgradeError
from services.steps import RunMode, StepDescriptor

LOGGER = logging.getLogger(__name__)


class HistoryError(UpgradeError):
    """Raised when the history file cannot be read or appended to."""


class HistoryStore:
    """Flat file listing one completed step filename per line.

    Only ``once`` steps are ever recorded. Entries are appended, never
    rewritten, so the file doubles as an audit trail.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def completed(self) -> List[str]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise HistoryError(f"Unable to read upgrade history {self.path}: {exc}") from exc
        return [line for line in content.splitlines() if line]

    def is_done(self, step: StepDescriptor) -> bool:
        if step.run_mode is RunMode.ALWAYS:
            return False
        return step.filename in self.completed()

    def mark_done(self, step: StepDescriptor) -> None:
        if step.run_mode is RunMode.ALWAYS or self.is_done(step):
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            needs_separator = self._lacks_trailing_newline()
            with self.path.open("a", encoding="utf-8") as handle:
                if needs_separator:
                    handle.write("\n")
                handle.write(f"{step.filename}\n")
        except OSError as exc:
            raise HistoryError(
                f"Unable to record {step.filename} in upgrade history {self.path}: {exc}"
            ) from exc

        LOGGER.debug("Recorded %s in %s", step.filename, self.path)

    def _lacks_trailing_newline(self) -> bool:
        if not self.path.exists() or self.path.stat().st_size == 0:
            return False
        with self.path.open("rb") as handle:
            handle.seek(-1, 2)
            return handle.read(1) != b"\n"
