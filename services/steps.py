"""Self-describing upgrade step scripts.

Every step script announces itself through comment markers at the top of
the file::

    #!/bin/sh
    # name: Migrate the candlepin database
    # apply: katello headpin
    # run: once
    # description:
    # Converts the legacy pool table to the new layout.
    # Safe to run while services are stopped.

Header scanning stops at the first line that is neither a comment nor blank.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from services.errors import ExitCode, UpgradeError

LOGGER = logging.getLogger(__name__)

__all__ = [
    "HeaderLine",
    "LineKind",
    "RunMode",
    "StepDescriptor",
    "StepValidationError",
    "classify_line",
    "load_step",
    "parse_header",
]

_MARKER_PATTERN = re.compile(r"^#+\s*(name|apply|run|description)\s*:\s?(.*)$")


class StepValidationError(UpgradeError):
    """Raised when a step script lacks a required header marker."""

    exit_code = ExitCode.VALIDATION_ERROR


class RunMode(str, Enum):
    ONCE = "once"
    ALWAYS = "always"


class LineKind(Enum):
    NAME = "name"
    APPLY = "apply"
    RUN = "run"
    DESCRIPTION = "description"
    COMMENT = "comment"
    BLANK = "blank"
    CODE = "code"


@dataclass(frozen=True)
class HeaderLine:
    kind: LineKind
    value: str = ""


@dataclass(frozen=True)
class StepDescriptor:
    """A parsed upgrade step ready to be queued."""

    path: Path
    name: str
    apply: FrozenSet[str]
    run_mode: RunMode
    description: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.path.name

    def applies_to(self, deployment: str) -> bool:
        return deployment in self.apply


def classify_line(line: str) -> HeaderLine:
    """Classify a single header line."""
    stripped = line.strip()
    if not stripped:
        return HeaderLine(LineKind.BLANK)
    if not stripped.startswith("#"):
        return HeaderLine(LineKind.CODE, stripped)

    match = _MARKER_PATTERN.match(stripped)
    if match:
        return HeaderLine(LineKind(match.group(1)), match.group(2).strip())
    return HeaderLine(LineKind.COMMENT, stripped.lstrip("#").strip())


def parse_header(path: Path, lines: Iterable[str]) -> StepDescriptor:
    """Build a :class:`StepDescriptor` from the leading lines of a script."""

    name: Optional[str] = None
    apply: Optional[FrozenSet[str]] = None
    run_value: Optional[str] = None
    description_lines: list[str] = []
    in_description = False
    saw_description = False

    for line in lines:
        header = classify_line(line)

        if header.kind is LineKind.CODE:
            break
        if header.kind is LineKind.COMMENT:
            if in_description:
                description_lines.append(header.value)
            continue

        in_description = False
        if header.kind is LineKind.NAME:
            name = header.value or None
        elif header.kind is LineKind.APPLY:
            apply = frozenset(header.value.split()) or None
        elif header.kind is LineKind.RUN:
            run_value = header.value
        elif header.kind is LineKind.DESCRIPTION:
            in_description = True
            saw_description = True
            description_lines = [header.value] if header.value else []

    missing = [
        marker
        for marker, value in (("name", name), ("apply", apply), ("run", run_value))
        if not value
    ]
    if missing:
        raise StepValidationError(
            f"Upgrade step {path.name} is missing required header(s): {', '.join(missing)}"
        )

    try:
        run_mode = RunMode(run_value)
    except ValueError as exc:
        raise StepValidationError(
            f"Upgrade step {path.name} has invalid run mode '{run_value}'; "
            f"expected one of: {', '.join(mode.value for mode in RunMode)}"
        ) from exc

    description = None
    if saw_description:
        description = "\n".join(description_lines).strip() or None

    return StepDescriptor(
        path=path,
        name=name,
        apply=apply,
        run_mode=run_mode,
        description=description,
    )


def load_step(path: Path) -> StepDescriptor:
    """Read and validate the step script at ``path``."""
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            return parse_header(path, handle)
    except OSError as exc:
        raise StepValidationError(f"Unable to read upgrade step {path}: {exc}") from exc
