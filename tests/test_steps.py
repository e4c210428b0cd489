from pathlib import Path

import pytest

from services import steps
from services.errors import ExitCode


def _header(*lines: str) -> list[str]:
    return [f"{line}\n" for line in lines]


def test_parse_header_reads_all_markers():
    descriptor = steps.parse_header(
        Path("/scripts/01-migrate-pools"),
        _header(
            "#!/bin/sh",
            "# name: Migrate pools",
            "# apply: katello headpin",
            "# run: once",
            "# description:",
            "# Converts the legacy pool table.",
            "# Safe to run while services are stopped.",
            "",
            "echo migrating",
        ),
    )

    assert descriptor.name == "Migrate pools"
    assert descriptor.apply == frozenset({"katello", "headpin"})
    assert descriptor.run_mode is steps.RunMode.ONCE
    assert descriptor.description == (
        "Converts the legacy pool table.\nSafe to run while services are stopped."
    )
    assert descriptor.filename == "01-migrate-pools"
    assert descriptor.applies_to("headpin")
    assert not descriptor.applies_to("sam")


@pytest.mark.parametrize(
    "lines, missing",
    [
        (("# apply: katello", "# run: once"), "name"),
        (("# name: Step", "# run: always"), "apply"),
        (("# name: Step", "# apply: katello"), "run"),
        (("# name: Step", "# apply:", "# run: once"), "apply"),
    ],
)
def test_parse_header_rejects_missing_markers(lines, missing):
    with pytest.raises(steps.StepValidationError) as excinfo:
        steps.parse_header(Path("02-step"), _header("#!/bin/sh", *lines))

    assert missing in str(excinfo.value)
    assert "02-step" in str(excinfo.value)
    assert excinfo.value.exit_code == ExitCode.VALIDATION_ERROR


def test_parse_header_rejects_unknown_run_mode():
    with pytest.raises(steps.StepValidationError, match="invalid run mode 'twice'"):
        steps.parse_header(
            Path("03-step"),
            _header("# name: Step", "# apply: katello", "# run: twice"),
        )


def test_markers_after_code_are_ignored():
    with pytest.raises(steps.StepValidationError, match="run"):
        steps.parse_header(
            Path("04-step"),
            _header("# name: Step", "# apply: katello", "set -e", "# run: once"),
        )


def test_description_block_ends_at_marker_or_blank_line():
    descriptor = steps.parse_header(
        Path("05-step"),
        _header(
            "# description: First line",
            "#   second line  ",
            "# name: Step",
            "# this comment is not part of the description",
            "# apply: katello",
            "# run: always",
        ),
    )
    assert descriptor.description == "First line\nsecond line"

    descriptor = steps.parse_header(
        Path("06-step"),
        _header(
            "# name: Step",
            "# apply: katello",
            "# run: always",
            "# description:",
            "# kept",
            "",
            "# dropped",
        ),
    )
    assert descriptor.description == "kept"


def test_empty_description_is_none():
    descriptor = steps.parse_header(
        Path("07-step"),
        _header("# name: Step", "# apply: katello", "# run: once", "# description:", "#"),
    )
    assert descriptor.description is None


@pytest.mark.parametrize(
    "line, kind, value",
    [
        ("# name: Reindex", steps.LineKind.NAME, "Reindex"),
        ("#apply: katello sam", steps.LineKind.APPLY, "katello sam"),
        ("## run : always", steps.LineKind.RUN, "always"),
        ("# description: text", steps.LineKind.DESCRIPTION, "text"),
        ("#!/bin/bash", steps.LineKind.COMMENT, "!/bin/bash"),
        ("# runtime: 5 minutes", steps.LineKind.COMMENT, "runtime: 5 minutes"),
        ("   ", steps.LineKind.BLANK, ""),
        ("exit 0", steps.LineKind.CODE, "exit 0"),
    ],
)
def test_classify_line(line, kind, value):
    assert steps.classify_line(line) == steps.HeaderLine(kind, value)


def test_load_step_reads_file(tmp_path):
    script = tmp_path / "08-step"
    script.write_text("#!/bin/sh\n# name: Step\n# apply: katello\n# run: once\nexit 0\n")

    descriptor = steps.load_step(script)

    assert descriptor.path == script
    assert descriptor.name == "Step"


def test_load_step_reports_unreadable_file(tmp_path):
    with pytest.raises(steps.StepValidationError, match="Unable to read"):
        steps.load_step(tmp_path / "missing")
