from pathlib import Path

import pytest

from services.history import HistoryError, HistoryStore
from services.steps import RunMode, StepDescriptor


def _step(filename: str, run_mode: RunMode = RunMode.ONCE) -> StepDescriptor:
    return StepDescriptor(
        path=Path("/scripts") / filename,
        name=filename,
        apply=frozenset({"katello"}),
        run_mode=run_mode,
    )


def test_missing_history_file_means_nothing_done(tmp_path):
    store = HistoryStore(tmp_path / "upgrade-history")

    assert store.completed() == []
    assert not store.is_done(_step("01-a"))


def test_once_step_is_done_only_when_recorded(tmp_path):
    history_file = tmp_path / "upgrade-history"
    history_file.write_text("01-a\n02-b\n")
    store = HistoryStore(history_file)

    assert store.is_done(_step("01-a"))
    assert store.is_done(_step("02-b"))
    assert not store.is_done(_step("01-a-extra"))


def test_always_step_is_never_done(tmp_path):
    history_file = tmp_path / "upgrade-history"
    history_file.write_text("03-c\n")
    store = HistoryStore(history_file)

    assert not store.is_done(_step("03-c", RunMode.ALWAYS))


def test_mark_done_appends_once_steps(tmp_path):
    history_file = tmp_path / "nested" / "upgrade-history"
    store = HistoryStore(history_file)

    store.mark_done(_step("01-a"))
    store.mark_done(_step("01-a"))
    store.mark_done(_step("02-b", RunMode.ALWAYS))
    store.mark_done(_step("03-c"))

    assert history_file.read_text() == "01-a\n03-c\n"
    assert store.completed() == ["01-a", "03-c"]


def test_mark_done_keeps_entries_on_separate_lines(tmp_path):
    history_file = tmp_path / "upgrade-history"
    history_file.write_text("01-a")
    store = HistoryStore(history_file)

    store.mark_done(_step("02-b"))

    assert history_file.read_text() == "01-a\n02-b\n"


def test_write_failure_is_fatal(tmp_path):
    history_dir = tmp_path / "upgrade-history"
    history_dir.mkdir()
    store = HistoryStore(history_dir)

    with pytest.raises(HistoryError):
        store.mark_done(_step("01-a"))


def test_only_exact_lines_count_as_done(tmp_path):
    history_file = tmp_path / "upgrade-history"
    history_file.write_text("  01-a \n\n02-b\n")
    store = HistoryStore(history_file)

    assert not store.is_done(_step("01-a"))
    assert store.is_done(_step("02-b"))
    assert store.completed() == ["  01-a ", "02-b"]
