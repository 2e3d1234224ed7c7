"""Tests for formactions.reactive.watcher — change batches to file events."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from watchfiles import Change

from formactions.config import FormActionsConfig
from formactions.reactive.watcher import ActionWatcher, FileEvent, coalesce_changes


# ---------------------------------------------------------------------------
# FileEvent dataclass tests
# ---------------------------------------------------------------------------


class TestFileEvent:
    """Verify FileEvent is frozen and well-behaved."""

    def test_frozen(self) -> None:
        event = FileEvent(kind="change", path=Path("/a/login.py"))
        with pytest.raises(AttributeError):
            event.kind = "add"  # type: ignore[misc]

    def test_equality(self) -> None:
        assert FileEvent("add", Path("/a.py")) == FileEvent("add", Path("/a.py"))

    def test_hashable(self) -> None:
        assert isinstance(hash(FileEvent("delete", Path("/a.py"))), int)


# ---------------------------------------------------------------------------
# coalesce_changes tests
# ---------------------------------------------------------------------------


class TestCoalesceChanges:
    """Unit tests for coalesce_changes()."""

    def test_kind_mapping(self, tmp_path: Path) -> None:
        events = coalesce_changes(
            [
                (Change.added, str(tmp_path / "a.py")),
                (Change.modified, str(tmp_path / "b.py")),
                (Change.deleted, str(tmp_path / "c.py")),
            ],
            tmp_path,
        )
        assert [(e.kind, e.path.name) for e in events] == [
            ("add", "a.py"),
            ("change", "b.py"),
            ("delete", "c.py"),
        ]

    def test_outside_root_dropped(self, tmp_path: Path) -> None:
        events = coalesce_changes([(Change.modified, "/elsewhere/a.py")], tmp_path / "actions")
        assert events == []

    def test_one_event_per_path(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("x = 1\n")
        events = coalesce_changes(
            [(Change.modified, str(path)), (Change.modified, str(path))],
            tmp_path,
        )
        assert events == [FileEvent("change", path)]

    def test_added_then_deleted_is_delete(self, tmp_path: Path) -> None:
        path = tmp_path / "gone.py"
        events = coalesce_changes(
            [(Change.added, str(path)), (Change.deleted, str(path))],
            tmp_path,
        )
        assert events == [FileEvent("delete", path)]

    def test_added_then_modified_is_add(self, tmp_path: Path) -> None:
        path = tmp_path / "new.py"
        path.write_text("x = 1\n")
        events = coalesce_changes(
            [(Change.added, str(path)), (Change.modified, str(path))],
            tmp_path,
        )
        assert events == [FileEvent("add", path)]

    def test_deleted_then_recreated_is_change(self, tmp_path: Path) -> None:
        path = tmp_path / "swap.py"
        path.write_text("x = 1\n")
        events = coalesce_changes(
            [(Change.deleted, str(path)), (Change.modified, str(path))],
            tmp_path,
        )
        assert events == [FileEvent("change", path)]

    def test_sorted_by_path(self, tmp_path: Path) -> None:
        events = coalesce_changes(
            [(Change.modified, str(tmp_path / "z.py")), (Change.modified, str(tmp_path / "a.py"))],
            tmp_path,
        )
        assert [e.path.name for e in events] == ["a.py", "z.py"]


# ---------------------------------------------------------------------------
# ActionWatcher lifecycle
# ---------------------------------------------------------------------------


class TestActionWatcher:
    """Start / stop behaviour of the background watcher."""

    def test_not_running_initially(self, config: FormActionsConfig) -> None:
        assert ActionWatcher(config).is_running is False

    def test_stop_without_start(self, config: FormActionsConfig) -> None:
        watcher = ActionWatcher(config)
        watcher.stop()
        assert watcher.is_running is False

    @pytest.mark.asyncio
    async def test_start_and_stop(self, config: FormActionsConfig) -> None:
        watcher = ActionWatcher(config)
        watcher.start()
        assert watcher.is_running is True
        await asyncio.to_thread(watcher.stop)
        assert watcher.is_running is False
