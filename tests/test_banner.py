"""Tests for formactions.banner — scan summary output."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from unittest.mock import patch

from formactions.banner import print_summary, print_watch_report
from formactions.config import FormActionsConfig
from formactions.observability import EventLog, PipelineCollector
from formactions.pipeline import ScanResult
from formactions.routes.registry import RouteRegistration


def _result(loader_names: tuple[str, ...] = ("profile", "search")) -> ScanResult:
    src = Path("/tmp/test-project/server/actions")
    return ScanResult(
        records=(),
        registrations=(
            RouteRegistration("post", "/login", src / "login.py", lazy=True),
            RouteRegistration("post", "/search", src / "search.py", lazy=True),
        ),
        loader_names=loader_names,
        duration_ms=42.5,
    )


class TestPrintSummary:
    """Tests for the scan summary."""

    def _capture(self, mode: str, **kwargs: object) -> str:
        """Call print_summary and capture stderr output."""
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            config = FormActionsConfig(root=Path("/tmp/test-project"))
            print_summary(config, kwargs.pop("result", _result()), mode, **kwargs)  # type: ignore[arg-type]
        return buf.getvalue()

    def test_scan_mode(self) -> None:
        output = self._capture("scan")
        assert "formactions" in output
        assert "[scan]" in output
        assert "0 actions scanned" in output
        assert "42ms" in output
        assert "2 handlers registered" in output
        assert "2 loaders: profile, search" in output
        assert "Watching" not in output

    def test_watch_mode(self) -> None:
        output = self._capture("watch")
        assert "[watch]" in output
        assert "Watching /tmp/test-project/server/actions for changes" in output

    def test_no_loaders_line_when_empty(self) -> None:
        output = self._capture("scan", result=_result(loader_names=()))
        assert "loaders:" in output
        assert "loader:" not in output
        assert "profile" not in output

    def test_singular(self) -> None:
        output = self._capture("scan", result=_result(loader_names=("profile",)))
        assert "1 loader: profile" in output

    def test_warnings(self) -> None:
        output = self._capture("scan", warnings=["loader dir is not ignored by git"])
        assert "loader dir is not ignored by git" in output


class TestPrintWatchReport:
    """Tests for the report printed when a watch session ends."""

    def _capture(self, log: EventLog) -> str:
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            print_watch_report(log, max_failures=2)
        return buf.getvalue()

    def test_counts(self) -> None:
        log = EventLog()
        collector = PipelineCollector(log)
        collector.record_extraction("profile", "/a/profile.py", "/gen/profile.py")
        collector.record_removal("search", "/a/search.py")
        collector.record_declarations("/t.pyi", loader_count=1, trigger="update")
        output = self._capture(log)
        assert "watch stopped" in output
        assert "1 loader extracted, 1 removed" in output
        assert "1 declaration render" in output
        assert "no failed updates" in output

    def test_lists_latest_failures(self) -> None:
        log = EventLog()
        collector = PipelineCollector(log)
        for name in ("a", "b", "c"):
            collector.record_failure("change", f"/a/{name}.py", ValueError(f"bad {name}"))
        output = self._capture(log)
        assert "3 failed updates" in output
        assert "/a/a.py" not in output
        assert "change /a/b.py: ValueError: bad b" in output
        assert "change /a/c.py: ValueError: bad c" in output
