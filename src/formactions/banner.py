"""Scan summary — mode-aware status output.

Prints a short summary after a full scan with timing and the published
loader names, and a session report when watching stops. Detects
``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from formactions._types import RunMode
    from formactions.config import FormActionsConfig
    from formactions.observability import EventLog
    from formactions.pipeline import ScanResult


# ---------------------------------------------------------------------------
# ANSI helpers, respecting NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Mode badges
# ---------------------------------------------------------------------------

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "scan": (_YELLOW, "scan"),
    "watch": (_GREEN, "watch"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_summary(
    config: FormActionsConfig,
    result: ScanResult,
    mode: RunMode,
    *,
    warnings: list[str] | None = None,
) -> None:
    """Print the scan summary to stderr.

    Args:
        config: Resolved FormActionsConfig.
        result: Result of the full scan.
        mode: One of ``"scan"``, ``"watch"``.
        warnings: Optional list of warning messages to display.

    """
    from formactions import __version__

    badge = _mode_badge(mode)
    header = f"  {_BOLD}formactions{_RESET} {_DIM}v{__version__}{_RESET}  {badge}"

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    timing = f" {_DIM}in {result.duration_ms:.0f}ms{_RESET}" if result.duration_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} {_plural(len(result.records), 'action')} scanned{timing}")

    handlers = sum(1 for r in result.registrations if r.method == "post")
    lines.append(f"  {_DIM}├─{_RESET} {_plural(handlers, 'handler')} registered")

    if result.loader_names:
        names = ", ".join(result.loader_names)
        lines.append(
            f"  {_DIM}├─{_RESET} {_plural(len(result.loader_names), 'loader')}: {_CYAN}{names}{_RESET}"
        )

    lines.append(f"  {_DIM}├─{_RESET} loaders: {_DIM}{config.loader_path}{_RESET}")
    lines.append(f"  {_DIM}└─{_RESET} types: {_DIM}{config.types_path}{_RESET}")

    if mode == "watch":
        lines.append("")
        lines.append(f"  {_DIM}Watching {config.actions_path} for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)


def print_watch_report(log: EventLog, *, max_failures: int = 5) -> None:
    """Print what a watch session did to stderr.

    Counts come from the session's event log. The most recent
    *max_failures* failed updates are listed with their error.

    """
    counts = log.counts()
    failures = log.failures()

    lines: list[str] = [
        "",
        f"  {_BOLD}formactions{_RESET} {_DIM}watch stopped{_RESET}",
        f"  {_DIM}├─{_RESET} {_plural(counts['LoaderExtracted'], 'loader')} extracted, "
        f"{counts['LoaderRemoved']} removed",
        f"  {_DIM}├─{_RESET} {_plural(counts['DeclarationsRendered'], 'declaration render')}",
    ]
    if not failures:
        lines.append(f"  {_DIM}└─{_RESET} no failed updates")
    else:
        lines.append(f"  {_DIM}└─{_RESET} {_YELLOW}{_plural(len(failures), 'failed update')}{_RESET}")
        lines.extend(
            f"      {_YELLOW}!{_RESET} {f.kind} {f.path}: {f.error}: {f.message}"
            for f in failures[-max_failures:]
        )
    lines.append("")

    print("\n".join(lines), file=sys.stderr)
