"""formactions CLI — formactions scan / formactions watch.

Entry point for the ``formactions`` command-line interface. A thin adapter
over the two pipeline entry points.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from formactions._types import RunMode
    from formactions.config import FormActionsConfig


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the formactions CLI."""
    parser = argparse.ArgumentParser(
        prog="formactions",
        description="Register server actions and extract their loaders.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # formactions scan
    scan_parser = subparsers.add_parser(
        "scan",
        help="Run one full scan and write all generated artifacts",
    )
    scan_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    scan_parser.add_argument("--actions-dir", default=None, help="Actions directory, relative to root")
    scan_parser.add_argument("--build-dir", default=None, help="Build output directory")

    # formactions watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Run a full scan, then update incrementally on file changes",
    )
    watch_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    watch_parser.add_argument("--actions-dir", default=None, help="Actions directory, relative to root")
    watch_parser.add_argument("--build-dir", default=None, help="Build output directory")
    watch_parser.add_argument(
        "--prune", action="store_true", default=None,
        help="Delete generated loaders when their loader export disappears",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from formactions import __version__

    return __version__


async def _scan(config: FormActionsConfig, mode: RunMode) -> None:
    from formactions.banner import print_summary, print_watch_report
    from formactions.observability import PipelineCollector
    from formactions.pipeline import FormActionsPipeline

    collector = PipelineCollector()
    pipeline = FormActionsPipeline(config, collector)
    result = await pipeline.run_full_scan()
    print_summary(pipeline.config, result, mode)

    if mode == "watch":
        from formactions.reactive.watcher import ActionWatcher

        try:
            await pipeline.watch(ActionWatcher(pipeline.config))
        finally:
            print_watch_report(collector.log)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from formactions._errors import FormActionsError
    from formactions.config_loader import load_config

    try:
        config = load_config(
            Path(args.root),
            actions_dir=args.actions_dir,
            build_dir=args.build_dir,
            prune_stale_loaders=getattr(args, "prune", None),
        )
        asyncio.run(_scan(config, args.command))
    except FormActionsError as exc:
        print(f"  [form-actions] {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
