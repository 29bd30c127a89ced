"""Command-line interface: watch one document and report reloads."""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console

from docwatch import __version__
from docwatch.config import Config, load_config
from docwatch.files import get_filename, is_markdown_path
from docwatch.logging import get_logger, setup_logging
from docwatch.watching import ChangeEvent, FileWatcher

console = Console(stderr=True)
log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="docwatch",
        description="Watch a document and report when it changes on disk",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("file", type=Path, help="File to watch")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument("--debounce-ms", type=int, help="Coalescing window for native events")
    parser.add_argument("--poll-interval-ms", type=int, help="Backstop poll interval")
    parser.add_argument(
        "--root",
        type=Path,
        help="Project directory holding .docwatch/config.yaml",
    )
    return parser


async def run(args: argparse.Namespace, config: Config) -> int:
    """Watch args.file until it is deleted or the task is cancelled.

    Returns:
        Exit code
    """
    watch = config.watch
    if args.debounce_ms is not None:
        watch = replace(watch, debounce_ms=max(1, args.debounce_ms))
    if args.poll_interval_ms is not None:
        watch = replace(watch, poll_interval_ms=max(1, args.poll_interval_ms))

    path = os.path.abspath(args.file)
    if not is_markdown_path(path):
        console.print(f"[yellow]{get_filename(path)} does not look like a markdown file[/yellow]")

    done = asyncio.Event()
    watcher = FileWatcher(watch)

    def on_change(event: ChangeEvent) -> None:
        if event.type == "deleted":
            console.print(f"[red]deleted[/red] {path}")
            done.set()
        else:
            console.print(f"[green]modified[/green] {path}")

    async with watcher:
        status = await watcher.start_watching(path, on_change)
        if not status.is_watching:
            console.print(f"[red]Error:[/red] {status.error}")
            return 1
        if status.error:
            console.print(f"[yellow]{status.error}[/yellow]")
        console.print(f"Watching [bold]{get_filename(path)}[/bold] (Ctrl-C to stop)")
        await done.wait()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = load_config(root=args.root)
    logging_config = config.logging
    if args.verbose is not None:
        logging_config = replace(logging_config, verbose=min(4, 2 + args.verbose))
    setup_logging(logging_config, force_stderr=True)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        log.info("Interrupted")
        return 0
