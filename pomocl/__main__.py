"""Entry point for python -m pomocl."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import commands
from .config import Settings, load_settings
from .errors import ConfigError, PomoError
from .render import format_remaining
from .schedule import format_definition
from .store import StateStore
from .timeparse import parse_clock_time

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="pomocl",
        description="Pomodoro timer that lives in a state file, not a process",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Definitions:
  [reps][p<work>][b<break>]   durations in minutes, or with s/m/h suffix

Examples:
  pomocl start                # Default schedule 4p45b10
  pomocl start 2p30b5         # 2 x 30 minutes work, 5 minute break
  pomocl start p25 --until 17:00
  pomocl status               # One line for status bars
  pomocl watch overlay.txt    # Rewrite overlay.txt every second
""",
    )
    parser.add_argument(
        "--state-dir",
        type=Path,
        metavar="DIR",
        help="Directory holding the timer state (default: ~/.local/state/pomocl)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more (-v info, -vv debug)",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    start = sub.add_parser("start", help="Start a pomodoro run")
    start.add_argument("definition", nargs="?", help="Schedule definition (default: 4p45b10)")
    start.add_argument(
        "--until",
        metavar="HH:MM",
        help="Fit repetitions and work time so the run ends at this time",
    )

    sub.add_parser("status", help="Print the current state on one line")

    watch = sub.add_parser("watch", help="Keep a file updated with the current state")
    watch.add_argument("path", nargs="?", help="Output file (default: pomodoro.txt)")

    sub.add_parser("stop", help="Stop the current run")
    sub.add_parser("pause", help="Pause the current run")
    sub.add_parser("unpause", help="Resume a paused run")
    sub.add_parser("info", help="Show schedule and bookkeeping of the current run")
    sub.add_parser("ui", help="Live terminal dashboard")

    return parser


def setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _run(args: argparse.Namespace, settings: Settings, store: StateStore) -> int:
    now = commands.utcnow()

    if args.command == "start":
        definition = args.definition
        if definition is None:
            definition = settings.default_definition
        until = parse_clock_time(args.until, now) if args.until else None
        state = commands.start(store, definition, now, until=until)
        end = state.projected_end(now).astimezone()
        console.print(
            f"Started {format_definition(state.schedule)} "
            f"(work {format_remaining(state.schedule.work_duration)}), ends at {end:%H:%M}"
        )
    elif args.command == "status":
        console.print(commands.status(store, now), markup=False)
    elif args.command == "watch":
        target = Path(args.path or settings.watch_path)

        def echo(line: str) -> None:
            sys.stdout.write(f"\r{line}        ")
            sys.stdout.flush()

        try:
            commands.watch(store, target, settings.watch_interval, echo=echo)
        finally:
            sys.stdout.write("\n")
    elif args.command == "stop":
        commands.stop(store)
        console.print("Stopped.")
    elif args.command == "pause":
        commands.pause(store, now)
        console.print("Paused.")
    elif args.command == "unpause":
        commands.unpause(store, now)
        console.print("Resumed.")
    elif args.command == "info":
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Field", style="dim")
        table.add_column("Value", style="cyan")
        for label, value in commands.info(store, now):
            table.add_row(label, value)
        console.print(table)
    elif args.command == "ui":
        from .ui import run_ui

        run_ui(store, settings.watch_interval)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as exc:
        err_console.print(f"[red]error:[/red] {escape(str(exc))}")
        return 2
    if args.state_dir is not None:
        settings.state_dir = args.state_dir.expanduser()
    level = settings.log_level
    if args.verbose:
        level = min(level, logging.INFO if args.verbose == 1 else logging.DEBUG)
    setup_logging(level)

    store = StateStore(settings.state_file)
    try:
        return _run(args, settings, store)
    except ConfigError as exc:
        err_console.print(f"[red]error:[/red] {escape(str(exc))}")
        return 2
    except PomoError as exc:
        err_console.print(f"[red]error:[/red] {escape(str(exc))}")
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
