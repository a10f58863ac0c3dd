"""Text rendering of clock snapshots for status bars, overlay files and the UI."""

import math
from datetime import datetime, timedelta
from typing import List, Tuple

from .clock import ClockSnapshot, Phase
from .schedule import format_definition
from .state import TimerState

IDLE_MESSAGE = "no pomodoro running"
STATUS_FINISHED = "done - pomodoro complete"
FILE_FINISHED = "Pomodoro complete!"


def _whole_seconds(duration: timedelta) -> int:
    # Count down like a kitchen timer: 00:00 only once the phase is over.
    return max(0, math.ceil(duration.total_seconds()))


def format_remaining(duration: timedelta) -> str:
    """``MM:SS``; minutes are not wrapped into hours."""
    minutes, seconds = divmod(_whole_seconds(duration), 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_duration(duration: timedelta) -> str:
    """``HH:MM:SS`` for bookkeeping output."""
    hours, rest = divmod(_whole_seconds(duration), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def render_status(snapshot: ClockSnapshot) -> str:
    """Single status line, e.g. ``work 12:34 (next: break) 1/4``."""
    if snapshot.phase is Phase.FINISHED:
        return STATUS_FINISHED
    line = "{} {} (next: {}) {}/{}".format(
        snapshot.phase.label,
        format_remaining(snapshot.remaining),
        snapshot.next_phase.label,
        snapshot.repetition_index,
        snapshot.total_repetitions,
    )
    if snapshot.is_paused:
        line += " [paused]"
    return line


def render_file(snapshot: ClockSnapshot) -> str:
    """Overlay file content: phase and time on the first line, counter below."""
    if snapshot.phase is Phase.FINISHED:
        return FILE_FINISHED + "\n"
    counter = f"{snapshot.repetition_index}/{snapshot.total_repetitions}"
    if snapshot.is_paused:
        counter += " PAUSED"
    return "{} {}\n{}\n".format(
        snapshot.phase.label.capitalize(),
        format_remaining(snapshot.remaining),
        counter,
    )


def render_idle_file() -> str:
    return IDLE_MESSAGE + "\n"


def describe_state(state: TimerState, now: datetime) -> List[Tuple[str, str]]:
    """Label/value rows describing a run, for ``info``."""
    schedule = state.schedule
    local = "%Y-%m-%d %H:%M:%S"
    rows = [
        ("Definition", format_definition(schedule)),
        ("Repetitions", str(schedule.repetitions)),
        ("Work", format_duration(schedule.work_duration)),
        ("Break", format_duration(schedule.break_duration)),
        ("Total", format_duration(schedule.total_duration)),
        ("Started", state.started_at.astimezone().strftime(local)),
        ("Projected end", state.projected_end(now).astimezone().strftime(local)),
        ("Elapsed", format_duration(max(state.effective_elapsed(now), timedelta(0)))),
        ("Paused total", format_duration(state.paused_for(now))),
    ]
    if state.paused_at is not None:
        rows.append(("Paused since", state.paused_at.astimezone().strftime(local)))
    return rows


# 3x5 glyphs, "#" is a filled cell.
_GLYPHS = {
    "0": ("###", "# #", "# #", "# #", "###"),
    "1": (" # ", "## ", " # ", " # ", "###"),
    "2": ("###", "  #", "###", "#  ", "###"),
    "3": ("###", "  #", " ##", "  #", "###"),
    "4": ("# #", "# #", "###", "  #", "  #"),
    "5": ("###", "#  ", "###", "  #", "###"),
    "6": ("###", "#  ", "###", "# #", "###"),
    "7": ("###", "  #", "  #", " # ", " # "),
    "8": ("###", "# #", "###", "# #", "###"),
    "9": ("###", "# #", "###", "  #", "###"),
    ":": ("   ", " # ", "   ", " # ", "   "),
}


def render_big_time(duration: timedelta) -> str:
    """Render ``MM:SS`` in block digits, two terminal cells per glyph cell."""
    text = format_remaining(duration)
    rows = []
    for row in range(5):
        cells = [_GLYPHS[char][row] for char in text]
        rows.append("  ".join(c.replace("#", "██").replace(" ", "  ") for c in cells))
    return "\n".join(rows)
