"""Schedule model: compact definition parsing, formatting and the --until solver.

A definition looks like ``4p45b10``: four repetitions of 45 minutes work
separated by 10 minute breaks. Every segment is optional, the order is fixed.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Tuple

from .errors import (
    InfeasibleError,
    InvalidFormatError,
    PastTargetError,
    ZeroDurationError,
)

logger = logging.getLogger(__name__)

DEFAULT_REPETITIONS = 4
DEFAULT_WORK = timedelta(minutes=45)
DEFAULT_BREAK = timedelta(minutes=10)

# Shortest work phase the solver will hand out.
MIN_WORK = timedelta(seconds=1)
# Candidates examined on each side of the initial estimate.
MAX_SEARCH_RADIUS = 1000
# Longest run a definition may describe.
MAX_TOTAL = timedelta(days=365)

_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}

_DEFINITION_RE = re.compile(
    r"""
    (?P<repetitions>[0-9]+)?
    (?:p(?P<work>[0-9]+)(?P<work_unit>[smh])?)?
    (?:b(?P<pause>[0-9]+)(?P<pause_unit>[smh])?)?
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Schedule:
    """Shape of one pomodoro run."""

    repetitions: int = DEFAULT_REPETITIONS
    work_duration: timedelta = DEFAULT_WORK
    break_duration: timedelta = DEFAULT_BREAK

    def __post_init__(self):
        if self.repetitions < 1:
            raise ValueError("repetitions must be at least 1")
        if self.work_duration <= timedelta(0) or self.break_duration <= timedelta(0):
            raise ValueError("durations must be positive")

    @property
    def total_duration(self) -> timedelta:
        """Span of the whole run; the last repetition has no trailing break."""
        return (
            self.repetitions * self.work_duration
            + (self.repetitions - 1) * self.break_duration
        )


def _duration(value: str, unit: str, segment: str) -> timedelta:
    amount = int(value)
    if amount == 0:
        raise ZeroDurationError(f"{segment} duration must be greater than 0")
    try:
        return amount * _UNITS[unit or "m"]
    except OverflowError:
        raise InvalidFormatError(f"{segment} duration {value}{unit} is too large") from None


def parse(definition: str) -> Schedule:
    """Parse a definition such as ``2p30b5`` into a Schedule.

    Omitted segments take the defaults of ``4p45b10``. Durations are minutes
    unless suffixed with ``s`` or ``h``.

    Raises:
        InvalidFormatError: out of order tokens, unknown characters, or a
            run longer than MAX_TOTAL.
        ZeroDurationError: a segment explicitly set to 0.
    """
    text = definition.strip()
    if not text:
        return Schedule()

    match = _DEFINITION_RE.fullmatch(text)
    if match is None:
        raise InvalidFormatError(
            f"invalid definition {definition!r}, expected [reps][p<work>][b<break>]"
        )

    repetitions = DEFAULT_REPETITIONS
    if match["repetitions"] is not None:
        repetitions = int(match["repetitions"])
        if repetitions == 0:
            raise ZeroDurationError("repetitions must be greater than 0")

    work = DEFAULT_WORK
    if match["work"] is not None:
        work = _duration(match["work"], match["work_unit"], "work")

    pause = DEFAULT_BREAK
    if match["pause"] is not None:
        pause = _duration(match["pause"], match["pause_unit"], "break")

    schedule = Schedule(repetitions, work, pause)
    try:
        total = schedule.total_duration
    except OverflowError:
        total = None
    if total is None or total > MAX_TOTAL:
        raise InvalidFormatError(f"definition {definition!r} spans more than {MAX_TOTAL.days} days")
    return schedule


def _format_token(duration: timedelta) -> str:
    if duration % timedelta(minutes=1) == timedelta(0):
        return str(duration // timedelta(minutes=1))
    return f"{round(duration.total_seconds())}s"


def format_definition(schedule: Schedule) -> str:
    """Canonical definition string, e.g. ``4p45b10`` or ``3p90sb5``."""
    return "{}p{}b{}".format(
        schedule.repetitions,
        _format_token(schedule.work_duration),
        _format_token(schedule.break_duration),
    )


def _adjusted_work(span: timedelta, pause: timedelta, repetitions: int) -> timedelta:
    # Floor division keeps the run from overshooting the target.
    return (span - (repetitions - 1) * pause) // repetitions


def solve_until(base: Schedule, start_time: datetime, target_end: datetime) -> Schedule:
    """Fit the schedule between ``start_time`` and ``target_end``.

    The break duration is kept, the repetition count is recomputed and the
    work duration is stretched or shrunk as little as possible so that the
    last work phase ends at ``target_end``. Equally close candidates resolve
    to the larger repetition count.

    The adjusted work duration is floored to whole microseconds, so the run
    ends exactly at ``target_end`` only when the remaining work time divides
    evenly; otherwise it ends less than one microsecond per repetition early
    and never late.
    """
    span = target_end - start_time
    if span <= timedelta(0):
        raise PastTargetError(
            f"target {target_end:%H:%M} is not after start {start_time:%H:%M}"
        )

    work = base.work_duration
    pause = base.break_duration
    estimate = max(1, round((span + pause) / (work + pause)))

    candidates: List[Tuple[int, timedelta]] = []
    up, down = True, True
    for step in range(MAX_SEARCH_RADIUS + 1):
        if up:
            repetitions = estimate + step
            adjusted = _adjusted_work(span, pause, repetitions)
            # Work shrinks as repetitions grow, nothing feasible lies above.
            if adjusted < MIN_WORK:
                up = False
            else:
                candidates.append((repetitions, adjusted))
        if down and step > 0:
            repetitions = estimate - step
            if repetitions < 1:
                down = False
            else:
                adjusted = _adjusted_work(span, pause, repetitions)
                if adjusted >= MIN_WORK:
                    candidates.append((repetitions, adjusted))
        if not (up or down):
            break

    if not candidates:
        raise InfeasibleError(
            f"no repetition count fits {span} with {pause} breaks"
        )

    repetitions, adjusted = min(
        candidates, key=lambda c: (abs(c[1] - work), -c[0])
    )
    logger.debug(
        "solved %s candidates around %d: %d x %s", len(candidates), estimate, repetitions, adjusted
    )
    return Schedule(repetitions, adjusted, pause)
