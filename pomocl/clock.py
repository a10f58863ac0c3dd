"""Pure clock engine: where a run stands at a given instant."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .state import TimerState


class Phase(Enum):
    """Timer phase types."""
    WORK = "work"
    BREAK = "break"
    FINISHED = "done"

    @property
    def label(self) -> str:
        """Human-readable phase label."""
        return self.value


@dataclass(frozen=True)
class ClockSnapshot:
    """Projection of a TimerState at one instant. Never persisted."""

    phase: Phase
    repetition_index: int
    total_repetitions: int
    remaining: timedelta
    is_paused: bool
    next_phase: Phase = Phase.FINISHED
    phase_duration: timedelta = timedelta(0)

    @property
    def progress(self) -> float:
        """Progress through current phase (0.0 to 1.0)."""
        if self.phase_duration <= timedelta(0):
            return 1.0
        return 1.0 - (self.remaining / self.phase_duration)


def evaluate(state: TimerState, now: datetime) -> ClockSnapshot:
    """Compute the phase, repetition and remaining time at ``now``.

    Phases are half-open intervals: the instant a work phase ends already
    belongs to the following break. Instants before ``started_at`` count as
    the very beginning of the run.
    """
    schedule = state.schedule
    total = schedule.repetitions
    elapsed = max(state.effective_elapsed(now), timedelta(0))

    offset = timedelta(0)
    for index in range(1, total + 1):
        work_end = offset + schedule.work_duration
        last = index == total
        if elapsed < work_end:
            return ClockSnapshot(
                phase=Phase.WORK,
                repetition_index=index,
                total_repetitions=total,
                remaining=work_end - elapsed,
                is_paused=state.is_paused,
                next_phase=Phase.FINISHED if last else Phase.BREAK,
                phase_duration=schedule.work_duration,
            )
        if last:
            break
        break_end = work_end + schedule.break_duration
        if elapsed < break_end:
            return ClockSnapshot(
                phase=Phase.BREAK,
                repetition_index=index,
                total_repetitions=total,
                remaining=break_end - elapsed,
                is_paused=state.is_paused,
                next_phase=Phase.WORK,
                phase_duration=schedule.break_duration,
            )
        offset = break_end

    return ClockSnapshot(
        phase=Phase.FINISHED,
        repetition_index=total,
        total_repetitions=total,
        remaining=timedelta(0),
        is_paused=state.is_paused,
    )
