"""Persisted record of one pomodoro run and its pause accounting."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .errors import AlreadyPausedError, NotPausedError
from .schedule import Schedule


@dataclass
class TimerState:
    """One run from ``start`` until ``stop``.

    Instants are timezone-aware. ``total_paused`` only holds closed pauses;
    an open pause is counted from ``paused_at``.
    """

    schedule: Schedule
    started_at: datetime
    paused_at: Optional[datetime] = None
    total_paused: timedelta = field(default_factory=timedelta)

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def paused_for(self, now: datetime) -> timedelta:
        """Total pause time including a pause still in progress."""
        if self.paused_at is None:
            return self.total_paused
        return self.total_paused + (now - self.paused_at)

    def effective_elapsed(self, now: datetime) -> timedelta:
        """Time the run has actually been ticking."""
        return now - self.started_at - self.paused_for(now)

    def projected_end(self, now: datetime) -> datetime:
        """When the run finishes if no further pauses happen."""
        return self.started_at + self.schedule.total_duration + self.paused_for(now)

    def pause(self, now: datetime) -> None:
        """Freeze the clock at ``now``."""
        if self.paused_at is not None:
            raise AlreadyPausedError(f"already paused since {self.paused_at:%H:%M:%S}")
        self.paused_at = now

    def unpause(self, now: datetime) -> None:
        """Resume, adding the closed pause to ``total_paused``."""
        if self.paused_at is None:
            raise NotPausedError("timer is not paused")
        self.total_paused += now - self.paused_at
        self.paused_at = None
