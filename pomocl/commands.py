"""Command layer: each function is one CLI verb against a StateStore.

Mutating commands run their load/compute/save cycle under the store lock.
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .clock import ClockSnapshot, evaluate
from .errors import AlreadyRunningError, ConfigError, NotRunningError, StoreError
from .render import IDLE_MESSAGE, describe_state, render_file, render_idle_file, render_status
from .schedule import format_definition, parse, solve_until
from .state import TimerState
from .store import StateStore, write_atomic

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require(store: StateStore) -> TimerState:
    state = store.load()
    if state is None:
        raise NotRunningError("no pomodoro running")
    return state


def start(
    store: StateStore,
    definition: str,
    now: datetime,
    until: Optional[datetime] = None,
) -> TimerState:
    """Create and persist a new run. Fails if one is already active."""
    schedule = parse(definition)
    if until is not None:
        schedule = solve_until(schedule, now, until)

    with store.locked():
        if store.load() is not None:
            raise AlreadyRunningError("a pomodoro is already running, stop it first")
        state = TimerState(schedule=schedule, started_at=now)
        store.save(state)

    logger.info("started %s at %s", format_definition(schedule), now.isoformat())
    return state


def pause(store: StateStore, now: datetime) -> TimerState:
    with store.locked():
        state = _require(store)
        state.pause(now)
        store.save(state)
    logger.info("paused at %s", now.isoformat())
    return state


def unpause(store: StateStore, now: datetime) -> TimerState:
    with store.locked():
        state = _require(store)
        state.unpause(now)
        store.save(state)
    logger.info("unpaused at %s", now.isoformat())
    return state


def toggle(store: StateStore, now: datetime) -> TimerState:
    """Pause a running timer or resume a paused one."""
    with store.locked():
        state = _require(store)
        if state.is_paused:
            state.unpause(now)
        else:
            state.pause(now)
        store.save(state)
    return state


def stop(store: StateStore) -> None:
    """Delete the run. Works on unreadable records too."""
    with store.locked():
        if not store.delete():
            raise NotRunningError("no pomodoro running")
    logger.info("stopped")


def snapshot(store: StateStore, now: datetime) -> Optional[ClockSnapshot]:
    state = store.load()
    if state is None:
        return None
    return evaluate(state, now)


def status(store: StateStore, now: datetime) -> str:
    """Status line; the idle message when nothing runs."""
    current = snapshot(store, now)
    if current is None:
        return IDLE_MESSAGE
    return render_status(current)


def info(store: StateStore, now: datetime) -> List[Tuple[str, str]]:
    return describe_state(_require(store), now)


def watch(
    store: StateStore,
    target: Path,
    interval: float = 1.0,
    now: Callable[[], datetime] = utcnow,
    sleep: Callable[[float], None] = time.sleep,
    echo: Optional[Callable[[str], None]] = None,
    max_iterations: Optional[int] = None,
) -> int:
    """Rewrite ``target`` with the overlay text every ``interval`` seconds.

    Returns once the run is stopped, after writing the idle text one last
    time, or after ``max_iterations`` renders. Read and write failures
    inside the loop are logged and retried on the next tick.
    """
    target = Path(target)
    if not target.parent.is_dir():
        raise ConfigError(f"directory of watch target {target} does not exist")

    iterations = 0
    while max_iterations is None or iterations < max_iterations:
        iterations += 1
        try:
            state = store.load()
        except StoreError as exc:
            logger.warning("reading timer state failed: %s", exc)
            sleep(interval)
            continue

        if state is None:
            content, line = render_idle_file(), IDLE_MESSAGE
        else:
            current = evaluate(state, now())
            content, line = render_file(current), render_status(current)

        try:
            write_atomic(target, content)
        except OSError as exc:
            logger.warning("writing %s failed: %s", target, exc)
        if echo is not None:
            echo(line)

        if state is None:
            logger.info("no pomodoro running, watch finished")
            break
        sleep(interval)
    return iterations
