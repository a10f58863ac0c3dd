"""Single-slot, crash tolerant persistence of the current TimerState.

The record is one JSON document. Writes go to a temp file in the same
directory and are renamed over the record, so a reader sees either the old
or the new document, never a partial one. Mutating commands additionally
hold an advisory lock for their whole load/compute/save cycle.
"""

import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from .errors import StoreError
from .schedule import Schedule
from .state import TimerState

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
_MICROSECOND = timedelta(microseconds=1)


def encode_state(state: TimerState) -> Dict[str, Any]:
    """TimerState -> JSON-ready dict; durations as integer microseconds."""
    return {
        "version": FORMAT_VERSION,
        "repetitions": state.schedule.repetitions,
        "work_duration_us": state.schedule.work_duration // _MICROSECOND,
        "break_duration_us": state.schedule.break_duration // _MICROSECOND,
        "started_at": state.started_at.isoformat(),
        "paused_at": state.paused_at.isoformat() if state.paused_at else None,
        "total_paused_us": state.total_paused // _MICROSECOND,
    }


def decode_state(data: Dict[str, Any]) -> TimerState:
    """Inverse of encode_state. Raises StoreError on malformed input."""
    try:
        if data["version"] != FORMAT_VERSION:
            raise StoreError(f"unsupported record version {data['version']!r}")
        schedule = Schedule(
            repetitions=int(data["repetitions"]),
            work_duration=int(data["work_duration_us"]) * _MICROSECOND,
            break_duration=int(data["break_duration_us"]) * _MICROSECOND,
        )
        paused_at = data["paused_at"]
        return TimerState(
            schedule=schedule,
            started_at=datetime.fromisoformat(data["started_at"]),
            paused_at=datetime.fromisoformat(paused_at) if paused_at else None,
            total_paused=int(data["total_paused_us"]) * _MICROSECOND,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"corrupt timer record: {exc}") from exc


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via temp file + fsync + rename."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class StateStore:
    """Handle on the single persisted TimerState slot."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def __repr__(self) -> str:
        return f"StateStore({str(self.path)!r})"

    def _ensure_dir(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"cannot create state directory {self.path.parent}: {exc}") from exc

    @contextmanager
    def locked(self) -> Iterator["StateStore"]:
        """Serialize read-modify-write cycles across processes."""
        self._ensure_dir()
        try:
            lock_file = open(self.lock_path, "a")
        except OSError as exc:
            raise StoreError(f"cannot open lock file {self.lock_path}: {exc}") from exc
        with lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield self
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def load(self) -> Optional[TimerState]:
        """The current state, or None when no run is active."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"cannot read {self.path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"invalid JSON in {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"invalid timer record in {self.path}")
        logger.debug("loaded timer state from %s", self.path)
        return decode_state(data)

    def save(self, state: TimerState) -> None:
        """Replace the record atomically."""
        self._ensure_dir()
        content = json.dumps(encode_state(state), indent=2) + "\n"
        try:
            write_atomic(self.path, content)
        except OSError as exc:
            raise StoreError(f"cannot write {self.path}: {exc}") from exc
        logger.debug("saved timer state to %s", self.path)

    def delete(self) -> bool:
        """Remove the record. Returns False if there was none."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreError(f"cannot delete {self.path}: {exc}") from exc
        logger.debug("deleted timer state %s", self.path)
        return True
