"""Runtime settings, read from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

STATE_FILE_NAME = "current_pomo"
DEFAULT_WATCH_PATH = "pomodoro.txt"
DEFAULT_WATCH_INTERVAL = 1.0


@dataclass
class Settings:
    state_dir: Path
    default_definition: str = ""
    watch_path: str = DEFAULT_WATCH_PATH
    watch_interval: float = DEFAULT_WATCH_INTERVAL
    log_level: int = logging.WARNING

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILE_NAME


def default_state_dir(environ: Mapping[str, str]) -> Path:
    """``$POMOCL_STATE_DIR``, else ``$XDG_STATE_HOME/pomocl``, else ``~/.local/state/pomocl``."""
    if environ.get("POMOCL_STATE_DIR"):
        return Path(environ["POMOCL_STATE_DIR"]).expanduser()
    if environ.get("XDG_STATE_HOME"):
        return Path(environ["XDG_STATE_HOME"]).expanduser() / "pomocl"
    return Path.home() / ".local" / "state" / "pomocl"


def _log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"unknown log level {value!r}")
    return level


def _interval(value: str) -> float:
    try:
        interval = float(value)
    except ValueError:
        raise ConfigError(f"watch interval must be a number, got {value!r}") from None
    if not interval > 0:
        raise ConfigError(f"watch interval must be positive, got {value!r}")
    return interval


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from ``environ`` (defaults to ``os.environ``)."""
    if environ is None:
        environ = os.environ
    settings = Settings(state_dir=default_state_dir(environ))
    settings.default_definition = environ.get("POMOCL_DEFAULT", "")
    if environ.get("POMOCL_WATCH_INTERVAL"):
        settings.watch_interval = _interval(environ["POMOCL_WATCH_INTERVAL"])
    if environ.get("POMOCL_LOG_LEVEL"):
        settings.log_level = _log_level(environ["POMOCL_LOG_LEVEL"])
    return settings
