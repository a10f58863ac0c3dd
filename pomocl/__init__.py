"""File-persisted pomodoro timer for status bars and overlays."""

__version__ = "0.1.0"
