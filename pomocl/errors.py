"""Error types raised by the pomodoro core and surfaced by the CLI."""


class PomoError(Exception):
    """Base class for every error the CLI reports to the user."""


class ParseError(PomoError):
    """Malformed schedule definition."""


class InvalidFormatError(ParseError):
    """Tokens out of order, unknown characters or unparsable numbers."""


class ZeroDurationError(ParseError):
    """A segment is explicitly 0 where a positive value is required."""


class SolverError(PomoError):
    """An --until request that cannot be satisfied."""


class PastTargetError(SolverError):
    """Target end is not after the start time."""


class InfeasibleError(SolverError):
    """No repetition count yields a positive work duration."""


class StateError(PomoError):
    """Invalid timer state transition."""


class AlreadyRunningError(StateError):
    pass


class NotRunningError(StateError):
    pass


class AlreadyPausedError(StateError):
    pass


class NotPausedError(StateError):
    pass


class StoreError(PomoError):
    """Reading or writing the persisted timer record failed."""


class ConfigError(PomoError):
    """Invalid configuration or command line value."""
