"""Wall-clock parsing for ``start --until HH:MM``."""

from datetime import datetime

from .errors import ConfigError


def parse_clock_time(value: str, now: datetime) -> datetime:
    """Resolve ``HH:MM`` to an aware instant on the local day of ``now``.

    The offset is the one in force at the target time, not at ``now``.
    Times skipped or repeated by a DST change are rejected. A time that has
    already passed today is returned as is; the solver rejects it.
    """
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except ValueError:
        raise ConfigError(f"invalid time {value!r}, expected HH:MM") from None

    wall = datetime.combine(now.astimezone().date(), parsed.time())
    earlier = wall.astimezone()
    later = wall.replace(fold=1).astimezone()
    if earlier.utcoffset() != later.utcoffset():
        raise ConfigError(f"{value} is ambiguous or does not exist in the local time zone today")
    return earlier
