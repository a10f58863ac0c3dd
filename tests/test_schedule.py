"""Unit tests for schedule.py."""

from datetime import datetime, timedelta, timezone

import pytest
from pomocl.errors import (
    InfeasibleError,
    InvalidFormatError,
    ParseError,
    PastTargetError,
    ZeroDurationError,
)
from pomocl.schedule import Schedule, format_definition, parse, solve_until

T0 = datetime(2024, 5, 6, 9, 0, tzinfo=timezone.utc)


def minutes(n):
    return timedelta(minutes=n)


class TestParseDefaults:
    """Test default handling."""

    def test_empty_is_default(self):
        """Empty definition resolves to 4p45b10."""
        assert parse("") == Schedule(4, minutes(45), minutes(10))

    def test_whitespace_is_default(self):
        """Whitespace-only definition resolves to the default."""
        assert parse("   \t") == parse("4p45b10")

    def test_explicit_default(self):
        """The documented default string parses to the default schedule."""
        assert parse("4p45b10") == Schedule()

    def test_missing_segments_keep_defaults(self):
        """Omitted segments keep their default values."""
        assert parse("p20") == Schedule(4, minutes(20), minutes(10))
        assert parse("b5") == Schedule(4, minutes(45), minutes(5))
        assert parse("3") == Schedule(3, minutes(45), minutes(10))
        assert parse("2b7") == Schedule(2, minutes(45), minutes(7))


class TestParseValues:
    """Test explicit values."""

    def test_full_definition(self):
        """All three segments are read."""
        assert parse("2p30b5") == Schedule(2, minutes(30), minutes(5))

    def test_surrounding_whitespace(self):
        """Leading and trailing whitespace is ignored."""
        assert parse("  2p30b5\n") == Schedule(2, minutes(30), minutes(5))

    def test_unit_suffixes(self):
        """Durations accept s, m and h suffixes."""
        schedule = parse("1p90sb1h")
        assert schedule.work_duration == timedelta(seconds=90)
        assert schedule.break_duration == timedelta(hours=1)
        assert parse("p25mb5m") == parse("p25b5")


class TestParseErrors:
    """Test rejected definitions."""

    @pytest.mark.parametrize("definition", ["b5p30", "p30x", "2x", "p", "pb", "abc", "2p30b5b5", "-1p5", "2 p30"])
    def test_invalid_format(self, definition):
        """Out of order or unknown tokens are rejected."""
        with pytest.raises(InvalidFormatError):
            parse(definition)

    def test_zero_repetitions(self):
        """Zero repetitions is a zero-duration error."""
        with pytest.raises(ZeroDurationError):
            parse("0p10")

    def test_zero_work(self):
        """Zero work duration is rejected."""
        with pytest.raises(ZeroDurationError):
            parse("p0")

    @pytest.mark.parametrize("definition", ["99999999p1h", "366p24h", "1p9000h", "99999999999999999999p1"])
    def test_run_too_long(self, definition):
        """Definitions spanning more than a year are rejected."""
        with pytest.raises(InvalidFormatError):
            parse(definition)

    def test_run_of_a_year_allowed(self):
        """The cap itself is still accepted."""
        assert parse("1p8760h").total_duration == timedelta(days=365)

    def test_parse_errors_share_base(self):
        """Both parse failures are ParseErrors."""
        with pytest.raises(ParseError):
            parse("0")
        with pytest.raises(ParseError):
            parse("x")


class TestFormatDefinition:
    """Test canonical formatting."""

    def test_default(self):
        """Default schedule formats as 4p45b10."""
        assert format_definition(Schedule()) == "4p45b10"

    def test_seconds_suffix(self):
        """Durations that are not whole minutes use seconds."""
        assert format_definition(Schedule(3, timedelta(seconds=90), minutes(5))) == "3p90sb5"

    @pytest.mark.parametrize("definition", ["", "p20", "2p30b5", "1p90sb1h", "7b3", "10p1b1"])
    def test_normalisation_is_idempotent(self, definition):
        """Formatting then parsing gives back the same schedule."""
        schedule = parse(definition)
        assert parse(format_definition(schedule)) == schedule


class TestScheduleModel:
    """Test Schedule invariants."""

    def test_total_duration_has_no_trailing_break(self):
        """The last repetition has no break."""
        assert Schedule(2, minutes(10), minutes(5)).total_duration == minutes(25)

    def test_single_repetition(self):
        """One repetition is just the work phase."""
        assert Schedule(1, minutes(10), minutes(5)).total_duration == minutes(10)

    def test_rejects_zero_repetitions(self):
        """Direct construction validates repetitions."""
        with pytest.raises(ValueError):
            Schedule(0, minutes(10), minutes(5))


def _deviation_for(span, pause, repetitions, work):
    adjusted = (span - (repetitions - 1) * pause) / repetitions
    return abs(adjusted - work)


class TestSolveUntil:
    """Test the --until solver."""

    def test_exact_span(self):
        """Solved schedule ends exactly at the target."""
        base = Schedule(4, minutes(30), minutes(5))
        target = T0 + timedelta(hours=2, minutes=5)
        solved = solve_until(base, T0, target)
        assert solved.total_duration == timedelta(hours=2, minutes=5)
        assert solved.repetitions == 4
        assert solved.work_duration == timedelta(minutes=27, seconds=30)
        assert solved.break_duration == minutes(5)

    def test_minimal_deviation(self):
        """No other feasible repetition count is closer to the base work time."""
        base = Schedule(4, minutes(30), minutes(5))
        span = timedelta(hours=2, minutes=5)
        solved = solve_until(base, T0, T0 + span)
        best = _deviation_for(span, base.break_duration, solved.repetitions, base.work_duration)
        for repetitions in range(1, 25):
            if (span - (repetitions - 1) * base.break_duration) <= timedelta(0):
                break
            assert best <= _deviation_for(span, base.break_duration, repetitions, base.work_duration)

    def test_repetitions_from_base_ignored(self):
        """The base repetition count does not influence the result."""
        target = T0 + timedelta(hours=2, minutes=5)
        a = solve_until(Schedule(1, minutes(30), minutes(5)), T0, target)
        b = solve_until(Schedule(9, minutes(30), minutes(5)), T0, target)
        assert a == b

    def test_tie_prefers_more_repetitions(self):
        """Equally close candidates pick the larger repetition count."""
        # r=1 -> 50m (+15), r=2 -> 20m (-15) from a 35m target.
        base = Schedule(1, minutes(35), minutes(10))
        solved = solve_until(base, T0, T0 + minutes(50))
        assert solved.repetitions == 2
        assert solved.work_duration == minutes(20)

    def test_short_window_single_repetition(self):
        """A window shorter than one break collapses to one repetition."""
        base = Schedule(4, minutes(45), minutes(10))
        solved = solve_until(base, T0, T0 + minutes(7))
        assert solved.repetitions == 1
        assert solved.work_duration == minutes(7)

    def test_long_window(self):
        """A long window scales the repetition count up."""
        base = Schedule(4, minutes(25), minutes(5))
        solved = solve_until(base, T0, T0 + timedelta(hours=8, minutes=55))
        assert solved.repetitions == 18
        assert solved.work_duration == minutes(25)
        assert solved.total_duration == timedelta(hours=8, minutes=55)

    def test_never_overshoots(self):
        """Uneven spans end at or before the target."""
        base = Schedule(4, minutes(30), minutes(5))
        span = timedelta(hours=1, minutes=3, seconds=1, microseconds=1)
        solved = solve_until(base, T0, T0 + span)
        assert solved.total_duration <= span
        assert span - solved.total_duration < timedelta(microseconds=solved.repetitions)

    def test_past_target(self):
        """A target at or before the start fails."""
        with pytest.raises(PastTargetError):
            solve_until(Schedule(), T0, T0)
        with pytest.raises(PastTargetError):
            solve_until(Schedule(), T0, T0 - minutes(1))

    def test_infeasible(self):
        """A window below the minimum work time is infeasible."""
        with pytest.raises(InfeasibleError):
            solve_until(Schedule(), T0, T0 + timedelta(milliseconds=500))
