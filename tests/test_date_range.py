# tests/test_date_range.py
from datetime import date

from access_analyzer.analysis.date_range import (
    clamp_range, compute_date_constraints, filter_by_range, quick_range,
)
from access_analyzer.analysis.normalize import normalize
from access_analyzer.analysis.patterns import aggregate
from access_analyzer.datamodels.events import DateConstraints, DateRange
from conftest import raw

JAN_1 = DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))


def _events(*timestamps):
    return normalize([raw(timestamp=ts) for ts in timestamps])


def test_range_includes_whole_end_day_and_excludes_next_midnight():
    events = _events(
        "2024-01-01T00:00:00.000",
        "2024-01-01T12:00:00.000",
        "2024-01-01T23:59:59.999",
        "2024-01-02T00:00:00.000",
    )
    kept = filter_by_range(events, JAN_1)
    assert [ev.timestamp for ev in kept] == [
        "2024-01-01T00:00:00.000",
        "2024-01-01T12:00:00.000",
        "2024-01-01T23:59:59.999",
    ]


def test_one_millisecond_past_end_of_day_is_excluded():
    events = _events("2023-12-31T23:59:59.999", "2024-01-02T00:00:00.001")
    assert filter_by_range(events, JAN_1) == []


def test_inactive_range_returns_a_copy_of_the_input():
    events = _events("2024-01-01T00:00:00", "2024-02-01T00:00:00")
    for date_range in (None, DateRange(), DateRange(start_date=date(2024, 1, 1))):
        kept = filter_by_range(events, date_range)
        assert kept == events
        assert kept is not events


def test_filtering_never_mutates_the_base_set():
    events = _events("2024-01-01T10:00:00", "2024-01-05T10:00:00")
    before = list(events)
    filter_by_range(events, JAN_1)
    wide = filter_by_range(events, DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)))
    assert events == before
    assert len(wide) == 2


def test_invalid_timestamps_fall_outside_any_active_range():
    events = _events("2024-01-01T10:00:00", "bogus")
    assert len(filter_by_range(events, JAN_1)) == 1
    assert len(filter_by_range(events, None)) == 2


def test_frequency_is_conserved_after_date_filtering():
    events = _events("2024-01-01T10:00:00", "2024-01-01T10:00:30", "2024-01-03T10:00:00")
    kept = filter_by_range(events, JAN_1)
    assert sum(r.freq for r in aggregate(kept)) == len(kept) == 2


def test_date_constraints_span_valid_timestamps():
    events = _events("2024-01-05T10:00:00", "bogus", "2024-01-02T23:00:00", "2024-01-09T00:30:00")
    assert compute_date_constraints(events) == DateConstraints(min_date=date(2024, 1, 2), max_date=date(2024, 1, 9))
    assert compute_date_constraints([]) == DateConstraints()


def test_clamp_range_pulls_bounds_into_constraints():
    constraints = DateConstraints(min_date=date(2024, 1, 2), max_date=date(2024, 1, 9))
    clamped = clamp_range(DateRange(start_date=date(2023, 12, 1), end_date=date(2024, 2, 1)), constraints)
    assert clamped == DateRange(start_date=date(2024, 1, 2), end_date=date(2024, 1, 9))
    inside = DateRange(start_date=date(2024, 1, 3), end_date=date(2024, 1, 4))
    assert clamp_range(inside, constraints) == inside


def test_quick_range_ends_on_reference_day():
    assert quick_range(7, date(2024, 1, 31)) == DateRange(start_date=date(2024, 1, 24), end_date=date(2024, 1, 31))


def test_date_range_from_strings():
    date_range = DateRange.from_values("2024-01-01", "")
    assert date_range.start_date == date(2024, 1, 1)
    assert not date_range.is_active
    assert date_range.to_record() == {"startDate": "2024-01-01", "endDate": ""}


def test_out_of_range_timestamps_do_not_break_constraints():
    events = _events("2024-01-05T10:00:00", "9999-12-31T23:59:00-05:00")
    assert compute_date_constraints(events) == DateConstraints(min_date=date(2024, 1, 5), max_date=date(2024, 1, 5))
