# tests/test_patterns.py
from types import SimpleNamespace

import pytest

from access_analyzer import constants as C
from access_analyzer.analysis.normalize import normalize
from access_analyzer.analysis.patterns import aggregate, sort_chronologically
from access_analyzer.infra.errors import DataProcessingError
from conftest import raw


def test_same_minute_bucket_on_different_days_is_one_pattern():
    events = normalize([
        raw(timestamp="2024-01-15T18:30:05Z"),
        raw(timestamp="2024-01-16T18:30:50Z"),
    ])
    (pattern,) = aggregate(events)
    assert pattern.freq == 2
    assert pattern.time == "10:30:05 PST"


def test_time_comes_from_earliest_event_not_input_order():
    events = normalize([
        raw(timestamp="2024-01-20T18:30:59Z"),
        raw(timestamp="2024-01-15T18:30:01Z"),
    ])
    (pattern,) = aggregate(events)
    assert pattern.time == "10:30:01 PST"


def test_different_buckets_are_different_patterns():
    events = normalize([raw(timestamp="2024-01-15T18:30:00Z"), raw(timestamp="2024-01-15T18:31:00Z")])
    assert len(aggregate(events)) == 2


def test_empty_fields_are_grouped_verbatim():
    events = normalize([
        raw(source_name="", timestamp="2024-01-15T18:30:00Z"),
        raw(source_name="", timestamp="2024-01-15T18:30:10Z"),
        raw(source_name="HOST", timestamp="2024-01-15T18:30:20Z"),
    ])
    rows = aggregate(events)
    assert sorted((r.source_name, r.freq) for r in rows) == [("", 2), ("HOST", 1)]


def test_default_order_is_source_ascending_then_freq_descending():
    events = normalize(
        [raw(source="zeta")]
        + [raw(source="alpha", target="T1")]
        + [raw(source="alpha", target="T2")] * 3
        + [raw(source="beta")] * 2
    )
    rows = aggregate(events)
    assert [(r.source, r.freq) for r in rows] == [("alpha", 3), ("alpha", 1), ("beta", 2), ("zeta", 1)]


def test_frequency_is_conserved(sample_csv):
    from access_analyzer.analysis.ingest import parse_csv_text

    events = normalize(parse_csv_text(sample_csv))
    rows = aggregate(events)
    assert sum(r.freq for r in rows) == len(events)


def test_no_two_rows_share_a_pattern_key(sample_csv):
    from access_analyzer.analysis.ingest import parse_csv_text

    rows = aggregate(normalize(parse_csv_text(sample_csv)))
    keys = [(r.source, r.source_name, r.ip, r.service, r.target, r.time[:5]) for r in rows]
    assert len(keys) == len(set(keys))


def test_aggregate_is_idempotent(sample_csv):
    from access_analyzer.analysis.ingest import parse_csv_text

    raw_rows = parse_csv_text(sample_csv)
    assert aggregate(normalize(raw_rows)) == aggregate(normalize(raw_rows))


def test_invalid_timestamps_form_their_own_pattern():
    events = normalize([raw(timestamp="bogus"), raw(timestamp="also bogus"), raw()])
    rows = aggregate(events)
    invalid = [r for r in rows if r.time == C.INVALID_DATE]
    assert len(invalid) == 1 and invalid[0].freq == 2


def test_chronological_sort_is_stable_and_puts_invalid_last():
    events = normalize([
        raw(source="late", timestamp="2024-01-02T00:00:00Z"),
        raw(source="bad", timestamp="bogus"),
        raw(source="tie-1", timestamp="2024-01-01T00:00:00Z"),
        raw(source="tie-2", timestamp="2024-01-01T00:00:00Z"),
    ])
    assert [ev.source for ev in sort_chronologically(events)] == ["tie-1", "tie-2", "late", "bad"]


def test_empty_input_returns_empty_list():
    assert aggregate([]) == []


def test_unexpected_shapes_raise_a_single_processing_error():
    bogus = [SimpleNamespace(ts=None), SimpleNamespace(ts=None)]
    with pytest.raises(DataProcessingError) as exc:
        aggregate(bogus)
    assert str(exc.value).startswith("Data processing failed")
