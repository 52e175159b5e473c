# tests/test_session.py
import asyncio
import json
from datetime import date, datetime, timezone

import pytest

from access_analyzer import constants as C
from access_analyzer.analysis import session as session_module
from access_analyzer.analysis.session import AnalyzerSession
from access_analyzer.datamodels.events import DateConstraints, DateRange
from access_analyzer.infra.errors import InvalidTimestampError, ParseError, StorageError
from access_analyzer.infra.storage import MemoryStore
from access_analyzer.settings import AnalyzerSettings
from conftest import HEADER, SAMPLE_CSV


@pytest.fixture
def loaded():
    session = AnalyzerSession()
    session.load_text(SAMPLE_CSV, "service_access.csv")
    return session


def test_load_builds_pattern_table(loaded):
    assert loaded.has_data
    assert loaded.current_file == "service_access.csv"
    assert loaded.pattern_count == 4
    assert loaded.event_count == 5
    assert loaded.error is None
    assert loaded.date_constraints == DateConstraints(min_date=date(2024, 1, 15), max_date=date(2024, 1, 17))
    assert loaded.monitor.last("aggregate") is not None


def test_failed_load_keeps_previous_table(loaded):
    with pytest.raises(ParseError):
        loaded.load_text("", "broken.csv")
    assert loaded.pattern_count == 4
    assert loaded.current_file == "service_access.csv"
    assert loaded.error.startswith("File parsing failed")


def test_successful_load_clears_previous_error(loaded):
    with pytest.raises(ParseError):
        loaded.load_text("")
    loaded.load_text(SAMPLE_CSV, "again.csv")
    assert loaded.error is None


def test_new_file_resets_filters(loaded):
    loaded.set_search_term("admin")
    loaded.load_text(SAMPLE_CSV, "second.csv")
    assert loaded.filters.search_term == ""
    assert len(loaded.view()) == 4


def test_superseded_load_is_discarded():
    session = AnalyzerSession()
    stale = session.begin_load()
    session.begin_load()
    assert session.load_text(SAMPLE_CSV, "late.csv", generation=stale) is False
    assert not session.has_data


def test_async_load_reads_file(sample_csv_path):
    session = AnalyzerSession()
    assert asyncio.run(session.load_file_async(sample_csv_path)) is True
    assert session.current_file == sample_csv_path.name
    assert session.pattern_count == 4


def test_async_load_discarded_when_newer_load_starts(monkeypatch, sample_csv_path):
    session = AnalyzerSession()

    async def slow_read(path):
        session.begin_load()
        return SAMPLE_CSV

    monkeypatch.setattr(session_module, "read_text_file", slow_read)
    assert asyncio.run(session.load_file_async(sample_csv_path)) is False
    assert not session.has_data


def test_date_range_is_reapplied_from_the_full_event_set(loaded):
    loaded.set_date_range("2024-01-15", "2024-01-15")
    narrowed = loaded.apply_date_range()
    assert len(narrowed) == 2
    assert loaded.event_count == 2

    loaded.set_date_range("2024-01-15", "2024-01-17")
    assert len(loaded.apply_date_range()) == 4
    assert loaded.event_count == 5


def test_date_range_is_clamped_to_the_data(loaded):
    assert loaded.set_date_range("2023-01-01", "2030-01-01") == DateRange(
        start_date=date(2024, 1, 15), end_date=date(2024, 1, 17)
    )


def test_clear_date_range_restores_everything(loaded):
    loaded.apply_date_range(DateRange(start_date=date(2024, 1, 17), end_date=date(2024, 1, 17)))
    assert loaded.pattern_count == 2
    loaded.clear_date_range()
    assert loaded.pattern_count == 4
    assert not loaded.date_range.is_active


def test_filters_drive_view_and_analytics(loaded):
    loaded.select_source("10.0.0.9")
    assert {r.ip for r in loaded.view()} == {"10.0.0.9"}
    assert [ip.ip for ip in loaded.analytics().ip_distribution] == ["10.0.0.9"]
    assert loaded.pattern_count == 4


def test_reset_filters_keeps_data_and_constraints(loaded):
    loaded.set_search_term("admin")
    loaded.select_source("10.0.0.9")
    loaded.apply_date_range(DateRange(start_date=date(2024, 1, 17), end_date=date(2024, 1, 17)))
    loaded.reset_filters()
    assert loaded.filters.search_term == ""
    assert loaded.filters.selected_source_ip == ""
    assert not loaded.date_range.is_active
    assert loaded.pattern_count == 4
    assert loaded.date_constraints.max_date == date(2024, 1, 17)


def test_toggle_sort_and_source_options(loaded):
    loaded.toggle_sort("Source")
    assert [r.source for r in loaded.view()][0] == "admin"
    loaded.toggle_sort("Source")
    assert [r.source for r in loaded.view()][0] == "svc-backup"
    assert [opt.value for opt in loaded.source_options()] == ["10.0.0.5", "10.0.0.9"]


def test_export_uses_filtered_view(loaded):
    loaded.set_search_term("admin")
    filename, text = loaded.export_csv(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    assert filename == "crowdstrike_analysis_2024-01-02T03-04-05-000Z.csv"
    lines = [line for line in text.split("\r\n") if line]
    assert len(lines) == 3
    assert all(line.startswith("admin,") for line in lines[1:])


def test_reject_policy_fails_the_load():
    session = AnalyzerSession(settings=AnalyzerSettings(invalid_timestamps=C.POLICY_REJECT))
    text = HEADER + "\nsvc,HOST,10.0.0.1,CIFS,SRV,not-a-time\n"
    with pytest.raises(InvalidTimestampError) as exc:
        session.load_text(text)
    assert exc.value.rows == [1]
    assert not session.has_data
    assert session.error


def test_warn_policy_keeps_invalid_rows():
    session = AnalyzerSession()
    session.load_text(HEADER + "\nsvc,HOST,10.0.0.1,CIFS,SRV,not-a-time\n")
    assert [r.time for r in session.view()] == [C.INVALID_DATE]


def test_session_round_trips_through_the_cache():
    store = MemoryStore()
    session = AnalyzerSession(store=store)
    session.load_text(SAMPLE_CSV, "cached.csv")
    session.set_search_term("admin")
    session.apply_date_range(DateRange(start_date=date(2024, 1, 17), end_date=date(2024, 1, 17)))

    restored = AnalyzerSession.restore(store)
    assert restored.current_file == "cached.csv"
    assert restored.filters.search_term == "admin"
    assert restored.date_range == DateRange(start_date=date(2024, 1, 17), end_date=date(2024, 1, 17))
    assert restored.results == session.results
    assert restored.date_constraints == session.date_constraints

    again = AnalyzerSession.restore(store)
    assert again.filters.search_term == "admin"


def test_snapshot_uses_cache_field_names(loaded):
    snapshot = loaded.snapshot()
    assert set(snapshot) == {
        "rawData", "results", "searchTerm", "selectedSource", "dateRange", "dateConstraints", "currentFile",
    }
    assert snapshot["rawData"][0]["Timestamp"] == "2024-01-15T18:30:50Z"
    assert snapshot["dateConstraints"] == {"minDate": "2024-01-15", "maxDate": "2024-01-17"}


def test_empty_cache_gives_empty_session():
    assert not AnalyzerSession.restore(MemoryStore()).has_data


def test_unusable_cache_is_discarded():
    bad = {"rawData": [{"Source": "x", "Timestamp": "2024-01-01T00:00:00Z"}],
           "dateRange": {"startDate": "not-a-date", "endDate": "2024-01-01"}}
    store = MemoryStore({C.CACHE_KEY: json.dumps(bad)})
    session = AnalyzerSession.restore(store)
    assert not session.has_data
    assert store.load(C.CACHE_KEY) is None


def test_reset_clears_data_and_cache():
    store = MemoryStore()
    session = AnalyzerSession(store=store)
    session.load_text(SAMPLE_CSV, "x.csv")
    assert store.load(C.CACHE_KEY) is not None
    session.reset()
    assert not session.has_data
    assert session.view() == []
    assert session.analytics().is_empty
    assert store.load(C.CACHE_KEY) is None


class _StuckStore(MemoryStore):
    def clear(self, key):
        raise StorageError("Failed to clear cache: permission denied")


def test_unusable_cache_that_cannot_be_cleared_still_gives_empty_session():
    bad = {"rawData": [{"Source": "x", "Timestamp": "2024-01-01T00:00:00Z"}],
           "dateRange": {"startDate": "not-a-date", "endDate": "2024-01-01"}}
    session = AnalyzerSession.restore(_StuckStore({C.CACHE_KEY: json.dumps(bad)}))
    assert not session.has_data
    assert session.view() == []
