# analysis/session.py
from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from access_analyzer import constants as C
from access_analyzer.analysis.dashboard import Analytics, analyze
from access_analyzer.analysis.date_range import clamp_range, compute_date_constraints, filter_by_range
from access_analyzer.analysis.export import export_filename, rows_to_csv
from access_analyzer.analysis.ingest import parse_csv_bytes, parse_csv_text, read_csv_file
from access_analyzer.analysis.normalize import normalize
from access_analyzer.analysis.patterns import aggregate
from access_analyzer.analysis.query import toggle_sort, unique_sources, view
from access_analyzer.datamodels.events import (
    DateConstraints, DateRange, FilterState, NormalizedEvent, ProcessedRow, RawEvent, SourceOption,
)
from access_analyzer.infra.errors import AnalyzerError, StorageError
from access_analyzer.infra.storage import KeyValueStore, read_text_file
from access_analyzer.settings import AnalyzerSettings
from access_analyzer.utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)


class AnalyzerSession:
    """State for one analysis session: the loaded export, its pattern table and the user's filters.

    The pipeline stages are pure functions; this object only decides when to
    call them and swaps results in wholesale, so a reader always sees either the
    previous complete table or the new one. Each load is tagged with a
    generation number and a load that finishes after a newer one started is
    discarded.
    """

    def __init__(self, settings: Optional[AnalyzerSettings] = None, store: Optional[KeyValueStore] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.settings = settings or AnalyzerSettings()
        self.store = store
        self.monitor = monitor or PerformanceMonitor()
        self._generation = 0
        self._clear_state()

    def _clear_state(self) -> None:
        self.raw_events: List[RawEvent] = []
        self.events: List[NormalizedEvent] = []
        self.results: Optional[List[ProcessedRow]] = None
        self.filters = FilterState()
        self.date_range = DateRange()
        self.date_constraints = DateConstraints()
        self.current_file = ""
        self.error: Optional[str] = None

    # --- Load lifecycle ---

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_data(self) -> bool:
        return bool(self.raw_events)

    def begin_load(self) -> int:
        """Start a new load; any load started earlier becomes stale."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _fail(self, generation: int, error: AnalyzerError) -> None:
        if self.is_current(generation):
            self.error = error.message
        logger.error(f"Load failed ({error.code}): {error.message}")

    def _build(self, raw_events: List[RawEvent], date_range: Optional[DateRange] = None):
        events = normalize(
            raw_events,
            reference_tz=self.settings.reference_tz,
            input_tz=self.settings.input_tz,
            on_invalid=self.settings.invalid_timestamps,
        )
        with self.monitor.monitor_operation("aggregate", len(events)):
            results = self._aggregate(events, date_range)
        return events, results

    def _aggregate(self, events: List[NormalizedEvent], date_range: Optional[DateRange]) -> List[ProcessedRow]:
        selected = filter_by_range(events, date_range, input_tz=self.settings.input_tz)
        return aggregate(selected, reference_tz=self.settings.reference_tz, time_suffix=self.settings.time_suffix)

    def load_rows(self, raw_events: List[RawEvent], filename: str = "", generation: Optional[int] = None) -> bool:
        """Replace the session data with raw_events. Returns False if the load was superseded."""
        if generation is None:
            generation = self.begin_load()
        try:
            events, results = self._build(raw_events)
        except AnalyzerError as e:
            self._fail(generation, e)
            raise

        if not self.is_current(generation):
            logger.info(f"Discarding superseded load of {filename or 'data'} (generation {generation}, current {self._generation})")
            return False

        self._clear_state()
        self.raw_events = list(raw_events)
        self.events = events
        self.results = results
        self.date_constraints = compute_date_constraints(events, self.settings.input_tz)
        self.current_file = filename
        logger.info(f"Loaded {filename or 'data'}: {len(raw_events)} events, {len(results)} unique patterns")
        self._persist()
        return True

    def load_text(self, text: str, filename: str = "", generation: Optional[int] = None) -> bool:
        if generation is None:
            generation = self.begin_load()
        try:
            raw_events = parse_csv_text(text)
        except AnalyzerError as e:
            self._fail(generation, e)
            raise
        return self.load_rows(raw_events, filename, generation)

    def load_bytes(self, data: bytes, filename: str = "") -> bool:
        generation = self.begin_load()
        try:
            raw_events = parse_csv_bytes(data)
        except AnalyzerError as e:
            self._fail(generation, e)
            raise
        return self.load_rows(raw_events, filename, generation)

    def load_file(self, path: Union[str, Path]) -> bool:
        generation = self.begin_load()
        try:
            raw_events = read_csv_file(path)
        except AnalyzerError as e:
            self._fail(generation, e)
            raise
        return self.load_rows(raw_events, Path(path).name, generation)

    async def load_file_async(self, path: Union[str, Path]) -> bool:
        """Read path without blocking, then load it unless a newer load started meanwhile."""
        generation = self.begin_load()
        try:
            text = await read_text_file(path)
        except StorageError as e:
            self._fail(generation, e)
            raise
        if not self.is_current(generation):
            logger.info(f"Discarding superseded read of {path} (generation {generation})")
            return False
        return self.load_text(text, Path(path).name, generation)

    def reset(self) -> None:
        """Close the current file: drop all data and filters and clear the session cache."""
        self.begin_load()
        self._clear_state()
        if self.store is not None:
            try:
                self.store.clear(C.CACHE_KEY)
            except StorageError as e:
                logger.warning(f"Could not clear session cache: {e}")

    # --- Date range ---

    def set_date_range(self, start: Any = None, end: Any = None) -> DateRange:
        """Record the requested range, clamped to the data's days. Takes effect on apply_date_range()."""
        self.date_range = clamp_range(DateRange.from_values(start, end), self.date_constraints)
        return self.date_range

    def apply_date_range(self, date_range: Optional[DateRange] = None) -> List[ProcessedRow]:
        """Re-aggregate from the full event set restricted to the range."""
        if date_range is not None:
            self.date_range = clamp_range(date_range, self.date_constraints)
        if not self.events:
            return self.results or []
        try:
            results = self._aggregate(self.events, self.date_range)
        except AnalyzerError as e:
            self.error = e.message
            raise
        self.results = results
        self.error = None
        self._persist()
        return results

    def clear_date_range(self) -> List[ProcessedRow]:
        return self.apply_date_range(DateRange())

    # --- Filters ---

    def set_search_term(self, term: str) -> None:
        self.filters = self.filters.with_changes(search_term=term or "")
        self._persist()

    def select_source(self, ip: str) -> None:
        self.filters = self.filters.with_changes(selected_source_ip=ip or "")
        self._persist()

    def set_sort(self, key: str, direction: str = C.SORT_ASC) -> None:
        self.filters = self.filters.with_changes(sort_key=key, sort_direction=direction)

    def toggle_sort(self, key: str) -> FilterState:
        self.filters = toggle_sort(self.filters, key)
        return self.filters

    def reset_filters(self) -> None:
        """Clear search, source and date range; keep the loaded data and its date constraints."""
        self.filters = FilterState()
        self.date_range = DateRange()
        if self.events:
            self.apply_date_range()
        else:
            self._persist()

    # --- Derived views ---

    def view(self) -> List[ProcessedRow]:
        return view(self.results, self.filters)

    def analytics(self) -> Analytics:
        return analyze(self.view())

    def source_options(self) -> List[SourceOption]:
        return unique_sources(self.results)

    @property
    def pattern_count(self) -> int:
        return len(self.results or [])

    @property
    def event_count(self) -> int:
        return sum(row.freq for row in self.results or [])

    def export_csv(self, now: Optional[datetime] = None) -> Tuple[str, str]:
        """(filename, csv text) for the current filtered and sorted view."""
        return export_filename(now), rows_to_csv(self.view())

    # --- Session cache ---

    def snapshot(self) -> Dict[str, Any]:
        return {
            "rawData": [ev.to_record() for ev in self.raw_events],
            "results": [row.to_record() for row in self.results] if self.results is not None else None,
            "searchTerm": self.filters.search_term,
            "selectedSource": self.filters.selected_source_ip,
            "dateRange": self.date_range.to_record(),
            "dateConstraints": self.date_constraints.to_record(),
            "currentFile": self.current_file,
        }

    def _persist(self) -> None:
        if self.store is None or not self.raw_events:
            return
        try:
            self.store.save(C.CACHE_KEY, self.snapshot())
        except StorageError as e:
            logger.warning(f"Session cache not updated: {e}")

    @classmethod
    def restore(cls, store: KeyValueStore, settings: Optional[AnalyzerSettings] = None,
                monitor: Optional[PerformanceMonitor] = None) -> "AnalyzerSession":
        """Rebuild a session from the cache; an empty or unusable cache yields an empty session."""
        session = cls(settings=settings, store=store, monitor=monitor)
        try:
            data = store.load(C.CACHE_KEY)
        except StorageError as e:
            logger.warning(f"Session cache unavailable: {e}")
            return session
        if not data or not data.get("rawData"):
            return session

        try:
            raw_events = [RawEvent.from_record(record) for record in data["rawData"]]
            session.load_rows(raw_events, data.get("currentFile") or "")
            session.filters = FilterState(
                search_term=data.get("searchTerm") or "",
                selected_source_ip=data.get("selectedSource") or "",
            )
            saved_range = DateRange.from_record(data.get("dateRange"))
            if saved_range.is_active:
                session.apply_date_range(saved_range)
            else:
                session.date_range = saved_range
        except (AnalyzerError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unusable session cache: {e}")
            try:
                store.clear(C.CACHE_KEY)
            except StorageError as clear_error:
                logger.warning(f"Could not clear session cache: {clear_error}")
            return cls(settings=settings, store=store, monitor=monitor)

        session._persist()
        logger.info(f"Restored session for {session.current_file or 'cached data'}")
        return session
