# analysis/query.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from access_analyzer import constants as C
from access_analyzer.datamodels.events import FilterState, ProcessedRow, SourceOption

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = ("source", "target", "source_name", "ip", "service")


def matches_source(row: ProcessedRow, selected_source_ip: str) -> bool:
    return not selected_source_ip or row.ip == selected_source_ip


def matches_search(row: ProcessedRow, search_term: str) -> bool:
    """Case-insensitive substring match against any searchable field."""
    if not search_term:
        return True
    needle = search_term.lower()
    return any(needle in getattr(row, name).lower() for name in _SEARCH_FIELDS)


def filter_rows(rows: List[ProcessedRow], filters: FilterState) -> List[ProcessedRow]:
    return [
        row for row in rows
        if matches_source(row, filters.selected_source_ip) and matches_search(row, filters.search_term)
    ]


def sort_rows(rows: List[ProcessedRow], sort_key: str, sort_direction: str) -> List[ProcessedRow]:
    """Stable sort on one column; equal keys keep their relative order in both directions."""
    return sorted(rows, key=lambda row: row.value(sort_key), reverse=(sort_direction == C.SORT_DESC))


def view(rows: Optional[List[ProcessedRow]], filters: Optional[FilterState] = None) -> List[ProcessedRow]:
    """Filtered and sorted projection of the frequency table. Never mutates rows."""
    if not rows:
        return []
    filters = filters or FilterState()
    return sort_rows(filter_rows(rows, filters), filters.sort_key, filters.sort_direction)


def toggle_sort(filters: FilterState, key: str) -> FilterState:
    """Clicking the active ascending column flips it to descending; anything else sorts ascending."""
    probe = filters.with_changes(sort_key=key)
    if probe.sort_key == filters.sort_key and filters.sort_direction == C.SORT_ASC:
        return probe.with_changes(sort_direction=C.SORT_DESC)
    return probe.with_changes(sort_direction=C.SORT_ASC)


def unique_sources(rows: Optional[List[ProcessedRow]]) -> List[SourceOption]:
    """One selector entry per distinct IP, labelled with every hostname seen for it."""
    if not rows:
        return []
    hostnames: Dict[str, Dict[str, None]] = {}
    for row in rows:
        names = hostnames.setdefault(row.ip, {})
        if row.source_name:
            names[row.source_name] = None

    options = [
        SourceOption(value=ip, label=f"{ip} ({', '.join(names)})" if names else ip)
        for ip, names in hostnames.items()
    ]
    return sorted(options, key=lambda opt: (opt.label.casefold(), opt.label))
