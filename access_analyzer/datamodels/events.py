# datamodels/events.py
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from access_analyzer import constants as C

PatternKey = Tuple[str, str, str, str, str, str]

# Display column -> attribute on ProcessedRow
ROW_FIELDS: Dict[str, str] = {
    C.COL_SOURCE: "source",
    C.COL_SOURCE_NAME: "source_name",
    C.COL_IP: "ip",
    C.COL_SERVICE: "service",
    C.COL_TARGET: "target",
    C.COL_TIME: "time",
    C.COL_FREQ: "freq",
}


def _cell(value: Any) -> str:
    """Coerce a parsed CSV cell to a string; absent values become ''."""
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN padding for short rows
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class RawEvent:
    timestamp: str
    source: str
    source_name: str
    ip: str
    service: str
    target: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RawEvent":
        return cls(
            timestamp=_cell(record.get(C.COL_TIMESTAMP)),
            source=_cell(record.get(C.COL_SOURCE)),
            source_name=_cell(record.get(C.COL_SOURCE_NAME)),
            ip=_cell(record.get(C.COL_IP)),
            service=_cell(record.get(C.COL_SERVICE)),
            target=_cell(record.get(C.COL_TARGET)),
        )

    def to_record(self) -> Dict[str, str]:
        return {
            C.COL_TIMESTAMP: self.timestamp,
            C.COL_SOURCE: self.source,
            C.COL_SOURCE_NAME: self.source_name,
            C.COL_IP: self.ip,
            C.COL_SERVICE: self.service,
            C.COL_TARGET: self.target,
        }


@dataclass(frozen=True)
class NormalizedEvent:
    timestamp: str                  # original Timestamp cell
    source: str
    source_name: str
    ip: str
    service: str
    target: str
    ts: Optional[datetime]          # timezone-aware instant, None if unparseable
    time_bucket: str                # HH:MM in the reference timezone, or INVALID_DATE

    @property
    def is_valid(self) -> bool:
        return self.ts is not None

    @property
    def pattern_key(self) -> PatternKey:
        return (self.source, self.source_name, self.ip, self.service, self.target, self.time_bucket)


@dataclass(frozen=True)
class ProcessedRow:
    source: str
    source_name: str
    ip: str
    service: str
    target: str
    time: str
    freq: int

    def value(self, column: str) -> Any:
        """Field value by display column name or attribute name."""
        return getattr(self, ROW_FIELDS.get(column, column))

    def to_record(self) -> Dict[str, Any]:
        return {column: getattr(self, attr) for column, attr in ROW_FIELDS.items()}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ProcessedRow":
        return cls(
            source=_cell(record.get(C.COL_SOURCE)),
            source_name=_cell(record.get(C.COL_SOURCE_NAME)),
            ip=_cell(record.get(C.COL_IP)),
            service=_cell(record.get(C.COL_SERVICE)),
            target=_cell(record.get(C.COL_TARGET)),
            time=_cell(record.get(C.COL_TIME)),
            freq=int(record.get(C.COL_FREQ) or 0),
        )


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _iso(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day range; inactive unless both bounds are set."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_values(cls, start: Any = None, end: Any = None) -> "DateRange":
        return cls(start_date=_to_date(start), end_date=_to_date(end))

    @property
    def is_active(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def to_record(self) -> Dict[str, str]:
        return {"startDate": _iso(self.start_date), "endDate": _iso(self.end_date)}

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "DateRange":
        record = record or {}
        return cls.from_values(record.get("startDate"), record.get("endDate"))


@dataclass(frozen=True)
class DateConstraints:
    min_date: Optional[date] = None
    max_date: Optional[date] = None

    def to_record(self) -> Dict[str, str]:
        return {"minDate": _iso(self.min_date), "maxDate": _iso(self.max_date)}

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "DateConstraints":
        record = record or {}
        return cls(min_date=_to_date(record.get("minDate")), max_date=_to_date(record.get("maxDate")))


@dataclass(frozen=True)
class FilterState:
    search_term: str = ""
    selected_source_ip: str = ""
    sort_key: str = C.DEFAULT_SORT_KEY
    sort_direction: str = C.DEFAULT_SORT_DIRECTION

    def __post_init__(self):
        if self.sort_key not in ROW_FIELDS.values():
            if self.sort_key not in ROW_FIELDS:
                raise ValueError(f"Unknown sort column: {self.sort_key!r}")
            object.__setattr__(self, "sort_key", ROW_FIELDS[self.sort_key])
        if self.sort_direction not in (C.SORT_ASC, C.SORT_DESC):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got {self.sort_direction!r}")

    def with_changes(self, **changes) -> "FilterState":
        return replace(self, **changes)


@dataclass(frozen=True)
class SourceOption:
    value: str      # IP
    label: str      # "IP (host-a, host-b)" or just IP
