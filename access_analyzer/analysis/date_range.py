# analysis/date_range.py
from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional, Tuple

from access_analyzer.analysis.normalize import INPUT_TZ
from access_analyzer.datamodels.events import DateConstraints, DateRange, NormalizedEvent

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


def range_bounds(date_range: DateRange, input_tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """Inclusive instants for an active range; the end day is widened to 23:59:59.999."""
    zone = input_tz or INPUT_TZ
    start = datetime.combine(date_range.start_date, time.min, tzinfo=zone)
    end = datetime.combine(date_range.end_date, END_OF_DAY, tzinfo=zone)
    return start, end


def filter_by_range(
    events: List[NormalizedEvent],
    date_range: Optional[DateRange] = None,
    input_tz: Optional[tzinfo] = None,
) -> List[NormalizedEvent]:
    """Keep events inside the inclusive day range. Returns a new list; input is untouched.

    Events with an unparseable timestamp never fall inside an active range.
    """
    if date_range is None or not date_range.is_active:
        return list(events)
    start, end = range_bounds(date_range, input_tz)
    kept = [ev for ev in events if ev.ts is not None and start <= ev.ts <= end]
    logger.info(f"Date range {date_range.start_date}..{date_range.end_date} kept {len(kept)} of {len(events)} events")
    return kept


def compute_date_constraints(events: Iterable[NormalizedEvent], input_tz: Optional[tzinfo] = None) -> DateConstraints:
    """Earliest and latest calendar day present in the data."""
    zone = input_tz or INPUT_TZ
    days = []
    for ev in events:
        if ev.ts is None:
            continue
        try:
            days.append(ev.ts.astimezone(zone).date())
        except (OverflowError, ValueError):
            logger.warning(f"Timestamp {ev.timestamp!r} has no calendar day in {zone}; left out of date constraints")
    if not days:
        return DateConstraints()
    return DateConstraints(min_date=min(days), max_date=max(days))


def clamp_range(date_range: DateRange, constraints: DateConstraints) -> DateRange:
    """Pull each set bound into [min_date, max_date] when constraints are known."""
    def _clamp(day: Optional[date]) -> Optional[date]:
        if day is None:
            return None
        if constraints.min_date and day < constraints.min_date:
            return constraints.min_date
        if constraints.max_date and day > constraints.max_date:
            return constraints.max_date
        return day

    return DateRange(start_date=_clamp(date_range.start_date), end_date=_clamp(date_range.end_date))


def quick_range(days: int, today: Optional[date] = None) -> DateRange:
    """'Last N days' ending today."""
    end = today or date.today()
    return DateRange(start_date=end - timedelta(days=days), end_date=end)
