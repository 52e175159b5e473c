"""
normalize.py - Parses event timestamps and derives the time-of-day bucket
"""

import logging
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional

from dateutil import parser as dt_parser
from dateutil import tz

from access_analyzer import constants as C
from access_analyzer.datamodels.events import NormalizedEvent, RawEvent
from access_analyzer.infra.errors import AnalyzerError, DataProcessingError, InvalidTimestampError

logger = logging.getLogger(__name__)

REFERENCE_TZ = tz.gettz(C.REFERENCE_TIMEZONE)
INPUT_TZ = tz.gettz(C.INPUT_TIMEZONE)

# How many offending row numbers an InvalidTimestampError message lists
_MAX_REPORTED_ROWS = 10


def parse_timestamp(value: str, input_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Parse a Timestamp cell into an aware datetime, or None if it is not a date.

    Values without an offset are read in input_tz (UTC by default).
    """
    if not value or not value.strip():
        return None
    try:
        ts = dt_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=input_tz or INPUT_TZ)
    try:
        ts.astimezone(tz.UTC)
    except (OverflowError, ValueError):
        # parses, but the instant falls outside the representable calendar
        return None
    return ts


def time_bucket(ts: Optional[datetime], reference_tz: Optional[tzinfo] = None) -> str:
    """HH:MM wall-clock minute of ts in the reference timezone."""
    if ts is None:
        return C.INVALID_DATE
    return ts.astimezone(reference_tz or REFERENCE_TZ).strftime("%H:%M")


def format_time(ts: Optional[datetime], reference_tz: Optional[tzinfo] = None, suffix: str = C.TIME_SUFFIX) -> str:
    """Human-readable HH:MM:SS in the reference timezone, suffixed with the zone label."""
    if ts is None:
        return C.INVALID_DATE
    local = ts.astimezone(reference_tz or REFERENCE_TZ).strftime("%H:%M:%S")
    return f"{local} {suffix}" if suffix else local


def normalize_event(row: RawEvent, reference_tz: Optional[tzinfo] = None, input_tz: Optional[tzinfo] = None) -> NormalizedEvent:
    ts = parse_timestamp(row.timestamp, input_tz)
    if ts is not None:
        try:
            ts.astimezone(reference_tz or REFERENCE_TZ)
        except (OverflowError, ValueError):
            ts = None
    return NormalizedEvent(
        timestamp=row.timestamp,
        source=row.source,
        source_name=row.source_name,
        ip=row.ip,
        service=row.service,
        target=row.target,
        ts=ts,
        time_bucket=time_bucket(ts, reference_tz),
    )


def normalize(
    rows: Iterable[RawEvent],
    reference_tz: Optional[tzinfo] = None,
    input_tz: Optional[tzinfo] = None,
    on_invalid: str = C.POLICY_WARN,
) -> List[NormalizedEvent]:
    """Turn raw records into NormalizedEvents, preserving input order.

    Unparseable timestamps keep their row with an INVALID_DATE bucket under the
    'warn' policy and raise InvalidTimestampError under 'reject'.
    """
    try:
        events = [normalize_event(row, reference_tz, input_tz) for row in rows]
    except AnalyzerError:
        raise
    except Exception as e:
        raise DataProcessingError(f"{C.PROCESSING_ERROR_PREFIX}: {e}") from e

    invalid_rows = [i + 1 for i, ev in enumerate(events) if not ev.is_valid]
    if invalid_rows:
        shown = ", ".join(str(n) for n in invalid_rows[:_MAX_REPORTED_ROWS])
        more = "" if len(invalid_rows) <= _MAX_REPORTED_ROWS else f" and {len(invalid_rows) - _MAX_REPORTED_ROWS} more"
        if on_invalid == C.POLICY_REJECT:
            raise InvalidTimestampError(
                f"{C.PROCESSING_ERROR_PREFIX}: {len(invalid_rows)} row(s) have an unparseable Timestamp (rows {shown}{more})",
                rows=invalid_rows,
            )
        logger.warning(f"{len(invalid_rows)} row(s) have an unparseable Timestamp and were bucketed as '{C.INVALID_DATE}' (rows {shown}{more})")

    logger.info(f"Normalized {len(events)} events")
    return events
