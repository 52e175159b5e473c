# analysis/patterns.py
from __future__ import annotations
import logging
from datetime import tzinfo
from typing import Dict, List, Optional

from access_analyzer import constants as C
from access_analyzer.analysis.normalize import format_time
from access_analyzer.datamodels.events import NormalizedEvent, PatternKey, ProcessedRow
from access_analyzer.infra.errors import AnalyzerError, DataProcessingError

logger = logging.getLogger(__name__)


def sort_chronologically(events: List[NormalizedEvent]) -> List[NormalizedEvent]:
    """Stable chronological sort; events with equal instants keep input order.

    Unparseable timestamps sort after every real instant.
    """
    valid = sorted((ev for ev in events if ev.ts is not None), key=lambda ev: ev.ts)
    invalid = [ev for ev in events if ev.ts is None]
    return valid + invalid


def aggregate(
    events: List[NormalizedEvent],
    reference_tz: Optional[tzinfo] = None,
    time_suffix: str = C.TIME_SUFFIX,
) -> List[ProcessedRow]:
    """Group events into unique access patterns and count occurrences.

    One ProcessedRow per distinct (Source, Source Name, IP, Service, Target,
    time bucket). Time is taken from the earliest event of each group. Rows are
    returned ascending by Source, then descending by freq.
    """
    if not events:
        return []
    try:
        groups: Dict[PatternKey, List] = {}
        for ev in sort_chronologically(events):
            group = groups.get(ev.pattern_key)
            if group is None:
                groups[ev.pattern_key] = [ev, 1]
            else:
                group[1] += 1

        rows = [
            ProcessedRow(
                source=first.source,
                source_name=first.source_name,
                ip=first.ip,
                service=first.service,
                target=first.target,
                time=format_time(first.ts, reference_tz, time_suffix),
                freq=count,
            )
            for first, count in groups.values()
        ]
        rows.sort(key=lambda r: -r.freq)
        rows.sort(key=lambda r: r.source)
    except AnalyzerError:
        raise
    except Exception as e:
        raise DataProcessingError(f"{C.PROCESSING_ERROR_PREFIX}: {e}") from e

    logger.info(f"Aggregated {len(events)} events into {len(rows)} unique patterns")
    return rows
