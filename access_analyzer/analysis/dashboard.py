"""
Analytics projections for the access dashboard.

Six independent summaries are derived from the (filtered) frequency table in a
single traversal: top sources, service distribution, target frequency, time
pattern stats, per-IP rollups and source->target relationship strength.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from access_analyzer import constants as C
from access_analyzer.datamodels.events import ProcessedRow


def truncate_label(value: str, length: int) -> str:
    """Shorten long names for display; the full value stays on the entry."""
    return value[:length] + "..." if len(value) > length else value


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percentage(part: int, total: int) -> float:
    """part/total as a percentage, two decimals, halves rounded up."""
    share = Decimal(part) * 100 / Decimal(total)
    return float(share.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _or_unknown(value: str) -> str:
    return value or C.UNKNOWN


@dataclass(frozen=True)
class SourceActivity:
    source: str
    count: int
    total_freq: int


@dataclass(frozen=True)
class ServiceShare:
    service: str
    count: int
    percentage: float


@dataclass(frozen=True)
class TargetFrequency:
    target: str
    frequency: int

    @property
    def label(self) -> str:
        return truncate_label(self.target, C.TARGET_LABEL_LENGTH)


@dataclass(frozen=True)
class TimePattern:
    time_pattern: str
    count: int
    total_freq: int
    sources: int
    targets: int


@dataclass(frozen=True)
class IpRollup:
    ip: str
    count: int
    total_freq: int
    hostnames: List[str]
    services: List[str]
    targets: List[str]
    unique_services: int
    unique_targets: int
    avg_events_per_target: int


@dataclass(frozen=True)
class Relationship:
    source: str
    target: str
    strength: int

    @property
    def relation(self) -> str:
        return f"{self.source}{C.RELATION_SEPARATOR}{self.target}"

    @property
    def label(self) -> str:
        return truncate_label(self.relation, C.RELATION_LABEL_LENGTH)


@dataclass(frozen=True)
class Analytics:
    top_sources: List[SourceActivity] = field(default_factory=list)
    service_stats: List[ServiceShare] = field(default_factory=list)
    target_frequency: List[TargetFrequency] = field(default_factory=list)
    time_pattern_analysis: List[TimePattern] = field(default_factory=list)
    ip_distribution: List[IpRollup] = field(default_factory=list)
    relationship_strength: List[Relationship] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.top_sources

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        out = asdict(self)
        for entry, item in zip(out["target_frequency"], self.target_frequency):
            entry["label"] = item.label
        for entry, item in zip(out["relationship_strength"], self.relationship_strength):
            entry["relation"] = item.relation
            entry["label"] = item.label
        return out


class _Accumulators:
    """Per-dimension maps filled during the single pass over the rows."""

    def __init__(self):
        self.sources: Dict[str, List[int]] = {}       # source -> [count, total_freq]
        self.services: Dict[str, int] = {}
        self.targets: Dict[str, int] = {}
        self.times: Dict[str, Dict[str, Any]] = {}
        self.ips: Dict[str, Dict[str, Any]] = {}
        self.relations: Dict[tuple, int] = {}

    def add(self, row: ProcessedRow) -> None:
        source = _or_unknown(row.source)
        service = _or_unknown(row.service)
        target = _or_unknown(row.target)
        ip = _or_unknown(row.ip)

        entry = self.sources.setdefault(source, [0, 0])
        entry[0] += 1
        entry[1] += row.freq

        self.services[service] = self.services.get(service, 0) + 1
        self.targets[target] = self.targets.get(target, 0) + row.freq

        slot = self.times.setdefault(row.time, {"count": 0, "total_freq": 0, "sources": set(), "targets": set()})
        slot["count"] += 1
        slot["total_freq"] += row.freq
        slot["sources"].add(source)
        slot["targets"].add(target)

        # dicts keep first-seen order for the per-server detail lists
        host = self.ips.setdefault(ip, {"count": 0, "total_freq": 0, "hostnames": {}, "services": {}, "targets": {}})
        host["count"] += 1
        host["total_freq"] += row.freq
        if row.source_name:
            host["hostnames"][row.source_name] = None
        host["services"][service] = None
        host["targets"][target] = None

        pair = (source, target)
        self.relations[pair] = self.relations.get(pair, 0) + row.freq


def _top(items: list, key, limit: Optional[int]) -> list:
    ranked = sorted(items, key=key)
    return ranked if limit is None else ranked[:limit]


def analyze(
    rows: Optional[List[ProcessedRow]],
    sources_limit: Optional[int] = C.TOP_SOURCES_LIMIT,
    services_limit: Optional[int] = C.TOP_SERVICES_LIMIT,
    targets_limit: Optional[int] = None,
    time_patterns_limit: Optional[int] = C.TOP_TIME_PATTERNS_LIMIT,
    ips_limit: Optional[int] = None,
    relationships_limit: Optional[int] = C.TOP_RELATIONSHIPS_LIMIT,
) -> Analytics:
    """Compute all six dashboard aggregates in one pass over rows.

    Empty or missing input yields an Analytics whose lists are all empty.
    Ties keep first-seen order.
    """
    if not rows:
        return Analytics()

    acc = _Accumulators()
    for row in rows:
        acc.add(row)
    total = len(rows)

    top_sources = _top(
        [SourceActivity(source=s, count=c, total_freq=f) for s, (c, f) in acc.sources.items()],
        key=lambda e: -e.total_freq, limit=sources_limit,
    )
    service_stats = _top(
        [ServiceShare(service=s, count=c, percentage=_percentage(c, total)) for s, c in acc.services.items()],
        key=lambda e: -e.count, limit=services_limit,
    )
    target_frequency = _top(
        [TargetFrequency(target=t, frequency=f) for t, f in acc.targets.items()],
        key=lambda e: -e.frequency, limit=targets_limit,
    )
    time_patterns = _top(
        [
            TimePattern(time_pattern=t, count=d["count"], total_freq=d["total_freq"],
                        sources=len(d["sources"]), targets=len(d["targets"]))
            for t, d in acc.times.items()
        ],
        key=lambda e: -e.total_freq, limit=time_patterns_limit,
    )
    ip_distribution = _top(
        [
            IpRollup(
                ip=ip,
                count=d["count"],
                total_freq=d["total_freq"],
                hostnames=list(d["hostnames"]),
                services=list(d["services"]),
                targets=list(d["targets"]),
                unique_services=len(d["services"]),
                unique_targets=len(d["targets"]),
                avg_events_per_target=_round_half_up(d["total_freq"] / len(d["targets"])),
            )
            for ip, d in acc.ips.items()
        ],
        key=lambda e: -e.total_freq, limit=ips_limit,
    )
    relationships = _top(
        [Relationship(source=s, target=t, strength=v) for (s, t), v in acc.relations.items()],
        key=lambda e: -e.strength, limit=relationships_limit,
    )

    return Analytics(
        top_sources=top_sources,
        service_stats=service_stats,
        target_frequency=target_frequency,
        time_pattern_analysis=time_patterns,
        ip_distribution=ip_distribution,
        relationship_strength=relationships,
    )
