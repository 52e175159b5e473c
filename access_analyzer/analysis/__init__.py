"""analysis package

Expose the pipeline stages used by the dashboard and the CLI:
parse -> normalize -> filter_by_range -> aggregate -> view -> analyze.
"""

from __future__ import annotations

from access_analyzer.analysis.dashboard import Analytics, analyze
from access_analyzer.analysis.date_range import compute_date_constraints, filter_by_range, quick_range
from access_analyzer.analysis.export import export_filename, rows_to_csv
from access_analyzer.analysis.ingest import parse_csv_bytes, parse_csv_text, read_csv_file
from access_analyzer.analysis.normalize import normalize
from access_analyzer.analysis.patterns import aggregate
from access_analyzer.analysis.query import toggle_sort, unique_sources, view
from access_analyzer.analysis.session import AnalyzerSession

__all__ = [
    "Analytics",
    "AnalyzerSession",
    "aggregate",
    "analyze",
    "compute_date_constraints",
    "export_filename",
    "filter_by_range",
    "normalize",
    "parse_csv_bytes",
    "parse_csv_text",
    "quick_range",
    "read_csv_file",
    "rows_to_csv",
    "toggle_sort",
    "unique_sources",
    "view",
]
