#!/usr/bin/env python
"""
cli.py - Command-line entry point: summarize an export or launch the dashboard
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from access_analyzer import constants as C
from access_analyzer.analysis.export import write_export
from access_analyzer.analysis.session import AnalyzerSession
from access_analyzer.datamodels.events import ROW_FIELDS
from access_analyzer.infra.errors import AnalyzerError, describe_error
from access_analyzer.infra.logging_setup import setup_logging
from access_analyzer.settings import load_settings, with_overrides

logger = logging.getLogger(__name__)

APP_ENTRY_FILE = Path(__file__).resolve().parent / "app.py"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="access-analyzer", description="CrowdStrike service access pattern analyzer")
    parser.add_argument("--config", help="JSON or YAML settings file")
    parser.add_argument("--log-level", help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_an = sub.add_parser("analyze", help="Aggregate a CSV export and print the dashboard summaries")
    p_an.add_argument("file", help="CrowdStrike On-Prem Service Access CSV export")
    p_an.add_argument("--search", default="", help="Case-insensitive text filter")
    p_an.add_argument("--source", default="", help="Only rows for this source IP")
    p_an.add_argument("--start", help="Start date (YYYY-MM-DD), inclusive")
    p_an.add_argument("--end", help="End date (YYYY-MM-DD), inclusive")
    p_an.add_argument("--sort", default=C.DEFAULT_SORT_KEY, choices=sorted(set(ROW_FIELDS) | set(ROW_FIELDS.values())),
                      help="Column to sort the pattern table by")
    order = p_an.add_mutually_exclusive_group()
    order.add_argument("--asc", dest="direction", action="store_const", const=C.SORT_ASC)
    order.add_argument("--desc", dest="direction", action="store_const", const=C.SORT_DESC)
    p_an.add_argument("--limit", type=int, default=20, help="Pattern rows to print (0 for none)")
    p_an.add_argument("--export", metavar="DIR", help="Write the filtered view as CSV into DIR")
    p_an.add_argument("--json", action="store_true", help="Print analytics as JSON")
    p_an.add_argument("--reject-invalid", action="store_true", help="Fail on unparseable timestamps")

    p_srv = sub.add_parser("serve", help="Launch the Streamlit dashboard")
    p_srv.add_argument("--port", type=int, default=C.DEFAULT_PORT)
    p_srv.add_argument("--host", default=C.DEFAULT_HOST)
    return parser


def _print_table(title: str, rows: List[dict]) -> None:
    print(f"\n== {title} ==")
    if not rows:
        print("  (none)")
        return
    for row in rows:
        print("  " + " | ".join(f"{k}={v}" for k, v in row.items()))


def run_analyze(args, settings) -> int:
    if args.reject_invalid:
        settings = with_overrides(settings, invalid_timestamps=C.POLICY_REJECT)
    session = AnalyzerSession(settings=settings)
    session.load_file(args.file)

    if args.start or args.end:
        session.set_date_range(args.start, args.end)
        session.apply_date_range()
    session.set_search_term(args.search)
    session.select_source(args.source)
    session.set_sort(args.sort, args.direction or (C.SORT_DESC if args.sort == C.DEFAULT_SORT_KEY else C.SORT_ASC))

    rows = session.view()
    analytics = session.analytics()

    if args.json:
        print(json.dumps({
            "file": session.current_file,
            "patterns": session.pattern_count,
            "events": session.event_count,
            "matching": len(rows),
            "analytics": analytics.to_dict(),
        }, indent=2))
    else:
        print(f"{session.current_file}: found {session.pattern_count} unique patterns from {session.event_count} events")
        if not rows:
            print(C.NO_RESULTS_MESSAGE)
        if args.limit:
            _print_table("Patterns", [row.to_record() for row in rows[:args.limit]])
        data = analytics.to_dict()
        _print_table("Top Sources by Activity", data["top_sources"])
        _print_table("Top Services", data["service_stats"])
        _print_table("Most Targeted Systems", data["target_frequency"][:C.TOP_SOURCES_LIMIT])
        _print_table("Common Time Patterns", data["time_pattern_analysis"])
        _print_table("Top Source IPs", [
            {k: v for k, v in ip.items() if k not in ("hostnames", "services", "targets")}
            for ip in data["ip_distribution"]
        ])
        _print_table("Strongest Source-Target Relations", data["relationship_strength"])

    if args.export:
        path = write_export(rows, args.export)
        print(f"\nExported {len(rows)} rows to {path}")
    return 0


def build_streamlit_command(port: int, host: str) -> List[str]:
    """Build Streamlit command with proper configuration."""
    return [
        "streamlit", "run", str(APP_ENTRY_FILE),
        "--server.port", str(port),
        "--server.address", host,
        "--server.headless", "true",
        "--server.fileWatcherType", "none",
        "--browser.gatherUsageStats", "false"
    ]


def run_serve(args) -> int:
    env = dict(os.environ)
    env[C.ENV_STREAMLIT_STATS] = "false"
    env[C.ENV_STREAMLIT_WATCHER] = "none"
    cmd = build_streamlit_command(args.port, args.host)
    logger.info(f"Starting: {' '.join(cmd)}")
    return subprocess.call(cmd, env=env, shell=False)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
    except AnalyzerError as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 2
    setup_logging(args.log_level or settings.log_level)

    if args.command == "serve":
        return run_serve(args)
    try:
        return run_analyze(args, settings)
    except (AnalyzerError, ValueError) as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
