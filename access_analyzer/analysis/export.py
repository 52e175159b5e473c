"""
export.py - CSV export of the current pattern view
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from access_analyzer import constants as C
from access_analyzer.datamodels.events import ProcessedRow


def rows_to_frame(rows: List[ProcessedRow]) -> pd.DataFrame:
    """ProcessedRows as a DataFrame with the export column order."""
    return pd.DataFrame([row.to_record() for row in rows], columns=C.EXPORT_COLUMNS)


def rows_to_csv(rows: List[ProcessedRow]) -> str:
    """Serialize rows with a header line; embedded commas and quotes are escaped."""
    return rows_to_frame(rows).to_csv(index=False, lineterminator="\r\n")


def export_filename(now: Optional[datetime] = None) -> str:
    """crowdstrike_analysis_<ISO timestamp with ':' and '.' replaced by '-'>.csv"""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return f"{C.EXPORT_FILE_PREFIX}{stamp.replace(':', '-').replace('.', '-')}.csv"


def write_export(rows: List[ProcessedRow], directory: Union[str, Path] = ".", now: Optional[datetime] = None) -> Path:
    """Write rows to a timestamped CSV file in directory and return its path."""
    path = Path(directory) / export_filename(now)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(rows_to_csv(rows), encoding="utf-8", newline="")
    return path
