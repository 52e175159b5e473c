"""
ingest.py - Tokenizes CrowdStrike service-access CSV exports into RawEvent records
"""

import io
import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from access_analyzer import constants as C
from access_analyzer.datamodels.events import RawEvent
from access_analyzer.infra.errors import ParseError
from access_analyzer.infra.storage import file_exists
from access_analyzer.utils.performance import performance_timer

logger = logging.getLogger(__name__)

_ENCODINGS = ("utf-8-sig", "cp1252")


def decode_bytes(data: bytes) -> str:
    """Decode an uploaded file, tolerating a BOM and legacy Windows exports."""
    for encoding in _ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ParseError(f"{C.PARSE_ERROR_PREFIX}: file is not valid UTF-8 or CP1252 text")


def _read_frame(text: str) -> pd.DataFrame:
    try:
        return pd.read_csv(
            io.StringIO(text),
            dtype=str,
            index_col=False,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"{C.PARSE_ERROR_PREFIX}: {e}") from e
    except pd.errors.ParserError as e:
        raise ParseError(f"{C.PARSE_ERROR_PREFIX}: {e}") from e


@performance_timer
def parse_csv_text(text: str) -> List[RawEvent]:
    """Parse CSV text with a header row into RawEvent records.

    Extra columns are ignored. A missing required column yields '' for that
    field on every row rather than rejecting the file.
    """
    df = _read_frame(text)
    missing = [col for col in C.REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        logger.warning(f"CSV is missing expected columns {missing}; filling with empty values")

    events = [RawEvent.from_record(record) for record in df.to_dict("records")]
    logger.info(f"Parsed {len(events)} rows ({len(df.columns)} columns)")
    return events


def parse_csv_bytes(data: bytes) -> List[RawEvent]:
    return parse_csv_text(decode_bytes(data))


def read_csv_file(path: Union[str, Path]) -> List[RawEvent]:
    """Read and parse a CSV export from disk."""
    path = Path(path)
    if path.suffix.lower() != ".csv":
        raise ParseError(C.INVALID_FILE_TYPE_ERROR)
    if not file_exists(path):
        raise ParseError(f"{C.PARSE_ERROR_PREFIX}: file not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParseError(f"{C.PARSE_ERROR_PREFIX}: {e}") from e
    return parse_csv_bytes(data)
