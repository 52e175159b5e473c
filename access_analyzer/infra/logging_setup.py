import logging
import time
from pathlib import Path
from typing import Optional, Union

from access_analyzer.constants import LOG_FILE_LIFESPAN_SECONDS, LOG_FILE_PREFIX

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: Union[int, str] = logging.INFO):
    """Setup console logging configuration."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )

    # Set specific log levels
    logging.getLogger("streamlit").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def cleanup_old_logs(log_dir: Path, lifespan_seconds: int = LOG_FILE_LIFESPAN_SECONDS, now: Optional[float] = None) -> int:
    """Deletes log files older than the specified lifespan. Returns how many were removed."""
    if not log_dir.is_dir():
        return 0

    cutoff = (now if now is not None else time.time()) - lifespan_seconds
    removed = 0
    for log_file in log_dir.glob(f"{LOG_FILE_PREFIX}*.log"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                removed += 1
                logging.getLogger(__name__).info(f"Deleted old log file: {log_file.name}")
        except OSError as e:
            logging.getLogger(__name__).warning(f"Error deleting log {log_file.name}: {e}")
    return removed


def get_session_logger(name: str, log_dir: Union[str, Path]) -> logging.Logger:
    """Initializes and returns a logger writing to a per-day file in log_dir.

    - Logs to a dedicated, date-stamped file.
    - Cleans up logs older than 2 days on initialization.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(log_dir)

    logger = logging.getLogger(f"access_analyzer.session.{name}")
    if logger.handlers:
        return logger  # Avoid adding duplicate handlers

    logger.setLevel(logging.INFO)
    log_filename = log_dir / f"{LOG_FILE_PREFIX}{time.strftime('%Y%m%d')}.log"

    handler = logging.FileHandler(log_filename)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger
