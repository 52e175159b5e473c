"""Error taxonomy for the access analyzer pipeline."""
import logging

logger = logging.getLogger(__name__)


# Error code taxonomy
class ErrorCodes:
    # Input errors
    PARSE_FAILED = "E.INP.001"

    # Processing errors
    PROCESSING_FAILED = "E.PRC.001"
    INVALID_TIMESTAMP = "E.PRC.002"

    # Storage errors
    STORAGE_ERROR = "E.STO.001"

    # Configuration errors
    INVALID_CONFIG = "E.CFG.001"


class AnalyzerError(Exception):
    """Base error carrying a stable error code and a user-facing message."""

    code = ErrorCodes.PROCESSING_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ParseError(AnalyzerError):
    """The input could not be tokenized as CSV."""

    code = ErrorCodes.PARSE_FAILED


class DataProcessingError(AnalyzerError):
    """Normalization or aggregation failed; no partial result exists."""

    code = ErrorCodes.PROCESSING_FAILED


class InvalidTimestampError(DataProcessingError):
    code = ErrorCodes.INVALID_TIMESTAMP

    def __init__(self, message: str, rows=None):
        super().__init__(message)
        self.rows = list(rows or [])


class StorageError(AnalyzerError):
    """Custom storage error for session cache operations."""

    code = ErrorCodes.STORAGE_ERROR


class ConfigurationError(AnalyzerError):
    code = ErrorCodes.INVALID_CONFIG


def describe_error(error: Exception) -> str:
    """Return the single human-readable message shown for a failed operation."""
    if isinstance(error, AnalyzerError):
        return error.message
    logger.error(f"Unhandled exception: {error}", exc_info=error)
    return f"Unknown error: {error}" if str(error) else "Unknown error"
