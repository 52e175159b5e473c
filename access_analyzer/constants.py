"""Constants for the access analyzer to eliminate string literal duplication."""

# Input columns (CrowdStrike "On-Prem Service Access" export)
COL_SOURCE = "Source"
COL_SOURCE_NAME = "Source Name"
COL_IP = "IP"
COL_SERVICE = "Service"
COL_TARGET = "Target"
COL_TIMESTAMP = "Timestamp"
REQUIRED_COLUMNS = [COL_SOURCE, COL_SOURCE_NAME, COL_IP, COL_SERVICE, COL_TARGET, COL_TIMESTAMP]

# Export columns
COL_TIME = "Time"
COL_FREQ = "freq"
EXPORT_COLUMNS = [COL_SOURCE, COL_SOURCE_NAME, COL_IP, COL_SERVICE, COL_TARGET, COL_TIME, COL_FREQ]
EXPORT_FILE_PREFIX = "crowdstrike_analysis_"

# Time handling
REFERENCE_TIMEZONE = "America/Los_Angeles"
INPUT_TIMEZONE = "UTC"
TIME_SUFFIX = "PST"
INVALID_DATE = "Invalid Date"
QUICK_RANGE_DAYS = [7, 30, 90]

# Invalid timestamp policies
POLICY_WARN = "warn"
POLICY_REJECT = "reject"
INVALID_TIMESTAMP_POLICIES = [POLICY_WARN, POLICY_REJECT]

# Analytics
UNKNOWN = "Unknown"
TOP_SOURCES_LIMIT = 5
TOP_SERVICES_LIMIT = 5
TOP_TIME_PATTERNS_LIMIT = 8
TOP_RELATIONSHIPS_LIMIT = 5
TARGET_LABEL_LENGTH = 15
RELATION_LABEL_LENGTH = 20
RELATION_SEPARATOR = "->"

# Sorting
SORT_ASC = "asc"
SORT_DESC = "desc"
DEFAULT_SORT_KEY = "freq"
DEFAULT_SORT_DIRECTION = SORT_DESC

# Session cache
CACHE_KEY = "crowdstrike_analyzer_data"
CACHE_DIR_NAME = "access_analyzer"

# Logging
LOG_FILE_PREFIX = "access_analyzer_"
LOG_FILE_LIFESPAN_SECONDS = 2 * 24 * 60 * 60  # 2 days

# Environment Variables
ENV_CONFIG = "ACCESS_ANALYZER_CONFIG"
ENV_TIMEZONE = "ACCESS_ANALYZER_TZ"
ENV_INPUT_TIMEZONE = "ACCESS_ANALYZER_INPUT_TZ"
ENV_TIME_SUFFIX = "ACCESS_ANALYZER_TIME_SUFFIX"
ENV_INVALID_TIMESTAMPS = "ACCESS_ANALYZER_INVALID_TIMESTAMPS"
ENV_CACHE_PATH = "ACCESS_ANALYZER_CACHE_PATH"
ENV_LOG_LEVEL = "ACCESS_ANALYZER_LOG_LEVEL"
ENV_LOG_DIR = "ACCESS_ANALYZER_LOG_DIR"
ENV_STREAMLIT_STATS = "STREAMLIT_BROWSER_GATHER_USAGE_STATS"
ENV_STREAMLIT_WATCHER = "STREAMLIT_WATCHER_TYPE"

# Server Configuration (dashboard)
DEFAULT_PORT = 8501
DEFAULT_HOST = "127.0.0.1"

# Error Messages
PARSE_ERROR_PREFIX = "File parsing failed"
PROCESSING_ERROR_PREFIX = "Data processing failed"
INVALID_FILE_TYPE_ERROR = "Please drop a valid CSV file"
NO_RESULTS_MESSAGE = "No results for current filters"

# UI Configuration
MAX_TABLE_HEIGHT = 600
