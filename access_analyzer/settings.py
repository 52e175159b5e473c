"""
settings.py - Configuration loader for timezones, timestamp policy, cache and logging paths
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml
from dateutil import tz
from dotenv import load_dotenv

from access_analyzer import constants as C
from access_analyzer.infra.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = os.path.join(tempfile.gettempdir(), C.CACHE_DIR_NAME)
DEFAULT_LOG_DIR = os.path.join(tempfile.gettempdir(), C.CACHE_DIR_NAME, "logs")


@dataclass(frozen=True)
class AnalyzerSettings:
    reference_timezone: str = C.REFERENCE_TIMEZONE
    input_timezone: str = C.INPUT_TIMEZONE
    time_suffix: str = C.TIME_SUFFIX
    invalid_timestamps: str = C.POLICY_WARN
    cache_path: str = DEFAULT_CACHE_DIR
    log_level: str = "INFO"
    log_dir: str = DEFAULT_LOG_DIR

    def __post_init__(self):
        for name in ("reference_timezone", "input_timezone"):
            if tz.gettz(getattr(self, name)) is None:
                raise ConfigurationError(f"Unknown timezone for {name}: {getattr(self, name)!r}")
        if self.invalid_timestamps not in C.INVALID_TIMESTAMP_POLICIES:
            raise ConfigurationError(
                f"invalid_timestamps must be one of {C.INVALID_TIMESTAMP_POLICIES}, got {self.invalid_timestamps!r}"
            )

    @property
    def reference_tz(self):
        return tz.gettz(self.reference_timezone)

    @property
    def input_tz(self):
        return tz.gettz(self.input_timezone)


# === File Loaders ===

def load_json_file(path):
    """Helper to load a JSON file with robust error handling."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to load JSON file {path}: {e}")
        return None


def load_yaml_file(path):
    """Helper to load a YAML file with robust error handling."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (yaml.YAMLError, IOError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to load YAML file {path}: {e}")
        return None


def load_config_file(path):
    """Return the parsed config mapping from a .json/.yaml/.yml file, or None."""
    if path.endswith(".json"):
        data = load_json_file(path)
    elif path.endswith((".yaml", ".yml")):
        data = load_yaml_file(path)
    else:
        logger.warning(f"Unsupported config file type: {path}")
        return None
    if data is not None and not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: top level must be a mapping")
        return None
    return data


# === Environment ===

_ENV_FIELDS = {
    C.ENV_TIMEZONE: "reference_timezone",
    C.ENV_INPUT_TIMEZONE: "input_timezone",
    C.ENV_TIME_SUFFIX: "time_suffix",
    C.ENV_INVALID_TIMESTAMPS: "invalid_timestamps",
    C.ENV_CACHE_PATH: "cache_path",
    C.ENV_LOG_LEVEL: "log_level",
    C.ENV_LOG_DIR: "log_dir",
}


def _env_overrides() -> Dict[str, str]:
    overrides = {}
    for env_name, field_name in _ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(config_path: Optional[str] = None, use_dotenv: bool = True) -> AnalyzerSettings:
    """Build settings from defaults, an optional config file, then environment variables."""
    if use_dotenv:
        load_dotenv()

    known = {f.name for f in fields(AnalyzerSettings)}
    values: Dict[str, Any] = {}

    config_path = config_path or os.getenv(C.ENV_CONFIG)
    if config_path:
        data = load_config_file(config_path) or {}
        for key, value in data.items():
            if key in known:
                values[key] = str(value)
            else:
                logger.warning(f"Ignoring unknown setting {key!r} in {config_path}")
        if data:
            logger.info(f"Loaded configuration from {config_path}")

    values.update(_env_overrides())
    return AnalyzerSettings(**values)


def with_overrides(settings: AnalyzerSettings, **overrides) -> AnalyzerSettings:
    """Return a copy of settings with the non-None overrides applied."""
    return replace(settings, **{k: v for k, v in overrides.items() if v is not None})
