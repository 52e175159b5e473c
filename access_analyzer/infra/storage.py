"""Session cache stores and async file reads with try/except and logging."""
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles

from access_analyzer.infra.errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Minimal persistence interface for the session cache."""

    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def load(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def clear(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Dict-backed store. Values are round-tripped through JSON so callers never share state."""

    def __init__(self, backing: Optional[Dict[str, str]] = None):
        self._data = backing if backing is not None else {}

    def save(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to serialize session data: {e}")

    def load(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """One JSON document per key inside a directory."""

    _SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{self._SAFE_KEY.sub('_', key)}.json"

    def save(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(tmp_path, path)
            logger.debug(f"Saved session data: {path}")
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to serialize session data: {e}")
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}")
            raise StorageError(f"Failed to write file {path}: {e}")

    def load(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            # A corrupt cache is discarded, never fatal
            logger.warning(f"Discarding unreadable session cache {path}: {e}")
            return None
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            raise StorageError(f"Failed to read file {path}: {e}")

    def clear(self, key: str) -> None:
        path = self._path_for(key)
        try:
            if path.exists():
                path.unlink()
                logger.debug(f"Cleared session data: {path}")
        except OSError as e:
            logger.warning(f"Failed to clear session data {path}: {e}")
            raise StorageError(f"Failed to clear {path}: {e}")


async def read_text_file(
    file_path: Union[str, Path],
    encoding: str = "utf-8-sig",
    errors: str = "strict"
) -> str:
    """Safely read text file with error handling."""
    try:
        async with aiofiles.open(file_path, 'r', encoding=encoding, errors=errors) as f:
            content = await f.read()
            logger.debug(f"Successfully read text file: {file_path}")
            return content
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise StorageError(f"File not found: {file_path}")
    except PermissionError:
        logger.error(f"Permission denied reading file: {file_path}")
        raise StorageError(f"Permission denied: {file_path}")
    except UnicodeDecodeError as e:
        logger.error(f"Error decoding file {file_path}: {e}")
        raise StorageError(f"Failed to decode file {file_path}: {e}")
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}")
        raise StorageError(f"Failed to read file {file_path}: {e}")


def file_exists(file_path: Union[str, Path]) -> bool:
    """Check if file exists safely."""
    try:
        return os.path.exists(file_path) and os.path.isfile(file_path)
    except (OSError, ValueError):
        return False
