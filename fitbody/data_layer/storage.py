"""Durable key-value storage for session and preference data.

The client persists a handful of string values under fixed keys:

- ``user``: the session identity (JSON object)
- ``profileData`` / ``currentStep``: the onboarding draft
- ``nutritionSetupComplete``: warm-start hint for the nutrition guard

``JsonFileStorage`` writes one file per key so entries can be inspected and
removed by hand. ``MemoryStorage`` keeps everything in a dict and is used by
tests and one-shot scripts.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from fitbody.data_layer.exceptions import StorageError

logger = logging.getLogger(__name__)

USER_KEY = "user"
PROFILE_DATA_KEY = "profileData"
CURRENT_STEP_KEY = "currentStep"
SETUP_COMPLETE_KEY = "nutritionSetupComplete"


class KeyValueStorage(ABC):
    """Abstraction over the platform's durable string storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string for *key*, or ``None``."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*. Missing keys are ignored."""
        ...

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def get_json(self, key: str) -> Any:
        """Return the decoded JSON value for *key*, or ``None`` if absent.

        Raises:
            ValueError: If the stored value is not valid JSON
        """
        raw = self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))


class MemoryStorage(KeyValueStorage):
    """In-memory storage; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """Disk-backed storage with one file per key.

    Usage:
        storage = JsonFileStorage(".fitbody")
        storage.set_json("user", {"_id": "u1"})
        storage.get_json("user")
    """

    DEFAULT_DIR = ".fitbody"

    def __init__(self, directory: Optional[str] = None):
        """Initialize storage rooted at *directory* (created if missing).

        Args:
            directory: Directory for storage files
        """
        self.directory = Path(directory or self.DEFAULT_DIR)
        self.directory.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[str]:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        try:
            return file_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read storage key '{key}': {e}")
            return None

    def set(self, key: str, value: str) -> None:
        file_path = self._get_file_path(key)
        tmp_path = file_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(file_path)
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def remove(self, key: str) -> None:
        file_path = self._get_file_path(key)
        try:
            file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def _get_file_path(self, key: str) -> Path:
        return self.directory / f"{self._to_safe_filename(key)}.json"

    @staticmethod
    def _to_safe_filename(key: str) -> str:
        safe = re.sub(r"[^\w\-]", "_", key)
        safe = re.sub(r"_+", "_", safe).strip("_")
        return safe or "unnamed"
