"""
Persistent store collaborator.

The engine never owns storage. Callers inject any object with `get(key)` and
`set(key, value)`; `WaterTempStore` layers the key formats and record mapping
on top of it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .core import constants
from .models import Coordinates, MemoEntry, ObservedReading, CrowdReport


class KeyValueStore(Protocol):
    """Minimal key-value contract the engine relies on."""

    def get(self, key: str) -> Any:
        ...

    def set(self, key: str, value: Any) -> bool:
        ...


class InMemoryStore:
    """Dict-backed store, used for tests and single-process callers."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = value
        return True


class JsonFileStore:
    """Store persisted as a single JSON object on disk."""

    def __init__(self, path: str, logger: Optional[logging.Logger] = None):
        """
        Initialize file store.

        Args:
            path: JSON file path (created on first write)
            logger: Logger instance
        """
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> bool:
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as e:
            self.logger.error(f"Failed to write store file {self.path}: {e}")
            return False
        return True


class WaterTempStore:
    """Typed access to memo, observed reading and crowd report records."""

    def __init__(self, store: KeyValueStore, logger: Optional[logging.Logger] = None):
        """
        Initialize record store.

        Args:
            store: Injected key-value collaborator
            logger: Logger instance
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def memo_key(coords: Coordinates, water_type: str) -> str:
        return f"{constants.MEMO_KEY_PREFIX}{coords.key(water_type)}"

    @staticmethod
    def observed_key(coords: Coordinates, water_type: str) -> str:
        return f"{constants.OBSERVED_KEY_PREFIX}{coords.key(water_type)}"

    def get_memo(self, coords: Coordinates, water_type: str) -> Optional[MemoEntry]:
        """Read the last persisted estimate for this location and water type."""
        raw = self.store.get(self.memo_key(coords, water_type))
        if isinstance(raw, str):
            raw = self._decode(raw)
        return MemoEntry.from_dict(raw)

    def set_memo(self, coords: Coordinates, water_type: str, entry: MemoEntry) -> bool:
        """Persist the same-day estimate."""
        key = self.memo_key(coords, water_type)
        ok = bool(self.store.set(key, entry.to_dict()))
        if not ok:
            self.logger.warning(f"Store rejected memo write for {key}")
        return ok

    def get_observed(self, coords: Coordinates, water_type: str) -> Optional[ObservedReading]:
        """Read the observed reading for this location and water type."""
        raw = self.store.get(self.observed_key(coords, water_type))
        if isinstance(raw, str):
            raw = self._decode(raw)
        reading = ObservedReading.from_dict(raw)
        if reading is not None and reading.water_type is None:
            reading.water_type = water_type
        return reading

    def set_observed(self, coords: Coordinates, water_type: str, reading: ObservedReading) -> bool:
        """Persist an observed reading."""
        if reading.water_type is None:
            reading.water_type = water_type
        return bool(self.store.set(self.observed_key(coords, water_type), reading.to_dict()))

    def get_reports(self) -> List[CrowdReport]:
        """Read all crowd reports, dropping malformed entries."""
        raw = self.store.get(constants.REPORTS_KEY)
        if isinstance(raw, str):
            raw = self._decode(raw)
        if not isinstance(raw, list):
            return []
        reports = [CrowdReport.from_dict(item) for item in raw]
        valid = [r for r in reports if r is not None]
        if len(valid) != len(raw):
            self.logger.debug(f"Dropped {len(raw) - len(valid)} malformed crowd reports")
        return valid

    def add_report(self, report: CrowdReport) -> bool:
        """Append a crowd report."""
        raw = self.store.get(constants.REPORTS_KEY)
        if isinstance(raw, str):
            raw = self._decode(raw)
        reports = list(raw) if isinstance(raw, list) else []
        reports.append(report.to_dict())
        return bool(self.store.set(constants.REPORTS_KEY, reports))

    def _decode(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            self.logger.warning("Ignoring non-JSON store value")
            return None
