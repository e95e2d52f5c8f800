# src/momentum_spark/client/preferences.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STORAGE_KEY = "momentumSparkSettings"


@dataclass(frozen=True, slots=True)
class AppSettings:
    userName: str = "User"
    enableNotifications: bool = True
    enableBluetoothAudio: bool = False  # kept for compatibility, not used
    soundVolume: int = 75  # 0-100

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        """Known keys only; wrong-typed values fall back to defaults."""
        defaults = cls()
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(defaults, f.name)
            if isinstance(default, bool):
                if isinstance(value, bool):
                    kwargs[f.name] = value
            elif isinstance(default, int):
                if isinstance(value, int) and not isinstance(value, bool):
                    kwargs[f.name] = max(0, min(100, value))
            elif isinstance(value, str):
                kwargs[f.name] = value
        return cls(**kwargs)


class PreferencesStore:
    """
    Local key/value storage (a JSON object on disk) holding the serialized
    AppSettings under a single key.

    - absent file or key -> defaults
    - unreadable file -> defaults (logged)
    - update() merges a partial dict and overwrites the stored object wholesale
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Error reading preferences from %s; using defaults", self._path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def load(self) -> AppSettings:
        raw = self._read_all().get(STORAGE_KEY)
        if not isinstance(raw, dict):
            return AppSettings()
        return AppSettings.from_dict(raw)

    def save(self, settings: AppSettings) -> None:
        data = self._read_all()
        data[STORAGE_KEY] = asdict(settings)
        self._write_all(data)
        logger.debug("Saved preferences to %s", self._path)

    def update(self, **changes: Any) -> AppSettings:
        current = self.load()
        unknown = set(changes) - {f.name for f in fields(AppSettings)}
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        merged = AppSettings.from_dict({**asdict(current), **changes})
        self.save(merged)
        return merged
