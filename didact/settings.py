"""
Persistent settings for the tutorial engine.

This module manages the file:

    <workspace>/.didact/settings.json

It holds the registered tutorials and a handful of user preferences.

Design rationale:
- the whole settings object is read and replaced wholesale, no partial updates
- the store is injected into the registry and the session, so tests can use
  MemorySettingsStore instead of touching real files
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional


REGISTERED_SETTING = "didact.registered"
NOTIFICATION_SETTING = "didact.disableNotifications"
DEFAULT_URL_SETTING = "didact.defaultUrl"
REQUIREMENT_TIMEOUT_SETTING = "didact.requirementTimeout"
FETCH_TIMEOUT_SETTING = "didact.fetchTimeout"
EXTENSIONS_SETTING = "didact.extensions"

SETTINGS_ENV = "DIDACT_SETTINGS"

DEFAULT_TIMEOUT = 30.0


def default_settings_path(workspace: str | Path | None = None) -> Path:
    """
    Return the settings file location.

    DIDACT_SETTINGS wins, then the workspace-scoped file, then a file in the
    user's home directory when no workspace is open.
    """
    env_path = os.environ.get(SETTINGS_ENV, "").strip()
    if env_path:
        return Path(env_path)
    if workspace is not None:
        return Path(workspace) / ".didact" / "settings.json"
    return Path.home() / ".didact" / "settings.json"


class SettingsStore:
    """
    Key/value settings interface.

    update(key, None) removes the key.
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def update(self, key: str, value: Any) -> None:
        raise NotImplementedError


class MemorySettingsStore(SettingsStore):
    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def update(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value


class JsonSettingsStore(SettingsStore):
    """
    Settings kept in a JSON object file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        # First run: file does not exist yet -> no settings
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def update(self, key: str, value: Any) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def is_notification_disabled(store: SettingsStore) -> bool:
    return bool(store.get(NOTIFICATION_SETTING, False))


def get_default_url(store: SettingsStore) -> Optional[str]:
    value = store.get(DEFAULT_URL_SETTING)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_timeout(store: SettingsStore, key: str) -> float:
    value = store.get(key, DEFAULT_TIMEOUT)
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_TIMEOUT
