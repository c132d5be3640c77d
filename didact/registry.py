"""
Tutorial registry.

A registration maps (name, category) to the URI of a tutorial document.
Registrations are stored under the 'didact.registered' setting as a list of
JSON strings: {"name": ..., "category": ..., "sourceUri": ...}.

Note on case handling:
- duplicate detection compares name and category case-insensitively
- list_categories(), list_tutorials() and resolve_uri() match exactly, so
  "Basics" and "basics" are two categories and every tutorial stays reachable
The asymmetry is kept for compatibility with existing registries.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from didact.errors import DuplicateTutorialError
from didact.model import TutorialRegistration
from didact.settings import REGISTERED_SETTING, SettingsStore

logger = logging.getLogger(__name__)


class TutorialRegistry:
    def __init__(self, store: SettingsStore) -> None:
        self.store = store
        self._listeners: List[Callable[[], None]] = []

    def add_listener(self, callback: Callable[[], None]) -> None:
        """
        Register a callback fired after every registry change.
        """
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _entries(self) -> list[str]:
        raw = self.store.get(REGISTERED_SETTING)
        if not isinstance(raw, list):
            return []
        return [x for x in raw if isinstance(x, str)]

    def registrations(self) -> list[TutorialRegistration]:
        out: list[TutorialRegistration] = []
        for entry in self._entries():
            reg = TutorialRegistration.from_json(entry)
            if reg is None:
                logger.debug("Skipping malformed tutorial registration: %r", entry)
                continue
            out.append(reg)
        return out

    def register(self, name: str, source_uri: str, category: str) -> TutorialRegistration:
        """
        Add a tutorial. Raises DuplicateTutorialError (registry unchanged) when
        a tutorial with the same name and category exists, ignoring case.
        """
        entries = self._entries()
        for existing in self.registrations():
            if existing.name.lower() == name.lower() and existing.category.lower() == category.lower():
                raise DuplicateTutorialError(
                    f"Didact tutorial with name {name} and category {category} already exists"
                )

        reg = TutorialRegistration(name=name, category=category, source_uri=source_uri)
        entries.append(reg.to_json())
        self.store.update(REGISTERED_SETTING, entries)
        logger.info("Registered tutorial %r in category %r", name, category)
        self._notify()
        return reg

    def list_categories(self) -> list[str]:
        seen: set[str] = set()
        out: list[str] = []
        for reg in self.registrations():
            if reg.category in seen:
                continue
            seen.add(reg.category)
            out.append(reg.category)
        return out

    def list_tutorials(self, category: str) -> list[str]:
        # exact-case match on the category, see module docstring
        return [reg.name for reg in self.registrations() if reg.category == category]

    def resolve_uri(self, name: str, category: str) -> Optional[str]:
        for reg in self.registrations():
            if reg.name == name and reg.category == category and reg.source_uri:
                return reg.source_uri
        return None

    def clear(self) -> None:
        self.store.update(REGISTERED_SETTING, None)
        logger.info("Didact configuration cleared")
        self._notify()

    def __len__(self) -> int:
        return len(self.registrations())
