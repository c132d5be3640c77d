"""
Central data model definitions used across the project.

This module defines the canonical structure of registrations, headings and
actions so that:
- the registry, the extractors and the dispatcher share the same field names
- the tree model and the CLI can display them without knowing the source format
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class DocumentFormat(str, Enum):
    MARKDOWN = "markdown"
    ASCIIDOC = "asciidoc"


@dataclass(frozen=True)
class TutorialRegistration:
    """
    One registered tutorial, persisted as a JSON string in the settings.
    """

    name: str
    category: str
    source_uri: str

    def to_json(self) -> str:
        return json.dumps({"name": self.name, "category": self.category, "sourceUri": self.source_uri})

    @classmethod
    def from_json(cls, raw: str) -> Optional["TutorialRegistration"]:
        """
        Decode one persisted entry. Returns None for entries that are not
        JSON objects or that lack a name or category.
        """
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return None
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        category = data.get("category")
        if not isinstance(name, str) or not isinstance(category, str) or not name or not category:
            return None
        source_uri = data.get("sourceUri")
        return cls(name=name, category=category, source_uri=source_uri if isinstance(source_uri, str) else "")


def format_minutes(minutes: float) -> str:
    """
    Render a time estimate the way the tree shows it: '(~5 mins)'.
    """
    if math.isfinite(minutes) and float(minutes).is_integer():
        return f"(~{int(minutes)} mins)"
    return f"(~{minutes:g} mins)"


@dataclass(frozen=True)
class HeadingNode:
    """
    One entry of the tutorial outline.

    time_estimate is None when the heading carries no (valid) time metadata.
    """

    title: str
    time_estimate: Optional[float] = None
    level: int = 0
    element_id: Optional[str] = None

    @property
    def time_label(self) -> Optional[str]:
        if self.time_estimate is None:
            return None
        return format_minutes(self.time_estimate)


class ActionKind(str, Enum):
    COMMAND = "command"
    REQUIREMENT = "requirement"
    TERMINAL = "terminal"


REQUIREMENT_CAPABILITIES = frozenset(
    {
        "didact.requirementCheck",
        "didact.extensionRequirementCheck",
        "didact.workspaceFolderExistsCheck",
    }
)

TERMINAL_CAPABILITIES = frozenset(
    {
        "didact.startTerminalWithName",
        "didact.sendNamedTerminalAString",
        "didact.sendNamedTerminalCtrlC",
        "didact.closeNamedTerminal",
    }
)


@dataclass
class ActionDescriptor:
    """
    One action extracted from a didact:// link.

    parameters are positional and their order is significant.
    options holds the named link parameters (srcFilePath, extFilePath,
    completion, error).
    index is the position of the originating link among all action links
    of the document, used to attribute outcomes to that link; -1 for an
    action that does not come from a link of the open document.
    """

    target_capability: str
    parameters: Tuple[str, ...] = ()
    raw_link_text: str = ""
    href: str = ""
    index: int = 0
    options: Dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> ActionKind:
        if self.target_capability in REQUIREMENT_CAPABILITIES:
            return ActionKind.REQUIREMENT
        if self.target_capability in TERMINAL_CAPABILITIES:
            return ActionKind.TERMINAL
        return ActionKind.COMMAND

    @property
    def requirement_id(self) -> Optional[str]:
        if self.kind is ActionKind.REQUIREMENT and self.parameters:
            return self.parameters[0]
        return None

    def describe(self) -> str:
        if self.index < 0:
            return f"link '{self.href or self.target_capability}'"
        label = self.raw_link_text.strip() or self.target_capability or self.href
        return f"link #{self.index + 1} '{label}'"
