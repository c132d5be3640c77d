"""
Action link extraction.

Actions are embedded in tutorials as links with the didact scheme, either in
the query form used by existing tutorials

    didact://?commandId=vscode.didact.requirementCheck&text=mvn-status$$mvn%20--version$$Apache%20Maven

or in the path form

    didact://didact.startTerminalWithName/my-terminal

Positional parameters come from 'text' ('$$'-separated) or from the path
segments, percent-decoded and kept in order. The scans here are read-only.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List
from urllib.parse import parse_qs, unquote, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from didact.headings import visible_text
from didact.model import ActionDescriptor, ActionKind

DIDACT_SCHEME = "didact"
LEGACY_PREFIX = "vscode."
PARAM_SEPARATOR = "$$"
NAMED_OPTIONS = ("srcFilePath", "extFilePath", "completion", "error")


class ExtractionMode(str, Enum):
    ALL = "all"
    COMMANDS = "commands"
    REQUIREMENTS = "requirements"


def canonical_capability(command_id: str) -> str:
    """
    'vscode.didact.requirementCheck' -> 'didact.requirementCheck'
    """
    command_id = (command_id or "").strip()
    if command_id.startswith(LEGACY_PREFIX):
        return command_id[len(LEGACY_PREFIX):]
    return command_id


def is_action_href(href: str) -> bool:
    return urlparse(href or "").scheme.lower() == DIDACT_SCHEME


def _first(values: Dict[str, List[str]], key: str) -> str:
    found = values.get(key)
    return found[0] if found else ""


def parse_action_href(href: str, text: str = "", index: int = 0) -> ActionDescriptor:
    """
    Decode one didact link. A link without a command id yields a descriptor
    with an empty target_capability; the dispatcher reports it as a failure.
    """
    parsed = urlparse(href)
    query = parse_qs(parsed.query, keep_blank_values=True)

    if parsed.netloc:
        capability = unquote(parsed.netloc)
        params = [unquote(seg) for seg in parsed.path.split("/") if seg]
    else:
        capability = _first(query, "commandId")
        joined = _first(query, "text")
        params = joined.split(PARAM_SEPARATOR) if joined else []

    options = {key: _first(query, key) for key in NAMED_OPTIONS if key in query}

    return ActionDescriptor(
        target_capability=canonical_capability(capability),
        parameters=tuple(params),
        raw_link_text=text,
        href=href,
        index=index,
        options=options,
    )


def action_anchors(tree: BeautifulSoup) -> List[Tag]:
    """
    All didact anchors in document order.
    """
    return [a for a in tree.find_all("a", href=True) if is_action_href(a["href"])]


def extract_actions(tree: BeautifulSoup, mode: ExtractionMode = ExtractionMode.ALL) -> List[ActionDescriptor]:
    """
    Ordered action descriptors.

    ALL returns every didact link, COMMANDS every link that is not a
    requirement check, REQUIREMENTS only requirement checks. The index of a
    descriptor is its position among all didact links, whatever the mode.
    """
    out: List[ActionDescriptor] = []
    for index, anchor in enumerate(action_anchors(tree)):
        action = parse_action_href(anchor["href"], visible_text(anchor), index)
        is_requirement = action.kind is ActionKind.REQUIREMENT
        if mode is ExtractionMode.REQUIREMENTS and not is_requirement:
            continue
        if mode is ExtractionMode.COMMANDS and is_requirement:
            continue
        out.append(action)
    return out


def gather_all_requirements(tree: BeautifulSoup) -> List[ActionDescriptor]:
    return extract_actions(tree, ExtractionMode.REQUIREMENTS)


def gather_all_commands(tree: BeautifulSoup) -> List[ActionDescriptor]:
    return extract_actions(tree, ExtractionMode.COMMANDS)
