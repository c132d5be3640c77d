"""
Feedback into the rendered document.

Every dispatch outcome is attached to the link it came from
(data-didact-status + title), requirement checks rewrite their status badge,
and messages are collected for the front-end to show.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from didact.links import action_anchors
from didact.model import ActionDescriptor

STATUS_ATTR = "data-didact-status"
STATUS_AVAILABLE = "Status: available"
STATUS_UNAVAILABLE = "Status: unavailable"


@dataclass
class Failure:
    action: ActionDescriptor
    message: str

    def __str__(self) -> str:
        return f"{self.action.describe()}: {self.message}"


class DocumentView:
    def __init__(self, tree: BeautifulSoup, notifications_disabled: bool = False) -> None:
        self.tree = tree
        self.notifications_disabled = notifications_disabled
        self.notifications: List[str] = []
        self.failures: List[Failure] = []
        self._anchors: List[Tag] = action_anchors(tree)

    def anchor_for(self, action: ActionDescriptor) -> Optional[Tag]:
        if 0 <= action.index < len(self._anchors):
            anchor = self._anchors[action.index]
            if anchor.get("href") == action.href:
                return anchor
        # actions built outside this document (e.g. run_link) have no anchor
        return None

    def set_requirement_status(self, requirement_id: str, satisfied: bool) -> bool:
        """
        Rewrite the badge element with the given id. Returns False when the
        document has no such element.
        """
        element = self.tree.find(id=requirement_id)
        if element is None:
            return False
        element.string = STATUS_AVAILABLE if satisfied else STATUS_UNAVAILABLE
        element[STATUS_ATTR] = "available" if satisfied else "unavailable"
        return True

    def requirement_status(self, requirement_id: str) -> Optional[str]:
        element = self.tree.find(id=requirement_id)
        return element.get(STATUS_ATTR) if element is not None else None

    def mark_action(self, action: ActionDescriptor, succeeded: bool, message: Optional[str] = None) -> None:
        anchor = self.anchor_for(action)
        if anchor is None:
            return
        anchor[STATUS_ATTR] = "succeeded" if succeeded else "failed"
        if message:
            anchor["title"] = message

    def notify(self, message: str, generic: bool = True) -> None:
        """
        Completion message. Generic messages are dropped when notifications
        are disabled; author-written ones are always kept.
        """
        if not (generic and self.notifications_disabled):
            self.notifications.append(message)

    def report_failure(self, action: ActionDescriptor, message: str) -> None:
        # never suppressed
        self.failures.append(Failure(action=action, message=message))

    def html(self) -> str:
        return str(self.tree)

    def to_page(self, title: str) -> str:
        return (
            "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
            f"<title>{html.escape(title)}</title>\n</head>\n<body>\n{self.html()}\n</body>\n</html>\n"
        )
