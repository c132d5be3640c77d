"""
Heading / time metadata extraction.

Markdown headings carry their estimate as an attribute:

    ## Start the server {time=5}      ->  <h2 time="5">Start the server</h2>

AsciiDoc sections carry it as a role on the wrapping block:

    [.time=5]
    == Start the server               ->  <div class="sect1 time=5"><h2>...

Every heading ends up in the outline, in document order. A heading whose time
value is present but not numeric gets no estimate and one warning.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from didact.model import DocumentFormat, HeadingNode

logger = logging.getLogger(__name__)

HEADING_TAG_RE = re.compile(r"^h[1-6]$")
SECTION_CLASS_RE = re.compile(r"^sect\d+$")
TIME_TOKEN_PREFIX = "time="


def parse_time_estimate(raw: Any) -> Optional[float]:
    """
    Strict numeric parse of a time token. Returns None for missing, empty,
    non-numeric or non-finite values (never 0 as a fallback).
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def visible_text(tag: Tag) -> str:
    return " ".join(tag.get_text().split())


def class_tokens(tag: Tag) -> List[str]:
    value = tag.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(x) for x in value]


def _warn_invalid(title: str, raw: Any) -> None:
    logger.warning('Heading node "%s" has an invalid time value set to "%s"', title, raw)


class HeadingStrategy:
    """
    Format-specific heading extraction over the common tree.
    """

    format: DocumentFormat

    def candidates(self, tree: BeautifulSoup) -> List[Tag]:
        raise NotImplementedError

    def heading_for(self, element: Tag) -> Optional[HeadingNode]:
        raise NotImplementedError

    def extract(self, tree: BeautifulSoup) -> List[HeadingNode]:
        out: List[HeadingNode] = []
        for element in self.candidates(tree):
            node = self.heading_for(element)
            if node is not None:
                out.append(node)
        return out


class MarkdownHeadingStrategy(HeadingStrategy):
    format = DocumentFormat.MARKDOWN

    def candidates(self, tree: BeautifulSoup) -> List[Tag]:
        return tree.find_all(HEADING_TAG_RE)

    def heading_for(self, element: Tag) -> Optional[HeadingNode]:
        title = visible_text(element)
        estimate = None
        if element.has_attr("time"):
            raw = element.get("time")
            estimate = parse_time_estimate(raw)
            if estimate is None:
                _warn_invalid(title, raw)
        return HeadingNode(
            title=title,
            time_estimate=estimate,
            level=int(element.name[1]),
            element_id=element.get("id"),
        )


class AsciiDocHeadingStrategy(HeadingStrategy):
    format = DocumentFormat.ASCIIDOC

    def candidates(self, tree: BeautifulSoup) -> List[Tag]:
        out: List[Tag] = []
        for div in tree.find_all("div"):
            tokens = class_tokens(div)
            if any(SECTION_CLASS_RE.match(t) or t.startswith(TIME_TOKEN_PREFIX) for t in tokens):
                out.append(div)
        return out

    def heading_for(self, element: Tag) -> Optional[HeadingNode]:
        heading = element.find(HEADING_TAG_RE, recursive=False)
        if heading is None:
            return None
        title = visible_text(heading)

        estimate = None
        for token in class_tokens(element):
            if token.startswith(TIME_TOKEN_PREFIX):
                raw = token.split("=", 1)[1]
                estimate = parse_time_estimate(raw)
                if estimate is None:
                    _warn_invalid(title, raw)
                break

        return HeadingNode(
            title=title,
            time_estimate=estimate,
            level=int(heading.name[1]),
            element_id=heading.get("id"),
        )


STRATEGIES: Dict[DocumentFormat, HeadingStrategy] = {
    DocumentFormat.MARKDOWN: MarkdownHeadingStrategy(),
    DocumentFormat.ASCIIDOC: AsciiDocHeadingStrategy(),
}


def strategy_for(fmt: DocumentFormat) -> HeadingStrategy:
    return STRATEGIES[fmt]


def extract_headings(tree: BeautifulSoup, fmt: DocumentFormat) -> List[HeadingNode]:
    """
    Ordered outline of the document. Headings without a valid estimate are
    included with time_estimate=None.
    """
    return strategy_for(fmt).extract(tree)


def total_time(headings: List[HeadingNode]) -> float:
    return sum(h.time_estimate for h in headings if h.time_estimate is not None)
