from __future__ import annotations

from dataclasses import dataclass
from typing import List

from bs4 import BeautifulSoup

from didact.fetch import fetch_document_async
from didact.headings import extract_headings
from didact.links import ExtractionMode, extract_actions
from didact.markup import detect_format, parse
from didact.model import ActionDescriptor, DocumentFormat, HeadingNode


@dataclass
class TutorialDocument:
    """
    One fetched and parsed tutorial. Owned by the load that created it.
    """

    uri: str
    format: DocumentFormat
    source: str
    tree: BeautifulSoup

    def headings(self) -> List[HeadingNode]:
        return extract_headings(self.tree, self.format)

    def actions(self, mode: ExtractionMode = ExtractionMode.ALL) -> List[ActionDescriptor]:
        return extract_actions(self.tree, mode)

    @property
    def title(self) -> str:
        first = self.tree.find(["h1", "h2"])
        if first is not None and first.get_text(strip=True):
            return " ".join(first.get_text().split())
        return self.uri.rstrip("/").rsplit("/", 1)[-1]


def parse_tutorial(uri: str, source: str) -> TutorialDocument:
    fmt = detect_format(uri)
    return TutorialDocument(uri=uri, format=fmt, source=source, tree=parse(source, fmt))


async def load_tutorial(uri: str, timeout: float = 30.0) -> TutorialDocument:
    """
    Fetch and parse a tutorial. FetchError/NotFoundError/ParseError propagate:
    a tutorial that cannot be fetched or parsed is not opened at all.
    """
    source = await fetch_document_async(uri, timeout)
    return parse_tutorial(uri, source)
