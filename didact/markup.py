"""
Markup normalizer (Markdown / AsciiDoc -> structural tree).

Both converters produce HTML which is then parsed with BeautifulSoup, so the
extractors only ever walk one tree shape regardless of the source format.
"""

from __future__ import annotations

from typing import Dict
from urllib.parse import urlparse

import markdown
from bs4 import BeautifulSoup

from didact import adoc
from didact.errors import ParseError
from didact.model import DocumentFormat


ASCIIDOC_SUFFIXES = (".adoc", ".asciidoc")

MARKDOWN_EXTENSIONS = ["extra", "sane_lists", "pymdownx.tasklist"]


def detect_format(uri: str) -> DocumentFormat:
    """
    Decide the markup format from the document name:
    *.didact.adoc (any .adoc) -> AsciiDoc, everything else -> Markdown.
    """
    path = urlparse(uri).path if "://" in uri else uri
    if path.lower().endswith(ASCIIDOC_SUFFIXES):
        return DocumentFormat.ASCIIDOC
    return DocumentFormat.MARKDOWN


def is_asciidoc(uri: str) -> bool:
    return detect_format(uri) is DocumentFormat.ASCIIDOC


class MarkupConverter:
    """
    Converts raw markup into HTML and into a BeautifulSoup tree.
    """

    format: DocumentFormat

    def to_html(self, raw: str) -> str:
        raise NotImplementedError

    def parse(self, raw: str) -> BeautifulSoup:
        if not isinstance(raw, str):
            raise ParseError(f"Expected {self.format.value} text, got {type(raw).__name__}")
        try:
            body = self.to_html(raw)
        except ParseError:
            raise
        except Exception as exc:
            raise ParseError(f"Could not parse {self.format.value} document: {exc}") from exc
        return BeautifulSoup(body, "html.parser")


class MarkdownConverter(MarkupConverter):
    """
    Python-Markdown with fenced code, tables, task lists and attribute lists,
    so authors can write '## Step one {time=5}'.
    """

    format = DocumentFormat.MARKDOWN

    def to_html(self, raw: str) -> str:
        md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
        return md.convert(raw)


class AsciiDocConverter(MarkupConverter):
    """
    asciidoc-py, see didact.adoc for the shorthand and page handling.
    """

    format = DocumentFormat.ASCIIDOC

    def to_html(self, raw: str) -> str:
        return adoc.convert(raw)


CONVERTERS: Dict[DocumentFormat, MarkupConverter] = {
    DocumentFormat.MARKDOWN: MarkdownConverter(),
    DocumentFormat.ASCIIDOC: AsciiDocConverter(),
}


def converter_for(fmt: DocumentFormat) -> MarkupConverter:
    return CONVERTERS[fmt]


def parse(raw: str, fmt: DocumentFormat) -> BeautifulSoup:
    """
    Parse raw markup into the common structural tree.
    Raises ParseError with the converter's message on malformed input.
    """
    return converter_for(fmt).parse(raw)
