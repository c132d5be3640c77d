"""
AsciiDoc rendering.

The document itself is rendered by asciidoc-py (html5 backend). This module
only adapts what goes in and what comes out:

- Asciidoctor block attribute shorthand ('[.time=5]', '[#setup.time=5]')
  is rewritten into the '[[id]]' / '[role="..."]' lines asciidoc-py reads
- the rendered page is cut down to the document title and the content
- an empty inline anchor right in front of a phrase hands its id to it:

    [[mvn-status]] _Status: unknown_   ->  <em id="mvn-status">Status: unknown</em>
"""

from __future__ import annotations

import io
import logging
import re
from typing import List, Optional

from asciidoc.api import AsciiDocAPI, AsciiDocError
from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from didact.errors import ParseError

logger = logging.getLogger(__name__)

BACKEND = "html5"

SHORTHAND_RE = re.compile(r"^\[(?P<attrs>[#.][^\]\s,\"']*)\]$")
# '.' followed by a digit belongs to the value: '.time=2.5' is one role
SHORTHAND_TOKEN_RE = re.compile(r"([#.])((?:[^#.]|\.(?=\d))+)")
VERBATIM_DELIMITER_RE = re.compile(r"^(-{4,}|\.{4,}|\+{4,}|/{4,})$")


def expand_shorthand(line: str) -> List[str]:
    """
    '[#setup.time=5]' -> ['[[setup]]', '[role="time=5"]']. Any other line is
    returned unchanged.
    """
    m = SHORTHAND_RE.match(line.strip())
    if m is None:
        return [line]

    ident: Optional[str] = None
    roles: List[str] = []
    for marker, value in SHORTHAND_TOKEN_RE.findall(m.group("attrs")):
        if marker == "#":
            ident = value
        else:
            roles.append(value)

    out: List[str] = []
    if ident:
        out.append(f"[[{ident}]]")
    if roles:
        out.append(f'[role="{" ".join(roles)}"]')
    return out or [line]


def preprocess(raw: str) -> str:
    out: List[str] = []
    fence: Optional[str] = None
    for line in raw.splitlines():
        m = VERBATIM_DELIMITER_RE.match(line.strip())
        if m:
            if fence is None:
                fence = m.group(1)
            elif m.group(1) == fence:
                fence = None
            out.append(line)
        elif fence is None:
            out.extend(expand_shorthand(line))
        else:
            out.append(line)
    return "\n".join(out) + "\n"


def render(source: str) -> str:
    """
    Full html5 page for an AsciiDoc source. Fatal document errors raise
    ParseError with asciidoc-py's message.
    """
    api = AsciiDocAPI()
    api.attributes["linkcss"] = ""
    outfile = io.StringIO()
    try:
        api.execute(io.StringIO(source), outfile, backend=BACKEND)
    except AsciiDocError as exc:
        raise ParseError(f"Could not parse AsciiDoc document: {exc}") from exc
    for message in api.messages:
        logger.warning("asciidoc: %s", message)
    return outfile.getvalue()


def _adopt_anchor_ids(tree: BeautifulSoup) -> None:
    for anchor in tree.find_all("a", id=True):
        if anchor.has_attr("href") or anchor.contents:
            continue
        sibling = anchor.next_sibling
        while isinstance(sibling, NavigableString) and not sibling.strip():
            sibling = sibling.next_sibling
        if isinstance(sibling, Tag) and not sibling.has_attr("id"):
            sibling["id"] = anchor["id"]
            anchor.decompose()


def extract_body(page: str) -> str:
    """
    Keep the document title and the content block of a rendered page.
    """
    soup = BeautifulSoup(page, "html.parser")
    body = BeautifulSoup("", "html.parser")

    title = soup.select_one("#header > h1")
    if title is not None:
        body.append(title.extract())
        body.append("\n")

    content = soup.find(id="content")
    if content is not None:
        for child in list(content.contents):
            body.append(child.extract())

    _adopt_anchor_ids(body)
    return str(body).strip()


def convert(raw: str) -> str:
    if not raw.strip():
        return ""
    return extract_body(render(preprocess(raw)))
