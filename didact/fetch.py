from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import requests

from didact.errors import FetchError, NotFoundError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URI classification
# ---------------------------------------------------------------------------


def local_path_for(uri: str) -> Optional[Path]:
    """
    Return the filesystem path for a bare path or file:// URI, None for
    network URIs.
    """
    parsed = urlparse(uri)
    scheme = parsed.scheme.lower()

    # "C:\tutorials\x.didact.md" parses with scheme "c"
    if scheme == "" or len(scheme) == 1:
        return Path(uri).expanduser()

    if scheme == "file":
        path = url2pathname(unquote(parsed.path))
        if parsed.netloc and parsed.netloc != "localhost":
            path = f"//{parsed.netloc}{path}"
        return Path(path)

    return None


def is_remote(uri: str) -> bool:
    return urlparse(uri).scheme.lower() in ("http", "https")


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def _read_local(path: Path) -> str:
    if not path.is_file():
        raise NotFoundError(f"Tutorial file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise FetchError(f"Tutorial file {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise FetchError(f"Could not read tutorial file {path}: {exc}") from exc


def _read_remote(uri: str, timeout: float) -> str:
    try:
        resp = requests.get(uri, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"Could not fetch {uri}: {exc}") from exc
    return resp.text


def fetch_document(uri: str, timeout: float = 30.0) -> str:
    """
    Resolve a document reference into raw markup text.

    One attempt only; every call re-reads the document.
    """
    uri = (uri or "").strip()
    if not uri:
        raise FetchError("No tutorial URI given")

    path = local_path_for(uri)
    if path is not None:
        logger.debug("Reading tutorial from %s", path)
        return _read_local(path)

    if is_remote(uri):
        logger.debug("Fetching tutorial from %s", uri)
        return _read_remote(uri, timeout)

    raise FetchError(f"Unsupported tutorial URI: {uri}")


async def fetch_document_async(uri: str, timeout: float = 30.0) -> str:
    """
    Same as fetch_document, but yields to the event loop while the blocking
    read or HTTP request runs in a worker thread.
    """
    return await asyncio.to_thread(fetch_document, uri, timeout)
