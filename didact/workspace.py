from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Optional

from didact.errors import NoWorkspaceError

logger = logging.getLogger(__name__)

WORKSPACE_FOLDER_NAME = "didact-workspace"


class Workspace:
    """
    The folder tutorials scaffold into and run commands from.

    root may be None (nothing open); create_folder() then creates a
    'didact-workspace' folder under fallback_parent (the temp dir by default)
    and adopts it.
    """

    def __init__(self, root: str | Path | None = None, fallback_parent: str | Path | None = None) -> None:
        self.root: Optional[Path] = Path(root) if root is not None else None
        self.fallback_parent = Path(fallback_parent) if fallback_parent is not None else None

    def folder_exists(self) -> bool:
        return self.root is not None and self.root.is_dir()

    def require_root(self) -> Path:
        if self.root is None:
            raise NoWorkspaceError("No workspace folder is open")
        return self.root

    def create_folder(self) -> Path:
        if self.root is not None and self.root.is_dir():
            return self.root

        parent = self.fallback_parent or Path(tempfile.gettempdir())
        target = self.root if self.root is not None else parent / WORKSPACE_FOLDER_NAME
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise NoWorkspaceError(f"Could not create workspace folder {target}: {exc}") from exc

        logger.info("Created workspace folder %s", target)
        self.root = target
        return target

    def resolve(self, relative: str | Path) -> Path:
        path = Path(relative)
        if path.is_absolute():
            return path
        return self.require_root() / path
