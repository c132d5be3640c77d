"""
Project scaffolding from a JSON description.

Description format (all keys optional except names):

    {
      "variables": {"groupId": "org.example"},
      "folders": [
        {"name": "src", "folders": [...], "files": [...]}
      ],
      "files": [
        {"name": "README.md", "content": "# ${groupId}", "template": true},
        {"name": "pom.xml", "copy": "templates/pom.xml"}
      ]
    }

- content is a string or a list of lines
- copy is relative to the description file and must stay inside its folder
- template: true substitutes ${name} from variables (plus ${workspace})

The whole description is validated, and checked against what is already on
disk, before anything is written. Existing files are never overwritten: they
are reported as skipped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from string import Template
from typing import Any, Dict, List, Optional

from didact.errors import ScaffoldError

logger = logging.getLogger(__name__)


@dataclass
class ScaffoldResult:
    root: Path
    created: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)

    def summary(self) -> str:
        text = f"Created {len(self.created)} entries in {self.root}"
        if self.skipped:
            text += f", skipped {len(self.skipped)} existing files"
        return text


def load_description(path: str | Path) -> Dict[str, Any]:
    desc_path = Path(path)
    if not desc_path.is_file():
        raise ScaffoldError(f"Project description not found: {desc_path}")
    try:
        data = json.loads(desc_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ScaffoldError(f"Invalid project description {desc_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ScaffoldError(f"Invalid project description {desc_path}: expected a JSON object")
    return data


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_relative(value: str, where: str, folder: str) -> None:
    pure = PurePath(value)
    if pure.is_absolute() or ".." in pure.parts:
        raise ScaffoldError(f"{where}: '{value}' must stay inside the {folder}")


def _check_name(entry: Any, where: str) -> str:
    if not isinstance(entry, dict):
        raise ScaffoldError(f"{where}: expected an object, got {type(entry).__name__}")
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ScaffoldError(f"{where}: missing 'name'")
    _check_relative(name, where, "project folder")
    return name


def _check_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ScaffoldError(f"{where}: expected a list")
    return value


def _validate_files(files: Any, where: str, base_dir: Path) -> None:
    for i, entry in enumerate(_check_list(files, f"{where}.files")):
        name = _check_name(entry, f"{where}.files[{i}]")
        content = entry.get("content")
        copy = entry.get("copy")
        if content is not None and copy is not None:
            raise ScaffoldError(f"{where}/{name}: use either 'content' or 'copy', not both")
        if content is not None:
            if isinstance(content, list):
                if not all(isinstance(line, str) for line in content):
                    raise ScaffoldError(f"{where}/{name}: content lines must be strings")
            elif not isinstance(content, str):
                raise ScaffoldError(f"{where}/{name}: content must be a string or a list of lines")
        if copy is not None:
            if isinstance(copy, str):
                _check_relative(copy, f"{where}/{name}", "description folder")
            if not isinstance(copy, str) or not (base_dir / copy).is_file():
                raise ScaffoldError(f"{where}/{name}: copy source {copy!r} not found")


def _validate_folders(folders: Any, where: str, base_dir: Path) -> None:
    for i, entry in enumerate(_check_list(folders, f"{where}.folders")):
        name = _check_name(entry, f"{where}.folders[{i}]")
        _validate_folders(entry.get("folders"), f"{where}/{name}", base_dir)
        _validate_files(entry.get("files"), f"{where}/{name}", base_dir)


def validate_description(description: Dict[str, Any], base_dir: Path) -> Dict[str, str]:
    """
    Check the whole tree. Returns the template variables.
    """
    variables = description.get("variables", {})
    if not isinstance(variables, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in variables.items()
    ):
        raise ScaffoldError("'variables' must map names to strings")
    _validate_folders(description.get("folders"), "", base_dir)
    _validate_files(description.get("files"), "", base_dir)
    return dict(variables)


def _ancestors(path: Path, root: Path) -> List[Path]:
    out: List[Path] = []
    for parent in path.parents:
        if parent == root:
            break
        out.append(parent)
    return out


def _not_a_folder(path: Path) -> None:
    if path.exists() and not path.is_dir():
        raise ScaffoldError(f"{path} exists and is not a folder")


def _check_conflicts(folders: Any, files: Any, parent: Path, root: Path) -> None:
    for entry in folders or []:
        folder = parent / entry["name"]
        for path in [folder, *_ancestors(folder, root)]:
            _not_a_folder(path)
        _check_conflicts(entry.get("folders"), entry.get("files"), folder, root)
    for entry in files or []:
        target = parent / entry["name"]
        for path in _ancestors(target, root):
            _not_a_folder(path)
        if target.is_dir():
            raise ScaffoldError(f"{target} exists and is a folder")


def check_conflicts(description: Dict[str, Any], root: Path) -> None:
    """
    Fail when a folder the description needs is taken by a file, or a file
    it creates is taken by a folder.
    """
    _not_a_folder(root)
    _check_conflicts(description.get("folders"), description.get("files"), root, root)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def _file_content(entry: Dict[str, Any], base_dir: Path, variables: Dict[str, str]) -> str:
    if entry.get("copy") is not None:
        text = (base_dir / entry["copy"]).read_text(encoding="utf-8")
    else:
        content = entry.get("content", "")
        text = "\n".join(content) + "\n" if isinstance(content, list) else content
    if entry.get("template"):
        text = Template(text).safe_substitute(variables)
    return text


def _create_files(
    files: Any, folder: Path, base_dir: Path, variables: Dict[str, str], result: ScaffoldResult
) -> None:
    for entry in files or []:
        target = folder / entry["name"]
        if target.exists():
            logger.warning("Not overwriting existing file %s", target)
            result.skipped.append(target)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(_file_content(entry, base_dir, variables), encoding="utf-8")
        result.created.append(target)


def _create_folders(
    folders: Any, parent: Path, base_dir: Path, variables: Dict[str, str], result: ScaffoldResult
) -> None:
    for entry in folders or []:
        folder = parent / entry["name"]
        if not folder.exists():
            folder.mkdir(parents=True)
            result.created.append(folder)
        _create_folders(entry.get("folders"), folder, base_dir, variables, result)
        _create_files(entry.get("files"), folder, base_dir, variables, result)


def create_project(description: Dict[str, Any], root: Path, base_dir: Path) -> ScaffoldResult:
    variables = validate_description(description, base_dir)
    variables.setdefault("workspace", str(root))
    check_conflicts(description, root)

    result = ScaffoldResult(root=root)
    try:
        root.mkdir(parents=True, exist_ok=True)
        _create_folders(description.get("folders"), root, base_dir, variables, result)
        _create_files(description.get("files"), root, base_dir, variables, result)
    except OSError as exc:
        raise ScaffoldError(f"Could not scaffold project in {root}: {exc}") from exc
    return result


def scaffold_project(description_path: str | Path, workspace_root: Optional[Path]) -> ScaffoldResult:
    """
    Create the described folders and files under the workspace root.
    """
    if workspace_root is None:
        raise ScaffoldError("Cannot scaffold a project: no workspace folder is open")
    desc_path = Path(description_path)
    description = load_description(desc_path)
    result = create_project(description, Path(workspace_root), desc_path.parent)
    logger.info(result.summary())
    return result
