"""
CLI (Command Line Interface).

This module provides terminal commands for tutorial authors and users, e.g.:

    didact open [uri]
    didact register <name> <uri> <category>
    didact tutorials --headings
    didact run <uri>
    didact validate <uri>
    didact interactive

Note:
- The interactive UI lives in didact/interactive.py
- This CLI is intentionally simple and prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from didact.errors import DidactError
from didact.session import TutorialSession
from didact.settings import JsonSettingsStore, default_settings_path
from didact.tree import TreeNode
from didact.workspace import Workspace


def _build_session(args: argparse.Namespace) -> TutorialSession:
    """
    Create a session for the selected workspace and settings file.
    """
    workspace = Path(args.workspace).resolve() if args.workspace else Path.cwd()
    settings_path = Path(args.settings) if args.settings else default_settings_path(workspace)
    return TutorialSession(JsonSettingsStore(settings_path), workspace=Workspace(workspace))


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _print_document(session: TutorialSession) -> None:
    doc = session.document
    if doc is None:
        return
    print(f"{doc.title} ({doc.format.value}, {doc.uri})")
    headings = doc.headings()
    if headings:
        print("Outline:")
        for h in headings:
            indent = "  " * max(h.level - 1, 0)
            label = f" {h.time_label}" if h.time_label else ""
            print(f"  {indent}{h.title}{label}")
    actions = doc.actions()
    if actions:
        print("Actions:")
        for a in actions:
            params = ", ".join(a.parameters)
            print(f"  [{a.index + 1}] {a.raw_link_text or '(no text)'} -> {a.target_capability or '?'}({params})")


def _write_html(session: TutorialSession, out: Optional[str]) -> None:
    if not out or session.view is None or session.document is None:
        return
    out_path = Path(out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(session.view.to_page(session.document.title), encoding="utf-8")
    print(f"Rendered tutorial written to: {out_path}")


def _print_messages(session: TutorialSession) -> None:
    view = session.view
    if view is None:
        return
    for msg in view.notifications:
        print(f"* {msg}")
    for failure in view.failures:
        print(f"! {failure}")


async def _cmd_open(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.open_tutorial(args.uri)
    _print_document(session)
    _write_html(session, args.html)
    return 0


async def _cmd_start(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.start_tutorial_from_file(args.path)
    _print_document(session)
    return 0


async def _cmd_register(args: argparse.Namespace, session: TutorialSession) -> int:
    name = (args.name or "").strip()
    category = (args.category or "").strip()
    if not name or not category:
        print("Please provide a tutorial name and category.")
        return 1
    session.register_tutorial(name, args.uri, category)
    print(f"Registered: {name} ({category}) -> {args.uri}")
    return 0


async def _print_tree(session: TutorialSession, node: Optional[TreeNode], depth: int, headings: bool) -> None:
    for child in await session.tree.get_children(node):
        label = f"{child.label} {child.description}" if child.description else child.label
        print(f"{'  ' * depth}- {label}")
        if child.collapsible and (headings or depth == 0):
            await _print_tree(session, child, depth + 1, headings)


async def _cmd_tutorials(args: argparse.Namespace, session: TutorialSession) -> int:
    session.refresh_view()
    if not session.tree.tree_nodes:
        print("No tutorials registered.")
        return 0
    await _print_tree(session, None, 0, args.headings)
    return 0


async def _cmd_clear(args: argparse.Namespace, session: TutorialSession) -> int:
    session.registry.clear()
    print("Registered tutorials cleared.")
    return 0


async def _cmd_scaffold(args: argparse.Namespace, session: TutorialSession) -> int:
    result = await session.scaffold_from_file(args.path)
    print(result.summary())
    for path in result.skipped:
        print(f"  skipped (exists): {path}")
    return 0


async def _cmd_run(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.open_tutorial(args.uri)
    try:
        outcomes = await session.run_all()
    finally:
        await session.terminals.close_all()

    for o in outcomes:
        status = o.state.value
        detail = f" ({o.error})" if o.error else ""
        print(f"[{o.action.index + 1}] {status:<10} {o.action.raw_link_text or o.action.target_capability}{detail}")
    _print_messages(session)
    _write_html(session, args.html)
    return 1 if any(o.failed for o in outcomes) else 0


async def _cmd_validate(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.open_tutorial(args.uri)
    report = await session.validate_all_requirements()
    if not report.outcomes:
        print("No requirements in this tutorial.")
        return 0
    if report.ok:
        print(f"All {len(report.outcomes)} requirements satisfied.")
        return 0
    print(f"Unsatisfied requirements: {len(report.failures)} of {len(report.outcomes)}")
    for msg in report.messages():
        print(f"- {msg}")
    return 1


async def _cmd_gather_requirements(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.open_tutorial(args.uri)
    for action in session.gather_all_requirements():
        print(action.href)
    return 0


async def _cmd_gather_commands(args: argparse.Namespace, session: TutorialSession) -> int:
    await session.open_tutorial(args.uri)
    for action in session.gather_all_commands():
        print(action.href)
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, TutorialSession], Awaitable[int]]] = {
    "open": _cmd_open,
    "start": _cmd_start,
    "register": _cmd_register,
    "tutorials": _cmd_tutorials,
    "clear": _cmd_clear,
    "scaffold": _cmd_scaffold,
    "run": _cmd_run,
    "validate": _cmd_validate,
    "gather-requirements": _cmd_gather_requirements,
    "gather-commands": _cmd_gather_commands,
}


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="didact", description="Run interactive Markdown/AsciiDoc tutorials")
    parser.add_argument("--workspace", "-w", type=str, default=None, help="Workspace folder (default: current dir)")
    parser.add_argument("--settings", type=str, default=None, help="Settings file (default: <workspace>/.didact)")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="More logging (-vv for debug)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_open = sub.add_parser("open", help="Open a tutorial and show its outline and actions")
    p_open.add_argument("uri", nargs="?", default=None, help="Path or URL (default: configured default tutorial)")
    p_open.add_argument("--html", type=str, default=None, help="Write the rendered tutorial to this file")

    p_start = sub.add_parser("start", help="Start a tutorial from a local file")
    p_start.add_argument("path", type=str, help="Path to a .didact.md or .didact.adoc file")

    p_register = sub.add_parser("register", help="Register a tutorial")
    p_register.add_argument("name", type=str)
    p_register.add_argument("uri", type=str)
    p_register.add_argument("category", type=str)

    p_tutorials = sub.add_parser("tutorials", help="Show registered tutorials by category")
    p_tutorials.add_argument("--headings", action="store_true", help="Also list timed headings")

    sub.add_parser("clear", help="Remove all registered tutorials")

    p_scaffold = sub.add_parser("scaffold", help="Scaffold a project from a JSON description")
    p_scaffold.add_argument("path", type=str)

    p_run = sub.add_parser("run", help="Run every action of a tutorial in order")
    p_run.add_argument("uri", type=str)
    p_run.add_argument("--html", type=str, default=None, help="Write the annotated tutorial to this file")

    p_validate = sub.add_parser("validate", help="Validate all requirements of a tutorial")
    p_validate.add_argument("uri", type=str)

    p_req = sub.add_parser("gather-requirements", help="List requirement links of a tutorial")
    p_req.add_argument("uri", type=str)

    p_cmds = sub.add_parser("gather-commands", help="List command links of a tutorial")
    p_cmds.add_argument("uri", type=str)

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: List[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    session = _build_session(args)

    if args.command == "interactive":
        from didact.interactive import run_interactive

        run_interactive(session)
        raise SystemExit(0)

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = asyncio.run(handler(args, session))
    except DidactError as exc:
        print(f"Error: {exc}")
        code = 1
    raise SystemExit(code)
