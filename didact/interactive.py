from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from didact.dispatch import ActionOutcome
from didact.errors import DidactError
from didact.session import TutorialSession
from didact.tree import TreeNode

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg)


def _run(loop: asyncio.AbstractEventLoop, coro: Awaitable[Any]) -> Any:
    """
    Run one step on the session loop. Terminals started in one step stay
    alive for the next, so every step shares the same loop.
    """
    try:
        return loop.run_until_complete(coro)
    except DidactError as exc:
        _println(f"[red]Error:[/] {exc}")
        return None


def run_interactive(session: TutorialSession) -> None:
    """
    Interactive menu loop around a tutorial session.
    """
    loop = asyncio.new_event_loop()
    try:
        while True:
            _print_header(session)

            choice = _prompt(
                "\n[1] Open tutorial\n"
                "[2] Outline\n"
                "[3] Run one action\n"
                "[4] Run all actions\n"
                "[5] Validate requirements\n"
                "[6] Registered tutorials\n"
                "[7] Register tutorial\n"
                "[8] Scaffold project\n"
                "[9] Save rendered tutorial\n"
                "[0] Exit\n"
                "Select: "
            ).strip()

            if choice == "0":
                _run(loop, session.shutdown())
                _println("Bye.")
                return

            if choice == "1":
                _flow_open(loop, session)
            elif choice == "2":
                _flow_outline(session)
            elif choice == "3":
                _flow_run_one(loop, session)
            elif choice == "4":
                _flow_run_all(loop, session)
            elif choice == "5":
                _flow_validate(loop, session)
            elif choice == "6":
                _flow_tutorials(loop, session)
            elif choice == "7":
                _flow_register(session)
            elif choice == "8":
                _flow_scaffold(loop, session)
            elif choice == "9":
                _flow_save_html(session)
            else:
                _println("Invalid choice.")
    finally:
        loop.close()


def _print_header(session: TutorialSession) -> None:
    _println("\n=== Didact (interactive) ===")
    doc = session.document
    if doc is None:
        _println("Tutorial: (none open) - use [1] to open one, blank opens the default")
    else:
        _println(f"Tutorial: [bold cyan]{doc.title}[/] | {doc.format.value} | {doc.uri}")
    terminals = session.terminals.names()
    _println(f"Registered tutorials: {len(session.registry)} | Terminals: {', '.join(terminals) or 'none'}")


def _require_open(session: TutorialSession) -> bool:
    if session.document is None:
        _println("No tutorial open.")
        return False
    return True


def _flow_open(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    uri = _prompt("Path or URL [blank = default tutorial]: ").strip()
    doc = _run(loop, session.open_tutorial(uri or None))
    if doc is not None:
        _println(f"Opened: {doc.title}")
        _flow_outline(session)


def _flow_outline(session: TutorialSession) -> None:
    if not _require_open(session):
        return
    headings = session.document.headings()
    if not headings:
        _println("No headings.")
        return

    table = Table(title="Outline", box=box.SIMPLE)
    table.add_column("Heading")
    table.add_column("Time", justify="right")
    for h in headings:
        indent = "  " * max(h.level - 1, 0)
        table.add_row(f"{indent}{h.title}", f"[yellow]{h.time_label}[/]" if h.time_label else "")
    console.print(table)


def _action_table(session: TutorialSession) -> int:
    actions = session.document.actions()
    table = Table(title="Actions", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Link")
    table.add_column("Command")
    table.add_column("Parameters")
    for a in actions:
        kind = f"[magenta]{a.kind.value}[/]"
        table.add_row(str(a.index + 1), a.raw_link_text or "(no text)", f"{a.target_capability or '?'} {kind}", " | ".join(a.parameters))
    console.print(table)
    return len(actions)


def _print_outcomes(outcomes: List[ActionOutcome]) -> None:
    for o in outcomes:
        if o.succeeded:
            state = "[green]succeeded[/]"
        elif o.failed:
            state = "[red]failed[/]"
        else:
            state = f"[yellow]{o.state.value}[/]"
        detail = f" - {o.error}" if o.error else ""
        _println(f"{o.action.describe()}: {state}{detail}")


def _print_messages(session: TutorialSession, start: int = 0) -> None:
    if session.view is None:
        return
    for msg in session.view.notifications[start:]:
        _println(f"[green]*[/] {msg}")


def _flow_run_one(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    if not _require_open(session):
        return

    while True:
        n = _action_table(session)
        if n == 0:
            _println("This tutorial has no actions.")
            return

        pick = _prompt("Enter number to run [blank = back]: ").strip()
        if not pick:
            return
        if not pick.isdigit():
            _println("Not a number.")
            continue
        i = int(pick)
        if not (1 <= i <= n):
            _println("Out of range.")
            continue

        seen = len(session.view.notifications) if session.view else 0
        outcome = _run(loop, session.run_action(session.document.actions()[i - 1]))
        if outcome is not None:
            _print_outcomes([outcome])
            _print_messages(session, seen)

        more = _prompt("Run another action? [Y/n]: ").strip().lower()
        if more == "n":
            return


def _flow_run_all(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    if not _require_open(session):
        return
    seen = len(session.view.notifications) if session.view else 0
    outcomes = _run(loop, session.run_all())
    if outcomes is None:
        return
    if not outcomes:
        _println("This tutorial has no actions.")
        return
    _print_outcomes(outcomes)
    _print_messages(session, seen)


def _flow_validate(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    if not _require_open(session):
        return
    report = _run(loop, session.validate_all_requirements())
    if report is None:
        return
    if not report.outcomes:
        _println("No requirements in this tutorial.")
    elif report.ok:
        _println(f"[green]All {len(report.outcomes)} requirements satisfied.[/]")
    else:
        _println(f"[red]Unsatisfied requirements: {len(report.failures)} of {len(report.outcomes)}[/]")
        for msg in report.messages():
            _println(f"- {msg}")


async def _fill_tree(session: TutorialSession, node: Optional[TreeNode], branch: Tree) -> None:
    for child in await session.tree.get_children(node):
        label = f"{child.label} [yellow]{child.description}[/]" if child.description else child.label
        sub = branch.add(label)
        if child.collapsible:
            await _fill_tree(session, child, sub)


def _flow_tutorials(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    session.refresh_view()
    if not session.tree.tree_nodes:
        _println("No tutorials registered.")
        return
    root = Tree("[bold]Didact Tutorials[/]")
    _run(loop, _fill_tree(session, None, root))
    console.print(root)


def _flow_register(session: TutorialSession) -> None:
    name = _prompt("Tutorial name [blank = back]: ").strip()
    if not name:
        return
    uri = _prompt("Path or URL: ").strip()
    category = _prompt("Category: ").strip()
    if not uri or not category:
        _println("A path/URL and a category are required.")
        return
    try:
        session.register_tutorial(name, uri, category)
    except DidactError as exc:
        _println(f"[red]Error:[/] {exc}")
        return
    _println(f"Registered: {name} ({category})")


def _flow_scaffold(loop: asyncio.AbstractEventLoop, session: TutorialSession) -> None:
    path = _prompt("Project description (JSON) [blank = back]: ").strip()
    if not path:
        return
    result = _run(loop, session.scaffold_from_file(path))
    if result is None:
        return
    _println(result.summary())
    for p in result.skipped:
        _println(f"  skipped (exists): {p}")


def _flow_save_html(session: TutorialSession) -> None:
    if not _require_open(session) or session.view is None:
        return
    default_name = "tutorial.html"
    out_in = _prompt(f"Please enter desired file name, default is [{default_name}]: ").strip()
    out_path = Path(out_in or default_name)
    if out_path.suffix.lower() not in (".html", ".htm"):
        out_path = out_path.with_suffix(".html")
    out_path.write_text(session.view.to_page(session.document.title), encoding="utf-8")
    _println(f"Saved to: {out_path.resolve()}")
