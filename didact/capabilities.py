"""
Built-in capabilities.

Registered as 'didact.<name>'; links written as 'vscode.didact.<name>' resolve
to the same functions. Every capability takes the dispatch context first,
followed by the link's positional parameters.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from didact.dispatch import CapabilityRegistry, DispatchContext
from didact.probes import extension_installed, run_probe
from didact.scaffold import ScaffoldResult, scaffold_project
from didact.settings import EXTENSIONS_SETTING

logger = logging.getLogger(__name__)


def _set_status(ctx: DispatchContext, requirement_id: str, satisfied: bool) -> None:
    if ctx.view is None:
        return
    if not ctx.view.set_requirement_status(requirement_id, satisfied):
        logger.debug("No status element with id %r in the document", requirement_id)


async def scaffold_project_capability(ctx: DispatchContext, description_path: str) -> ScaffoldResult:
    return await asyncio.to_thread(scaffold_project, description_path, ctx.workspace.root)


async def requirement_check(
    ctx: DispatchContext, requirement_id: str, command: str, expected: Optional[str] = None
) -> bool:
    cwd = str(ctx.workspace.root) if ctx.workspace.folder_exists() else None
    result = await run_probe(command, expected, cwd=cwd, timeout=ctx.probe_timeout)
    _set_status(ctx, requirement_id, result.satisfied)
    return result.satisfied


async def extension_requirement_check(ctx: DispatchContext, requirement_id: str, extension_id: str) -> bool:
    configured = ctx.settings.get(EXTENSIONS_SETTING) or []
    satisfied = extension_installed(extension_id, configured if isinstance(configured, list) else [])
    _set_status(ctx, requirement_id, satisfied)
    return satisfied


async def workspace_folder_exists_check(ctx: DispatchContext, requirement_id: str) -> bool:
    satisfied = ctx.workspace.folder_exists()
    _set_status(ctx, requirement_id, satisfied)
    return satisfied


async def create_workspace_folder(ctx: DispatchContext, requirement_id: Optional[str] = None) -> Path:
    path = ctx.workspace.create_folder()
    ctx.terminals.cwd = str(path)
    if requirement_id:
        _set_status(ctx, requirement_id, True)
    return path


async def start_terminal_with_name(ctx: DispatchContext, name: str) -> str:
    await ctx.terminals.start(name)
    return name


async def send_named_terminal_a_string(ctx: DispatchContext, name: str, text: str) -> str:
    await ctx.terminals.send_text(name, text)
    return name


async def send_named_terminal_ctrl_c(ctx: DispatchContext, name: str) -> str:
    await ctx.terminals.interrupt(name)
    return name


async def close_named_terminal(ctx: DispatchContext, name: str) -> str:
    await ctx.terminals.close(name)
    return name


BUILTINS = {
    "didact.scaffoldProject": scaffold_project_capability,
    "didact.requirementCheck": requirement_check,
    "didact.extensionRequirementCheck": extension_requirement_check,
    "didact.workspaceFolderExistsCheck": workspace_folder_exists_check,
    "didact.createWorkspaceFolder": create_workspace_folder,
    "didact.startTerminalWithName": start_terminal_with_name,
    "didact.sendNamedTerminalAString": send_named_terminal_a_string,
    "didact.sendNamedTerminalCtrlC": send_named_terminal_ctrl_c,
    "didact.closeNamedTerminal": close_named_terminal,
}


def register_builtins(registry: CapabilityRegistry) -> CapabilityRegistry:
    for name, func in BUILTINS.items():
        registry.register(name, func)
    return registry
