"""
Named terminals.

Tutorials only ever refer to a terminal by the name the author chose, so the
manager is keyed by name. A terminal is a shell process fed through stdin;
its output goes to the console the tutorial runs in.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Awaitable, Callable, Dict, List, Optional

from didact.errors import DispatchError

logger = logging.getLogger(__name__)


def default_shell() -> str:
    if sys.platform == "win32":
        return os.environ.get("COMSPEC", "cmd.exe")
    return os.environ.get("SHELL", "/bin/sh")


class ShellProcess:
    """
    Thin wrapper around an asyncio shell subprocess.
    """

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self.process = process

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    async def write(self, text: str) -> None:
        if self.process.stdin is None:
            raise DispatchError("Terminal does not accept input")
        self.process.stdin.write((text + "\n").encode("utf-8"))
        await self.process.stdin.drain()

    def interrupt(self) -> None:
        # Ctrl+C goes to the whole process group, so the running command stops too
        if sys.platform == "win32":
            self.process.send_signal(signal.CTRL_C_EVENT)
        else:
            os.killpg(self.process.pid, signal.SIGINT)

    async def close(self) -> None:
        if self.process.stdin is not None:
            self.process.stdin.close()
        if self.running:
            self.process.terminate()
        await self.process.wait()


async def spawn_shell(name: str, cwd: Optional[str] = None) -> ShellProcess:
    kwargs = {}
    if sys.platform != "win32":
        kwargs["start_new_session"] = True
    process = await asyncio.create_subprocess_exec(
        default_shell(),
        stdin=asyncio.subprocess.PIPE,
        cwd=cwd,
        **kwargs,
    )
    logger.info("Started terminal %r (pid %s)", name, process.pid)
    return ShellProcess(process)


SpawnFn = Callable[[str, Optional[str]], Awaitable[ShellProcess]]


class TerminalManager:
    def __init__(self, spawn: SpawnFn = spawn_shell, cwd: Optional[str] = None) -> None:
        self._spawn = spawn
        self.cwd = cwd
        self._terminals: Dict[str, ShellProcess] = {}

    def names(self) -> List[str]:
        return [name for name, term in self._terminals.items() if term.running]

    def get(self, name: str) -> Optional[ShellProcess]:
        term = self._terminals.get(name)
        if term is not None and not term.running:
            del self._terminals[name]
            return None
        return term

    def _require(self, name: str) -> ShellProcess:
        term = self.get(name)
        if term is None:
            raise DispatchError(f"No terminal named {name!r}")
        return term

    async def start(self, name: str, cwd: Optional[str] = None) -> ShellProcess:
        """
        Start a terminal, or return the running one with that name.
        """
        if not name:
            raise DispatchError("A terminal name is required")
        existing = self.get(name)
        if existing is not None:
            return existing
        term = await self._spawn(name, cwd or self.cwd)
        self._terminals[name] = term
        return term

    async def send_text(self, name: str, text: str) -> None:
        term = await self.start(name)
        await term.write(text)

    async def interrupt(self, name: str) -> None:
        term = self._require(name)
        try:
            term.interrupt()
        except ProcessLookupError:
            # shell already gone
            self._terminals.pop(name, None)

    async def close(self, name: str) -> None:
        term = self._require(name)
        del self._terminals[name]
        await term.close()
        logger.info("Closed terminal %r", name)

    async def close_all(self) -> None:
        for name in list(self._terminals):
            term = self._terminals.pop(name)
            if term.running:
                await term.close()
