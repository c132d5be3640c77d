"""
Shared test doubles.
"""

from typing import List, Optional, Tuple


class FakeShell:
    """
    Stands in for a ShellProcess: records input instead of running a shell.
    """

    def __init__(self) -> None:
        self.running = True
        self.sent: List[str] = []
        self.interrupts = 0

    async def write(self, text: str) -> None:
        self.sent.append(text)

    def interrupt(self) -> None:
        self.interrupts += 1

    async def close(self) -> None:
        self.running = False


class FakeSpawner:
    def __init__(self) -> None:
        self.spawned: List[Tuple[str, Optional[str], FakeShell]] = []

    async def __call__(self, name: str, cwd: Optional[str] = None) -> FakeShell:
        shell = FakeShell()
        self.spawned.append((name, cwd, shell))
        return shell

    def shell(self, name: str) -> FakeShell:
        return [s for n, _, s in self.spawned if n == name][-1]
