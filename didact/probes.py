"""
Requirement probes.

A probe never raises for an unmet requirement: a missing command, a non-zero
exit status or a timeout all just mean "unsatisfied".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from importlib import metadata
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    satisfied: bool
    output: str = ""
    return_code: Optional[int] = None


async def run_probe(
    command: str,
    expected: Optional[str] = None,
    cwd: Optional[str] = None,
    timeout: float = 30.0,
) -> ProbeResult:
    """
    Run a shell command. Satisfied iff it exits with 0 and, when given,
    'expected' occurs in its combined stdout/stderr.
    """
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
        )
    except OSError as exc:
        logger.info("Requirement probe %r could not start: %s", command, exc)
        return ProbeResult(satisfied=False, output=str(exc))

    try:
        raw, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.info("Requirement probe %r timed out after %ss", command, timeout)
        return ProbeResult(satisfied=False, output="timed out", return_code=proc.returncode)

    output = raw.decode("utf-8", errors="replace") if raw else ""
    satisfied = proc.returncode == 0 and (not expected or expected in output)
    if not satisfied:
        logger.info("Requirement probe %r unsatisfied (exit %s)", command, proc.returncode)
    return ProbeResult(satisfied=satisfied, output=output, return_code=proc.returncode)


def extension_installed(extension_id: str, configured: Iterable[str] = ()) -> bool:
    """
    Pure lookup: the id is either listed in the 'didact.extensions' setting or
    is the name of an installed Python distribution.
    """
    wanted = (extension_id or "").strip()
    if not wanted:
        return False
    if wanted.lower() in {str(x).strip().lower() for x in configured}:
        return True
    try:
        metadata.distribution(wanted)
    except metadata.PackageNotFoundError:
        return False
    return True
