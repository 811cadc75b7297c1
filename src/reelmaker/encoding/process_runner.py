"""Asyncio wrapper around external media binaries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 2000) -> str:
        return self.stderr.decode("utf-8", errors="replace")[-limit:]


async def run_process(cmd: Sequence[str], *, timeout: float | None = None) -> ProcessResult:
    """Run ``cmd`` and collect its output.

    Raises ``OSError`` when the binary cannot be spawned and
    ``asyncio.TimeoutError`` when ``timeout`` elapses. On timeout or
    cancellation the child process is killed before the error propagates.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except BaseException:
        await _kill(process)
        raise
    return ProcessResult(returncode=process.returncode or 0, stdout=stdout, stderr=stderr)


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    logger.warning("process.killed", extra={"pid": process.pid})
    await process.wait()
