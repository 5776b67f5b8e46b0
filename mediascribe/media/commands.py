"""Async subprocess helpers for the external media tools."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of an external command."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(cmd: List[str], timeout: Optional[float] = None, desc: Optional[str] = None) -> CommandResult:
    """Run a command without a shell and capture its output.

    Args:
        cmd: Program and arguments
        timeout: Seconds to wait before killing the process
        desc: Optional description logged before running

    Returns:
        CommandResult with decoded stdout/stderr

    Raises:
        FileNotFoundError: If the program is not installed
        asyncio.TimeoutError: If the command exceeds the timeout
    """
    if desc:
        logger.info(desc)
    logger.debug(f"Running command: {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {cmd[0]}")
        process.kill()
        await process.wait()
        raise

    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
    if result.stderr.strip():
        logger.debug(f"{cmd[0]} stderr: {result.stderr.strip()}")
    return result
