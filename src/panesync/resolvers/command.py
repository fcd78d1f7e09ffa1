"""Async subprocess runner for git / gh lookups."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Protocol

from .. import config
from ..telemetry import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Completed process output."""

    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Callable shape shared by run_command and test doubles."""

    def __call__(
        self,
        args: list[str],
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> Awaitable[CommandResult | None]: ...


async def run_command(
    args: list[str],
    cwd: str | None = None,
    timeout: float | None = None,
    max_output: int | None = None,
) -> CommandResult | None:
    """Execute a command and collect its output.

    Args:
        args: Program and arguments (e.g., ["git", "branch", "--show-current"])
        cwd: Working directory
        timeout: Seconds before the process is killed; None waits forever
        max_output: Maximum stdout bytes accepted

    Returns:
        CommandResult (including non-zero exits), or None when the process
        could not be started, timed out, or produced too much output.
    """
    limit = max_output or config.COMMAND_MAX_OUTPUT_BYTES
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning(f"[Command] Failed to start {args[0]}: {e}")
        return None

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning(f"[Command] Timed out after {timeout}s: {' '.join(args)} (cwd={cwd})")
        return None

    if len(stdout) > limit:
        logger.warning(f"[Command] Output exceeds {limit} bytes: {' '.join(args)}")
        return None

    return CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
