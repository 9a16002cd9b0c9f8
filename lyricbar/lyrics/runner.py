from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandOutput:
    stdout: bytes
    exit_status: int


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Either the finished process's output or the reason it never ran to completion."""

    output: CommandOutput | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.output is not None


def run_command_line(command_line: str, *, timeout_s: float | None = None) -> CommandResult:
    """
    Split `command_line` with shell quoting rules (no shell is started),
    run it and wait for it to exit.
    """
    try:
        argv = shlex.split(command_line)
    except ValueError as e:
        return CommandResult(error=f"cannot parse command line: {e}")
    if not argv:
        return CommandResult(error="empty command line")

    try:
        proc = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout_s,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(error=f"timed out after {timeout_s}s")
    except OSError as e:
        return CommandResult(error=str(e))

    if proc.stderr:
        logger.debug("%s stderr: %s", argv[0], proc.stderr.decode("utf-8", "replace").rstrip())
    return CommandResult(output=CommandOutput(stdout=proc.stdout, exit_status=proc.returncode))
