"""
External command runner - the blocking boundary to VCS and formatter executables
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Exit code reported when the executable could not be started at all
COMMAND_NOT_FOUND = 127


@dataclass
class CommandSpec:
    """An external command invocation"""

    command: str
    args: list[str] = field(default_factory=list)
    cwd: str | None = None
    stdin: str | None = None
    timeout_s: float | None = None

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


@dataclass
class CommandResult:
    """Exit code plus captured output, split into lines"""

    exitcode: int
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exitcode == 0


def split_lines(text: str) -> list[str]:
    """Split command output into lines the way an editor splits a buffer.

    A single trailing newline terminates the last line instead of starting a
    new one, and empty output has no lines. Carriage returns are kept.
    """
    if text.endswith("\n"):
        text = text[:-1]
    if not text:
        return []
    return text.split("\n")


def run_command(spec: CommandSpec) -> CommandResult:
    """Run a command and wait for it to finish.

    Blocks the calling thread for the lifetime of the process. There is no
    timeout unless ``spec.timeout_s`` is set, in which case an expired
    timeout raises ``subprocess.TimeoutExpired``.
    """
    logger.debug("Running %s (cwd=%s)", spec.argv, spec.cwd)
    try:
        # bytes in and out, text mode would translate line endings
        completed = subprocess.run(
            spec.argv,
            cwd=spec.cwd,
            input=spec.stdin.encode("utf-8") if spec.stdin is not None else None,
            capture_output=True,
            timeout=spec.timeout_s,
        )
    except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
        logger.debug("Could not start %s: %s", spec.command, e)
        return CommandResult(exitcode=COMMAND_NOT_FOUND, stderr=[str(e)])

    result = CommandResult(
        exitcode=completed.returncode,
        stdout=split_lines(completed.stdout.decode("utf-8", errors="replace")),
        stderr=split_lines(completed.stderr.decode("utf-8", errors="replace")),
    )
    if not result.ok:
        logger.debug("%s exited with %d", spec.command, result.exitcode)
    return result
