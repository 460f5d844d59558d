"""
Formatter Client - Run an external formatter over a buffer or a range of it
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from format_modifications.models.format import FormatRange, FormatRequest, FormatterClientConfig

from .buffers import TextBuffer
from .commands import CommandResult, CommandSpec, run_command

logger = logging.getLogger(__name__)


class FormatterError(Exception):
    def __init__(self, message: str, exitcode: int | None = None, stderr: list[str] | None = None):
        super().__init__(message)
        self.exitcode = exitcode
        self.stderr = stderr or []


class FormatterClient:
    """A formatter command attached to buffers under its configured name"""

    def __init__(
        self,
        config: FormatterClientConfig,
        runner: Callable[[CommandSpec], CommandResult] = run_command,
        timeout_s: float | None = None,
    ):
        self.config = config
        self.runner = runner
        self.timeout_s = timeout_s

    @property
    def client_id(self) -> str:
        return self.config.name

    @property
    def supports_range_formatting(self) -> bool:
        return self.config.range_args is not None

    def format(self, buffer: TextBuffer, request: FormatRequest) -> bool:
        """Format the buffer, or the requested range of it, in place.

        Returns True when the buffer content changed. Blocks until the
        formatter exits, so the edit is visible as soon as this returns.
        """
        lines = buffer.get_lines()
        if request.range is not None and not self.supports_range_formatting:
            raise FormatterError(
                f"client {self.client_id} does not have a range formatting provider"
            )

        argv = self._build_argv(buffer.path, lines, request.range)
        result = self.runner(
            CommandSpec(
                command=argv[0],
                args=argv[1:],
                cwd=self.config.cwd or os.path.dirname(os.path.abspath(buffer.path)),
                stdin="\n".join(lines) + "\n" if lines else "",
                timeout_s=self.timeout_s,
            )
        )
        if not result.ok:
            raise FormatterError(
                f"formatter {self.client_id} exited with {result.exitcode}",
                exitcode=result.exitcode,
                stderr=result.stderr,
            )

        if result.stdout == lines:
            return False

        buffer.set_lines(0, len(lines), result.stdout)
        logger.debug(
            "%s rewrote %s (%s)",
            self.client_id,
            buffer.path,
            "whole file" if request.range is None else f"lines {request.range.start_line}-{request.range.end_line}",
        )
        return True

    def _build_argv(self, path: str, lines: list[str], format_range: FormatRange | None) -> list[str]:
        if format_range is None:
            extra = self.config.file_args
            values = self._template_values(path, lines, 1, len(lines), 0, len(lines[-1]) - 1 if lines else 0)
        else:
            extra = self.config.range_args or []
            values = self._template_values(
                path,
                lines,
                format_range.start_line,
                format_range.end_line,
                format_range.start[1],
                format_range.end[1],
            )
        return [arg.format(**values) for arg in [*self.config.command, *extra]]

    def _template_values(
        self,
        path: str,
        lines: list[str],
        start_line: int,
        end_line: int,
        start_col: int,
        end_col: int,
    ) -> dict[str, Any]:
        # character offsets count one newline per line
        offset = sum(len(line) + 1 for line in lines[: start_line - 1])
        length = sum(len(line) + 1 for line in lines[start_line - 1 : end_line])
        return {
            "path": path,
            "start_line": start_line,
            "end_line": end_line,
            "start_col": start_col,
            "end_col": end_col,
            "offset": offset,
            "length": length,
        }
