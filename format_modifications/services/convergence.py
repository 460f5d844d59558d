"""
Convergence Engine - Format the modified hunks of a buffer until nothing changes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from format_modifications.models.diff import DiffOptions
from format_modifications.models.format import FormatRange

from .hunk_extractor import HunkExtractor

logger = logging.getLogger(__name__)

GetBufferLines = Callable[[], list[str]]
FormatRangeCallback = Callable[[FormatRange], None]


class ConvergenceError(Exception):
    """The buffer kept changing for more passes than allowed"""

    def __init__(self, passes: int):
        super().__init__(f"formatting did not converge after {passes} passes")
        self.passes = passes


@dataclass
class ConvergenceReport:
    passes: int = 0
    format_calls: int = 0
    mutations: int = 0


class ConvergenceEngine:
    """Drive the diff, format, re-check cycle against a fixed baseline.

    Formatting a range may add or remove lines, which moves every hunk after
    it. Whenever a formatter call changes the buffer the rest of the hunk list
    is dropped and the diff is computed again; a pass in which no call changes
    anything ends the run. The formatter is expected to settle eventually:
    with ``max_passes`` left at ``None`` a formatter that never stops changing
    its output keeps the loop going forever.
    """

    def __init__(
        self,
        options: DiffOptions | None = None,
        extractor: HunkExtractor | None = None,
        max_passes: int | None = None,
    ):
        self.options = options or DiffOptions()
        self.extractor = extractor or HunkExtractor()
        self.max_passes = max_passes

    def run(
        self,
        comparison_text: str,
        get_buffer_lines: GetBufferLines,
        format_range: FormatRangeCallback,
    ) -> ConvergenceReport:
        """Format every changed hunk of the buffer relative to ``comparison_text``.

        ``get_buffer_lines`` must read the buffer without side effects and
        ``format_range`` must not return before its edit is visible to the
        next read. Exceptions raised by ``format_range`` propagate.
        """
        report = ConvergenceReport()

        converged = False
        while not converged:
            if self.max_passes is not None and report.passes >= self.max_passes:
                raise ConvergenceError(report.passes)

            converged = True
            report.passes += 1

            buf_lines = get_buffer_lines()
            buf_content = "\n".join(buf_lines)

            hunks = self.extractor.extract(comparison_text, buf_content, self.options)
            logger.debug("Pass %d: %d hunks", report.passes, len(hunks))

            for hunk in hunks:
                if hunk.is_deletion:
                    continue

                start_line, end_line = hunk.new_start, hunk.end_line
                start_col, end_col = 0, len(buf_lines[end_line - 1]) - 1

                format_range(
                    FormatRange(start=(start_line, start_col), end=(end_line, end_col))
                )
                report.format_calls += 1

                new_buf_content = "\n".join(get_buffer_lines())
                if new_buf_content != buf_content:
                    # later hunks may point at shifted lines now, so diff again
                    report.mutations += 1
                    converged = False
                    break

        logger.debug(
            "Converged after %d passes, %d format calls, %d mutations",
            report.passes,
            report.format_calls,
            report.mutations,
        )
        return report
