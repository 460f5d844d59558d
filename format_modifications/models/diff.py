"""Diff-related data models"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Hunk(BaseModel):
    """A single change hunk, all positions 1-indexed"""

    model_config = ConfigDict(frozen=True)

    old_start: int
    old_count: int
    new_start: int
    new_count: int

    @property
    def is_deletion(self) -> bool:
        """Lines were only removed, nothing is left in the buffer to format"""
        return self.new_count == 0

    @property
    def end_line(self) -> int:
        return self.new_start + self.new_count - 1

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.old_start, self.old_count, self.new_start, self.new_count)


class DiffOptions(BaseModel):
    """Knobs handed to the line diff"""

    model_config = ConfigDict(extra="forbid")

    algorithm: Literal["patience", "difflib"] = "patience"
    ctxlen: int = Field(default=0, ge=0)  # unchanged lines kept around a change
    interhunkctxlen: int = Field(default=0, ge=0)  # merge hunks this close together
    indent_heuristic: bool = True
    ignore_cr_at_eol: bool = True


class DiffResult(BaseModel):
    """What a formatting request changed in a buffer"""

    file_path: str
    hunks: list[Hunk]
    unified_diff: str  # Standard unified diff format
