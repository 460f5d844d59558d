"""Formatting data models"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .diff import DiffOptions, DiffResult


class FormatRange(BaseModel):
    """Closed line range; lines are 1-indexed, columns 0-indexed"""

    start: tuple[int, int]
    end: tuple[int, int]

    @property
    def start_line(self) -> int:
        return self.start[0]

    @property
    def end_line(self) -> int:
        return self.end[0]


class FormatRequest(BaseModel):
    """Unit of work handed to a formatter client. No range means the whole file"""

    client_id: str
    buffer_id: str
    range: FormatRange | None = None


class AttachConfig(BaseModel):
    """Settings for one (buffer, formatter client) pair"""

    model_config = ConfigDict(extra="forbid")

    diff_options: DiffOptions = Field(default_factory=DiffOptions)
    format_on_save: bool = False
    vcs: str = "git"


class FormatterClientConfig(BaseModel):
    """External formatter command definition.

    ``command`` and the argument lists are templates; the placeholders
    ``{path}``, ``{start_line}``, ``{end_line}``, ``{start_col}``, ``{end_col}``,
    ``{offset}`` and ``{length}`` are filled in per request. The buffer content
    goes to stdin and the formatted content is read back from stdout.
    """

    name: str
    command: list[str]
    range_args: list[str] | None = None  # None: no range formatting support
    file_args: list[str] = []
    cwd: str | None = None


class NotificationLevel(str, Enum):
    """Severity of a user-facing notice"""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A message meant for the user of the editor"""

    level: NotificationLevel
    message: str


class FormatStatus(str, Enum):
    """How a formatting request for one client ended"""

    FORMATTED_FILE = "formatted_file"
    FORMATTED_MODIFICATIONS = "formatted_modifications"
    SKIPPED_NOT_REPOSITORY = "skipped_not_repository"
    SKIPPED_CONFLICTS = "skipped_conflicts"
    QUERY_FAILED = "query_failed"
    COMPARISON_UNAVAILABLE = "comparison_unavailable"


class FormatOutcome(BaseModel):
    """Result of formatting one buffer with one client"""

    client_id: str
    status: FormatStatus
    passes: int = 0
    format_calls: int = 0
    mutations: int = 0


class AttachRequest(BaseModel):
    """Request to attach a formatter client to a buffer"""

    buffer_id: str
    client_id: str
    config: dict | None = None


class AttachResponse(BaseModel):
    """Attachment that was recorded"""

    buffer_id: str
    client_id: str
    config: AttachConfig


class FormatBufferRequest(BaseModel):
    """Request to format the modified lines of a buffer"""

    buffer_id: str


class FormatBufferResponse(BaseModel):
    """Buffer content after formatting plus what happened on the way"""

    buffer_id: str
    content: str
    changed: bool
    outcomes: list[FormatOutcome] = []
    notifications: list[Notification] = []
    diff: DiffResult | None = None
