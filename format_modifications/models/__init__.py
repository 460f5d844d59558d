"""Models module - Pydantic data models"""

from .buffer import BufferResponse, BufferUpdateRequest
from .diff import DiffOptions, DiffResult, Hunk
from .format import (
    AttachConfig,
    AttachRequest,
    AttachResponse,
    FormatBufferRequest,
    FormatBufferResponse,
    FormatOutcome,
    FormatRange,
    FormatRequest,
    FormatStatus,
    FormatterClientConfig,
    Notification,
    NotificationLevel,
)
from .vcs import FileInfo

__all__ = [
    # Buffer models
    "BufferResponse",
    "BufferUpdateRequest",
    # Diff models
    "DiffOptions",
    "DiffResult",
    "Hunk",
    # Format models
    "AttachConfig",
    "AttachRequest",
    "AttachResponse",
    "FormatBufferRequest",
    "FormatBufferResponse",
    "FormatOutcome",
    "FormatRange",
    "FormatRequest",
    "FormatStatus",
    "FormatterClientConfig",
    "Notification",
    "NotificationLevel",
    # VCS models
    "FileInfo",
]
