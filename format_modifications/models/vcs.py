"""Version control data models"""

from __future__ import annotations

from pydantic import BaseModel


class FileInfo(BaseModel):
    """Version control status of a single file at the time of the query"""

    is_tracked: bool = False  # False means the file is new to the repository
    has_conflicts: bool = False
    relpath: str | None = None
    object_name: str | None = None
    mode_bits: str | None = None
    i_crlf: bool = False  # index copy uses CRLF line endings
    w_crlf: bool = False  # working tree copy uses CRLF line endings
