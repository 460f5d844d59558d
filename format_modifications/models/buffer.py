"""Buffer data models"""

from __future__ import annotations

from pydantic import BaseModel


class BufferUpdateRequest(BaseModel):
    """Editor pushes the current state of a buffer"""

    path: str
    content: str


class BufferResponse(BaseModel):
    """Current state of a buffer"""

    buffer_id: str
    path: str
    content: str
    attached_clients: list[str] = []
