"""
Buffer Store - Live editor buffers the formatters rewrite in place
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class BufferNotFound(KeyError):
    def __init__(self, buffer_id: str):
        super().__init__(buffer_id)
        self.buffer_id = buffer_id

    def __str__(self) -> str:
        return f"buffer {self.buffer_id} is not open"


class TextBuffer:
    """Text of one open file, held as a list of lines"""

    def __init__(self, buffer_id: str, path: str, content: str = ""):
        self.buffer_id = buffer_id
        self.path = path
        self.lines: list[str] = []
        self.trailing_newline = True
        # held for a whole formatting request, one pass per buffer at a time
        self.lock = threading.Lock()
        self.set_content(content)

    def get_lines(self) -> list[str]:
        return list(self.lines)

    def set_lines(self, start: int, end: int, replacement: list[str]) -> None:
        """Replace lines ``[start, end)`` (0-indexed) with ``replacement``"""
        if end < 0:
            end = len(self.lines) + end + 1
        self.lines[start:end] = replacement

    @property
    def content(self) -> str:
        text = "\n".join(self.lines)
        if self.trailing_newline and self.lines:
            text += "\n"
        return text

    def set_content(self, content: str) -> None:
        self.trailing_newline = content.endswith("\n") or not content
        if content.endswith("\n"):
            content = content[:-1]
        self.lines = content.split("\n") if content else []


class BufferStore:
    """Open buffers by id"""

    _instance = None

    def __init__(self):
        self._buffers: dict[str, TextBuffer] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "BufferStore":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = BufferStore()
        return cls._instance

    def open(self, buffer_id: str, path: str, content: str) -> TextBuffer:
        """Create the buffer, or update path and content of an open one"""
        with self._lock:
            buffer = self._buffers.get(buffer_id)
            if buffer is None:
                buffer = TextBuffer(buffer_id, path, content)
                self._buffers[buffer_id] = buffer
                logger.debug("Opened buffer %s (%s)", buffer_id, path)
                return buffer

        with buffer.lock:
            buffer.path = path
            buffer.set_content(content)
        return buffer

    def get(self, buffer_id: str) -> TextBuffer:
        try:
            return self._buffers[buffer_id]
        except KeyError:
            raise BufferNotFound(buffer_id) from None

    def close(self, buffer_id: str) -> TextBuffer:
        with self._lock:
            try:
                buffer = self._buffers.pop(buffer_id)
            except KeyError:
                raise BufferNotFound(buffer_id) from None
        logger.debug("Closed buffer %s", buffer_id)
        return buffer
