"""Routers module - FastAPI route handlers"""

from . import buffers, config, formatting

__all__ = ["buffers", "config", "formatting"]
