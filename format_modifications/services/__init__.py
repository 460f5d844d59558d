"""Services module - Business logic layer"""

from .attachments import AttachError, AttachmentRegistry
from .buffers import BufferStore, TextBuffer
from .config_manager import ConfigManager
from .convergence import ConvergenceEngine
from .formatter_client import FormatterClient, FormatterError
from .hunk_extractor import HunkExtractor
from .modification_formatter import ModificationFormatter
from .vcs import GitClient, HgClient, get_vcs_client

__all__ = [
    "AttachError",
    "AttachmentRegistry",
    "BufferStore",
    "TextBuffer",
    "ConfigManager",
    "ConvergenceEngine",
    "FormatterClient",
    "FormatterError",
    "HunkExtractor",
    "ModificationFormatter",
    "GitClient",
    "HgClient",
    "get_vcs_client",
]
