"""Storage module for session directories and cleanup."""

from .file_manager import FileManager
from .retention import RetentionManager, CleanupFailure

__all__ = [
    "FileManager",
    "RetentionManager",
    "CleanupFailure",
]
