"""Media inspection and chunking module for MediaScribe."""

from .probe import MediaProber
from .splitter import ChunkSplitter

__all__ = [
    "MediaProber",
    "ChunkSplitter",
]
