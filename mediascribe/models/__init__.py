"""Data models for the MediaScribe application."""

from .session import Session
from .media import Chunk
from .transcription import TranscriptFragment, TranscriptionResult
from .events import ChunkEvent, TranscriptionEvent, SessionEvent

__all__ = [
    "Session",
    "Chunk",
    "TranscriptFragment",
    "TranscriptionResult",
    "ChunkEvent",
    "TranscriptionEvent",
    "SessionEvent",
]
