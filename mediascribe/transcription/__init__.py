"""Transcription module for MediaScribe."""

from .base import AbstractTranscriptionBackend
from .whisper_backend import WhisperTranscriptionBackend
from .orchestrator import TranscriptionOrchestrator

__all__ = [
    "AbstractTranscriptionBackend",
    "WhisperTranscriptionBackend",
    "TranscriptionOrchestrator",
]
