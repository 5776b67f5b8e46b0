"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    def __init__(self, language: str = ""):
        """Initialize backend with an optional language hint."""
        self.language = language

    @abstractmethod
    async def transcribe_file(self, path: Path) -> str:
        """Transcribe one audio/video file that fits in a single request.

        Args:
            path: File to upload

        Returns:
            Transcript text

        Raises:
            TranscriptionError: On network, quota or format errors
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass
