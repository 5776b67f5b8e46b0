"""Transcription-related data models."""

from dataclasses import dataclass
from typing import Optional, List


@dataclass
class TranscriptFragment:
    """Text produced for a single chunk."""
    chunk_index: int
    text: str
    attempts: int = 1


@dataclass
class TranscriptionResult:
    """Final result handed back to the request layer."""
    transcript: str
    duration_seconds: Optional[float] = None  # Rounded to 2 decimals, None if unknown
    processing_time: float = 0.0

    def to_response(self) -> dict:
        return {
            "transcription": self.transcript,
            "duration": self.duration_seconds,
        }


def assemble_transcript(fragments: List[TranscriptFragment]) -> str:
    """Join fragments with a single space in chunk order."""
    ordered = sorted(fragments, key=lambda fragment: fragment.chunk_index)
    return " ".join(fragment.text for fragment in ordered)


def round_duration(duration: Optional[float]) -> Optional[float]:
    """Round a probed duration to 2 decimals, keeping unknown as None."""
    if not duration:
        return None
    return round(duration * 100) / 100
