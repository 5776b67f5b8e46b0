"""Media chunk data models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Chunk:
    """A contiguous time-slice of a media file materialized as its own file."""
    index: int  # 0-based, defines reassembly order
    start_seconds: float
    duration_seconds: float
    path: Path
    size_bytes: Optional[int] = None  # Known only after materialization

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds
