"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass
class Session:
    """One transcription job and its isolated working directory."""
    session_id: str
    working_dir: Path
    media_path: Optional[Path] = None
    duration_seconds: Optional[float] = None  # None when probing failed
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def chunk_dir(self) -> Path:
        """Directory holding this session's materialized chunks."""
        return self.working_dir / "chunks"
