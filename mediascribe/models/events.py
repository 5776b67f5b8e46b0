"""Event models for pub/sub progress reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Dict


# Pub/sub topic names
CHUNK_TOPIC = "media.chunk"
TRANSCRIPTION_TOPIC = "transcription.progress"
SESSION_TOPIC = "session.lifecycle"


@dataclass
class ChunkEvent:
    """Chunk materialization event emitted by the splitter."""
    event_type: str  # "extracted", "oversized"
    index: int
    planned_chunks: int
    start_seconds: float
    duration_seconds: float
    size_bytes: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TranscriptionEvent:
    """Transcription progress event emitted by the orchestrator."""
    event_type: str  # "started", "chunk_completed", "chunk_failed", "completed"
    file_name: str
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None
    attempt: Optional[int] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    session_id: str
    event_type: str  # "created", "media_ready", "completed", "failed", "cleaned"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
