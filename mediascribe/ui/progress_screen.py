"""Console progress display for command-line transcription."""

import logging
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..models.events import (CHUNK_TOPIC, SESSION_TOPIC, TRANSCRIPTION_TOPIC,
                             ChunkEvent, SessionEvent, TranscriptionEvent)
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class ProgressScreen:
    """Prints pipeline events as they arrive and renders the final transcript."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.subscribed = False

    def start(self) -> None:
        """Subscribe to pipeline topics."""
        pub.subscribe(self._on_chunk, CHUNK_TOPIC)
        pub.subscribe(self._on_transcription, TRANSCRIPTION_TOPIC)
        pub.subscribe(self._on_session, SESSION_TOPIC)
        self.subscribed = True

    def stop(self) -> None:
        """Unsubscribe from pipeline topics."""
        if not self.subscribed:
            return
        pub.unsubscribe(self._on_chunk, CHUNK_TOPIC)
        pub.unsubscribe(self._on_transcription, TRANSCRIPTION_TOPIC)
        pub.unsubscribe(self._on_session, SESSION_TOPIC)
        self.subscribed = False

    def _on_chunk(self, event: ChunkEvent) -> None:
        size_mb = (event.size_bytes or 0) / 1024 / 1024
        if event.event_type == "oversized":
            self.console.print(f"✂️  Chunk {event.index + 1} too large ({size_mb:.1f}MB), reducing duration...", style="yellow")
        else:
            self.console.print(f"📦 Extracted chunk {event.index + 1}/{event.planned_chunks} "
                               f"({event.duration_seconds:.1f}s, {size_mb:.1f}MB)", style="blue")

    def _on_transcription(self, event: TranscriptionEvent) -> None:
        if event.event_type == "started":
            self.console.print(f"🎙️  Transcribing {event.file_name} ({event.total_chunks} part(s))...", style="blue")
        elif event.event_type == "chunk_completed":
            self.console.print(f"✅ Chunk {event.chunk_index + 1}/{event.total_chunks} transcribed", style="green")
        elif event.event_type == "chunk_failed":
            self.console.print(f"⚠️  Chunk {event.chunk_index + 1} attempt {event.attempt} failed: {event.error}", style="red")

    def _on_session(self, event: SessionEvent) -> None:
        if event.event_type == "media_ready":
            duration = event.metadata.get("duration")
            self.console.print(f"⬇️  Media ready ({duration if duration is not None else 'unknown'} seconds)", style="blue")

    def show_result(self, result: TranscriptionResult) -> None:
        duration = f"{result.duration_seconds}s" if result.duration_seconds is not None else "unknown"
        subtitle = f"duration: {duration} | processed in {result.processing_time:.1f}s"
        self.console.print(Panel(Text(result.transcript), title="Transcription", subtitle=subtitle))

    def show_error(self, message: str) -> None:
        self.console.print(f"❌ Error: {message}", style="bold red")
