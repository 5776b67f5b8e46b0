"""Single-shot or chunked transcription with per-chunk retry."""

import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Union

from .base import AbstractTranscriptionBackend
from ..exceptions import TranscriptionError
from ..media.splitter import ChunkSplitter
from ..models.events import TRANSCRIPTION_TOPIC, TranscriptionEvent
from ..models.media import Chunk
from ..models.transcription import TranscriptFragment, assemble_transcript
from ..publisher import ProgressPublisher
from ..storage.retention import RetentionManager

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


class TranscriptionOrchestrator:
    """Decides between one API call and the chunked path, then assembles text.

    Chunks are transcribed strictly one after another in index order. A chunk
    that keeps failing aborts the whole job and its partial transcript is
    dropped.
    """

    def __init__(self,
                 backend: AbstractTranscriptionBackend,
                 splitter: Optional[ChunkSplitter] = None,
                 retention: Optional[RetentionManager] = None,
                 max_payload_bytes: int = 25 * MIB,
                 retry_count: int = 3,
                 retry_delay_seconds: float = 5.0):
        self.backend = backend
        self.splitter = splitter or ChunkSplitter(max_payload_bytes=max_payload_bytes)
        self.retention = retention or RetentionManager()
        self.max_payload_bytes = max_payload_bytes
        self.retry_count = retry_count
        self.retry_delay_seconds = retry_delay_seconds
        self.publisher = ProgressPublisher(TRANSCRIPTION_TOPIC)

    async def transcribe(self, path: Union[str, Path], chunk_dir: Optional[Union[str, Path]] = None) -> str:
        """Transcribe a media file of any size up to the duration ceiling.

        Args:
            path: Local media file
            chunk_dir: Where chunk files go, normally the session's chunk
                directory. When omitted a private temporary directory is used
                and removed once the job ends

        Returns:
            Full transcript text

        Raises:
            TranscriptionError: API failure (after retries on the chunked path)
            MediaProbeError, MediaTooLongError, TranscodeError: From the splitter
        """
        media_path = Path(path)
        logger.info(f"Opening file: {media_path}")
        if not media_path.exists():
            raise TranscriptionError(media_path.name, f"File not found: {media_path}")

        file_size = media_path.stat().st_size
        if file_size <= self.max_payload_bytes:
            return await self._transcribe_single(media_path)

        logger.info(f"File size ({file_size / MIB:.2f}MB) exceeds API limit. Splitting into chunks...")
        owns_chunk_dir = chunk_dir is None
        chunk_dir = Path(tempfile.mkdtemp(prefix="mediascribe-chunks-")) if owns_chunk_dir else Path(chunk_dir)
        try:
            chunks = await self.splitter.split(media_path, chunk_dir)
            if not chunks:
                raise TranscriptionError(media_path.name, "Failed to split audio file into chunks")

            return await self._transcribe_chunks(media_path, chunks)
        finally:
            if owns_chunk_dir:
                await self.retention.cleanup_async(chunk_dir)

    async def _transcribe_single(self, media_path: Path) -> str:
        self.publisher.publish(TranscriptionEvent(event_type="started", file_name=media_path.name, total_chunks=1))
        try:
            text = await self.backend.transcribe_file(media_path)
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(media_path.name, str(e), e) from e

        logger.info(f"Received transcript for {media_path.name}")
        self.publisher.publish(TranscriptionEvent(event_type="completed", file_name=media_path.name, total_chunks=1))
        return text

    async def _transcribe_chunks(self, media_path: Path, chunks: List[Chunk]) -> str:
        start_time = time.time()
        total = len(chunks)
        fragments: List[TranscriptFragment] = []
        self.publisher.publish(TranscriptionEvent(event_type="started", file_name=media_path.name, total_chunks=total))

        for chunk in sorted(chunks, key=lambda c: c.index):
            fragments.append(await self._transcribe_chunk(media_path, chunk, total))
            # Success-only deletion: a chunk that failed permanently stays on disk
            await self.retention.cleanup_async(chunk.path)

        transcript = assemble_transcript(fragments)
        logger.info(f"Transcribed {total} chunks of {media_path.name} in {time.time() - start_time:.1f}s")
        self.publisher.publish(TranscriptionEvent(event_type="completed", file_name=media_path.name, total_chunks=total))
        return transcript

    async def _transcribe_chunk(self, media_path: Path, chunk: Chunk, total: int) -> TranscriptFragment:
        """Transcribe one chunk with bounded retry."""
        last_error: Optional[Exception] = None

        for attempt in range(1, self.retry_count + 1):
            logger.info(f"Transcribing chunk {chunk.index + 1} of {total} (attempt {attempt})...")
            try:
                text = await self.backend.transcribe_file(chunk.path)
            except Exception as e:
                last_error = e
                logger.error(f"Error on chunk {chunk.index + 1} (attempt {attempt}): {e}")
                self.publisher.publish(TranscriptionEvent(
                    event_type="chunk_failed", file_name=media_path.name, chunk_index=chunk.index,
                    total_chunks=total, attempt=attempt, error=str(e)))
                if attempt < self.retry_count:
                    logger.info(f"Retrying in {self.retry_delay_seconds} seconds...")
                    await asyncio.sleep(self.retry_delay_seconds)
                continue

            self.publisher.publish(TranscriptionEvent(
                event_type="chunk_completed", file_name=media_path.name, chunk_index=chunk.index,
                total_chunks=total, attempt=attempt))
            return TranscriptFragment(chunk_index=chunk.index, text=text, attempts=attempt)

        logger.error(f"Failed to transcribe chunk {chunk.index + 1} after {self.retry_count} attempts")
        raise TranscriptionError(
            media_path.name,
            f"chunk {chunk.index + 1} of {total} failed after {self.retry_count} attempts: {last_error}",
            last_error) from last_error
