"""Session manager that drives one transcription job per session."""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import MediaScribeConfig
from ..media.probe import MediaProber
from ..media.splitter import ChunkSplitter
from ..models.events import SESSION_TOPIC, SessionEvent
from ..models.session import Session
from ..models.transcription import TranscriptionResult, round_duration
from ..publisher import ProgressPublisher
from ..sources import GoogleDriveSource, LinkedInSource, SourceResolver
from ..sources.base import parse_url
from ..storage.file_manager import FileManager, SESSION_PREFIX
from ..storage.retention import CleanupFailure, RetentionManager
from ..transcription import (AbstractTranscriptionBackend, TranscriptionOrchestrator,
                             WhisperTranscriptionBackend)

logger = logging.getLogger(__name__)


class SessionManager:
    """Turns a URL or local path into a transcript inside an isolated session.

    This is the facade the request layers (HTTP app and CLI) call. Every
    working path derives from a session id, so concurrent jobs never share
    a directory.
    """

    def __init__(self,
                 config: MediaScribeConfig,
                 resolver: Optional[SourceResolver] = None,
                 backend: Optional[AbstractTranscriptionBackend] = None):
        """Initialize session manager.

        Args:
            config: Application configuration
            resolver: Source registry; built from config when omitted
            backend: Transcription backend; a Whisper backend is created
                lazily from config when omitted
        """
        self.config = config
        self.file_manager = FileManager(config.get_temp_dir())
        self.retention = RetentionManager(
            delete_retry_count=config.get('storage.delete_retry_count', 5),
            delete_retry_delay_seconds=config.get('storage.delete_retry_delay_seconds', 1),
        )
        self.prober = MediaProber(timeout=config.get('media.probe_timeout_seconds', 30))
        self.splitter = ChunkSplitter(
            prober=self.prober,
            max_duration_seconds=config.get('media.max_duration_seconds'),
            max_payload_bytes=config.get('media.max_payload_bytes'),
            target_chunk_bytes=config.get('media.target_chunk_bytes'),
            shrink_factor=config.get('media.shrink_factor'),
            max_shrink_iterations=config.get('media.max_shrink_iterations'),
            settle_delay_seconds=config.get('media.settle_delay_seconds'),
            transcode_timeout=config.get('media.transcode_timeout_seconds'),
        )
        self.resolver = resolver or self._create_resolver()
        self._backend = backend
        self._orchestrator: Optional[TranscriptionOrchestrator] = None
        self.publisher = ProgressPublisher(SESSION_TOPIC)

        logger.info(f"SessionManager initialized with temp dir: {config.get_temp_dir()}")

    def _create_resolver(self) -> SourceResolver:
        timeout = self.config.get('sources.download_timeout_seconds', 600)
        return SourceResolver([
            LinkedInSource(cookies_path=self.config.get('sources.linkedin_cookies_path'), timeout=timeout),
            GoogleDriveSource(timeout=timeout),
        ])

    @property
    def orchestrator(self) -> TranscriptionOrchestrator:
        """Orchestrator bound to the backend, created on first use."""
        if self._orchestrator is None:
            if self._backend is None:
                self._backend = WhisperTranscriptionBackend(
                    api_key=self.config.get_openai_api_key(),
                    model=self.config.get('transcription.model', 'whisper-1'),
                    base_url=self.config.get('openai.base_url'),
                    timeout=self.config.get('transcription.request_timeout_seconds'),
                )
            self._orchestrator = TranscriptionOrchestrator(
                backend=self._backend,
                splitter=self.splitter,
                retention=self.retention,
                max_payload_bytes=self.config.get('media.max_payload_bytes'),
                retry_count=self.config.get('transcription.retry_count', 3),
                retry_delay_seconds=self.config.get('transcription.retry_delay_seconds', 5),
            )
        return self._orchestrator

    async def process_url(self, url: str) -> Dict[str, Any]:
        """Download a remote media file into a new session.

        Returns:
            Dict with session id, client-facing file path, filename and
            duration (None when unknown)

        Raises:
            UnsupportedSourceError: Before any directory is created
            DownloadError: After the session directory has been removed
            OSError: If the download cannot be moved into the session; the
                session directory is removed first
        """
        source = self.resolver.select(url)
        session = self.file_manager.create_session()
        self._publish(session, "created", {"url": url, "source": source.name})
        logger.info(f"Processing URL with {source.name}: {url}")

        try:
            downloaded = await source.download(url, session.working_dir)
            media_path = self.file_manager.adopt_media(session, downloaded)
            session.duration_seconds = await self.prober.probe_duration(media_path)
        except Exception:
            self._publish(session, "failed")
            await self.retention.cleanup_async(session.working_dir)
            raise

        duration = round_duration(session.duration_seconds)
        self._publish(session, "media_ready", {"duration": duration})

        relative_path = self.file_manager.relative_resource_path(session)
        logger.info(f"Processed media file: {relative_path} (duration: {duration or 'unknown'} seconds)")
        return {
            "success": True,
            "session_id": session.session_id,
            "filePath": relative_path,
            "filename": media_path.name,
            "duration": duration,
        }

    async def transcribe(self, file_path: str) -> TranscriptionResult:
        """Transcribe a file given as a client path (see FileManager.resolve_media_path).

        Raises:
            FileNotFoundError: If the path does not exist
            MediaScribeError: Any fatal pipeline error
        """
        media_path = self.file_manager.resolve_media_path(file_path)
        if not media_path.is_file():
            raise FileNotFoundError(f"File not found: {media_path}")

        start_time = time.time()
        scratch: Optional[Session] = None
        if self._in_session_dir(media_path):
            chunk_dir = media_path.parent / "chunks"
        else:
            # Files outside the temp root still get a private chunk directory
            scratch = self.file_manager.create_session()
            chunk_dir = scratch.chunk_dir

        try:
            transcript = await self.orchestrator.transcribe(media_path, chunk_dir)
        finally:
            if scratch is not None:
                await self.retention.cleanup_async(scratch.working_dir)

        duration = await self.prober.probe_duration(media_path)
        result = TranscriptionResult(
            transcript=transcript,
            duration_seconds=round_duration(duration),
            processing_time=time.time() - start_time,
        )
        if scratch is None:
            self.publisher.publish(SessionEvent(
                session_id=media_path.parent.name, event_type="completed",
                metadata={"duration": result.duration_seconds, "chars": len(transcript)}))
        logger.info(f"Transcription successful: {media_path.name} ({len(transcript)} chars)")
        return result

    async def transcribe_source(self, source: str) -> TranscriptionResult:
        """Transcribe a URL or local path end to end.

        A URL's session directory is always removed afterwards.
        """
        if parse_url(source) is None:
            return await self.transcribe(source)

        processed = await self.process_url(source)
        session_id = processed["session_id"]
        try:
            return await self.transcribe(str(self.file_manager.get_session_path(session_id) / processed["filename"]))
        finally:
            await self.cleanup_session(session_id)

    async def cleanup_session(self, session_id: str) -> List[CleanupFailure]:
        """Remove a session directory; failures are reported, never raised."""
        session_path = self.file_manager.get_session_path(session_id)
        failures = await self.retention.cleanup_async(session_path)
        self.publisher.publish(SessionEvent(
            session_id=session_id, event_type="cleaned", metadata={"failures": len(failures)}))
        logger.info(f"Cleaned up session {session_id} ({len(failures)} failures)")
        return failures

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()

    def _in_session_dir(self, media_path: Path) -> bool:
        parent = media_path.resolve().parent
        return (parent.parent == self.file_manager.temp_dir.resolve()
                and parent.name.startswith(SESSION_PREFIX))

    def _publish(self, session: Session, event_type: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.publisher.publish(SessionEvent(
            session_id=session.session_id, event_type=event_type, metadata=metadata or {}))
