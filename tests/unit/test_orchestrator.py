"""Unit tests for TranscriptionOrchestrator."""

import asyncio
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

from pubsub import pub

from conftest import FakeBackend, MIB, make_media_file
from mediascribe.exceptions import TranscodeError, TranscriptionError
from mediascribe.models.events import TRANSCRIPTION_TOPIC
from mediascribe.models.media import Chunk
from mediascribe.storage.retention import RetentionManager
from mediascribe.transcription.orchestrator import TranscriptionOrchestrator


def make_chunks(chunk_dir: Path, count: int, size: int = 1024):
    chunks = []
    for index in range(count):
        path = make_media_file(chunk_dir / f"chunk_{index}.mp4", size)
        chunks.append(Chunk(index=index, start_seconds=index * 100.0, duration_seconds=100.0,
                            path=path, size_bytes=size))
    return chunks


@pytest.mark.unit
class TestTranscriptionOrchestrator:
    """Test cases for TranscriptionOrchestrator."""

    def _orchestrator(self, backend, chunks=None):
        splitter = Mock()
        splitter.split = AsyncMock(return_value=chunks or [])
        orchestrator = TranscriptionOrchestrator(
            backend=backend,
            splitter=splitter,
            retention=RetentionManager(delete_retry_delay_seconds=0),
            retry_count=3,
            retry_delay_seconds=0,
        )
        return orchestrator, splitter

    def test_small_file_is_single_shot(self, temp_data_dir):
        """A 15 MiB file is sent as-is in one call without splitting."""
        media = make_media_file(Path(temp_data_dir) / "clip.mp4", 15 * MIB)
        backend = FakeBackend(text_for=lambda path: "hello world")
        orchestrator, splitter = self._orchestrator(backend)

        transcript = asyncio.run(orchestrator.transcribe(media))

        assert transcript == "hello world"
        assert backend.calls == [media]
        splitter.split.assert_not_called()

    def test_exactly_at_limit_is_single_shot(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "clip.mp4", 25 * MIB)
        backend = FakeBackend()
        orchestrator, splitter = self._orchestrator(backend)

        asyncio.run(orchestrator.transcribe(media))

        splitter.split.assert_not_called()

    def test_single_shot_failure_is_not_retried(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "clip.mp4", 1 * MIB)
        backend = FakeBackend(failures={"clip.mp4": 1})
        orchestrator, _ = self._orchestrator(backend)

        with pytest.raises(TranscriptionError) as exc_info:
            asyncio.run(orchestrator.transcribe(media))

        assert len(backend.calls) == 1
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_missing_file_raises(self, temp_data_dir):
        orchestrator, _ = self._orchestrator(FakeBackend())

        with pytest.raises(TranscriptionError):
            asyncio.run(orchestrator.transcribe(Path(temp_data_dir) / "missing.mp4"))

    def test_chunked_transcript_joined_in_order(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunk_dir = Path(temp_data_dir) / "chunks"
        chunks = make_chunks(chunk_dir, 3)
        backend = FakeBackend(text_for=lambda path: f"part{path.stem[-1]}")
        orchestrator, splitter = self._orchestrator(backend, list(reversed(chunks)))

        transcript = asyncio.run(orchestrator.transcribe(media, chunk_dir))

        assert transcript == "part0 part1 part2"
        assert [p.name for p in backend.calls] == ["chunk_0.mp4", "chunk_1.mp4", "chunk_2.mp4"]
        splitter.split.assert_awaited_once_with(media, chunk_dir)

    def _record_split_dirs(self, splitter):
        used_dirs = []

        async def split(path, chunk_dir):
            used_dirs.append(chunk_dir)
            return make_chunks(chunk_dir, 2)

        splitter.split.side_effect = split
        return used_dirs

    def test_default_chunk_dir_is_private_and_removed(self, temp_data_dir):
        """Without a chunk_dir, chunks never land in a folder shared with other files."""
        media = make_media_file(Path(temp_data_dir) / "shared" / "talk.mp4", 30 * MIB)
        orchestrator, splitter = self._orchestrator(FakeBackend())
        used_dirs = self._record_split_dirs(splitter)

        asyncio.run(orchestrator.transcribe(media))

        assert used_dirs[0].name.startswith("mediascribe-chunks-")
        assert used_dirs[0].parent != media.parent
        assert not used_dirs[0].exists()
        assert not (media.parent / "chunks").exists()

    def test_default_chunk_dir_removed_after_failure(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "shared" / "talk.mp4", 30 * MIB)
        orchestrator, splitter = self._orchestrator(FakeBackend(failures={"chunk_0.mp4": 3}))
        used_dirs = self._record_split_dirs(splitter)

        with pytest.raises(TranscriptionError):
            asyncio.run(orchestrator.transcribe(media))

        assert not used_dirs[0].exists()

    def test_given_chunk_dir_is_kept(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "session_x" / "talk.mp4", 30 * MIB)
        chunk_dir = Path(temp_data_dir) / "session_x" / "chunks"
        orchestrator, splitter = self._orchestrator(FakeBackend())
        used_dirs = self._record_split_dirs(splitter)

        asyncio.run(orchestrator.transcribe(media, chunk_dir))

        assert used_dirs == [chunk_dir]
        assert chunk_dir.exists()

    def test_chunks_deleted_after_success(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 2)
        orchestrator, _ = self._orchestrator(FakeBackend(), chunks)

        asyncio.run(orchestrator.transcribe(media))

        assert not any(chunk.path.exists() for chunk in chunks)

    def test_chunk_retry_succeeds_on_third_attempt(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 3)
        backend = FakeBackend(failures={"chunk_1.mp4": 2}, text_for=lambda path: path.stem)
        orchestrator, _ = self._orchestrator(backend, chunks)

        transcript = asyncio.run(orchestrator.transcribe(media))

        assert transcript == "chunk_0 chunk_1 chunk_2"
        assert [p.name for p in backend.calls].count("chunk_1.mp4") == 3

    def test_retry_waits_between_attempts(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 1)
        backend = FakeBackend(failures={"chunk_0.mp4": 2})
        orchestrator, _ = self._orchestrator(backend, chunks)
        orchestrator.retry_delay_seconds = 5

        with patch("mediascribe.transcription.orchestrator.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            asyncio.run(orchestrator.transcribe(media))

        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(5)

    def test_chunk_failure_aborts_job(self, temp_data_dir):
        """Three failures on chunk 1 abort; chunk 2 is never sent and chunk 1 stays on disk."""
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 3)
        backend = FakeBackend(failures={"chunk_1.mp4": 3})
        orchestrator, _ = self._orchestrator(backend, chunks)

        with pytest.raises(TranscriptionError) as exc_info:
            asyncio.run(orchestrator.transcribe(media, Path(temp_data_dir) / "chunks"))

        names = [p.name for p in backend.calls]
        assert names == ["chunk_0.mp4"] + ["chunk_1.mp4"] * 3
        assert "quota exceeded" in str(exc_info.value)
        assert not chunks[0].path.exists()
        assert chunks[1].path.exists()
        assert chunks[2].path.exists()

    def test_splitter_errors_propagate(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        orchestrator, splitter = self._orchestrator(FakeBackend())
        splitter.split.side_effect = TranscodeError(str(media), "boom")

        with pytest.raises(TranscodeError):
            asyncio.run(orchestrator.transcribe(media))

    def test_no_chunks_raises(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        orchestrator, _ = self._orchestrator(FakeBackend(), [])

        with pytest.raises(TranscriptionError):
            asyncio.run(orchestrator.transcribe(media))

    def test_progress_events_published(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 2)
        backend = FakeBackend(failures={"chunk_0.mp4": 1})
        orchestrator, _ = self._orchestrator(backend, chunks)
        received = []

        def listener(event):
            received.append(event)

        pub.subscribe(listener, TRANSCRIPTION_TOPIC)
        try:
            asyncio.run(orchestrator.transcribe(media))
        finally:
            pub.unsubscribe(listener, TRANSCRIPTION_TOPIC)

        assert [e.event_type for e in received] == [
            "started", "chunk_failed", "chunk_completed", "chunk_completed", "completed"]
        assert received[0].total_chunks == 2
        assert received[2].attempt == 2

    def test_failing_subscriber_does_not_break_job(self, temp_data_dir):
        media = make_media_file(Path(temp_data_dir) / "talk.mp4", 80 * MIB)
        chunks = make_chunks(Path(temp_data_dir) / "chunks", 2)
        orchestrator, _ = self._orchestrator(FakeBackend(text_for=lambda path: "x"), chunks)

        def broken_listener(event):
            raise RuntimeError("display crashed")

        pub.subscribe(broken_listener, TRANSCRIPTION_TOPIC)
        try:
            transcript = asyncio.run(orchestrator.transcribe(media))
        finally:
            pub.unsubscribe(broken_listener, TRANSCRIPTION_TOPIC)

        assert transcript == "x x"
