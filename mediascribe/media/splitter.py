"""Adaptive chunk planning and extraction for oversized media files.

The splitter estimates a chunk duration from the byte rate of the whole file,
extracts each window with a copy-codec ffmpeg invocation and measures the
result. A chunk that comes out above the payload limit is discarded, the
chunk duration is shrunk and the same index is extracted again. Accepted
chunks are never re-extracted, so the windows stay contiguous.
"""

import asyncio
import logging
import math
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .commands import run_command
from .probe import MediaProber
from ..exceptions import MediaProbeError, MediaTooLongError, TranscodeError
from ..models.events import CHUNK_TOPIC, ChunkEvent
from ..models.media import Chunk
from ..publisher import ProgressPublisher

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

# Float slack for window arithmetic
EPSILON = 1e-6


def initial_chunk_duration(duration: float, file_size: int, target_chunk_bytes: int) -> float:
    """Estimate the seconds of media that fit in target_chunk_bytes."""
    if file_size <= 0:
        raise ValueError("file_size must be positive")
    return duration * target_chunk_bytes / file_size


def count_chunks(remaining: float, chunk_duration: float) -> int:
    """Number of windows of chunk_duration needed to cover remaining seconds."""
    if remaining <= EPSILON:
        return 0
    return max(1, math.ceil(remaining / chunk_duration - EPSILON))


def plan_windows(duration: float, chunk_duration: float) -> List[Tuple[float, float]]:
    """Initial (start, length) windows covering duration; the last one is clipped."""
    windows = []
    for index in range(count_chunks(duration, chunk_duration)):
        start = index * chunk_duration
        windows.append((start, min(chunk_duration, duration - start)))
    return windows


class ChunkSplitter:
    """Partitions a media file into chunk files that fit the API payload limit."""

    def __init__(self,
                 prober: Optional[MediaProber] = None,
                 max_duration_seconds: float = 40 * 60,
                 max_payload_bytes: int = 25 * MIB,
                 target_chunk_bytes: int = 20 * MIB,
                 shrink_factor: float = 0.8,
                 max_shrink_iterations: int = 20,
                 settle_delay_seconds: float = 0.5,
                 transcode_timeout: Optional[float] = 300.0,
                 ffmpeg_path: str = "ffmpeg"):
        self.prober = prober or MediaProber()
        self.max_duration_seconds = max_duration_seconds
        self.max_payload_bytes = max_payload_bytes
        self.target_chunk_bytes = target_chunk_bytes
        self.shrink_factor = shrink_factor
        self.max_shrink_iterations = max_shrink_iterations
        self.settle_delay_seconds = settle_delay_seconds
        self.transcode_timeout = transcode_timeout
        self.ffmpeg_path = ffmpeg_path
        self.publisher = ProgressPublisher(CHUNK_TOPIC)

    async def check_duration(self, path: Union[str, Path]) -> float:
        """Probe the duration and enforce the ceiling.

        Raises:
            MediaProbeError: If the duration is unknown
            MediaTooLongError: If the duration exceeds the ceiling
        """
        duration = await self.prober.probe_duration(path)
        if not duration:
            raise MediaProbeError(str(path))
        if duration > self.max_duration_seconds:
            logger.info(f"Rejecting {path}: {duration:.1f}s exceeds {self.max_duration_seconds}s")
            raise MediaTooLongError(duration, self.max_duration_seconds)
        return duration

    async def split(self,
                    path: Union[str, Path],
                    output_dir: Union[str, Path],
                    target_chunk_bytes: Optional[int] = None) -> List[Chunk]:
        """Split a media file into in-limit chunks.

        Args:
            path: Source media file
            output_dir: Directory receiving chunk files (one per session)
            target_chunk_bytes: Desired chunk size used for the initial estimate

        Returns:
            Chunks in ascending index order

        Raises:
            MediaProbeError: Duration unknown
            MediaTooLongError: Duration above the ceiling
            TranscodeError: Extraction failed or chunks never fit the limit
        """
        source = Path(path)
        target = target_chunk_bytes or self.target_chunk_bytes
        logger.info(f"Splitting {source.name} into chunks...")

        duration = await self.check_duration(source)
        file_size = source.stat().st_size
        if file_size == 0:
            raise TranscodeError(str(source), "source file is empty")

        chunk_dir = Path(output_dir)
        chunk_dir.mkdir(parents=True, exist_ok=True)

        chunk_duration = initial_chunk_duration(duration, file_size, target)
        num_chunks = count_chunks(duration, chunk_duration)
        logger.info(f"Initial plan: {num_chunks} chunks of {chunk_duration:.2f}s "
                    f"({duration:.2f}s, {file_size / MIB:.1f}MB)")

        chunks: List[Chunk] = []
        index = 0
        start = 0.0
        shrinks = 0

        while index < num_chunks:
            length = min(chunk_duration, duration - start)
            chunk_path = chunk_dir / f"chunk_{index}{source.suffix}"

            await self._extract(source, start, length, chunk_path,
                                f"Extracting chunk {index + 1}/{num_chunks}")
            await asyncio.sleep(self.settle_delay_seconds)
            size = chunk_path.stat().st_size

            if size > self.max_payload_bytes:
                logger.info(f"Chunk {index + 1} too large ({size / MIB:.1f}MB), reducing duration...")
                self.publisher.publish(ChunkEvent(
                    event_type="oversized", index=index, planned_chunks=num_chunks,
                    start_seconds=start, duration_seconds=length, size_bytes=size))
                self._discard(chunk_path)

                shrinks += 1
                if shrinks > self.max_shrink_iterations:
                    raise TranscodeError(
                        str(source),
                        f"chunk {index} still above {self.max_payload_bytes} bytes "
                        f"after {self.max_shrink_iterations} reductions")

                chunk_duration *= self.shrink_factor
                num_chunks = index + count_chunks(duration - start, chunk_duration)
                continue

            chunks.append(Chunk(index=index, start_seconds=start, duration_seconds=length,
                                path=chunk_path, size_bytes=size))
            self.publisher.publish(ChunkEvent(
                event_type="extracted", index=index, planned_chunks=num_chunks,
                start_seconds=start, duration_seconds=length, size_bytes=size))

            start += length
            index += 1
            shrinks = 0

        logger.info(f"Split {source.name} into {len(chunks)} chunks")
        return chunks

    async def _extract(self, source: Path, start: float, length: float, output: Path, desc: str) -> None:
        """Extract one window with a copy-codec transcode."""
        cmd = [
            self.ffmpeg_path,
            "-i", str(source),
            "-ss", str(start),
            "-t", str(length),
            "-c", "copy",
            "-y",
            str(output),
        ]
        try:
            result = await run_command(cmd, timeout=self.transcode_timeout, desc=desc)
        except FileNotFoundError as e:
            raise TranscodeError(str(source), f"{self.ffmpeg_path} is not installed", e) from e
        except asyncio.TimeoutError as e:
            raise TranscodeError(str(source), f"timed out after {self.transcode_timeout}s", e) from e

        if not result.ok:
            logger.error(f"ffmpeg exited with {result.returncode}: {result.stderr.strip()}")
            raise TranscodeError(str(source), f"ffmpeg exited with code {result.returncode}")
        if not output.exists():
            raise TranscodeError(str(source), f"ffmpeg produced no output at {output}")

    def _discard(self, chunk_path: Path) -> None:
        try:
            chunk_path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete oversized chunk {chunk_path}: {e}")
