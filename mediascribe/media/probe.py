"""Media duration probing via ffprobe."""

import asyncio
import logging
import math
from pathlib import Path
from typing import Optional, Union

from .commands import run_command

logger = logging.getLogger(__name__)

FFPROBE_ARGS = [
    "-v", "quiet",
    "-show_entries", "format=duration",
    "-of", "default=noprint_wrappers=1:nokey=1",
]


class MediaProber:
    """Reads media duration with an external inspection tool.

    A ``None`` result means "duration unknown"; callers decide whether that
    is fatal.
    """

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float = 30.0):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    async def probe_duration(self, path: Union[str, Path]) -> Optional[float]:
        """Return the media duration in seconds, or None if it cannot be determined."""
        media_path = Path(path)
        if not media_path.exists():
            logger.error(f"File not found: {media_path}")
            return None

        cmd = [self.ffprobe_path, *FFPROBE_ARGS, str(media_path)]
        try:
            result = await run_command(cmd, timeout=self.timeout)
        except FileNotFoundError:
            logger.error(f"{self.ffprobe_path} is not installed")
            return None
        except asyncio.TimeoutError:
            return None

        if not result.ok or result.stderr.strip():
            logger.error(f"Error executing ffprobe on {media_path}: {result.stderr.strip()}")
            return None

        return parse_duration(result.stdout)


def parse_duration(output: str) -> Optional[float]:
    """Parse a single duration value from ffprobe output."""
    text = output.strip()
    if not text:
        return None
    try:
        duration = float(text.splitlines()[0])
    except ValueError:
        logger.warning(f"Unparseable duration output: {text!r}")
        return None
    if not math.isfinite(duration) or duration <= 0:
        return None
    return duration
