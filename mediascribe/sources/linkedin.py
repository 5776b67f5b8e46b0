"""LinkedIn video source backed by the yt-dlp command-line downloader."""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Optional

from .base import AbstractRemoteSource, parse_url
from ..exceptions import DownloadError
from ..media.commands import run_command

logger = logging.getLogger(__name__)

LINKEDIN_POST_PATHS = (
    "/feed/update/urn:li:activity:",
    "/posts/",
)


class LinkedInSource(AbstractRemoteSource):
    """Downloads LinkedIn post videos with yt-dlp."""

    name = "linkedin"

    def __init__(self,
                 ytdlp_path: str = "yt-dlp",
                 cookies_path: Optional[str] = None,
                 timeout: Optional[float] = 600.0):
        self.ytdlp_path = ytdlp_path
        self.cookies_path = cookies_path
        self.timeout = timeout

    def matches(self, url: str) -> bool:
        parsed = parse_url(url)
        if parsed is None:
            return False
        return ("linkedin.com" in parsed.hostname
                and any(path in parsed.path for path in LINKEDIN_POST_PATHS))

    async def download(self, url: str, dest_dir: Path) -> Path:
        dest_dir.mkdir(parents=True, exist_ok=True)
        scratch_dir = Path(tempfile.mkdtemp(prefix="linkedin-video-", dir=dest_dir))
        output_template = str(scratch_dir / "%(title)s.%(ext)s")

        cmd = [
            self.ytdlp_path,
            url,
            "-f", "mp4",
            "-o", output_template,
            "--quiet",
            "--no-warnings",
        ]
        if self.cookies_path and Path(self.cookies_path).exists():
            cmd.extend(["--cookies", self.cookies_path])
        logger.info(f"Downloading LinkedIn video (cookies: {'yes' if '--cookies' in cmd else 'no'})")

        try:
            result = await run_command(cmd, timeout=self.timeout)
        except FileNotFoundError as e:
            raise DownloadError(self.name, f"Failed to download LinkedIn video: {self.ytdlp_path} is not installed", e) from e
        except asyncio.TimeoutError as e:
            raise DownloadError(self.name, f"Failed to download LinkedIn video: timed out after {self.timeout}s", e) from e

        if not result.ok:
            logger.error(f"Error downloading video: {result.stderr.strip()}")
            raise DownloadError(
                self.name,
                f"Failed to download LinkedIn video: {result.stderr.strip() or f'exit code {result.returncode}'}")

        files = sorted(path for path in scratch_dir.iterdir() if path.is_file())
        if not files:
            raise DownloadError(self.name, "Failed to download LinkedIn video: No file downloaded")

        video_path = files[0]
        if video_path.stat().st_size == 0:
            raise DownloadError(self.name, "Failed to download LinkedIn video: downloaded file is empty")

        logger.info(f"Downloaded LinkedIn video: {video_path.name}")
        return video_path
