"""Google Drive source that streams publicly shared files over HTTP."""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs

import aiofiles
import aiohttp

from .base import AbstractRemoteSource, parse_url
from ..exceptions import DownloadError

logger = logging.getLogger(__name__)

DOWNLOAD_URL = "https://drive.google.com/uc"
USER_AGENT = ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
              "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36")
STREAM_CHUNK_BYTES = 1024 * 1024

REMEDIATION = (
    "Could not download from Google Drive. "
    "Please ensure:\n"
    "1. The file is publicly accessible (anyone with link can view)\n"
    "2. The link is in format: drive.google.com/file/d/FILE_ID/view\n"
    "3. The file is a video file (mp4 or webm)"
)


def extract_file_id(url: str) -> Optional[str]:
    """Pull the file id out of a /file/d/<id>/ or ?id=<id> link."""
    parsed = parse_url(url)
    if parsed is None:
        return None
    if "/file/d/" in parsed.path:
        file_id = parsed.path.split("/file/d/", 1)[1].split("/", 1)[0]
        return file_id or None
    ids = parse_qs(parsed.query).get("id")
    return ids[0] if ids and ids[0] else None


class GoogleDriveSource(AbstractRemoteSource):
    """Downloads publicly shared Google Drive files."""

    name = "google_drive"

    def __init__(self, download_url: str = DOWNLOAD_URL, timeout: Optional[float] = 600.0):
        self.download_url = download_url
        self.timeout = timeout

    def matches(self, url: str) -> bool:
        parsed = parse_url(url)
        return parsed is not None and "drive.google.com" in parsed.hostname

    async def download(self, url: str, dest_dir: Path) -> Path:
        logger.info("Downloading from Google Drive...")

        file_id = extract_file_id(url)
        if not file_id:
            logger.error(f"Invalid Google Drive URL: {url}")
            raise DownloadError(self.name, REMEDIATION)

        dest_dir.mkdir(parents=True, exist_ok=True)
        output = dest_dir / f"{file_id}.mp4"
        logger.info(f"Downloading file to: {output}")

        try:
            await self._stream_to_file(file_id, output)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Error downloading from Google Drive: {e}")
            self._remove_partial(output)
            raise DownloadError(self.name, REMEDIATION, e) from e

        if output.stat().st_size == 0:
            logger.error("Downloaded file is empty")
            self._remove_partial(output)
            raise DownloadError(self.name, REMEDIATION)

        logger.info(f"Downloaded {output.stat().st_size / 1024 / 1024:.1f}MB from Google Drive")
        return output

    async def _stream_to_file(self, file_id: str, output: Path) -> None:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {"User-Agent": USER_AGENT}

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.download_url, params={"id": file_id}, headers=headers) as response:
                if response.status != 200:
                    raise aiohttp.ClientResponseError(
                        response.request_info, response.history,
                        status=response.status, message=f"HTTP {response.status}")

                async with aiofiles.open(output, 'wb') as file:
                    async for chunk in response.content.iter_chunked(STREAM_CHUNK_BYTES):
                        await file.write(chunk)

    @staticmethod
    def _remove_partial(output: Path) -> None:
        try:
            output.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial download {output}: {e}")
