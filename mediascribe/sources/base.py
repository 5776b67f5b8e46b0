"""Abstract base class for remote media sources."""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse, ParseResult
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def parse_url(url: str) -> Optional[ParseResult]:
    """Parse an http(s) URL, returning None for anything malformed."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return parsed


class AbstractRemoteSource(ABC):
    """Abstract base class for downloaders that turn a URL into a local file."""

    name: str = "remote"

    @abstractmethod
    def matches(self, url: str) -> bool:
        """Check whether this source recognizes the URL.

        Args:
            url: URL supplied by the caller

        Returns:
            True if this source can download the URL
        """
        pass

    @abstractmethod
    async def download(self, url: str, dest_dir: Path) -> Path:
        """Download the media behind the URL into dest_dir.

        Args:
            url: URL previously accepted by matches()
            dest_dir: Directory owned by the calling session

        Returns:
            Path to a non-empty local file

        Raises:
            DownloadError: On any network or tool failure, or an empty result
        """
        pass
