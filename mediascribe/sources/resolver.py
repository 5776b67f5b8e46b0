"""Ordered registry that picks a remote source for a URL."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .base import AbstractRemoteSource
from .google_drive import GoogleDriveSource
from .linkedin import LinkedInSource
from ..exceptions import UnsupportedSourceError

logger = logging.getLogger(__name__)


class SourceResolver:
    """Tries registered sources in order; the first match wins."""

    def __init__(self, sources: Optional[Sequence[AbstractRemoteSource]] = None):
        self.sources: List[AbstractRemoteSource] = list(sources) if sources is not None else [
            LinkedInSource(),
            GoogleDriveSource(),
        ]

    def register(self, source: AbstractRemoteSource) -> None:
        """Append a source; earlier registrations take precedence."""
        self.sources.append(source)

    def select(self, url: str) -> AbstractRemoteSource:
        """Return the first source that recognizes the URL.

        Raises:
            UnsupportedSourceError: If no source matches
        """
        for source in self.sources:
            if source.matches(url):
                logger.debug(f"URL matched source '{source.name}'")
                return source
        logger.info(f"No source matches URL: {url}")
        raise UnsupportedSourceError(url)

    async def resolve(self, url: str, dest_dir: Path) -> Path:
        """Select a source and download the URL into dest_dir."""
        source = self.select(url)
        return await source.download(url, dest_dir)
