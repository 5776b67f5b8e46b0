"""Remote media sources for MediaScribe."""

from .base import AbstractRemoteSource
from .linkedin import LinkedInSource
from .google_drive import GoogleDriveSource
from .resolver import SourceResolver

__all__ = [
    "AbstractRemoteSource",
    "LinkedInSource",
    "GoogleDriveSource",
    "SourceResolver",
]
