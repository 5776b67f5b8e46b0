"""Exception taxonomy for the MediaScribe pipeline."""

from typing import Optional


class MediaScribeError(Exception):
    """Base class for fatal pipeline errors surfaced to the caller."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class UnsupportedSourceError(MediaScribeError):
    """Raised when no registered remote source recognizes a URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            "Unsupported URL format. Please use LinkedIn or Google Drive URLs."
        )


class DownloadError(MediaScribeError):
    """Raised when a remote source fails to produce a non-empty local file."""

    def __init__(self, source: str, message: str, cause: Optional[Exception] = None):
        self.source = source
        super().__init__(message, cause)


class MediaTooLongError(MediaScribeError):
    """Raised when media duration exceeds the configured ceiling."""

    def __init__(self, duration_seconds: float, limit_seconds: float):
        self.duration_seconds = duration_seconds
        self.limit_seconds = limit_seconds
        super().__init__(
            "Sorry, your video is too long. "
            "To avoid extensive waiting times, "
            f"we're only transcribing videos up to {int(limit_seconds // 60)} minutes long"
        )


class MediaProbeError(MediaScribeError):
    """Raised when a step that requires the media duration cannot obtain it."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Could not determine audio duration for '{path}'")


class TranscodeError(MediaScribeError):
    """Raised when chunk extraction fails."""

    def __init__(self, path: str, message: str, cause: Optional[Exception] = None):
        self.path = path
        super().__init__(f"Failed to extract chunk from '{path}': {message}", cause)


class TranscriptionError(MediaScribeError):
    """Raised when the transcription API fails (after retries, where they apply)."""

    def __init__(self, file_name: str, message: str = "", cause: Optional[Exception] = None):
        self.file_name = file_name
        detail = f": {message}" if message else ""
        super().__init__(f"Transcription failed for '{file_name}'{detail}", cause)
