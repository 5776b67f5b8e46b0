"""MediaScribe - chunked media transcription with the Whisper API."""

__version__ = "0.1.0"
