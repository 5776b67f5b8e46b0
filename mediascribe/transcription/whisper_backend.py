"""OpenAI Whisper transcription backend over the REST API."""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp

from .base import AbstractTranscriptionBackend
from ..exceptions import TranscriptionError

logger = logging.getLogger(__name__)


class WhisperTranscriptionBackend(AbstractTranscriptionBackend):
    """Posts files to the OpenAI audio transcription endpoint."""

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 base_url: str = "https://api.openai.com/v1",
                 timeout: Optional[float] = 600.0,
                 language: str = ""):
        """Initialize Whisper backend.

        Args:
            api_key: OpenAI API key
            model: Transcription model name
            base_url: API root, without trailing slash
            timeout: Total seconds allowed per request
            language: Optional ISO-639-1 language hint
        """
        super().__init__(language)
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/audio/transcriptions"
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        logger.info(f"WhisperTranscriptionBackend initialized with model: {model}")

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def transcribe_file(self, path: Path) -> str:
        """Upload the file and return the transcript text."""
        logger.debug(f"Uploading {path.name} ({path.stat().st_size} bytes) for transcription")

        async with aiofiles.open(path, 'rb') as f:
            audio_bytes = await f.read()

        form = aiohttp.FormData()
        form.add_field("model", self.model)
        if self.language:
            form.add_field("language", self.language)
        form.add_field(
            "file",
            audio_bytes,
            filename=path.name,
            content_type=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
        )

        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with self._get_session().post(self.url, data=form, headers=headers) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TranscriptionError(path.name, f"OpenAI API error: {response.status} - {error_text}")
                result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranscriptionError(path.name, f"request failed: {e}", e) from e

        text = result.get("text")
        if text is None:
            raise TranscriptionError(path.name, "response contained no text")

        logger.debug(f"Received transcript for {path.name} ({len(text)} chars)")
        return text

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
