"""Pytest configuration and fixtures for MediaScribe tests."""

import pytest
import tempfile
import logging
from pathlib import Path
from typing import Dict, List, Optional

from mediascribe.config import MediaScribeConfig
from mediascribe.media.commands import CommandResult
from mediascribe.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MIB = 1024 * 1024


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external tools")
    config.addinivalue_line("markers", "integration: tests spanning several components")


def make_media_file(path: Path, size_bytes: int) -> Path:
    """Create a sparse file of the given size."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        f.truncate(size_bytes)
    return path


class FakeProber:
    """Prober returning fixed durations per file name."""

    def __init__(self, durations: Optional[Dict[str, Optional[float]]] = None, default: Optional[float] = None):
        self.durations = durations or {}
        self.default = default
        self.calls: List[Path] = []

    async def probe_duration(self, path) -> Optional[float]:
        self.calls.append(Path(path))
        return self.durations.get(Path(path).name, self.default)


class FakeFFmpeg:
    """Stands in for run_command: writes chunk files sized by bytes-per-second.

    ``inflate`` maps (index, attempt) to a forced size for that extraction.
    """

    def __init__(self, bytes_per_second: float, inflate: Optional[Dict[tuple, int]] = None, fail_on_call: Optional[int] = None):
        self.bytes_per_second = bytes_per_second
        self.inflate = inflate or {}
        self.fail_on_call = fail_on_call
        self.calls: List[dict] = []
        self._attempts: Dict[str, int] = {}

    async def __call__(self, cmd, timeout=None, desc=None) -> CommandResult:
        start = float(cmd[cmd.index("-ss") + 1])
        length = float(cmd[cmd.index("-t") + 1])
        output = Path(cmd[-1])
        self.calls.append({"start": start, "length": length, "output": output})

        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            return CommandResult(returncode=1, stdout="", stderr="Invalid data found when processing input")

        index = int(output.stem.split("_")[-1])
        attempt = self._attempts.get(output.name, 0)
        self._attempts[output.name] = attempt + 1

        size = self.inflate.get((index, attempt), int(self.bytes_per_second * length))
        make_media_file(output, size)
        return CommandResult(returncode=0, stdout="", stderr="")


class FakeBackend(AbstractTranscriptionBackend):
    """Backend returning scripted texts and failures per file name."""

    def __init__(self, failures: Optional[Dict[str, int]] = None, text_for=None):
        super().__init__()
        self.failures = dict(failures or {})
        self.text_for = text_for or (lambda path: f"text of {path.name}")
        self.calls: List[Path] = []
        self.closed = False

    async def transcribe_file(self, path: Path) -> str:
        self.calls.append(Path(path))
        remaining = self.failures.get(path.name, 0)
        if remaining:
            self.failures[path.name] = remaining - 1
            raise RuntimeError(f"quota exceeded for {path.name}")
        return self.text_for(Path(path))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def test_config(temp_data_dir):
    """Configuration rooted in the temp dir with all waits disabled."""
    config = MediaScribeConfig()
    config.set('storage.temp_dir', str(Path(temp_data_dir) / "media-transcriber"))
    config.set('storage.delete_retry_delay_seconds', 0)
    config.set('media.settle_delay_seconds', 0)
    config.set('transcription.retry_delay_seconds', 0)
    config.set('openai.api_key', "sk-test")
    return config


@pytest.fixture
def fake_backend():
    return FakeBackend()
