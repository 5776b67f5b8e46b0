"""File management module for session working directories."""

import os
import re
import logging
import shutil
import random
import string
from pathlib import Path
from datetime import datetime
from typing import List, Union

from ..models.session import Session


logger = logging.getLogger(__name__)

SESSION_PREFIX = "session_"
RESOURCE_PREFIX = "temp_resources/"
UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(filename: str) -> str:
    """Strip everything but letters, digits, dots, underscores and dashes."""
    safe = UNSAFE_FILENAME_CHARS.sub("", filename)
    if not safe.strip("."):
        return "media"
    if safe.startswith(".") and safe.count(".") == 1:
        # Only the extension survived
        return f"media{safe}"
    return safe


class FileManager:
    """Manages per-session working directories under a shared temp root."""

    def __init__(self, temp_dir: str):
        """Initialize file manager with the temp root.

        Args:
            temp_dir: Base directory holding all session directories
        """
        self.temp_dir = Path(temp_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"FileManager initialized with temp_dir: {self.temp_dir}")

    def create_session(self) -> Session:
        """Create new session directory keyed by a high-resolution timestamp.

        Returns:
            Session owning the new directory
        """
        # Microseconds plus a random suffix keep concurrent sessions apart
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        session_id = f"{SESSION_PREFIX}{timestamp}_{random_suffix}"
        session_path = self.temp_dir / session_id
        session_path.mkdir(parents=True, exist_ok=False)

        logger.info(f"Created session directory: {session_path}")
        return Session(session_id=session_id, working_dir=session_path)

    def get_session_path(self, session_id: str) -> Path:
        """Get full path to session directory.

        Args:
            session_id: Session identifier

        Returns:
            Path to session directory

        Raises:
            ValueError: If the identifier would escape the temp root
        """
        if not session_id or Path(session_id).name != session_id or session_id in (".", ".."):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.temp_dir / session_id

    def adopt_media(self, session: Session, downloaded_path: Union[str, Path]) -> Path:
        """Move a downloaded file into the session directory under a safe name.

        Args:
            session: Session receiving the file
            downloaded_path: File produced by a remote source

        Returns:
            New path of the media file inside the session directory
        """
        source = Path(downloaded_path)
        safe_filename = sanitize_filename(source.name)
        new_path = session.working_dir / safe_filename

        if source != new_path:
            # shutil.move falls back to copy + delete across filesystems
            shutil.move(str(source), str(new_path))
            logger.debug(f"Moved {source} -> {new_path}")

        # Remove the downloader's scratch directory once it is empty
        original_dir = source.parent
        if original_dir not in (session.working_dir, self.temp_dir) and original_dir.exists():
            try:
                if not any(original_dir.iterdir()):
                    original_dir.rmdir()
            except OSError as e:
                logger.warning(f"Error cleaning up directory {original_dir}: {e}")

        session.media_path = new_path
        return new_path

    def relative_resource_path(self, session: Session) -> str:
        """Path clients use to refer to the session's media file."""
        return f"{RESOURCE_PREFIX}{session.session_id}/{session.media_path.name}"

    def resolve_media_path(self, file_path: str) -> Path:
        """Map a client-supplied path to a local file path.

        ``temp_resources/...`` paths resolve inside the temp root, absolute
        paths are kept and other relative paths resolve against the CWD.

        Raises:
            ValueError: If a temp_resources path escapes the temp root
        """
        if file_path.startswith(RESOURCE_PREFIX):
            relative = file_path[len(RESOURCE_PREFIX):]
            full_path = (self.temp_dir / relative).resolve()
            if self.temp_dir.resolve() not in full_path.parents:
                raise ValueError(f"Invalid resource path: {file_path}")
            return full_path
        if os.path.isabs(file_path):
            return Path(file_path)
        return Path.cwd() / file_path

    def list_sessions(self) -> List[str]:
        """List all session IDs currently on disk.

        Returns:
            List of session IDs sorted by creation time
        """
        try:
            sessions = [
                path.name for path in self.temp_dir.iterdir()
                if path.is_dir() and path.name.startswith(SESSION_PREFIX)
            ]
        except OSError as e:
            logger.error(f"Error listing sessions: {e}")
            return []

        sessions.sort()  # Sort chronologically
        logger.debug(f"Found {len(sessions)} sessions")
        return sessions
