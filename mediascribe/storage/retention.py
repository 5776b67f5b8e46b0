"""Best-effort removal of session and chunk temporary storage."""

import asyncio
import errno
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

# Errors worth waiting out: the file is held open or locked by another process
TRANSIENT_ERRNOS = {errno.EBUSY, errno.EPERM, errno.EACCES}


@dataclass
class CleanupFailure:
    """A path that could not be removed, kept for observability."""
    path: Path
    error: str


def _is_transient(error: OSError) -> bool:
    return isinstance(error, PermissionError) or error.errno in TRANSIENT_ERRNOS


class RetentionManager:
    """Deletes temporary files and directories without ever raising.

    ``cleanup`` is idempotent: a path that no longer exists is a no-op.
    """

    def __init__(self, delete_retry_count: int = 5, delete_retry_delay_seconds: float = 1.0):
        self.delete_retry_count = delete_retry_count
        self.delete_retry_delay_seconds = delete_retry_delay_seconds

    def cleanup(self, path: Union[str, Path]) -> List[CleanupFailure]:
        """Remove a file or directory tree, blocking between file retries.

        Returns:
            Failures encountered (empty when everything was removed)
        """
        target = Path(path)
        try:
            if target.is_dir() and not target.is_symlink():
                return self._cleanup_tree(target)
            if target.exists() or target.is_symlink():
                failure = None
                for attempt in range(1, self.delete_retry_count + 1):
                    failure, retry = self._try_unlink(target, attempt)
                    if not retry:
                        break
                    time.sleep(self.delete_retry_delay_seconds)
                return [failure] if failure else []
        except OSError as e:
            return [self._record(target, e)]
        return []

    async def cleanup_async(self, path: Union[str, Path]) -> List[CleanupFailure]:
        """Same as cleanup, but retry pauses do not block the event loop."""
        target = Path(path)
        try:
            if target.is_dir() and not target.is_symlink():
                return self._cleanup_tree(target)
            if target.exists() or target.is_symlink():
                failure = None
                for attempt in range(1, self.delete_retry_count + 1):
                    failure, retry = self._try_unlink(target, attempt)
                    if not retry:
                        break
                    await asyncio.sleep(self.delete_retry_delay_seconds)
                return [failure] if failure else []
        except OSError as e:
            return [self._record(target, e)]
        return []

    def _try_unlink(self, target: Path, attempt: int):
        """One deletion attempt; returns (failure or None, should_retry)."""
        try:
            target.unlink()
            logger.debug(f"Deleted {target}")
            return None, False
        except FileNotFoundError:
            return None, False
        except OSError as e:
            if _is_transient(e) and attempt < self.delete_retry_count:
                logger.debug(f"{target} is busy (attempt {attempt}), retrying...")
                return None, True
            return self._record(target, e), False

    def _cleanup_tree(self, root: Path) -> List[CleanupFailure]:
        """Post-order walk: children first, then the directory itself."""
        failures: List[CleanupFailure] = []
        self._walk(root, failures)
        self._rmdir(root, failures)
        if failures:
            logger.warning(f"Cleanup of {root} left {len(failures)} entries behind")
        else:
            logger.debug(f"Removed directory {root}")
        return failures

    def _walk(self, directory: Path, failures: List[CleanupFailure]) -> None:
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            failures.append(self._record(directory, e))
            return

        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                self._walk(entry, failures)
                self._rmdir(entry, failures)
            else:
                try:
                    entry.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    failures.append(self._record(entry, e))

    def _rmdir(self, directory: Path, failures: List[CleanupFailure]) -> None:
        try:
            directory.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            failures.append(self._record(directory, e))

    @staticmethod
    def _record(path: Path, error: Exception) -> CleanupFailure:
        logger.warning(f"Could not clean up {path}: {error}")
        return CleanupFailure(path=path, error=str(error))
