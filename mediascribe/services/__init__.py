"""Services layer for MediaScribe application logic."""

from .session_manager import SessionManager

__all__ = [
    "SessionManager",
]
