"""Error taxonomy for review sessions."""

from __future__ import annotations

from pathlib import Path


class CritError(Exception):
    """Base class for review session errors."""


class ValidationError(CritError, ValueError):
    """Rejected input: empty body or an inverted/non-positive line range."""


class NotFoundError(CritError, LookupError):
    """No comment with the requested id."""

    def __init__(self, comment_id: str):
        super().__init__(f"Comment not found: {comment_id}")
        self.comment_id = comment_id


class PersistenceIOError(CritError, OSError):
    """
    A snapshot or review file could not be read or written.

    Raised by the write helpers and caught by the persistence engine, which
    logs it. Callers of comment mutations never see it.
    """

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"I/O failure on {path}: {cause}")
        self.path = path
        self.cause = cause


__all__ = [
    "CritError",
    "NotFoundError",
    "PersistenceIOError",
    "ValidationError",
]
