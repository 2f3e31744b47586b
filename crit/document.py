"""
ReviewDocument - the reviewed file, its fingerprint and its comments.

All reads and writes of session state go through one ReadWriteLock. Disk I/O
happens only in `load` (before the document is shared) and never while the
lock is held.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pydantic import ValidationError as SchemaError

from .comment_ledger import CommentLedger
from .comment_schema import Comment, SessionSnapshot
from .fingerprint import fingerprint
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

STALE_NOTICE = (
    "The source file has changed since the last review session. "
    "Previous comments may not align with the current content."
)


def snapshot_path_for(source: Path, output_dir: Path) -> Path:
    """Sidecar snapshot location: `<output_dir>/.<name>.comments.json`."""
    return output_dir / f".{source.name}.comments.json"


def review_path_for(source: Path, output_dir: Path) -> Path:
    """Annotated output location: `<output_dir>/<stem>.review<suffix>`."""
    return output_dir / f"{source.stem}.review{source.suffix}"


def read_snapshot(path: Path) -> SessionSnapshot | None:
    """
    Read a prior session snapshot.

    Returns:
        The snapshot, or None if it is missing or unreadable
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Could not read snapshot {path}: {e}")
        return None

    try:
        return SessionSnapshot.model_validate_json(raw)
    except SchemaError as e:
        logger.warning(f"Ignoring malformed snapshot {path}: {e.error_count()} error(s)")
        return None


class ReviewDocument:
    """
    One reviewed source file for the lifetime of a run.

    `content` and `fingerprint` are fixed at load time. Only the stale
    notice, the source-changed flag and the comment ledger change afterwards.
    """

    def __init__(
        self,
        source_path: Path,
        content: str,
        file_hash: str,
        output_dir: Path | None = None,
    ):
        self.source_path = Path(source_path)
        self.file_name = self.source_path.name
        self.output_dir = Path(output_dir) if output_dir else self.source_path.parent
        self.content = content
        self.fingerprint = file_hash
        self.lock = ReadWriteLock()
        self._ledger = CommentLedger(on_change=self._notify_change)
        self._listeners: list[Callable[[], None]] = []
        self._stale_notice = ""
        self._source_changed = False

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(cls, source_path: Path | str, output_dir: Path | str | None = None) -> "ReviewDocument":
        """
        Read the source file and resume a matching prior session.

        Args:
            source_path: File under review
            output_dir: Where the snapshot and review file live (default: the
                source's directory)

        Returns:
            A document holding the resumed comments, or an empty ledger plus
            a stale notice if the prior snapshot no longer matches

        Raises:
            OSError: If the source file cannot be read
        """
        source_path = Path(source_path).resolve()
        data = source_path.read_bytes()
        doc = cls(
            source_path=source_path,
            content=data.decode("utf-8", errors="surrogateescape"),
            file_hash=fingerprint(data),
            output_dir=Path(output_dir).resolve() if output_dir else None,
        )
        doc._resume(read_snapshot(doc.snapshot_path))
        return doc

    def _resume(self, snapshot: SessionSnapshot | None) -> None:
        if snapshot is None:
            logger.info(f"No prior review session for {self.file_name}")
            return

        if snapshot.file_hash != self.fingerprint:
            logger.info(
                f"Prior review of {self.file_name} was against different content; "
                f"not resuming {len(snapshot.comments)} comment(s)"
            )
            self._stale_notice = STALE_NOTICE
            return

        self._ledger.restore(snapshot.comments, snapshot.resume_next_id())
        logger.info(f"Resumed {len(snapshot.comments)} comment(s) for {self.file_name}")

    # =========================================================================
    # Paths
    # =========================================================================

    @property
    def snapshot_path(self) -> Path:
        return snapshot_path_for(self.source_path, self.output_dir)

    @property
    def review_path(self) -> Path:
        return review_path_for(self.source_path, self.output_dir)

    # =========================================================================
    # Change notification
    # =========================================================================

    def add_change_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run after every comment mutation."""
        self._listeners.append(listener)

    def _notify_change(self) -> None:
        for listener in self._listeners:
            listener()

    # =========================================================================
    # Comment operations
    # =========================================================================

    def add_comment(self, start_line: int, end_line: int, body: str) -> Comment:
        with self.lock.write():
            return self._ledger.add(start_line, end_line, body)

    def update_comment(self, comment_id: str, body: str) -> Comment:
        with self.lock.write():
            return self._ledger.update(comment_id, body)

    def delete_comment(self, comment_id: str) -> bool:
        with self.lock.write():
            return self._ledger.delete(comment_id)

    def get_comments(self) -> list[Comment]:
        with self.lock.read():
            return self._ledger.list()

    @property
    def next_id(self) -> int:
        with self.lock.read():
            return self._ledger.next_id

    def snapshot(self) -> tuple[str, list[Comment], int]:
        """Content, comments and next id as one consistent read."""
        with self.lock.read():
            return self.content, self._ledger.list(), self._ledger.next_id

    # =========================================================================
    # Notices
    # =========================================================================

    def get_stale_notice(self) -> str:
        with self.lock.read():
            return self._stale_notice

    def clear_stale_notice(self) -> None:
        with self.lock.write():
            self._stale_notice = ""

    @property
    def source_changed(self) -> bool:
        with self.lock.read():
            return self._source_changed

    def mark_source_changed(self) -> None:
        """
        Record that the source file changed on disk during the session.

        The loaded content and comments stay as they are; the change is
        reconciled by the fingerprint check on the next load.
        """
        with self.lock.write():
            already = self._source_changed
            self._source_changed = True
        if not already:
            logger.warning(
                f"{self.file_name} changed on disk; comments still refer to the "
                "content loaded at session start"
            )


__all__ = [
    "STALE_NOTICE",
    "ReviewDocument",
    "read_snapshot",
    "review_path_for",
    "snapshot_path_for",
]
