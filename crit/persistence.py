"""
PersistenceEngine - debounced writes of the session snapshot and review file.

Every comment mutation reschedules one timer. When the timer fires (or on a
forced flush) the engine takes a consistent read of the document, then writes
outside the document lock:

    <output_dir>/.<name>.comments.json   resumable snapshot
    <output_dir>/<stem>.review<suffix>   annotated document, absent if no comments
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from .comment_schema import SessionSnapshot, utc_timestamp
from .document import ReviewDocument
from .errors import PersistenceIOError
from .review_renderer import render_review

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.2


def atomic_write_text(target_path: Path, text: str) -> None:
    """
    Replace `target_path` with `text` without exposing a partial file.

    Uses the write-to-temp-then-rename pattern; the temp file lives in the
    target's directory so the rename stays on one filesystem.

    Raises:
        PersistenceIOError: If any step fails
    """
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=f".{target_path.name}.",
            dir=target_path.parent,
        )
    except OSError as e:
        raise PersistenceIOError(target_path, e) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(text)
        os.chmod(temp_path, 0o644)
        os.replace(temp_path, target_path)
    except (OSError, UnicodeError) as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise PersistenceIOError(target_path, e) from e


def remove_file(path: Path) -> None:
    """Delete `path` if it exists."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise PersistenceIOError(path, e) from e


class PersistenceEngine:
    """
    Keeps the on-disk artifacts eventually consistent with a ReviewDocument.

    There is a single pending timer at a time; rescheduling cancels and
    replaces it. All flushes, timer-driven or forced, run under one flush
    lock so they never interleave.
    """

    def __init__(self, document: ReviewDocument, debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS):
        """
        Initialize the engine and subscribe it to document changes.

        Args:
            document: Document whose state is persisted
            debounce_seconds: Quiescence window after the last mutation
        """
        self.document = document
        self.debounce_seconds = debounce_seconds
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._closed = False
        self._schedule_lock = threading.Lock()
        self._flush_lock = threading.Lock()
        document.add_change_listener(self.schedule)

    @property
    def pending(self) -> bool:
        """Whether a debounced flush is waiting to fire."""
        with self._schedule_lock:
            return self._timer is not None

    def schedule(self) -> None:
        """(Re)start the debounce timer. Ignored after shutdown."""
        with self._schedule_lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.debounce_seconds, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, generation: int) -> None:
        with self._schedule_lock:
            # A newer schedule or a shutdown superseded this timer
            if generation != self._generation or self._closed:
                return
            self._timer = None
        self.flush()

    def flush(self) -> bool:
        """
        Write both artifacts from the document's current state.

        Failures are logged, not raised; the next flush rewrites everything
        from state.

        Returns:
            True if both artifacts were written
        """
        with self._flush_lock:
            content, comments, next_id = self.document.snapshot()
            ok = True

            snapshot = SessionSnapshot(
                file=self.document.file_name,
                file_hash=self.document.fingerprint,
                updated_at=utc_timestamp(),
                next_id=next_id,
                comments=comments,
            )
            try:
                atomic_write_text(self.document.snapshot_path, snapshot.model_dump_json(indent=2))
            except PersistenceIOError as e:
                logger.error(f"Error writing comments file: {e}")
                ok = False

            try:
                if comments:
                    atomic_write_text(self.document.review_path, render_review(content, comments))
                else:
                    remove_file(self.document.review_path)
            except PersistenceIOError as e:
                logger.error(f"Error writing review file: {e}")
                ok = False

            if ok:
                logger.debug(f"Flushed {len(comments)} comment(s) for {self.document.file_name}")
            return ok

    def shutdown(self) -> bool:
        """
        Cancel any pending timer and flush synchronously, once.

        Later calls and later schedules are no-ops.

        Returns:
            Result of the final flush (True if already shut down)
        """
        with self._schedule_lock:
            if self._closed:
                return True
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        return self.flush()


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "PersistenceEngine",
    "atomic_write_text",
    "remove_file",
]
