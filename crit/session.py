"""
ReviewSession - the operations a review transport exposes.

Owns the document, its persistence engine and the source watcher, and
carries the finish/shutdown handshake with the host process.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from .comment_schema import Comment
from .config import CritConfig
from .document import ReviewDocument
from .persistence import PersistenceEngine
from .source_watcher import SourceWatcher

logger = logging.getLogger(__name__)


class ReviewSession:
    """One review of one file, from load to the final flush."""

    def __init__(
        self,
        document: ReviewDocument,
        debounce_seconds: float = 0.2,
        watch_interval: float | None = None,
    ):
        """
        Args:
            document: Loaded document to review
            debounce_seconds: Persistence quiescence window
            watch_interval: Poll period for external changes; None disables
                watching
        """
        self.document = document
        self.engine = PersistenceEngine(document, debounce_seconds=debounce_seconds)
        self.watcher: SourceWatcher | None = None
        if watch_interval is not None:
            self.watcher = SourceWatcher(
                document.source_path,
                document.fingerprint,
                on_change=document.mark_source_changed,
                interval=watch_interval,
            )
        self._shutdown_callbacks: list[Callable[[], None]] = []
        self._close_lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(cls, source_path: Path | str, config: CritConfig | None = None) -> "ReviewSession":
        """Load `source_path` and start watching it."""
        config = config or CritConfig()
        document = ReviewDocument.load(source_path, output_dir=config.output_dir)
        session = cls(
            document,
            debounce_seconds=config.debounce_seconds,
            watch_interval=config.watch_interval,
        )
        if session.watcher is not None:
            session.watcher.start()
        return session

    # =========================================================================
    # Transport operations
    # =========================================================================

    def get_document(self) -> dict[str, Any]:
        return {
            "filename": self.document.file_name,
            # Undecodable bytes are kept in memory for output, replaced for JSON
            "content": self.document.content.encode("utf-8", "surrogateescape").decode("utf-8", "replace"),
            "source_changed": self.document.source_changed,
        }

    def get_comments(self) -> list[Comment]:
        return self.document.get_comments()

    def add_comment(self, start_line: int, end_line: int, body: str) -> Comment:
        return self.document.add_comment(start_line, end_line, body)

    def update_comment(self, comment_id: str, body: str) -> Comment:
        return self.document.update_comment(comment_id, body)

    def delete_comment(self, comment_id: str) -> bool:
        return self.document.delete_comment(comment_id)

    def get_stale_notice(self) -> str:
        return self.document.get_stale_notice()

    def clear_stale_notice(self) -> None:
        self.document.clear_stale_notice()

    def finish(self) -> dict[str, str]:
        """
        Flush immediately and report where the review file lives.

        The caller delivers the response, then calls `request_shutdown`.
        """
        if not self.engine.flush():
            logger.warning("Finishing review with artifacts that failed to write")
        return {"status": "finished", "review_file": str(self.document.review_path)}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def on_shutdown_requested(self, callback: Callable[[], None]) -> None:
        """Register how the host process is told to stop."""
        self._shutdown_callbacks.append(callback)

    def request_shutdown(self) -> None:
        logger.info("Finish review requested. Shutting down...")
        for callback in self._shutdown_callbacks:
            callback()

    def close(self) -> None:
        """Stop watching and run the final flush. Safe to call twice."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        if self.watcher is not None:
            self.watcher.stop()
        if self.engine.shutdown():
            count = len(self.document.get_comments())
            logger.info(f"{count} comment(s) saved for {self.document.file_name}")


__all__ = ["ReviewSession"]
