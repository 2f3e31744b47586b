"""Poll the reviewed file and report when its content changes on disk."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from .fingerprint import fingerprint

logger = logging.getLogger(__name__)


class SourceWatcher:
    """
    Background poller for one source file.

    Cheap `(mtime_ns, size)` checks gate re-fingerprinting. `on_change` runs
    once per distinct fingerprint that differs from the session's.
    """

    def __init__(
        self,
        path: Path,
        session_fingerprint: str,
        on_change: Callable[[], None],
        interval: float = 1.0,
    ):
        self.path = Path(path)
        self.interval = interval
        self._on_change = on_change
        self._reported = {session_fingerprint}
        # No baseline; the first poll fingerprints against the loaded content
        self._last_stat: tuple[int, int] | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _stat(self) -> tuple[int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def check(self) -> bool:
        """
        Poll once.

        Returns:
            True if a new change was reported
        """
        current = self._stat()
        if current is None or current == self._last_stat:
            return False
        self._last_stat = current

        try:
            digest = fingerprint(self.path.read_bytes())
        except OSError as e:
            logger.debug(f"Could not read {self.path} while watching: {e}")
            self._last_stat = None
            return False

        if digest in self._reported:
            return False
        self._reported.add(digest)
        self._on_change()
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.check()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"watch-{self.path.name}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1.0)
            self._thread = None


__all__ = ["SourceWatcher"]
