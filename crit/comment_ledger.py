"""
CommentLedger - the comment set of one review session.

The ledger does no locking of its own: every call must be made while holding
the owning ReviewDocument's lock (exclusive for mutations).
"""

from __future__ import annotations

from typing import Callable, Iterable

from .comment_schema import Comment, format_comment_id, utc_timestamp
from .errors import NotFoundError, ValidationError


def _validate_body(body: str) -> None:
    if not body:
        raise ValidationError("Comment body is required")


def _validate_range(start_line: int, end_line: int) -> None:
    if start_line < 1 or end_line < start_line:
        raise ValidationError(f"Invalid line range: {start_line}-{end_line}")


class CommentLedger:
    """
    Insertion-ordered comments with monotonic identities.

    Identities are never reused, even after deletion. Line ranges are not
    checked against the document length and may overlap freely.
    """

    def __init__(self, on_change: Callable[[], None] | None = None):
        """
        Initialize an empty ledger.

        Args:
            on_change: Called after every successful mutation
        """
        self._comments: list[Comment] = []
        self._next_id = 1
        self._on_change = on_change

    @property
    def next_id(self) -> int:
        """Numeric identity the next added comment will receive."""
        return self._next_id

    def __len__(self) -> int:
        return len(self._comments)

    def add(self, start_line: int, end_line: int, body: str) -> Comment:
        """
        Append a new comment.

        Raises:
            ValidationError: If body is empty or the range is invalid
        """
        _validate_body(body)
        _validate_range(start_line, end_line)

        now = utc_timestamp()
        comment = Comment(
            id=format_comment_id(self._next_id),
            start_line=start_line,
            end_line=end_line,
            body=body,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self._comments.append(comment)
        self._changed()
        return comment.model_copy()

    def update(self, comment_id: str, body: str) -> Comment:
        """
        Replace a comment's body and refresh its `updated_at`.

        Raises:
            NotFoundError: If no comment has this id
            ValidationError: If body is empty
        """
        index = self._index_of(comment_id)
        if index is None:
            raise NotFoundError(comment_id)
        _validate_body(body)

        updated = self._comments[index].model_copy(
            update={"body": body, "updated_at": utc_timestamp()}
        )
        self._comments[index] = updated
        self._changed()
        return updated.model_copy()

    def delete(self, comment_id: str) -> bool:
        """Remove a comment. Returns False if there was nothing to remove."""
        index = self._index_of(comment_id)
        if index is None:
            return False
        del self._comments[index]
        self._changed()
        return True

    def list(self) -> list[Comment]:
        """Copies of all comments, in insertion order."""
        return [c.model_copy() for c in self._comments]

    def restore(self, comments: Iterable[Comment], next_id: int) -> None:
        """
        Adopt comments from a resumed snapshot.

        Does not notify `on_change`: nothing has changed relative to disk.
        """
        self._comments = [c.model_copy() for c in comments]
        self._next_id = max(next_id, 1)

    def _index_of(self, comment_id: str) -> int | None:
        for i, comment in enumerate(self._comments):
            if comment.id == comment_id:
                return i
        return None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


__all__ = ["CommentLedger"]
