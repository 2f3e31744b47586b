"""
Comment and snapshot models for review sessions.

Pydantic models for the `.<file>.comments.json` sidecar schema.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from pydantic import BaseModel, Field

_COMMENT_ID_RE = re.compile(r"^c(\d+)$")


def utc_timestamp() -> str:
    """Current time as an RFC 3339 UTC string with second precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_comment_id(number: int) -> str:
    """Render a numeric comment identity as its on-disk id."""
    return f"c{number}"


def parse_comment_id(comment_id: str) -> int | None:
    """
    Recover the numeric identity from an on-disk comment id.

    Returns:
        The number for ids shaped like "c12", None for anything else
    """
    match = _COMMENT_ID_RE.match(comment_id)
    if match is None:
        return None
    return int(match.group(1))


class Comment(BaseModel):
    """A line-range comment on the reviewed document."""

    id: str
    start_line: int
    end_line: int
    body: str
    created_at: str
    updated_at: str


class SessionSnapshot(BaseModel):
    """
    Persisted state of a review session.

    Only resumable when `file_hash` matches the fingerprint of the source
    being reviewed now.
    """

    file: str
    file_hash: str
    updated_at: str
    next_id: int | None = None
    comments: list[Comment] = Field(default_factory=list)

    def resume_next_id(self) -> int:
        """
        Next comment identity to allocate when resuming this snapshot.

        Snapshots written without `next_id` fall back to the highest
        numeric id suffix seen.
        """
        highest = 0
        for comment in self.comments:
            number = parse_comment_id(comment.id)
            if number is not None and number > highest:
                highest = number
        return max(self.next_id or 1, highest + 1)


__all__ = [
    "Comment",
    "SessionSnapshot",
    "format_comment_id",
    "parse_comment_id",
    "utc_timestamp",
]
