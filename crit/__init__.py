"""crit: line-range review comments for a single file.

A review session loads one file, accepts comments on line ranges, and keeps
two artifacts next to it up to date:

- `.<file>.comments.json`: resumable snapshot, tied to the file's fingerprint
- `<stem>.review<suffix>`: the file with comments quoted after their lines
"""

__version__ = "0.1.0"

from .comment_ledger import CommentLedger
from .comment_schema import Comment, SessionSnapshot
from .config import CritConfig
from .document import STALE_NOTICE, ReviewDocument
from .errors import CritError, NotFoundError, PersistenceIOError, ValidationError
from .fingerprint import fingerprint
from .persistence import PersistenceEngine
from .review_renderer import render_review
from .session import ReviewSession

__all__ = [
    "STALE_NOTICE",
    "Comment",
    "CommentLedger",
    "CritConfig",
    "CritError",
    "NotFoundError",
    "PersistenceEngine",
    "PersistenceIOError",
    "ReviewDocument",
    "ReviewSession",
    "SessionSnapshot",
    "ValidationError",
    "fingerprint",
    "render_review",
]
