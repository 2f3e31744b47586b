"""Render comments into the source text as quoted review blocks."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from .comment_schema import Comment


def format_line_range(start_line: int, end_line: int) -> str:
    """'Line 4' for single lines, 'Lines 2-5' for ranges."""
    if start_line == end_line:
        return f"Line {start_line}"
    return f"Lines {start_line}-{end_line}"


def format_comment_block(comment: Comment) -> list[str]:
    """
    Quote one comment as markdown lines.

    The first body line follows the label; further body lines become
    continuation lines of the same quote.
    """
    label = f"**[REVIEW COMMENT — {format_line_range(comment.start_line, comment.end_line)}]**"
    first, *rest = comment.body.split("\n")
    block = [f"> {label}: {first}"]
    for line in rest:
        block.append(f"> {line}" if line else ">")
    return block


def _group_by_anchor(comments: Iterable[Comment]) -> dict[int, list[Comment]]:
    grouped: dict[int, list[Comment]] = defaultdict(list)
    for comment in comments:
        grouped[comment.end_line].append(comment)
    # sorted() is stable, so equal start lines keep insertion order
    return {anchor: sorted(group, key=lambda c: c.start_line) for anchor, group in grouped.items()}


def render_review(content: str, comments: Iterable[Comment]) -> str:
    """
    Interleave comments into the original content.

    Each comment is emitted after its anchor line (its `end_line`). Comments
    sharing an anchor are ordered by `start_line`, then insertion order.
    Comments anchored past the last line follow the final line.

    Args:
        content: Original document text
        comments: Comments in insertion order

    Returns:
        Annotated text; byte-identical for identical inputs
    """
    lines = content.split("\n")
    trailing_newline = content.endswith("\n")
    if trailing_newline:
        lines.pop()

    by_anchor = _group_by_anchor(comments)
    out: list[str] = []

    def emit(group: list[Comment]) -> None:
        for comment in group:
            out.append("")
            out.extend(format_comment_block(comment))
            out.append("")

    for number, line in enumerate(lines, start=1):
        out.append(line)
        if number in by_anchor:
            emit(by_anchor.pop(number))

    for anchor in sorted(by_anchor):
        emit(by_anchor[anchor])

    rendered = "\n".join(out)
    if trailing_newline:
        rendered += "\n"
    return rendered


__all__ = ["format_comment_block", "format_line_range", "render_review"]
