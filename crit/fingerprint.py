"""Content fingerprints used to detect source changes across sessions."""

from __future__ import annotations

import hashlib

FINGERPRINT_PREFIX = "sha256:"


def fingerprint(data: bytes) -> str:
    """
    Compute the fingerprint of raw document bytes.

    Args:
        data: Source file contents, exactly as read from disk

    Returns:
        "sha256:" followed by the hex digest
    """
    return FINGERPRINT_PREFIX + hashlib.sha256(data).hexdigest()


__all__ = ["FINGERPRINT_PREFIX", "fingerprint"]
