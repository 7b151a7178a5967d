from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def truncate_diff(raw: bytes, max_bytes: int) -> tuple[str, bool]:
    """Cut a diff to at most ``max_bytes`` bytes and decode it as UTF-8.

    A multi-byte character split by the cut is dropped, as are any invalid
    sequences already present; valid characters ending exactly on the
    boundary are kept. Returns the text and whether truncation happened.
    """
    truncated = len(raw) > max_bytes
    if truncated:
        logger.warning("Diff truncated from %d to %d bytes", len(raw), max_bytes)
    return raw[:max_bytes].decode("utf-8", errors="ignore"), truncated
