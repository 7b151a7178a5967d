"""Filter bot review comments and derive a coarse review status from them."""

from __future__ import annotations

import re
from typing import Sequence

from prgate_core.models import Comment

DEFAULT_IDENTITY = "greptile"

_CHANGES_RE = re.compile(r"changes requested|request changes|request-changes", re.IGNORECASE)
_APPROVED_RE = re.compile(r"approved|lgtm", re.IGNORECASE)


def _is_from_reviewer(comment: Comment, identity: str) -> bool:
    needle = identity.lower()
    return needle in comment.author.lower() or needle in comment.body.lower()


def comment_status(comments: Sequence[Comment]) -> str:
    """Return approved / changes_requested / pending for an already-filtered comment set.

    Any non-empty set that does not clearly approve counts as changes_requested.
    """
    if any(_CHANGES_RE.search(c.body) for c in comments):
        return "changes_requested"
    if any(_APPROVED_RE.search(c.body) for c in comments):
        return "approved"
    if not comments:
        return "pending"
    return "changes_requested"


def classify(comments: Sequence[Comment], identity: str = DEFAULT_IDENTITY) -> tuple[list[Comment], str]:
    """Keep comments whose author or body mentions ``identity`` and derive their status."""
    filtered = [c for c in comments if _is_from_reviewer(c, identity)]
    return filtered, comment_status(filtered)
