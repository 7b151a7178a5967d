"""Compose extraction and comment classification into one normalized review."""

from __future__ import annotations

from prgate_core.comments import DEFAULT_IDENTITY, classify
from prgate_core.errors import InputError
from prgate_core.extract import extract
from prgate_core.models import Comment, NormalizedReview


def coerce_comments(raw_comments) -> list[Comment]:
    """Convert a raw comment collection into Comment objects.

    A single object is treated as a one-element list. Missing fields inside a
    comment are defaulted; a collection that is not a list of objects raises
    InputError.
    """
    if isinstance(raw_comments, dict):
        raw_comments = [raw_comments]
    if not isinstance(raw_comments, (list, tuple)):
        raise InputError(f"Comments must be a list of objects, got {type(raw_comments).__name__}")

    comments = []
    for index, raw in enumerate(raw_comments):
        if isinstance(raw, Comment):
            comments.append(raw)
            continue
        if not isinstance(raw, dict):
            raise InputError(f"Comment #{index} is not an object: {type(raw).__name__}")
        comments.append(Comment.from_raw(raw))
    return comments


def normalize(
    iteration: int,
    response_text: str,
    comments,
    identity: str = DEFAULT_IDENTITY,
) -> NormalizedReview:
    if isinstance(iteration, bool) or not isinstance(iteration, int) or iteration < 1:
        raise InputError(f"Iteration must be a positive integer, got {iteration!r}")

    filtered, status = classify(coerce_comments(comments), identity)
    return NormalizedReview(
        iteration=iteration,
        opus=extract(response_text),
        comments=filtered,
        comment_status=status,
    )
