"""Turn a raw model reply into a ReviewOutcome.

Model replies are untrusted and inconsistently formatted. Extraction tries an
ordered list of strategies, most confident first, and the first one that
returns an outcome wins:

    _parse_direct   — the whole reply is a JSON object
    _parse_fenced   — a JSON object inside ``` fences
    _parse_prose    — regex heuristics over free text (always succeeds)

extract() never raises.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Callable

from prgate_core.models import VERDICT_REQUEST_CHANGES, ReviewFinding, ReviewOutcome

logger = logging.getLogger(__name__)

# First number following the word "score" on the same line. Known to be
# imprecise when the prose mentions several scores; the JSON strategies run first.
_SCORE_RE = re.compile(r"score[^0-9\n]*([0-9]+(?:\.[0-9]+)?)", re.IGNORECASE)
_VERDICT_RE = re.compile(r"\b(approve|request-changes|reject)\b")
_BULLET_RE = re.compile(r"^[-*]\s+(.+)$")
_FENCE_PREFIX = "```"

_PROSE_VERDICTS = ("approve", "request-changes", "reject")

_SEVERITY_ALIASES = {
    "low": "low",
    "minor": "low",
    "nitpick": "low",
    "info": "low",
    "medium": "medium",
    "moderate": "medium",
    "high": "high",
    "major": "high",
    "critical": "high",
}


def _finite(value) -> float | None:
    try:
        return value if math.isfinite(value) else None
    except OverflowError:
        return None


def _coerce_score(value) -> float | None:
    # bool is an int subclass; true/false is never a score.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(value)
    if isinstance(value, str):
        try:
            return _finite(float(value.strip()))
        except ValueError:
            return None
    return None


def _coerce_verdict(value) -> str:
    if not isinstance(value, str):
        return VERDICT_REQUEST_CHANGES
    verdict = value.strip().lower().replace("_", "-").replace(" ", "-")
    if verdict in _PROSE_VERDICTS:
        return verdict
    return VERDICT_REQUEST_CHANGES


def _coerce_line(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _optional_str(value) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _coerce_finding(item) -> ReviewFinding | None:
    if isinstance(item, str):
        return ReviewFinding(severity="medium", issue=item)
    if not isinstance(item, dict):
        return None
    severity = item.get("severity")
    severity = _SEVERITY_ALIASES.get(severity.strip().lower(), "medium") if isinstance(severity, str) else "medium"
    issue = item.get("issue")
    if issue is None:
        issue = item.get("comment", "")
    return ReviewFinding(
        severity=severity,
        issue=issue if isinstance(issue, str) else str(issue),
        file=_optional_str(item.get("file")),
        line=_coerce_line(item.get("line")),
        fix=_optional_str(item.get("fix")),
    )


def _outcome_from_record(record: dict) -> ReviewOutcome:
    raw_findings = record.get("findings")
    if not isinstance(raw_findings, list):
        raw_findings = []
    findings = [f for f in (_coerce_finding(item) for item in raw_findings) if f is not None]
    return ReviewOutcome(
        score=_coerce_score(record.get("score")),
        verdict=_coerce_verdict(record.get("verdict")),
        findings=findings,
    )


def _reject_constant(name: str) -> None:
    # NaN, Infinity and -Infinity are read as null.
    return None


def _load_object(text: str) -> dict | None:
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _parse_direct(text: str) -> ReviewOutcome | None:
    record = _load_object(text)
    if record is None:
        return None
    return _outcome_from_record(record)


def strip_fences(text: str) -> str:
    """Return only the lines enclosed by ``` fence lines, fences removed."""
    inside = False
    kept: list[str] = []
    for line in text.splitlines():
        if line.startswith(_FENCE_PREFIX):
            inside = not inside
            continue
        if inside:
            kept.append(line)
    return "\n".join(kept)


def _parse_fenced(text: str) -> ReviewOutcome | None:
    interior = strip_fences(text)
    if not interior.strip():
        return None
    return _parse_direct(interior)


def _parse_prose(text: str) -> ReviewOutcome:
    score_match = _SCORE_RE.search(text)
    verdict_match = _VERDICT_RE.search(text.lower())

    findings = []
    for line in text.splitlines():
        match = _BULLET_RE.match(line.rstrip())
        if match:
            findings.append(ReviewFinding(severity="medium", issue=match.group(1)))

    return ReviewOutcome(
        score=_coerce_score(score_match.group(1)) if score_match else None,
        verdict=verdict_match.group(1) if verdict_match else VERDICT_REQUEST_CHANGES,
        findings=findings,
    )


Strategy = Callable[[str], "ReviewOutcome | None"]

# The last strategy must always return an outcome.
STRATEGIES: tuple[Strategy, ...] = (_parse_direct, _parse_fenced, _parse_prose)


def extract(response_text: str) -> ReviewOutcome:
    """Extract a ReviewOutcome from a model reply using the first strategy that succeeds."""
    for strategy in STRATEGIES[:-1]:
        outcome = strategy(response_text)
        if outcome is not None:
            logger.debug("Review extracted by %s", strategy.__name__)
            return outcome
    logger.debug("No JSON review found; falling back to prose heuristics")
    return _parse_prose(response_text)
