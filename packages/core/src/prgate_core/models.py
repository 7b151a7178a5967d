"""Review data models shared by the extractor, classifier and pipeline.

Serialized dicts use the camelCase keys of the on-disk state format so that
records written by earlier CI runs stay readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SEVERITIES = ("low", "medium", "high")
VERDICTS = ("approve", "request-changes", "reject", "timeout")

VERDICT_REQUEST_CHANGES = "request-changes"
VERDICT_TIMEOUT = "timeout"

COMMENT_STATUSES = ("approved", "changes_requested", "pending")

# Gate outcomes persisted on the state record.
STATUS_PENDING = "pending"
STATUS_WARNING = "warning"
STATUS_FAILED = "failed"
STATUS_READY = "ready"


@dataclass(frozen=True)
class ReviewFinding:
    """One issue reported by the reviewer model."""

    severity: str
    issue: str
    file: str | None = None
    line: int | None = None
    fix: str | None = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "issue": self.issue,
            "fix": self.fix,
        }


@dataclass
class ReviewOutcome:
    """Canonical ``{score, verdict, findings}`` triple.

    ``score`` is None when the response carried no parseable score; that state
    is kept distinct from a score of 0.
    """

    score: float | None
    verdict: str = VERDICT_REQUEST_CHANGES
    findings: list[ReviewFinding] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "findings": [f.to_dict() for f in self.findings],
            "verdict": self.verdict,
        }

    @classmethod
    def timeout(cls) -> ReviewOutcome:
        """Sentinel outcome recorded when the provider timed out."""
        return cls(score=None, verdict=VERDICT_TIMEOUT, findings=[])


@dataclass(frozen=True)
class Comment:
    """A review comment left on the pull request by another bot or user."""

    id: int | str | None
    author: str
    created_at: str | None
    url: str | None
    body: str

    @classmethod
    def from_raw(cls, raw: dict) -> Comment:
        """Build a Comment from the GitHub REST shape, defaulting missing fields.

        Also accepts an already-normalized comment dict (``author`` instead of
        ``user.login``) so normalized output can be classified again.
        """
        user = raw.get("user")
        author = user.get("login") if isinstance(user, dict) else None
        if author is None:
            author = raw.get("author")
        body = raw.get("body")
        return cls(
            id=raw.get("id"),
            author=author if isinstance(author, str) and author else "unknown",
            created_at=raw.get("created_at", raw.get("createdAt")),
            url=raw.get("html_url", raw.get("url")),
            body=body if isinstance(body, str) else "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "createdAt": self.created_at,
            "url": self.url,
            "body": self.body,
        }


@dataclass
class NormalizedReview:
    """One iteration's review merged with the second bot's comments."""

    iteration: int
    opus: ReviewOutcome
    comments: list[Comment] = field(default_factory=list)
    comment_status: str = "pending"

    def to_dict(self) -> dict:
        return {
            "iteration": self.iteration,
            "opus": self.opus.to_dict(),
            "greptile": {
                "comments": [c.to_dict() for c in self.comments],
                "status": self.comment_status,
            },
        }
