"""Append-only review ledger.

A StateRecord accumulates every gate run for one pull request: the review
history, the cumulative cost, and a per-call cost audit trail. update_state()
is a value-to-value transformation — the prior snapshot is never mutated and
the caller persists the returned one.

Invariants kept by update_state():
  - ``reviews`` and ``cost.reviews`` only grow, one entry per call
  - ``cost.total == cost.opus + cost.codex``
  - ``id``, ``task`` and ``startedAt`` are set on creation and never change
  - ``updatedAt`` never moves backwards
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from prgate_core.cost import round_usd
from prgate_core.errors import InvalidStateRecord
from prgate_core.models import ReviewOutcome

logger = logging.getLogger(__name__)

DEFAULT_TASK = "CI Opus PR review"

_RECORD_KEYS = {
    "id",
    "task",
    "repo",
    "prNumber",
    "iteration",
    "maxIterations",
    "status",
    "reviews",
    "startedAt",
    "updatedAt",
    "cost",
}
_COST_KEYS = {"codex", "opus", "total", "breakdown", "reviews"}


def default_state_id(pr_number: int) -> str:
    return f"ci-opus-pr-{pr_number}"


@dataclass(frozen=True)
class LedgerContext:
    """Identity and bookkeeping for one ledger update."""

    state_id: str
    pr_number: int
    model: str
    timestamp: str  # ISO-8601 UTC, e.g. 2026-01-31T12:00:00Z
    task: str = DEFAULT_TASK
    repo: str | None = None
    provider: str = "anthropic"


@dataclass
class CostEntry:
    tokens: int = 0
    cost_usd: float = 0.0

    def to_dict(self) -> dict:
        return {"tokens": self.tokens, "costUsd": self.cost_usd}


@dataclass
class CostBlock:
    codex: float = 0.0
    opus: float = 0.0
    total: float = 0.0
    breakdown: dict[str, CostEntry] = field(default_factory=dict)
    reviews: list[dict] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "codex": self.codex,
            "opus": self.opus,
            "total": self.total,
            "breakdown": {name: entry.to_dict() for name, entry in self.breakdown.items()},
            "reviews": list(self.reviews),
        }


@dataclass
class StateRecord:
    id: str
    task: str
    iteration: int
    max_iterations: int
    status: str
    started_at: str
    updated_at: str
    reviews: list[dict] = field(default_factory=list)
    cost: CostBlock = field(default_factory=CostBlock)
    repo: str | None = None
    pr_number: int | None = None
    # Keys written by other tools; carried through untouched.
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {**self.extra, "id": self.id, "task": self.task}
        if self.repo is not None:
            data["repo"] = self.repo
        if self.pr_number is not None:
            data["prNumber"] = self.pr_number
        data.update(
            {
                "iteration": self.iteration,
                "maxIterations": self.max_iterations,
                "status": self.status,
                "reviews": list(self.reviews),
                "startedAt": self.started_at,
                "updatedAt": self.updated_at,
                "cost": self.cost.to_dict(),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data) -> StateRecord:
        """Read a persisted snapshot, filling absent fields with their defaults.

        Raises InvalidStateRecord when the snapshot is structurally unusable.
        """
        if not isinstance(data, dict):
            raise InvalidStateRecord(f"State must be a JSON object, got {type(data).__name__}")

        reviews = data.get("reviews")
        if reviews is None:
            reviews = []
        elif not isinstance(reviews, list):
            raise InvalidStateRecord("State field 'reviews' must be a list")

        return cls(
            id=_str_field(data, "id"),
            task=_str_field(data, "task"),
            iteration=_int_field(data, "iteration", 1),
            max_iterations=_int_field(data, "maxIterations", 1),
            status=_str_field(data, "status") or "pending",
            started_at=_str_field(data, "startedAt"),
            updated_at=_str_field(data, "updatedAt"),
            reviews=list(reviews),
            cost=_cost_from_dict(data.get("cost")),
            repo=data.get("repo"),
            pr_number=data.get("prNumber"),
            extra={k: v for k, v in data.items() if k not in _RECORD_KEYS},
        )


def _str_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidStateRecord(f"State field {key!r} must be a string")
    return value


def _number(value, key: str) -> float:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidStateRecord(f"State field {key!r} must be a number")
    return value


def _int_field(data: dict, key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidStateRecord(f"State field {key!r} must be an integer")
    return value


def _cost_from_dict(data) -> CostBlock:
    if data is None:
        return CostBlock()
    if not isinstance(data, dict):
        raise InvalidStateRecord("State field 'cost' must be an object")

    breakdown_data = data.get("breakdown")
    if breakdown_data is None:
        breakdown_data = {}
    elif not isinstance(breakdown_data, dict):
        raise InvalidStateRecord("State field 'cost.breakdown' must be an object")
    breakdown = {}
    for name, entry in breakdown_data.items():
        if not isinstance(entry, dict):
            raise InvalidStateRecord(f"State field 'cost.breakdown.{name}' must be an object")
        breakdown[name] = CostEntry(
            tokens=_number(entry.get("tokens"), f"cost.breakdown.{name}.tokens"),
            cost_usd=_number(entry.get("costUsd"), f"cost.breakdown.{name}.costUsd"),
        )

    audit = data.get("reviews")
    if audit is None:
        audit = []
    elif not isinstance(audit, list):
        raise InvalidStateRecord("State field 'cost.reviews' must be a list")

    return CostBlock(
        codex=_number(data.get("codex"), "cost.codex"),
        opus=_number(data.get("opus"), "cost.opus"),
        total=_number(data.get("total"), "cost.total"),
        breakdown=breakdown,
        reviews=list(audit),
        extra={k: v for k, v in data.items() if k not in _COST_KEYS},
    )


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def _later(previous: str, current: str) -> str:
    """Return whichever timestamp is later, preferring ``current`` when they cannot be compared."""
    prev_dt = _parse_timestamp(previous)
    curr_dt = _parse_timestamp(current)
    if prev_dt is None or curr_dt is None:
        return current
    try:
        return previous if prev_dt > curr_dt else current
    except TypeError:
        # naive vs aware
        return current


def _audit_entry(
    outcome: ReviewOutcome,
    status: str,
    cost_usd: float,
    tokens_in: int,
    tokens_out: int,
    context: LedgerContext,
) -> dict:
    return {
        "provider": context.provider,
        "model": context.model,
        "prNumber": context.pr_number,
        "score": outcome.score,
        "status": status,
        "inputTokens": tokens_in,
        "outputTokens": tokens_out,
        "costUsd": round_usd(cost_usd),
        "reviewedAt": context.timestamp,
    }


def _new_state(
    outcome: ReviewOutcome,
    status: str,
    cost_usd: float,
    tokens_in: int,
    tokens_out: int,
    context: LedgerContext,
) -> StateRecord:
    cost = round_usd(cost_usd)
    return StateRecord(
        id=context.state_id,
        task=context.task,
        repo=context.repo,
        pr_number=context.pr_number,
        iteration=1,
        max_iterations=1,
        status=status,
        reviews=[{"iteration": 1, "opus": outcome.to_dict()}],
        started_at=context.timestamp,
        updated_at=context.timestamp,
        cost=CostBlock(
            codex=0,
            opus=cost,
            total=cost,
            breakdown={"opus": CostEntry(tokens=tokens_in + tokens_out, cost_usd=cost)},
            reviews=[_audit_entry(outcome, status, cost_usd, tokens_in, tokens_out, context)],
        ),
    )


def update_state(
    prior: StateRecord | None,
    outcome: ReviewOutcome,
    status: str,
    cost_usd: float,
    tokens_in: int,
    tokens_out: int,
    context: LedgerContext,
) -> StateRecord:
    """Return a new StateRecord with this review appended.

    ``status`` is persisted verbatim. Not idempotent: every call appends, so
    the caller must invoke it at most once per review event.
    """
    if prior is None:
        return _new_state(outcome, status, cost_usd, tokens_in, tokens_out, context)

    iteration = len(prior.reviews) + 1
    prior_opus = prior.cost.breakdown.get("opus", CostEntry())
    opus_total = round_usd(prior.cost.opus + cost_usd)

    cost = CostBlock(
        codex=prior.cost.codex,
        opus=opus_total,
        total=round_usd(opus_total + prior.cost.codex),
        breakdown={
            **prior.cost.breakdown,
            "opus": CostEntry(
                tokens=prior_opus.tokens + tokens_in + tokens_out,
                cost_usd=round_usd(prior_opus.cost_usd + cost_usd),
            ),
        },
        reviews=[*prior.cost.reviews, _audit_entry(outcome, status, cost_usd, tokens_in, tokens_out, context)],
        extra=dict(prior.cost.extra),
    )

    logger.debug("Appending iteration %d to state %s", iteration, prior.id or context.state_id)
    return StateRecord(
        id=prior.id or context.state_id,
        task=prior.task or context.task,
        repo=prior.repo if prior.repo is not None else context.repo,
        pr_number=prior.pr_number if prior.pr_number is not None else context.pr_number,
        iteration=iteration,
        max_iterations=prior.max_iterations,
        status=status,
        reviews=[*prior.reviews, {"iteration": iteration, "opus": outcome.to_dict()}],
        started_at=prior.started_at or context.timestamp,
        updated_at=_later(prior.updated_at, context.timestamp) if prior.updated_at else context.timestamp,
        cost=cost,
        extra=dict(prior.extra),
    )
