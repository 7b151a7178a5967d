"""Score gate: turn one model reply into a pass/fail result and a ledger entry.

    response ─▶ extract ─▶ threshold ─▶ cost ─▶ ledger update ─▶ result

run_gate() is pure. run_pipeline() wraps it with the only side effects in
the core: loading the prior snapshot from a store and saving the new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from prgate_core.config import GateConfig
from prgate_core.cost import compute_cost, round_usd
from prgate_core.errors import InvalidStateRecord
from prgate_core.extract import extract
from prgate_core.ledger import LedgerContext, StateRecord, update_state
from prgate_core.models import (
    STATUS_FAILED,
    STATUS_READY,
    STATUS_WARNING,
    VERDICT_REQUEST_CHANGES,
    ReviewFinding,
    ReviewOutcome,
)
from prgate_core.providers.base import ProviderResponse

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class GateResult:
    """The machine-checkable signal a CI job branches on."""

    timed_out: bool
    passed: bool
    status: str
    threshold: float
    score: float | None
    verdict: str
    model: str
    findings: list[ReviewFinding] = field(default_factory=list)
    cost_usd: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    warning: str | None = None

    def to_dict(self) -> dict:
        data = {
            "timedOut": self.timed_out,
            "passed": self.passed,
            "status": self.status,
            "threshold": self.threshold,
            "score": self.score,
            "verdict": self.verdict,
            "findings": [f.to_dict() for f in self.findings],
            "costUsd": round_usd(self.cost_usd),
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "model": self.model,
        }
        if self.warning is not None:
            data["warning"] = self.warning
        return data


@dataclass
class GateRun:
    result: GateResult
    state: StateRecord


def evaluate(response_text: str, threshold: float) -> tuple[ReviewOutcome, bool, str]:
    """Extract the review and decide whether it clears ``threshold``.

    An unparseable score never passes, and its verdict is forced to
    request-changes whatever verdict text the reply contained.
    """
    outcome = extract(response_text)
    if outcome.score is None:
        logger.warning("Model returned no parseable score — failing safely")
        outcome = ReviewOutcome(score=None, verdict=VERDICT_REQUEST_CHANGES, findings=outcome.findings)
        passed = False
    else:
        passed = outcome.score >= threshold
    return outcome, passed, STATUS_READY if passed else STATUS_FAILED


def run_gate(
    response: ProviderResponse | None,
    prior: StateRecord | None,
    gate: GateConfig,
    context: LedgerContext,
) -> GateRun:
    """Run one gate iteration. ``response=None`` means the provider timed out.

    The timeout path fails open: the run is recorded with status "warning" and
    the result passes, so provider outages never block a pull request.
    """
    if response is None:
        outcome = ReviewOutcome.timeout()
        state = update_state(prior, outcome, STATUS_WARNING, 0, 0, 0, context)
        result = GateResult(
            timed_out=True,
            passed=True,
            status=STATUS_WARNING,
            threshold=gate.score_threshold,
            score=None,
            verdict=outcome.verdict,
            model=gate.model,
            warning=f"Review timed out after {gate.timeout_seconds} seconds; failing open.",
        )
        return GateRun(result=result, state=state)

    outcome, passed, status = evaluate(response.text, gate.score_threshold)
    cost_usd = compute_cost(
        response.input_tokens,
        response.output_tokens,
        gate.input_cost_per_mtokens,
        gate.output_cost_per_mtokens,
    )
    state = update_state(prior, outcome, status, cost_usd, response.input_tokens, response.output_tokens, context)
    result = GateResult(
        timed_out=False,
        passed=passed,
        status=status,
        threshold=gate.score_threshold,
        score=outcome.score,
        verdict=outcome.verdict,
        model=gate.model,
        findings=list(outcome.findings),
        cost_usd=cost_usd,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
    )
    return GateRun(result=result, state=state)


def load_prior_state(store, state_id: str) -> StateRecord | None:
    """Read the prior snapshot; a corrupt one is treated as absent."""
    snapshot = store.load(state_id)
    if snapshot is None:
        return None
    try:
        return StateRecord.from_dict(snapshot)
    except InvalidStateRecord as e:
        logger.warning("Ignoring invalid state %s and starting a fresh record: %s", state_id, e)
        return None


def run_pipeline(
    response: ProviderResponse | None,
    store,
    gate: GateConfig,
    context: LedgerContext,
) -> GateRun:
    """Load the prior state, run the gate, persist the new state.

    Runs against the same state must be serialized by the caller (one CI job
    per pull request at a time).
    """
    prior = load_prior_state(store, context.state_id)
    run = run_gate(response, prior, gate, context)
    store.save(context.state_id, run.state.to_dict())
    logger.info(
        "State %s now at iteration %d (status=%s, total cost $%.6f)",
        run.state.id,
        run.state.iteration,
        run.state.status,
        run.state.cost.total,
    )
    return run
