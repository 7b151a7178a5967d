"""Token cost arithmetic.

compute_cost() never rounds; values are rounded once, with round_usd(), at
the point they are persisted.
"""

from __future__ import annotations

USD_PRECISION = 6


def compute_cost(tokens_in: int, tokens_out: int, rate_in_per_million: float, rate_out_per_million: float) -> float:
    return (tokens_in / 1_000_000) * rate_in_per_million + (tokens_out / 1_000_000) * rate_out_per_million


def round_usd(value: float) -> float:
    return round(value, USD_PRECISION)
