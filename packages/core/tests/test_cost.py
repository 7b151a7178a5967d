"""Tests for token cost arithmetic."""

import pytest

from prgate_core.cost import compute_cost, round_usd


def test_default_rates():
    # 10k in at $15/M, 2k out at $75/M
    assert compute_cost(10_000, 2_000, 15, 75) == pytest.approx(0.15 + 0.15)


def test_zero_tokens_cost_nothing():
    assert compute_cost(0, 0, 15, 75) == 0


def test_not_rounded():
    assert compute_cost(1, 1, 15, 75) == pytest.approx(0.00009)
    assert compute_cost(1, 0, 1.234567, 0) == pytest.approx(1.234567e-6)


def test_round_usd_six_places():
    assert round_usd(0.1234564) == 0.123456
    assert round_usd(0.1234566) == 0.123457
