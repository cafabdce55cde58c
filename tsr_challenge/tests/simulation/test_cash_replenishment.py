"""Tests for CashReplenishment."""
import numpy as np
from unittest.mock import Mock

from tsr_challenge.calculators.cash_replenishment import CashReplenishment
from tsr_challenge.core.config import CashReplenishmentConfig


def midpoint_rng():
    rng = Mock()
    rng.uniform.side_effect = lambda low, high: (low + high) / 2
    return rng


class TestCashReplenishment:
    """Test suite for CashReplenishment."""

    def test_no_spend_stays_near_base(self, rng):
        replenishment = CashReplenishment(CashReplenishmentConfig(), rng)
        for _ in range(50):
            cash = replenishment.next_cash([])
            assert 1140 <= cash <= 1260

    def test_category_returns_at_midpoint(self, make_team_decision):
        replenishment = CashReplenishment(CashReplenishmentConfig(), midpoint_rng())

        assert replenishment.next_cash([make_team_decision('expand_capacity')]) == 1300
        assert replenishment.next_cash([make_team_decision('automation_upgrade')]) == 1234
        assert replenishment.next_cash([make_team_decision('maintenance_overhaul')]) == 1195

    def test_result_is_clamped(self, make_team_decision):
        generous = CashReplenishmentConfig(base_cash=5000)
        stingy = CashReplenishmentConfig(base_cash=0)

        assert CashReplenishment(generous, midpoint_rng()).next_cash([]) == 1600
        assert CashReplenishment(stingy, midpoint_rng()).next_cash([]) == 800

    def test_bounded_across_random_draws(self, make_team_decision):
        replenishment = CashReplenishment(CashReplenishmentConfig(), np.random.default_rng(5))
        spend = [make_team_decision('expand_capacity'), make_team_decision('ev_investment')]
        values = [replenishment.next_cash(spend) for _ in range(200)]

        assert min(values) >= 800
        assert max(values) <= 1600
        assert len(set(values)) > 1
