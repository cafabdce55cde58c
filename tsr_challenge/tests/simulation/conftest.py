"""Shared test fixtures for simulation tests."""
import numpy as np
import pytest

from tsr_challenge.calculators.financial_model import FinancialModel
from tsr_challenge.calculators.results_generator import ResultsGenerator
from tsr_challenge.core.baseline import BASELINE_SHARE_PRICE, create_initial_metrics
from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.config import FinanceConfig
from tsr_challenge.core.decisions import DEFAULT_DECISION_ROWS
from tsr_challenge.core.types import Decision, RiskyEventState, TeamDecision, TeamState


@pytest.fixture
def catalog():
    """Built-in decision catalog."""
    return DecisionCatalog(Decision.from_dict(row) for row in DEFAULT_DECISION_ROWS)


@pytest.fixture
def finance_config():
    """Finance config with default coefficients and no volume drift."""
    config = FinanceConfig()
    config.volume_drift = 0.0
    config.tax_rate = 0.22
    config.wacc = 0.08
    return config


@pytest.fixture
def financial_model(catalog, finance_config):
    return FinancialModel(catalog, finance_config)


@pytest.fixture
def results_generator(catalog, financial_model, finance_config):
    return ResultsGenerator(catalog, financial_model, finance_config)


@pytest.fixture
def baseline_metrics():
    return create_initial_metrics(0.22)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def make_team_decision(catalog):
    """Factory for a TeamDecision priced from the catalog."""
    def _make(decision_id, round_number=1):
        decision = catalog.decision_by_id(decision_id)
        return TeamDecision(
            decision_id=decision_id, round=round_number, category=decision.category, actual_cost=decision.cost,
        )
    return _make


@pytest.fixture
def make_team():
    """Factory for a claimed TeamState at baseline."""
    def _make(team_id, cumulative_tsr=0.0, stock_price=BASELINE_SHARE_PRICE, name=None):
        return TeamState(
            team_id=team_id,
            metrics=create_initial_metrics(0.22),
            cash_balance=1200.0,
            stock_price=stock_price,
            team_name=name or f"Team {team_id}",
            is_claimed=True,
            cumulative_tsr=cumulative_tsr,
        )
    return _make


@pytest.fixture
def risky_state():
    """Risky state where the first risky decision (ev_investment) is destined to fail."""
    return RiskyEventState(active_event_index=0)
