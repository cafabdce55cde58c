"""Tests for FinancialModel."""
import dataclasses

import pytest

from tsr_challenge.calculators.financial_model import FinancialModel
from tsr_challenge.core.baseline import BASELINE_CAPEX_TO_REVENUE, BASELINE_FINANCIALS, BASELINE_SHARE_PRICE
from tsr_challenge.core.scenarios import NEUTRAL_MODIFIERS, create_scenario_state
from tsr_challenge.core.types import TeamDecision


class TestFinancialModel:
    """Test suite for FinancialModel."""

    def test_no_decisions_reprices_to_baseline(self, financial_model, baseline_metrics):
        """An idle company keeps its statement and its share price."""
        result = financial_model.apply_round(baseline_metrics, [], NEUTRAL_MODIFIERS, {}, current_round=1)

        assert result.revenue == pytest.approx(BASELINE_FINANCIALS['revenue'])
        assert result.cogs == pytest.approx(BASELINE_FINANCIALS['cogs'])
        assert result.ebitda == pytest.approx(BASELINE_FINANCIALS['ebitda'])
        assert result.ebit == pytest.approx(BASELINE_FINANCIALS['ebit'])
        assert result.npv == pytest.approx(BASELINE_FINANCIALS['npv'])
        assert result.share_price == pytest.approx(BASELINE_SHARE_PRICE)
        assert result.beginning_cash == pytest.approx(baseline_metrics.ending_cash)

    def test_volume_drift_moves_revenue_and_cogs(self, catalog, finance_config, baseline_metrics):
        finance_config.volume_drift = 0.01
        model = FinancialModel(catalog, finance_config)
        result = model.apply_round(baseline_metrics, [], NEUTRAL_MODIFIERS, {}, current_round=1)

        assert result.revenue == pytest.approx(BASELINE_FINANCIALS['revenue'] * 1.01)
        assert result.cogs == pytest.approx(BASELINE_FINANCIALS['cogs'] * 1.01)
        assert result.sga == pytest.approx(BASELINE_FINANCIALS['sga'])

    def test_ratios_follow_fields(self, financial_model, baseline_metrics, make_team_decision):
        decisions = [make_team_decision('expand_capacity'), make_team_decision('lean_manufacturing')]
        result = financial_model.apply_round(baseline_metrics, decisions, NEUTRAL_MODIFIERS, {}, current_round=1)

        assert result.ebitda_margin == pytest.approx(result.ebitda / result.revenue)
        assert result.ebit_margin == pytest.approx(result.ebit / result.revenue)
        assert result.roic == pytest.approx(result.ebit * (1 - 0.22) / result.invested_capital)
        assert result.cogs_to_revenue == pytest.approx(abs(result.cogs) / result.revenue)
        assert result.capex_to_revenue == pytest.approx(abs(result.capex) / result.revenue)
        assert result.to_dict()['ebitda_margin'] == result.ebitda_margin

    def test_cost_pressure_reduces_grow_revenue_impact_by_thirty_percent(self, financial_model, make_team_decision):
        decision = make_team_decision('expand_capacity', round_number=3)
        neutral = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=3)
        pressured = financial_model.aggregate_impacts(
            [decision], create_scenario_state(3).modifiers, {}, current_round=3,
        )

        assert pressured.revenue == pytest.approx(neutral.revenue * 0.7)
        assert (neutral.revenue - pressured.revenue) / neutral.revenue == pytest.approx(0.3)

    def test_ramp_and_duration(self, financial_model):
        # expand_capacity: magnitude 4 (1.2), ramp 2, duration 5
        assert financial_model.contribution_factor('expand_capacity', 1) == pytest.approx(0.6)
        assert financial_model.contribution_factor('expand_capacity', 2) == pytest.approx(1.2)
        assert financial_model.contribution_factor('expand_capacity', 5) == pytest.approx(1.2)
        assert financial_model.contribution_factor('expand_capacity', 6) == 0.0
        assert financial_model.contribution_factor('expand_capacity', 0) == 0.0

    def test_expired_decision_stops_contributing(self, financial_model, make_team_decision):
        # cybersecurity_hardening lasts 3 years
        decision = make_team_decision('cybersecurity_hardening', round_number=1)
        active = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=3)
        expired = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=4)

        assert active.recurring_benefit > 0
        assert expired.recurring_benefit == 0
        assert expired.active_decisions == 0

    def test_one_time_benefit_only_in_first_year(self, financial_model, make_team_decision):
        decision = make_team_decision('footprint_consolidation', round_number=3)
        first = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=3)
        second = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=4)

        # magnitude 4 (1.2) at half ramp
        assert first.one_time_benefit == pytest.approx(60 * 1.2 * 0.5)
        assert second.one_time_benefit == 0
        assert first.recurring_benefit == 0

    def test_triggered_risky_decision_loses_impact_and_writes_off(
        self, financial_model, baseline_metrics, make_team_decision
    ):
        decision = make_team_decision('ev_investment', round_number=1)
        result = financial_model.apply_round(
            baseline_metrics, [decision], NEUTRAL_MODIFIERS, {'ev_investment': True}, current_round=1,
        )

        assert result.revenue == pytest.approx(BASELINE_FINANCIALS['revenue'])
        assert result.other_income == pytest.approx(-300.0)
        assert result.ebitda == pytest.approx(BASELINE_FINANCIALS['ebitda'] - 300.0)

        later = financial_model.aggregate_impacts(
            [decision], NEUTRAL_MODIFIERS, {'ev_investment': True}, current_round=2,
        )
        assert later.write_off == 0
        assert later.revenue == 0

    def test_successful_risky_decision_contributes(self, financial_model, make_team_decision):
        decision = make_team_decision('ev_investment', round_number=1)
        impacts = financial_model.aggregate_impacts(
            [decision], NEUTRAL_MODIFIERS, {'ev_investment': False}, current_round=1,
        )

        assert impacts.revenue > 0
        assert impacts.write_off == 0

    def test_investment_spend_hits_capex_and_invested_capital(
        self, financial_model, baseline_metrics, make_team_decision
    ):
        decision = make_team_decision('expand_capacity', round_number=1)
        result = financial_model.apply_round(baseline_metrics, [decision], NEUTRAL_MODIFIERS, {}, current_round=1)

        assert result.capex == pytest.approx(-(BASELINE_CAPEX_TO_REVENUE * result.revenue + 500.0))
        assert result.invested_capital == pytest.approx(baseline_metrics.invested_capital + 500.0)
        assert result.operating_fcf == pytest.approx(
            result.ebit + result.cash_taxes + abs(result.depreciation + result.amortization) - abs(result.capex)
        )
        assert result.ending_cash == pytest.approx(result.beginning_cash + result.operating_fcf)

    def test_earlier_spend_is_not_counted_again(self, financial_model, baseline_metrics, make_team_decision):
        decision = make_team_decision('expand_capacity', round_number=1)
        impacts = financial_model.aggregate_impacts([decision], NEUTRAL_MODIFIERS, {}, current_round=2)

        assert impacts.investment_spend == 0

    def test_revenue_shock(self, financial_model, baseline_metrics):
        result = financial_model.apply_round(
            baseline_metrics, [], NEUTRAL_MODIFIERS, {}, current_round=1, revenue_shock=-0.02,
        )

        assert result.revenue == pytest.approx(BASELINE_FINANCIALS['revenue'] * 0.98)
        assert result.share_price < BASELINE_SHARE_PRICE

    def test_negative_ebitda_propagates_and_price_is_floored(self, financial_model, baseline_metrics):
        distressed = dataclasses.replace(baseline_metrics, cogs=-41500.0)
        result = financial_model.apply_round(distressed, [], NEUTRAL_MODIFIERS, {}, current_round=1)

        assert result.ebitda < 0
        assert result.ebit < 0
        assert result.cash_taxes == 0
        assert result.share_price == pytest.approx(financial_model.config.min_share_price)

    def test_unknown_decision_raises(self, financial_model, baseline_metrics):
        bogus = TeamDecision(decision_id='not_a_card', round=1, category='grow', actual_cost=100.0)

        with pytest.raises(ValueError, match='not_a_card'):
            financial_model.apply_round(baseline_metrics, [bogus], NEUTRAL_MODIFIERS, {}, current_round=1)

    def test_calculations_recorded(self, financial_model, baseline_metrics, make_team_decision):
        financial_model.apply_round(
            baseline_metrics, [make_team_decision('expand_capacity')], NEUTRAL_MODIFIERS, {}, current_round=1,
        )

        assert financial_model.calculations['investment_spend'] == pytest.approx(500.0)
        assert 'normalized_fcf' in financial_model.calculations
