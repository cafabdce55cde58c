import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from tsr_challenge.calculators.calculator_base import CalculatorBase
from tsr_challenge.core.baseline import BASELINE_CAPEX_TO_REVENUE, BASELINE_FINANCIALS, create_initial_metrics
from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.config import FinanceConfig
from tsr_challenge.core.types import FinancialMetrics, ScenarioModifiers, TeamDecision

logger = logging.getLogger(__name__)


@dataclass
class ImpactTotals:
    """Summed, fully-scaled decision effects for one settlement period."""
    revenue: float = 0.0
    cogs: float = 0.0
    sga: float = 0.0
    recurring_benefit: float = 0.0
    one_time_benefit: float = 0.0
    write_off: float = 0.0
    investment_spend: float = 0.0
    active_decisions: int = 0

    @property
    def one_time_items(self) -> float:
        return self.one_time_benefit - self.write_off

    @property
    def other_income(self) -> float:
        return self.recurring_benefit + self.one_time_items


class FinancialModel(CalculatorBase):
    """Turns a team's decisions, scenario modifiers and risk verdicts into next-period metrics.

    The model is stateless between calls apart from `calculations`, which holds
    the diagnostics of the most recent `apply_round` for logging and tests.
    Valuation is a 5-year explicit DCF plus Gordon terminal value of normalized
    FCF, scaled so the baseline company reprices to its baseline NPV.
    """

    IMPACT_MAGNITUDE_SCALE: Dict[int, float] = {1: 0.6, 2: 0.8, 3: 1.0, 4: 1.2, 5: 1.4}

    def __init__(self, catalog: DecisionCatalog, config: Optional[FinanceConfig] = None):
        self.catalog = catalog
        self.config = config or FinanceConfig()
        self.calculations: Dict[str, float] = {}
        baseline = create_initial_metrics(self.config.tax_rate)
        self._baseline_normalized_fcf = self._normalized_fcf(
            baseline.ebit, baseline.depreciation + baseline.amortization, abs(baseline.capex),
        )
        self._npv_scale = BASELINE_FINANCIALS['npv'] / self._dcf(self._baseline_normalized_fcf)

    # --- impacts

    def contribution_factor(self, decision_id: str, years_active: int) -> float:
        """Magnitude-scaled ramp factor; 0 outside the decision's active window."""
        decision = self._require(decision_id)
        if years_active < 1 or years_active > decision.duration_years:
            return 0.0
        magnitude = self.IMPACT_MAGNITUDE_SCALE[decision.impact_magnitude]
        return magnitude * min(1.0, years_active / decision.ramp_up_years)

    def aggregate_impacts(
        self,
        decisions: Sequence[TeamDecision],
        modifiers: ScenarioModifiers,
        risk_outcomes: Optional[Mapping[str, bool]],
        current_round: int,
    ) -> ImpactTotals:
        risk_outcomes = risk_outcomes or {}
        totals = ImpactTotals()
        for team_decision in decisions:
            decision = self._require(team_decision.decision_id)
            years_active = current_round - team_decision.round + 1
            if team_decision.round == current_round:
                totals.investment_spend += team_decision.actual_cost

            if decision.is_risky and risk_outcomes.get(decision.id, False):
                if years_active == 1:
                    totals.write_off += self.config.risk_write_off_fraction * team_decision.actual_cost
                continue

            factor = self.contribution_factor(decision.id, years_active)
            if factor == 0.0:
                continue
            factor *= modifiers.multiplier_for(decision.category)
            totals.active_decisions += 1
            totals.revenue += decision.revenue_impact * factor
            totals.cogs += decision.cogs_impact * factor
            totals.sga += decision.sga_impact * factor
            if decision.is_one_time_benefit:
                if years_active == 1:
                    totals.one_time_benefit += decision.recurring_benefit * factor
            else:
                totals.recurring_benefit += decision.recurring_benefit * factor
        return totals

    # --- valuation

    def _normalized_fcf(self, ebit: float, d_and_a: float, maintenance_capex: float) -> float:
        nopat = ebit - max(ebit, 0.0) * self.config.tax_rate
        return nopat + abs(d_and_a) - abs(maintenance_capex)

    def _dcf(self, normalized_fcf: float) -> float:
        years = self.config.explicit_forecast_years
        growth = self.config.terminal_growth_rate
        wacc = self.config.wacc
        flows = normalized_fcf * np.power(1.0 + growth, np.arange(1, years + 1))
        terminal_value = flows[-1] * (1.0 + growth) / (wacc - growth)
        return self._present_value(flows, wacc) + terminal_value * self._discount_factors(wacc, years)[-1]

    def value_company(self, normalized_fcf: float, one_time_items: float, shares_outstanding: float) -> Dict[str, float]:
        npv = self._npv_scale * self._dcf(normalized_fcf) + one_time_items * (1 - self.config.tax_rate)
        equity_value = npv - self.config.net_debt - self.config.minority_interest
        share_price = self._safe_divide(equity_value, shares_outstanding)
        if share_price is None or share_price < self.config.min_share_price:
            share_price = self.config.min_share_price
        return {'npv': npv, 'equity_value': equity_value, 'share_price': share_price}

    # --- settlement

    def apply_round(
        self,
        prior: FinancialMetrics,
        decisions: Sequence[TeamDecision],
        modifiers: ScenarioModifiers,
        risk_outcomes: Optional[Mapping[str, bool]] = None,
        current_round: int = 1,
        revenue_shock: float = 0.0,
    ) -> FinancialMetrics:
        """Next-period metrics from `prior`.

        `decisions` is the team's full decision history including the round
        being settled; each contributes according to how long it has been
        active. Raises ValueError on an id the catalog does not know.
        """
        impacts = self.aggregate_impacts(decisions, modifiers, risk_outcomes, current_round)
        volume_change = self.config.volume_drift + revenue_shock

        revenue = prior.revenue * (1 + impacts.revenue + volume_change)
        cogs = prior.cogs * (1 + impacts.cogs + volume_change)
        sga = prior.sga * (1 + impacts.sga)
        other_income = impacts.other_income
        ebitda = revenue + cogs + sga + other_income
        depreciation = prior.depreciation
        amortization = prior.amortization
        ebit = ebitda + depreciation + amortization

        maintenance_capex = BASELINE_CAPEX_TO_REVENUE * revenue
        capex = -(maintenance_capex + impacts.investment_spend)
        cash_taxes = -max(ebit, 0.0) * self.config.tax_rate
        d_and_a = depreciation + amortization
        operating_fcf = ebit + cash_taxes + abs(d_and_a) - abs(capex)
        beginning_cash = prior.ending_cash
        ending_cash = beginning_cash + operating_fcf

        normalized_fcf = self._normalized_fcf(ebit - impacts.one_time_items, d_and_a, maintenance_capex)
        valuation = self.value_company(normalized_fcf, impacts.one_time_items, prior.shares_outstanding)

        self.calculations = {}
        self._store_result('normalized_fcf', normalized_fcf)
        self._store_result('investment_spend', impacts.investment_spend)
        self._store_result('write_off', impacts.write_off)
        self._store_result('revenue_impact', impacts.revenue)

        metrics = FinancialMetrics(
            revenue=revenue,
            cogs=cogs,
            sga=sga,
            other_income=other_income,
            ebitda=ebitda,
            depreciation=depreciation,
            amortization=amortization,
            ebit=ebit,
            cash_taxes=cash_taxes,
            capex=capex,
            operating_fcf=operating_fcf,
            beginning_cash=beginning_cash,
            ending_cash=ending_cash,
            npv=valuation['npv'],
            equity_value=valuation['equity_value'],
            shares_outstanding=prior.shares_outstanding,
            share_price=valuation['share_price'],
            invested_capital=prior.invested_capital + impacts.investment_spend,
            tax_rate=self.config.tax_rate,
        )
        logger.debug(
            "Applied round to metrics",
            extra={
                "round": current_round,
                "active_decisions": impacts.active_decisions,
                "revenue": round(revenue, 2),
                "share_price": round(metrics.share_price, 4),
            },
        )
        return metrics

    def _require(self, decision_id: str):
        decision = self.catalog.decision_by_id(decision_id)
        if decision is None:
            raise ValueError(f"Unknown decision id: {decision_id}")
        return decision
