"""Baseline (2025 year-end) financial position shared by every team.

All values in USD millions unless otherwise noted.
"""
from typing import Dict

from tsr_challenge.core.types import FinancialMetrics

BASELINE_FINANCIALS: Dict[str, float] = {
    # Income statement
    'revenue': 42836.0,
    'cogs': -37037.0,
    'sga': -2061.0,
    'ebitda': 3738.0,
    'depreciation': -1510.0,
    'amortization': -112.0,
    'ebit': 2116.0,
    # Cash flow
    'cash_taxes': -466.0,
    'capex': -1713.0,
    'operating_fcf': 1561.0,
    'beginning_cash': 1247.0,
    # Valuation
    'npv': 23201.0,
    'equity_value': 15018.0,
    'shares_outstanding': 287.0,
}

# Quoted 52.27; derived from equity value so an idle company reprices to itself.
BASELINE_FINANCIALS['share_price'] = BASELINE_FINANCIALS['equity_value'] / BASELINE_FINANCIALS['shares_outstanding']

INVESTED_CAPITAL = 15828.0
BASELINE_SHARE_PRICE = BASELINE_FINANCIALS['share_price']
BASELINE_CAPEX_TO_REVENUE = abs(BASELINE_FINANCIALS['capex']) / BASELINE_FINANCIALS['revenue']


def create_initial_metrics(tax_rate: float = 0.22) -> FinancialMetrics:
    """Starting FinancialMetrics for a freshly provisioned team."""
    b = BASELINE_FINANCIALS
    return FinancialMetrics(
        revenue=b['revenue'],
        cogs=b['cogs'],
        sga=b['sga'],
        other_income=0.0,
        ebitda=b['ebitda'],
        depreciation=b['depreciation'],
        amortization=b['amortization'],
        ebit=b['ebit'],
        cash_taxes=b['cash_taxes'],
        capex=b['capex'],
        operating_fcf=b['operating_fcf'],
        beginning_cash=b['beginning_cash'],
        ending_cash=b['beginning_cash'] + b['operating_fcf'],
        npv=b['npv'],
        equity_value=b['equity_value'],
        shares_outstanding=b['shares_outstanding'],
        share_price=b['share_price'],
        invested_capital=INVESTED_CAPITAL,
        tax_rate=tax_rate,
    )
