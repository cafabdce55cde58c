import copy
from datetime import datetime
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, List, Dict, Any, Tuple

# Centralized constants for reuse across calculators and the orchestrator
CATEGORY_GROW = "grow"
CATEGORY_OPTIMIZE = "optimize"
CATEGORY_SUSTAIN = "sustain"
DECISION_CATEGORIES = (CATEGORY_GROW, CATEGORY_OPTIMIZE, CATEGORY_SUSTAIN)

STATUS_LOBBY = "lobby"
STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_RESULTS = "results"
STATUS_FINISHED = "finished"
GAME_STATUSES = (STATUS_LOBBY, STATUS_ACTIVE, STATUS_PAUSED, STATUS_RESULTS, STATUS_FINISHED)

SCENARIO_BUSINESS_AS_USUAL = "business_as_usual"
SCENARIO_COST_PRESSURE = "cost_pressure"
SCENARIO_RECESSION = "recession"
SCENARIO_RECOVERY = "recovery"

DECISION_TYPE_ORGANIC = "organic"
DECISION_TYPE_INORGANIC = "inorganic"


def _now_iso() -> str:
    return datetime.now().isoformat()


# --- Decision Catalog
@dataclass(frozen=True)
class Decision:
    """Immutable catalog entry describing one investment option.

    Impact coefficients are per-year fractional changes applied while the
    decision is active; benefits are absolute $M amounts.
    """
    id: str
    name: str
    category: str
    cost: float
    available_rounds: Tuple[int, ...]
    revenue_impact: float = 0.0
    cogs_impact: float = 0.0
    sga_impact: float = 0.0
    recurring_benefit: float = 0.0
    is_one_time_benefit: bool = False
    is_risky: bool = False
    duration_years: int = 5
    ramp_up_years: int = 1
    impact_magnitude: int = 3
    guiding_principle: str = ""
    decision_type: str = DECISION_TYPE_ORGANIC
    risk_prevention: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Decision':
        """Build a Decision from a plain dict (e.g. a JSON catalog row).

        Unknown keys are ignored. Raises TypeError for a missing required field
        and ValueError for a non-string id.
        """
        known = {f.name for f in fields(cls)}
        payload = {key: value for key, value in dict(data).items() if key in known}
        if not isinstance(payload.get('id'), str):
            raise ValueError(f"Decision id must be a string, got {payload.get('id')!r}")
        rounds = payload.get('available_rounds') or ()
        if isinstance(rounds, (str, bytes)) or not hasattr(rounds, '__iter__'):
            raise ValueError(f"{payload['id']}: available_rounds must be a list of round numbers")
        payload['available_rounds'] = tuple(rounds)
        return cls(**payload)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['available_rounds'] = list(self.available_rounds)
        return result


@dataclass
class CatalogValidation:
    """Outcome of validating the decision catalog at load time."""
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


# --- Financials
@dataclass
class FinancialMetrics:
    """Per-team, per-period financial statement and valuation.

    All values in $M except per-share figures. Costs (cogs, sga, depreciation,
    amortization, cash_taxes, capex) are stored as negative numbers.
    Ratios are properties so they can never drift from their inputs.
    """
    # Income statement
    revenue: float
    cogs: float
    sga: float
    other_income: float
    ebitda: float
    depreciation: float
    amortization: float
    ebit: float

    # Cash flow
    cash_taxes: float
    capex: float
    operating_fcf: float
    beginning_cash: float
    ending_cash: float

    # Valuation
    npv: float
    equity_value: float
    shares_outstanding: float
    share_price: float
    invested_capital: float

    tax_rate: float = 0.22

    @property
    def ebitda_margin(self) -> Optional[float]:
        return self.ebitda / self.revenue if self.revenue else None

    @property
    def ebit_margin(self) -> Optional[float]:
        return self.ebit / self.revenue if self.revenue else None

    @property
    def roic(self) -> Optional[float]:
        if not self.invested_capital:
            return None
        return (self.ebit * (1 - self.tax_rate)) / self.invested_capital

    @property
    def cogs_to_revenue(self) -> Optional[float]:
        return abs(self.cogs) / self.revenue if self.revenue else None

    @property
    def sga_to_revenue(self) -> Optional[float]:
        return abs(self.sga) / self.revenue if self.revenue else None

    @property
    def capex_to_revenue(self) -> Optional[float]:
        return abs(self.capex) / self.revenue if self.revenue else None

    def ratios(self) -> Dict[str, Optional[float]]:
        return {
            "ebitda_margin": self.ebitda_margin,
            "ebit_margin": self.ebit_margin,
            "roic": self.roic,
            "cogs_to_revenue": self.cogs_to_revenue,
            "sga_to_revenue": self.sga_to_revenue,
            "capex_to_revenue": self.capex_to_revenue,
        }

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result.update(self.ratios())
        return result


# --- Scenarios
@dataclass
class ScenarioModifiers:
    grow_multiplier: float = 1.0
    optimize_multiplier: float = 1.0
    sustain_multiplier: float = 1.0

    def multiplier_for(self, category: str) -> float:
        if category == CATEGORY_GROW:
            return self.grow_multiplier
        if category == CATEGORY_OPTIMIZE:
            return self.optimize_multiplier
        if category == CATEGORY_SUSTAIN:
            return self.sustain_multiplier
        raise ValueError(f"Unknown decision category: {category}")


@dataclass
class ScenarioState:
    scenario_type: str
    narrative: str
    modifiers: ScenarioModifiers
    event_triggered: bool = False
    event_type: Optional[str] = None
    event_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SpecialEvent:
    """Facilitator-triggered market event."""
    event_type: str
    description: str
    affected_decisions: Tuple[str, ...]
    revenue_shock: float


# --- Risk
@dataclass
class RiskyEventState:
    active_event_index: int
    triggered_events: Dict[str, bool] = field(default_factory=dict)


@dataclass
class RiskResolution:
    team_id: int
    decision_id: str
    triggered: bool


# --- Teams
@dataclass
class TeamDecision:
    """A decision committed by a team in a specific round."""
    decision_id: str
    round: int
    category: str
    actual_cost: float
    submitted_at: str = field(default_factory=_now_iso)


@dataclass
class TeamState:
    team_id: int
    metrics: FinancialMetrics
    cash_balance: float
    stock_price: float
    team_name: str = ""
    is_claimed: bool = False
    connection_id: Optional[str] = None
    current_round_decisions: List[TeamDecision] = field(default_factory=list)
    all_decisions: List[TeamDecision] = field(default_factory=list)
    draft_decision_ids: List[str] = field(default_factory=list)
    cumulative_tsr: float = 0.0
    round_tsr: float = 0.0
    has_submitted: bool = False

    @property
    def is_connected(self) -> bool:
        return self.connection_id is not None

    def committed_cost(self) -> float:
        return sum(d.actual_cost for d in self.current_round_decisions)


@dataclass
class GameState:
    """Root aggregate. Mutated only by the RoundOrchestrator."""
    status: str
    current_round: int
    round_time_remaining: int
    round_duration: int
    teams: Dict[int, TeamState]
    scenario: ScenarioState
    risky_events: RiskyEventState
    team_count: int
    started_at: Optional[str] = None
    round_started_at: Optional[str] = None

    def claimed_teams(self) -> List[TeamState]:
        return [t for t in self.teams.values() if t.is_claimed]

    def snapshot(self) -> 'GameState':
        """Deep copy for read-only consumers."""
        return copy.deepcopy(self)


# --- Operation results
@dataclass
class OperationResult:
    """Structured outcome for every team/admin operation."""
    success: bool
    error: Optional[str] = None
    team_id: Optional[int] = None

    @classmethod
    def ok(cls, team_id: Optional[int] = None) -> 'OperationResult':
        return cls(success=True, team_id=team_id)

    @classmethod
    def fail(cls, error: str) -> 'OperationResult':
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.team_id is not None:
            result["team_id"] = self.team_id
        return result


@dataclass
class TeamSubmissionInfo:
    team_id: int
    team_name: str
    is_claimed: bool
    has_submitted: bool
    connection_id: Optional[str]
    decisions_count: int


# --- Results
@dataclass
class DecisionSummary:
    id: str
    name: str
    cost: float
    category: str


@dataclass
class TeamRoundSnapshot:
    round: int
    stock_price: float
    round_tsr: float
    cumulative_tsr: float
    cash_spent: float
    decisions: List[DecisionSummary] = field(default_factory=list)


@dataclass
class TeamRoundResult:
    team_id: int
    team_name: str
    rank: int
    stock_price: float
    round_tsr: float
    cumulative_tsr: float
    metrics: FinancialMetrics
    decisions: List[str] = field(default_factory=list)


@dataclass
class RiskyOutcome:
    decision_id: str
    decision_name: str
    team_ids: List[int]
    triggered: bool
    impact: str


@dataclass
class RoundResults:
    round: int
    scenario_type: str
    scenario_narrative: str
    team_results: List[TeamRoundResult]
    risky_outcomes: List[RiskyOutcome] = field(default_factory=list)
    generated_at: str = field(default_factory=_now_iso)

    def result_for(self, team_id: int) -> Optional[TeamRoundResult]:
        return next((r for r in self.team_results if r.team_id == team_id), None)

    def nearby_teams(self, team_id: int, window: int = 2) -> List[TeamRoundResult]:
        """Mini-leaderboard: up to `window` teams either side of `team_id`."""
        ordered = sorted(self.team_results, key=lambda r: r.rank)
        index = next((i for i, r in enumerate(ordered) if r.team_id == team_id), None)
        if index is None:
            return []
        start = max(0, index - window)
        return ordered[start:index + window + 1]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectedYear:
    year: int
    stock_price: float
    dividend_per_share: float
    revenue: float
    ebit: float


@dataclass
class FinalTeamResult:
    team_id: int
    team_name: str
    rank: int
    starting_stock_price: float
    round5_stock_price: float
    final_stock_price: float
    total_dividends: float
    total_tsr: float
    projection: List[ProjectedYear] = field(default_factory=list)


@dataclass
class FinalResults:
    leaderboard: List[FinalTeamResult]
    winner_id: Optional[int]
    simulation_summary: str
    team_histories: Dict[int, List[TeamRoundSnapshot]] = field(default_factory=dict)
    generated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
