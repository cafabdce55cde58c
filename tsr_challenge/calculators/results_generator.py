import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from tsr_challenge.calculators.calculator_base import CalculatorBase
from tsr_challenge.calculators.financial_model import FinancialModel
from tsr_challenge.core.baseline import BASELINE_SHARE_PRICE
from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.config import FinanceConfig
from tsr_challenge.core.scenarios import NEUTRAL_MODIFIERS
from tsr_challenge.core.types import (
    DecisionSummary, FinalResults, FinalTeamResult, ProjectedYear, RiskyEventState, RiskyOutcome,
    RoundResults, ScenarioState, TeamRoundResult, TeamRoundSnapshot, TeamState,
)

logger = logging.getLogger(__name__)


class ResultsGenerator(CalculatorBase):
    """Builds round leaderboards, per-round history and the final projected leaderboard."""

    TOTAL_ROUNDS = 5

    def __init__(self, catalog: DecisionCatalog, model: FinancialModel, config: Optional[FinanceConfig] = None):
        self.catalog = catalog
        self.model = model
        self.config = config or model.config
        self.calculations: Dict[str, float] = {}

    @staticmethod
    def rank_teams(teams: Sequence[TeamState]) -> List[TeamState]:
        """Cumulative TSR desc, then stock price desc, then team id asc."""
        if not teams:
            return []
        frame = pd.DataFrame(
            [{'team_id': t.team_id, 'cumulative_tsr': t.cumulative_tsr, 'stock_price': t.stock_price} for t in teams]
        )
        frame = frame.sort_values(
            ['cumulative_tsr', 'stock_price', 'team_id'], ascending=[False, False, True], kind='mergesort',
        )
        by_id = {t.team_id: t for t in teams}
        return [by_id[int(team_id)] for team_id in frame['team_id']]

    def _summaries(self, team: TeamState) -> List[DecisionSummary]:
        summaries = []
        for team_decision in team.current_round_decisions:
            decision = self.catalog.decision_by_id(team_decision.decision_id)
            name = decision.name if decision else team_decision.decision_id
            summaries.append(DecisionSummary(
                id=team_decision.decision_id, name=name, cost=team_decision.actual_cost,
                category=team_decision.category,
            ))
        return summaries

    def capture_round_snapshots(
        self,
        round_number: int,
        teams: Sequence[TeamState],
        histories: Dict[int, List[TeamRoundSnapshot]],
    ) -> None:
        """Append one snapshot per team for `round_number`, replacing any earlier one for that round."""
        for team in teams:
            history = histories.setdefault(team.team_id, [])
            history[:] = [s for s in history if s.round != round_number]
            history.append(TeamRoundSnapshot(
                round=round_number,
                stock_price=team.stock_price,
                round_tsr=team.round_tsr,
                cumulative_tsr=team.cumulative_tsr,
                cash_spent=team.committed_cost(),
                decisions=self._summaries(team),
            ))

    def _risky_outcomes(self, teams: Sequence[TeamState], risky_state: RiskyEventState) -> List[RiskyOutcome]:
        chosen: Dict[str, List[int]] = {}
        for team in teams:
            for team_decision in team.current_round_decisions:
                decision = self.catalog.decision_by_id(team_decision.decision_id)
                if decision is not None and decision.is_risky:
                    chosen.setdefault(decision.id, []).append(team.team_id)

        outcomes = []
        for decision in self.catalog.risky_decisions():
            if decision.id not in chosen:
                continue
            triggered = risky_state.triggered_events.get(decision.id, False)
            if triggered:
                impact = (
                    f"{decision.name} failed: its benefits are lost and "
                    f"{self.config.risk_write_off_fraction:.0%} of the investment is written off."
                )
            else:
                impact = f"{decision.name} paid off as planned."
            outcomes.append(RiskyOutcome(
                decision_id=decision.id, decision_name=decision.name, team_ids=sorted(chosen[decision.id]),
                triggered=triggered, impact=impact,
            ))
        return outcomes

    def generate_round_results(
        self,
        round_number: int,
        scenario: ScenarioState,
        teams: Sequence[TeamState],
        risky_state: RiskyEventState,
    ) -> RoundResults:
        ranked = self.rank_teams(teams)
        team_results = [
            TeamRoundResult(
                team_id=team.team_id,
                team_name=team.team_name,
                rank=rank,
                stock_price=team.stock_price,
                round_tsr=team.round_tsr,
                cumulative_tsr=team.cumulative_tsr,
                metrics=team.metrics,
                decisions=[d.decision_id for d in team.current_round_decisions],
            )
            for rank, team in enumerate(ranked, start=1)
        ]
        narrative = scenario.narrative
        if scenario.event_triggered and scenario.event_description:
            narrative = f"{narrative} {scenario.event_description}"
        return RoundResults(
            round=round_number,
            scenario_type=scenario.scenario_type,
            scenario_narrative=narrative,
            team_results=team_results,
            risky_outcomes=self._risky_outcomes(teams, risky_state),
        )

    def project_team(self, team: TeamState, risky_state: RiskyEventState) -> List[ProjectedYear]:
        """Run the company forward with neutral conditions and no new decisions."""
        metrics = team.metrics
        projection = []
        for offset in range(self.config.projection_years):
            settle_round = self.TOTAL_ROUNDS + 1 + offset
            metrics = self.model.apply_round(
                metrics, team.all_decisions, NEUTRAL_MODIFIERS, risky_state.triggered_events, settle_round,
            )
            normalized_fcf = self.model.calculations.get('normalized_fcf', 0.0)
            dividend = self.config.dividend_payout_ratio * max(normalized_fcf, 0.0) / metrics.shares_outstanding
            projection.append(ProjectedYear(
                year=self.config.projection_start_year + offset,
                stock_price=metrics.share_price,
                dividend_per_share=dividend,
                revenue=metrics.revenue,
                ebit=metrics.ebit,
            ))
        return projection

    def generate_final_results(
        self,
        teams: Sequence[TeamState],
        risky_state: RiskyEventState,
        histories: Optional[Dict[int, List[TeamRoundSnapshot]]] = None,
    ) -> FinalResults:
        histories = histories or {}
        entries = []
        for team in teams:
            projection = self.project_team(team, risky_state)
            final_price = projection[-1].stock_price if projection else team.stock_price
            total_dividends = sum(year.dividend_per_share for year in projection)
            total_tsr = (final_price + total_dividends - BASELINE_SHARE_PRICE) / BASELINE_SHARE_PRICE
            entries.append(FinalTeamResult(
                team_id=team.team_id,
                team_name=team.team_name,
                rank=0,
                starting_stock_price=BASELINE_SHARE_PRICE,
                round5_stock_price=team.stock_price,
                final_stock_price=final_price,
                total_dividends=total_dividends,
                total_tsr=total_tsr,
                projection=projection,
            ))

        entries.sort(key=lambda e: (-e.total_tsr, -e.final_stock_price, e.team_id))
        for rank, entry in enumerate(entries, start=1):
            entry.rank = rank

        winner_id = entries[0].team_id if entries else None
        summary = self._simulation_summary(entries)
        logger.info("Final results generated", extra={"teams": len(entries), "winner_id": winner_id})
        return FinalResults(
            leaderboard=entries,
            winner_id=winner_id,
            simulation_summary=summary,
            team_histories={e.team_id: list(histories.get(e.team_id, [])) for e in entries},
        )

    def _simulation_summary(self, entries: List[FinalTeamResult]) -> str:
        if not entries:
            return "No teams completed the simulation."
        tsr = pd.Series([e.total_tsr for e in entries])
        self.calculations = {}
        self._store_result('mean_total_tsr', tsr.mean())
        self._store_result('max_total_tsr', tsr.max())
        self._store_result('min_total_tsr', tsr.min())
        winner = entries[0]
        first_year = self.config.projection_start_year
        last_year = first_year + self.config.projection_years - 1
        return (
            f"{len(entries)} teams were projected forward through {first_year}-{last_year}. "
            f"{winner.team_name or f'Team {winner.team_id}'} leads with a total TSR of {winner.total_tsr:.1%}; "
            f"the average was {self.calculations['mean_total_tsr']:.1%} "
            f"(range {self.calculations['min_total_tsr']:.1%} to {self.calculations['max_total_tsr']:.1%})."
        )
