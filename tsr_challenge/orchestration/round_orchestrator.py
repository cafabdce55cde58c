# --- round orchestrator ---
import copy
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from tsr_challenge.core.config import AppConfig
from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.baseline import BASELINE_SHARE_PRICE, create_initial_metrics
from tsr_challenge.core.scenarios import create_scenario_state, get_special_event
from tsr_challenge.core.types import (
    STATUS_ACTIVE, STATUS_FINISHED, STATUS_LOBBY, STATUS_PAUSED, STATUS_RESULTS,
    Decision, FinalResults, GameState, OperationResult, RoundResults, TeamDecision,
    TeamRoundSnapshot, TeamState, TeamSubmissionInfo,
)

from tsr_challenge.services.decision_data_provider import DecisionDataProvider
from tsr_challenge.services.event_sink import GameEventSink, LoggingEventSink

from tsr_challenge.calculators.financial_model import FinancialModel
from tsr_challenge.calculators.results_generator import ResultsGenerator
from tsr_challenge.calculators.cash_replenishment import CashReplenishment
from tsr_challenge.calculators.risky_event_resolver import RiskyEventResolver

from tsr_challenge.orchestration.scheduler import TickHandle, TickScheduler, ThreadingTickScheduler, cancel_quietly

logger = logging.getLogger(__name__)


class RoundOrchestrator:
    """
    Owns the authoritative GameState and runs the five-round game.

    Every mutation happens under one re-entrant lock, so round settlement is
    atomic relative to team submissions. Team and admin operations return an
    OperationResult instead of raising. Reads return deep-copied snapshots.

    State machine:
        lobby -> active <-> paused -> results -> active -> ... -> finished
        any state -> lobby on reset_game()
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        event_sink: Optional[GameEventSink] = None,
        scheduler: Optional[TickScheduler] = None,
        decision_provider: Optional[DecisionDataProvider] = None,
        rng: Optional[np.random.Generator] = None,
        strict_catalog: bool = False,
    ):
        """Initialize with configuration and optional test-friendly collaborators.

        Args:
            config: Optional AppConfig instance
            event_sink: Receives state/timer/round/game callbacks (default: LoggingEventSink)
            scheduler: Clock for the round timer (default: ThreadingTickScheduler)
            decision_provider: Source of catalog rows (default: built-in catalog)
            rng: Random source for risk draws and cash replenishment
            strict_catalog: Raise RuntimeError instead of starting degraded on an invalid catalog
        """
        self.config = config or AppConfig()
        self.event_sink = event_sink or LoggingEventSink()
        self.scheduler = scheduler or ThreadingTickScheduler()
        self.decision_provider = decision_provider or DecisionDataProvider(self.config.catalog)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.catalog = DecisionCatalog(
            self.decision_provider.get_decisions(), load_errors=self.decision_provider.load_errors,
        )
        if not self.catalog.validation.valid:
            logger.error(
                "Starting with an invalid decision catalog",
                extra={"source": self.decision_provider.source, "errors": self.catalog.validation.errors},
            )
            if strict_catalog:
                raise RuntimeError(f"Invalid decision catalog: {'; '.join(self.catalog.validation.errors)}")

        self.financial_model = FinancialModel(self.catalog, self.config.finance)
        self.risk_resolver = RiskyEventResolver(self.catalog, self.rng)
        self.cash_replenishment = CashReplenishment(self.config.cash, self.rng)
        self.results_generator = ResultsGenerator(self.catalog, self.financial_model, self.config.finance)

        self._lock = threading.RLock()
        self._timer_handle: Optional[TickHandle] = None
        self._timer_generation = 0
        self._round_histories: Dict[int, List[TeamRoundSnapshot]] = {}
        self._round_results: Dict[int, RoundResults] = {}
        self._final_results: Optional[FinalResults] = None
        self.state = self._new_game_state(self.config.game.team_count, self.config.game.round_duration_seconds)

    # --- construction helpers ---

    def _new_team(self, team_id: int) -> TeamState:
        return TeamState(
            team_id=team_id,
            metrics=create_initial_metrics(self.config.finance.tax_rate),
            cash_balance=self.config.finance.starting_investment_cash,
            stock_price=BASELINE_SHARE_PRICE,
        )

    def _new_game_state(self, team_count: int, round_duration: int) -> GameState:
        return GameState(
            status=STATUS_LOBBY,
            current_round=1,
            round_time_remaining=round_duration,
            round_duration=round_duration,
            teams={team_id: self._new_team(team_id) for team_id in range(1, team_count + 1)},
            scenario=create_scenario_state(1),
            risky_events=self.risk_resolver.create_state(),
            team_count=team_count,
        )

    # --- notification ---

    def _notify(self, callback_name: str, *args: Any) -> None:
        try:
            getattr(self.event_sink, callback_name)(*args)
        except Exception:
            logger.exception("Event sink callback failed", extra={"callback": callback_name})

    def _notify_state(self) -> None:
        self._notify('on_state_change', self.state.snapshot())

    def _reject(self, error: str, **context: Any) -> OperationResult:
        logger.warning("Operation rejected", extra={"error": error, **context})
        return OperationResult.fail(error)

    # --- lookups ---

    def _team_for_connection(self, connection_id: str) -> Optional[TeamState]:
        if connection_id is None:
            return None
        return next((t for t in self.state.teams.values() if t.connection_id == connection_id), None)

    def _team_by_name(self, name: str) -> Optional[TeamState]:
        key = name.casefold()
        return next((t for t in self.state.teams.values() if t.is_claimed and t.team_name.casefold() == key), None)

    def _available_decision(self, decision_id: str) -> Optional[Decision]:
        decision = self.catalog.decision_by_id(decision_id)
        if decision is None or self.state.current_round not in decision.available_rounds:
            return None
        return decision

    # --- timer ---

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer_generation += 1
        generation = self._timer_generation
        self._timer_handle = self.scheduler.schedule_repeating(
            self.config.game.tick_interval_seconds, lambda: self._tick(generation),
        )

    def _stop_timer(self) -> None:
        cancel_quietly(self._timer_handle)
        self._timer_handle = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            # stale or late ticks are no-ops
            if generation != self._timer_generation or self.state.status != STATUS_ACTIVE:
                return
            self.state.round_time_remaining = max(0, self.state.round_time_remaining - 1)
            self._notify('on_timer_tick', self.state.round_time_remaining)
            if self.state.round_time_remaining == 0:
                logger.info("Round timer expired", extra={"round": self.state.current_round})
                self._process_round_end()

    # --- admin configuration ---

    def configure_team_count(self, team_count: int) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_LOBBY:
                return self._reject("Team count can only be changed in the lobby")
            game_cfg = self.config.game
            if not game_cfg.min_teams <= team_count <= game_cfg.max_teams:
                return self._reject(f"Team count must be between {game_cfg.min_teams} and {game_cfg.max_teams}")
            if any(t.is_claimed and t.team_id > team_count for t in self.state.teams.values()):
                return self._reject("Cannot remove team slots that are already claimed")

            teams = {tid: t for tid, t in self.state.teams.items() if tid <= team_count}
            for team_id in range(1, team_count + 1):
                teams.setdefault(team_id, self._new_team(team_id))
            self.state.teams = teams
            self.state.team_count = team_count
            logger.info("Configured team count", extra={"team_count": team_count})
            self._notify_state()
            return OperationResult.ok()

    def configure_round_duration(self, seconds: int) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_LOBBY:
                return self._reject("Round duration can only be changed in the lobby")
            game_cfg = self.config.game
            if not game_cfg.min_round_duration <= seconds <= game_cfg.max_round_duration:
                return self._reject(
                    f"Round duration must be between {game_cfg.min_round_duration} and "
                    f"{game_cfg.max_round_duration} seconds"
                )
            self.state.round_duration = seconds
            self.state.round_time_remaining = seconds
            logger.info("Configured round duration", extra={"round_duration": seconds})
            self._notify_state()
            return OperationResult.ok()

    # --- team operations ---

    def join_game(self, team_name: str, connection_id: str) -> OperationResult:
        with self._lock:
            if self.state.status == STATUS_FINISHED:
                return self._reject("Game has ended")
            name = (team_name or "").strip()
            if not name:
                return self._reject("Team name is required")

            same_connection = self._team_for_connection(connection_id)
            named = self._team_by_name(name)
            if same_connection is not None:
                if named is not None and named is not same_connection:
                    return self._reject("Team name is already taken", team_name=name)
                same_connection.team_name = name
                logger.info("Team renamed", extra={"team_id": same_connection.team_id, "team_name": name})
                self._notify_state()
                return OperationResult.ok(same_connection.team_id)

            if named is not None:
                named.connection_id = connection_id
                logger.info("Team reconnected by name", extra={"team_id": named.team_id, "team_name": name})
                self._notify_state()
                return OperationResult.ok(named.team_id)

            free = next((t for t in sorted(self.state.teams.values(), key=lambda t: t.team_id) if not t.is_claimed), None)
            if free is None:
                return self._reject("All team slots are full", team_name=name)
            free.is_claimed = True
            free.team_name = name
            free.connection_id = connection_id
            logger.info("Team joined", extra={"team_id": free.team_id, "team_name": name})
            self._notify_state()
            return OperationResult.ok(free.team_id)

    def handle_disconnect(self, connection_id: str) -> OperationResult:
        with self._lock:
            team = self._team_for_connection(connection_id)
            if team is None:
                return OperationResult.fail("Unknown connection")
            team.connection_id = None
            logger.info("Team disconnected", extra={"team_id": team.team_id})
            self._notify_state()
            return OperationResult.ok(team.team_id)

    def reconnect_team(self, team_id: int, connection_id: str) -> OperationResult:
        with self._lock:
            team = self.state.teams.get(team_id)
            if team is None:
                return self._reject("Unknown team", team_id=team_id)
            if not team.is_claimed:
                return self._reject("Team slot has not been claimed", team_id=team_id)
            if team.is_connected and team.connection_id != connection_id:
                return self._reject("Team is already connected", team_id=team_id)
            previous = self._team_for_connection(connection_id)
            if previous is not None and previous is not team:
                previous.connection_id = None
            team.connection_id = connection_id
            logger.info("Team reconnected", extra={"team_id": team_id})
            self._notify_state()
            return OperationResult.ok(team_id)

    def submit_decisions(self, connection_id: str, decision_ids: Sequence[str]) -> OperationResult:
        with self._lock:
            team = self._team_for_connection(connection_id)
            if team is None:
                return self._reject("Team not found for this connection")
            if self.state.status != STATUS_ACTIVE:
                return self._reject("Round is not active", team_id=team.team_id)
            if team.has_submitted:
                return self._reject("Already submitted", team_id=team.team_id)

            decision_ids = list(decision_ids or [])
            if len(set(decision_ids)) != len(decision_ids):
                return self._reject("Duplicate decisions in submission", team_id=team.team_id)
            decisions = []
            for decision_id in decision_ids:
                decision = self._available_decision(decision_id)
                if decision is None:
                    return self._reject(f"Decision not available this round: {decision_id}", team_id=team.team_id)
                decisions.append(decision)
            total_cost = sum(d.cost for d in decisions)
            if total_cost > team.cash_balance:
                return self._reject("Insufficient funds", team_id=team.team_id, total_cost=total_cost)

            self._commit(team, decisions)
            logger.info(
                "Decisions submitted",
                extra={"team_id": team.team_id, "decisions": decision_ids, "total_cost": total_cost},
            )
            self._notify_state()
            return OperationResult.ok(team.team_id)

    def _commit(self, team: TeamState, decisions: List[Decision]) -> None:
        round_number = self.state.current_round
        team.current_round_decisions = [
            TeamDecision(decision_id=d.id, round=round_number, category=d.category, actual_cost=d.cost)
            for d in decisions
        ]
        team.cash_balance -= sum(d.cost for d in decisions)
        team.draft_decision_ids = [d.id for d in decisions]
        team.has_submitted = True

    def unsubmit_decisions(self, connection_id: str) -> OperationResult:
        with self._lock:
            team = self._team_for_connection(connection_id)
            if team is None:
                return self._reject("Team not found for this connection")
            if self.state.status not in (STATUS_ACTIVE, STATUS_PAUSED):
                return self._reject("Round is not active", team_id=team.team_id)
            if not team.has_submitted:
                return self._reject("Nothing to unsubmit", team_id=team.team_id)

            team.cash_balance += team.committed_cost()
            team.draft_decision_ids = [d.decision_id for d in team.current_round_decisions]
            team.current_round_decisions = []
            team.has_submitted = False
            logger.info("Decisions unsubmitted", extra={"team_id": team.team_id})
            self._notify_state()
            return OperationResult.ok(team.team_id)

    def _editable_team(self, connection_id: str):
        team = self._team_for_connection(connection_id)
        if team is None:
            return None, "Team not found for this connection"
        if self.state.status not in (STATUS_ACTIVE, STATUS_PAUSED):
            return None, "Round is not active"
        if team.has_submitted:
            return None, "Already submitted"
        return team, None

    def toggle_decision(self, connection_id: str, decision_id: str, selected: bool) -> OperationResult:
        with self._lock:
            team, error = self._editable_team(connection_id)
            if error:
                return self._reject(error)
            if self._available_decision(decision_id) is None:
                return self._reject(f"Decision not available this round: {decision_id}", team_id=team.team_id)
            if selected and decision_id not in team.draft_decision_ids:
                team.draft_decision_ids.append(decision_id)
            elif not selected and decision_id in team.draft_decision_ids:
                team.draft_decision_ids.remove(decision_id)
            return OperationResult.ok(team.team_id)

    def sync_draft_selections(self, connection_id: str, decision_ids: Sequence[str]) -> OperationResult:
        with self._lock:
            team, error = self._editable_team(connection_id)
            if error:
                return self._reject(error)
            team.draft_decision_ids = list(dict.fromkeys(decision_ids or []))
            return OperationResult.ok(team.team_id)

    # --- admin round control ---

    def start_game(self) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_LOBBY:
                return self._reject("Game can only be started from the lobby")
            if not self.state.claimed_teams():
                return self._reject("At least one team must join before starting")

            now = datetime.now().isoformat()
            self.state.status = STATUS_ACTIVE
            self.state.current_round = 1
            self.state.scenario = create_scenario_state(1)
            self.state.started_at = now
            self.state.round_started_at = now
            self.state.round_time_remaining = self.state.round_duration + self.config.game.countdown_offset_seconds
            for team in self.state.teams.values():
                team.current_round_decisions = []
                team.draft_decision_ids = []
                team.has_submitted = False
                team.round_tsr = 0.0
            self._start_timer()
            logger.info(
                "Game started",
                extra={"claimed_teams": len(self.state.claimed_teams()), "round_duration": self.state.round_duration},
            )
            self._notify_state()
            return OperationResult.ok()

    def pause_round(self) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_ACTIVE:
                return self._reject("Only an active round can be paused")
            self._stop_timer()
            self.state.status = STATUS_PAUSED
            logger.info("Round paused", extra={"round": self.state.current_round})
            self._notify_state()
            return OperationResult.ok()

    def resume_round(self) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_PAUSED:
                return self._reject("Only a paused round can be resumed")
            self.state.status = STATUS_ACTIVE
            self._start_timer()
            logger.info("Round resumed", extra={"round": self.state.current_round})
            self._notify_state()
            return OperationResult.ok()

    def end_round(self) -> OperationResult:
        with self._lock:
            if self.state.status not in (STATUS_ACTIVE, STATUS_PAUSED):
                return self._reject("No round in progress")
            self._process_round_end()
            return OperationResult.ok()

    def next_round(self) -> OperationResult:
        with self._lock:
            if self.state.status != STATUS_RESULTS:
                return self._reject("Round results are not ready")
            if self.state.current_round >= self.config.game.total_rounds:
                self._finalize_game()
                return OperationResult.ok()

            for team in self.state.teams.values():
                if team.is_claimed:
                    team.cash_balance = self.cash_replenishment.next_cash(team.current_round_decisions)
                team.all_decisions.extend(team.current_round_decisions)
                team.current_round_decisions = []
                team.draft_decision_ids = []
                team.has_submitted = False

            self.state.current_round += 1
            self.state.scenario = create_scenario_state(self.state.current_round)
            self.state.status = STATUS_ACTIVE
            self.state.round_started_at = datetime.now().isoformat()
            self.state.round_time_remaining = self.state.round_duration + self.config.game.countdown_offset_seconds
            self._start_timer()
            logger.info(
                "Round started",
                extra={"round": self.state.current_round, "scenario": self.state.scenario.scenario_type},
            )
            self._notify_state()
            return OperationResult.ok()

    def trigger_event(self, event_type: str) -> OperationResult:
        with self._lock:
            if self.state.status not in (STATUS_ACTIVE, STATUS_PAUSED):
                return self._reject("Events can only be triggered during a round")
            event = get_special_event(event_type)
            if event is None:
                return self._reject(f"Unknown event type: {event_type}")
            scenario = self.state.scenario
            scenario.event_triggered = True
            scenario.event_type = event.event_type
            scenario.event_description = event.description
            logger.info("Special event triggered", extra={"event_type": event_type, "round": self.state.current_round})
            self._notify_state()
            return OperationResult.ok()

    def reset_game(self) -> OperationResult:
        with self._lock:
            self._stop_timer()
            self._timer_generation += 1
            self.state = self._new_game_state(self.state.team_count, self.state.round_duration)
            self._round_histories = {}
            self._round_results = {}
            self._final_results = None
            logger.info("Game reset", extra={"team_count": self.state.team_count})
            self._notify_state()
            return OperationResult.ok()

    # --- settlement ---

    def _auto_submit(self, team: TeamState) -> None:
        """Commit the affordable, available part of a team's draft, in draft order."""
        chosen: List[Decision] = []
        remaining = team.cash_balance
        for decision_id in team.draft_decision_ids:
            decision = self._available_decision(decision_id)
            if decision is None or decision in chosen or decision.cost > remaining:
                continue
            chosen.append(decision)
            remaining -= decision.cost
        self._commit(team, chosen)
        logger.debug("Auto-submitted team", extra={"team_id": team.team_id, "decisions": [d.id for d in chosen]})

    def _revenue_shock_for(self, team: TeamState) -> float:
        scenario = self.state.scenario
        if not scenario.event_triggered:
            return 0.0
        event = get_special_event(scenario.event_type)
        if event is None:
            return 0.0
        held = {d.decision_id for d in team.all_decisions} | {d.decision_id for d in team.current_round_decisions}
        if held.intersection(event.affected_decisions):
            return 0.0
        return event.revenue_shock

    def _settle_team(self, team: TeamState) -> None:
        round_number = self.state.current_round
        for team_decision in team.current_round_decisions:
            self.risk_resolver.resolve(self.state.risky_events, team.team_id, team_decision.decision_id)

        previous_price = team.stock_price
        team.metrics = self.financial_model.apply_round(
            team.metrics,
            team.all_decisions + team.current_round_decisions,
            self.state.scenario.modifiers,
            self.state.risky_events.triggered_events,
            round_number,
            self._revenue_shock_for(team),
        )
        team.stock_price = team.metrics.share_price
        team.round_tsr = (team.stock_price - previous_price) / previous_price if previous_price else 0.0
        team.cumulative_tsr = (team.stock_price - BASELINE_SHARE_PRICE) / BASELINE_SHARE_PRICE

    def _process_round_end(self) -> None:
        self._stop_timer()
        self._timer_generation += 1
        round_number = self.state.current_round
        claimed = sorted(self.state.claimed_teams(), key=lambda t: t.team_id)

        for team in claimed:
            if not team.has_submitted:
                self._auto_submit(team)
        for team in claimed:
            self._settle_team(team)

        self.results_generator.capture_round_snapshots(round_number, claimed, self._round_histories)
        results = self.results_generator.generate_round_results(
            round_number, self.state.scenario, claimed, self.state.risky_events,
        )
        self._round_results[round_number] = results
        self.state.status = STATUS_RESULTS
        self.state.round_time_remaining = 0
        logger.info("Round settled", extra={"round": round_number, "teams": len(claimed)})
        self._notify('on_round_end', copy.deepcopy(results))
        self._notify_state()

    def _finalize_game(self) -> None:
        for team in self.state.teams.values():
            team.all_decisions.extend(team.current_round_decisions)
            team.current_round_decisions = []
        claimed = sorted(self.state.claimed_teams(), key=lambda t: t.team_id)
        self._final_results = self.results_generator.generate_final_results(
            claimed, self.state.risky_events, self._round_histories,
        )
        self.state.status = STATUS_FINISHED
        logger.info("Game finalized", extra={"winner_id": self._final_results.winner_id})
        self._notify('on_game_end', copy.deepcopy(self._final_results))
        self._notify_state()

    # --- reads ---

    def get_state(self) -> GameState:
        with self._lock:
            return self.state.snapshot()

    def get_status(self) -> str:
        with self._lock:
            return self.state.status

    def get_current_round(self) -> int:
        with self._lock:
            return self.state.current_round

    def get_team_state(self, team_id: int) -> Optional[TeamState]:
        with self._lock:
            team = self.state.teams.get(team_id)
            return copy.deepcopy(team) if team is not None else None

    def get_team_id_for_connection(self, connection_id: str) -> Optional[int]:
        with self._lock:
            team = self._team_for_connection(connection_id)
            return team.team_id if team is not None else None

    def get_available_decisions(self) -> List[Decision]:
        with self._lock:
            return self.catalog.decisions_for_round(self.state.current_round)

    def get_last_round_results(self) -> Optional[RoundResults]:
        with self._lock:
            if not self._round_results:
                return None
            return copy.deepcopy(self._round_results[max(self._round_results)])

    def get_round_results(self, round_number: int) -> Optional[RoundResults]:
        with self._lock:
            results = self._round_results.get(round_number)
            return copy.deepcopy(results) if results is not None else None

    def get_final_results(self) -> Optional[FinalResults]:
        with self._lock:
            return copy.deepcopy(self._final_results)

    def get_team_submission_info(self) -> List[TeamSubmissionInfo]:
        with self._lock:
            return [
                TeamSubmissionInfo(
                    team_id=t.team_id,
                    team_name=t.team_name,
                    is_claimed=t.is_claimed,
                    has_submitted=t.has_submitted,
                    connection_id=t.connection_id,
                    decisions_count=len(t.current_round_decisions),
                )
                for t in sorted(self.state.teams.values(), key=lambda t: t.team_id)
            ]

    def get_round_histories(self) -> Dict[int, List[TeamRoundSnapshot]]:
        with self._lock:
            return copy.deepcopy(self._round_histories)

    def get_scoreboard(self) -> List[Dict[str, Any]]:
        """Claimed teams ranked by cumulative TSR, with stock price per settled round."""
        with self._lock:
            ranked = self.results_generator.rank_teams(self.state.claimed_teams())
            return [
                {
                    'rank': rank,
                    'team_id': team.team_id,
                    'team_name': team.team_name,
                    'stock_price': team.stock_price,
                    'cumulative_tsr': team.cumulative_tsr,
                    'stock_prices_by_round': {
                        snap.round: snap.stock_price for snap in self._round_histories.get(team.team_id, [])
                    },
                }
                for rank, team in enumerate(ranked, start=1)
            ]

    def get_health(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'status': self.state.status,
                'current_round': self.state.current_round,
                'claimed_teams': len(self.state.claimed_teams()),
                'team_count': self.state.team_count,
                'submitted_teams': sum(1 for t in self.state.claimed_teams() if t.has_submitted),
                'catalog': self.catalog.validation.to_dict(),
                'catalog_source': self.decision_provider.source,
                'config': AppConfig.check_availability(),
            }
