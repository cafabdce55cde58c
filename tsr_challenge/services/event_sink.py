import logging

from tsr_challenge.core.types import FinalResults, GameState, RoundResults

logger = logging.getLogger(__name__)


class GameEventSink:
    """Callbacks the orchestrator fires after state changes. Default: do nothing.

    Transport layers subclass this to broadcast; every callback receives a
    snapshot, never the live aggregate.
    """

    def on_state_change(self, state: GameState) -> None:
        pass

    def on_timer_tick(self, seconds_remaining: int) -> None:
        pass

    def on_round_end(self, results: RoundResults) -> None:
        pass

    def on_game_end(self, results: FinalResults) -> None:
        pass


class LoggingEventSink(GameEventSink):
    """Logs lifecycle summaries. Used when no sink is injected."""

    def on_state_change(self, state: GameState) -> None:
        logger.debug(
            "Game state changed",
            extra={"status": state.status, "round": state.current_round, "claimed": len(state.claimed_teams())},
        )

    def on_round_end(self, results: RoundResults) -> None:
        leader = results.team_results[0] if results.team_results else None
        logger.info(
            "Round ended",
            extra={
                "round": results.round,
                "scenario": results.scenario_type,
                "leader_id": leader.team_id if leader else None,
                "triggered_risks": [o.decision_id for o in results.risky_outcomes if o.triggered],
            },
        )

    def on_game_end(self, results: FinalResults) -> None:
        logger.info("Game finished", extra={"winner_id": results.winner_id, "summary": results.simulation_summary})
