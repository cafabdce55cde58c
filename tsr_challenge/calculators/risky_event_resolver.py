import logging
from typing import List, Optional

import numpy as np

from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.types import Decision, RiskResolution, RiskyEventState

logger = logging.getLogger(__name__)


class RiskyEventResolver:
    """Decides, once per game, which risky decision goes wrong.

    Risky decisions are enumerated in catalog order. The decision at
    `active_event_index` triggers for every team that picks it; every other
    risky decision resolves positively. Verdicts are cached per decision id.
    """

    def __init__(self, catalog: DecisionCatalog, rng: Optional[np.random.Generator] = None):
        """rng is injectable for deterministic tests."""
        self.catalog = catalog
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def risky_decisions(self) -> List[Decision]:
        return self.catalog.risky_decisions()

    def create_state(self) -> RiskyEventState:
        risky = self.risky_decisions
        if not risky:
            logger.warning("Catalog has no risky decisions; no risk will trigger this game")
            return RiskyEventState(active_event_index=-1)
        index = int(self.rng.integers(0, len(risky)))
        logger.debug("Drew risky event index", extra={"active_event_index": index, "risky_count": len(risky)})
        return RiskyEventState(active_event_index=index)

    def destined_decision_id(self, state: RiskyEventState) -> Optional[str]:
        risky = self.risky_decisions
        if not 0 <= state.active_event_index < len(risky):
            return None
        return risky[state.active_event_index].id

    def resolve(self, state: RiskyEventState, team_id: int, decision_id: str) -> RiskResolution:
        decision = self.catalog.decision_by_id(decision_id)
        if decision is None or not decision.is_risky:
            return RiskResolution(team_id=team_id, decision_id=decision_id, triggered=False)

        if decision_id not in state.triggered_events:
            state.triggered_events[decision_id] = decision_id == self.destined_decision_id(state)
            logger.debug(
                "Resolved risky decision",
                extra={"decision_id": decision_id, "triggered": state.triggered_events[decision_id]},
            )
        return RiskResolution(team_id=team_id, decision_id=decision_id, triggered=state.triggered_events[decision_id])
