import logging
from typing import Optional, Sequence

import numpy as np

from tsr_challenge.core.config import CashReplenishmentConfig
from tsr_challenge.core.types import CATEGORY_GROW, CATEGORY_OPTIMIZE, CATEGORY_SUSTAIN, TeamDecision

logger = logging.getLogger(__name__)


class CashReplenishment:
    """Bounded, randomized cash budget for the next round.

    Grow spend earns a high return, optimize spend a modest one, sustain spend
    costs a little to carry; a market factor then scales the total.
    """

    def __init__(self, config: Optional[CashReplenishmentConfig] = None, rng: Optional[np.random.Generator] = None):
        self.config = config or CashReplenishmentConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def next_cash(self, round_decisions: Sequence[TeamDecision]) -> float:
        spend = {CATEGORY_GROW: 0.0, CATEGORY_OPTIMIZE: 0.0, CATEGORY_SUSTAIN: 0.0}
        for decision in round_decisions:
            spend[decision.category] = spend.get(decision.category, 0.0) + decision.actual_cost

        cfg = self.config
        cash = cfg.base_cash
        cash += spend[CATEGORY_GROW] * self.rng.uniform(*cfg.grow_return_range)
        cash += spend[CATEGORY_OPTIMIZE] * self.rng.uniform(*cfg.optimize_return_range)
        cash -= spend[CATEGORY_SUSTAIN] * cfg.sustain_carrying_cost
        cash *= self.rng.uniform(*cfg.market_factor_range)

        cash = float(np.clip(round(cash), cfg.min_cash, cfg.max_cash))
        logger.debug("Replenished cash", extra={"spend": spend, "cash": cash})
        return cash
