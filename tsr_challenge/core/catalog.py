import logging
from typing import Dict, Iterable, List, Optional

from tsr_challenge.core.types import DECISION_CATEGORIES, CatalogValidation, Decision

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class DecisionCatalog:
    """Static, validated table of decisions keyed by id and round availability.

    Validation never raises; it returns a CatalogValidation so the host can
    decide whether to start degraded. Entries with errors are reported and
    left out of every lookup.
    """
    MIN_ROUND: int = 1
    MAX_ROUND: int = 5
    MIN_MAGNITUDE: int = 1
    MAX_MAGNITUDE: int = 5
    NUMERIC_FIELDS = ('revenue_impact', 'cogs_impact', 'sga_impact', 'recurring_benefit')
    INTEGER_FIELDS = ('impact_magnitude', 'duration_years', 'ramp_up_years')

    def __init__(self, decisions: Iterable[Decision], load_errors: Optional[Iterable[str]] = None):
        """load_errors are rows the data source could not turn into Decisions."""
        self._decisions: List[Decision] = list(decisions)
        self._load_errors: List[str] = list(load_errors or [])
        self._by_id: Dict[str, Decision] = {}
        for index, decision in enumerate(self._decisions):
            # first occurrence wins; duplicates are reported by validate()
            if not self._decision_errors(index, decision) and decision.id not in self._by_id:
                self._by_id[decision.id] = decision
        self.validation = self.validate()

    def __len__(self) -> int:
        return len(self._decisions)

    def _usable(self, decision: Decision) -> bool:
        return isinstance(decision.id, str) and self._by_id.get(decision.id) is decision

    def all_decisions(self) -> List[Decision]:
        return list(self._decisions)

    def decisions_for_round(self, round_number: int) -> List[Decision]:
        """Decisions available in `round_number`, in catalog order."""
        return [d for d in self._decisions if self._usable(d) and round_number in d.available_rounds]

    def decision_by_id(self, decision_id: str) -> Optional[Decision]:
        return self._by_id.get(decision_id)

    def risky_decisions(self) -> List[Decision]:
        """Risky decisions in stable catalog order (the resolver's enumeration)."""
        return [d for d in self._decisions if self._usable(d) and d.is_risky]

    def _decision_errors(self, index: int, d: Decision) -> List[str]:
        label = d.id if isinstance(d.id, str) and d.id else f"#{index}"
        errors: List[str] = []
        if not isinstance(d.id, str) or not d.id:
            errors.append(f"Decision #{index} has no id")
        if d.category not in DECISION_CATEGORIES:
            errors.append(f"{label}: invalid category '{d.category}'")

        if not _is_number(d.cost):
            errors.append(f"{label}: cost must be a number, got {d.cost!r}")
        elif d.cost <= 0:
            errors.append(f"{label}: cost must be positive")

        if not d.available_rounds:
            errors.append(f"{label}: available_rounds is empty")
        elif not all(_is_integer(r) for r in d.available_rounds):
            errors.append(f"{label}: available_rounds must contain integers")
        else:
            bad_rounds = [r for r in d.available_rounds if not self.MIN_ROUND <= r <= self.MAX_ROUND]
            if bad_rounds:
                errors.append(f"{label}: rounds out of range {bad_rounds}")

        for name in self.NUMERIC_FIELDS:
            if not _is_number(getattr(d, name)):
                errors.append(f"{label}: {name} must be a number")
        for name in self.INTEGER_FIELDS:
            if not _is_integer(getattr(d, name)):
                errors.append(f"{label}: {name} must be an integer")
        if _is_integer(d.impact_magnitude) and not self.MIN_MAGNITUDE <= d.impact_magnitude <= self.MAX_MAGNITUDE:
            errors.append(f"{label}: impact magnitude must be between 1 and 5")
        if _is_integer(d.duration_years) and d.duration_years < 1:
            errors.append(f"{label}: duration_years must be >= 1")
        if _is_integer(d.ramp_up_years) and d.ramp_up_years < 1:
            errors.append(f"{label}: ramp_up_years must be >= 1")
        return errors

    def validate(self) -> CatalogValidation:
        errors: List[str] = list(self._load_errors)
        seen = set()
        for index, d in enumerate(self._decisions):
            errors.extend(self._decision_errors(index, d))
            if isinstance(d.id, str) and d.id:
                if d.id in seen:
                    errors.append(f"Duplicate decision id: {d.id}")
                seen.add(d.id)

        if not any(d.is_risky for d in self._decisions if self._usable(d)):
            errors.append("Catalog has no risky decisions")

        if errors:
            logger.error("Decision catalog validation failed", extra={"error_count": len(errors), "errors": errors})
        return CatalogValidation(valid=not errors, errors=errors)
