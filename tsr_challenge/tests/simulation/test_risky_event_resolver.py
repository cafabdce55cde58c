"""Tests for RiskyEventResolver."""
import numpy as np
from unittest.mock import Mock

from tsr_challenge.calculators.risky_event_resolver import RiskyEventResolver
from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.types import RiskyEventState


class TestRiskyEventResolver:
    """Test suite for RiskyEventResolver."""

    def test_create_state_uses_injected_rng(self, catalog):
        rng = Mock()
        rng.integers.return_value = 3
        resolver = RiskyEventResolver(catalog, rng)

        state = resolver.create_state()

        rng.integers.assert_called_once_with(0, 5)
        assert state.active_event_index == 3
        assert state.triggered_events == {}
        assert resolver.destined_decision_id(state) == 'lights_out_factory'

    def test_same_seed_same_draw(self, catalog):
        first = RiskyEventResolver(catalog, np.random.default_rng(99)).create_state()
        second = RiskyEventResolver(catalog, np.random.default_rng(99)).create_state()

        assert first.active_event_index == second.active_event_index
        assert 0 <= first.active_event_index < 5

    def test_only_destined_decision_triggers(self, catalog, risky_state):
        resolver = RiskyEventResolver(catalog, np.random.default_rng(0))

        assert resolver.resolve(risky_state, 1, 'ev_investment').triggered is True
        assert resolver.resolve(risky_state, 2, 'acquire_competitor').triggered is False
        assert resolver.resolve(risky_state, 3, 'offshore_engineering').triggered is False
        assert risky_state.triggered_events == {
            'ev_investment': True, 'acquire_competitor': False, 'offshore_engineering': False,
        }

    def test_verdict_is_shared_and_cached(self, catalog, risky_state):
        resolver = RiskyEventResolver(catalog, np.random.default_rng(0))
        first = resolver.resolve(risky_state, 1, 'ev_investment')
        # a tampered index must not change an already-cached verdict
        risky_state.active_event_index = 4
        second = resolver.resolve(risky_state, 7, 'ev_investment')

        assert first.triggered == second.triggered is True
        assert second.team_id == 7

    def test_non_risky_decision_never_triggers(self, catalog, risky_state):
        resolver = RiskyEventResolver(catalog, np.random.default_rng(0))
        resolution = resolver.resolve(risky_state, 1, 'expand_capacity')

        assert resolution.triggered is False
        assert 'expand_capacity' not in risky_state.triggered_events

    def test_catalog_without_risky_decisions(self, catalog):
        safe = DecisionCatalog([d for d in catalog.all_decisions() if not d.is_risky])
        resolver = RiskyEventResolver(safe, np.random.default_rng(0))
        state = resolver.create_state()

        assert state.active_event_index == -1
        assert resolver.destined_decision_id(state) is None

    def test_out_of_range_index_has_no_destined_decision(self, catalog):
        resolver = RiskyEventResolver(catalog, np.random.default_rng(0))
        assert resolver.destined_decision_id(RiskyEventState(active_event_index=12)) is None
