"""Shared test fixtures for orchestration tests."""
from unittest.mock import MagicMock

import numpy as np
import pytest

from tsr_challenge.core.config import AppConfig, CatalogConfig, GameConfig
from tsr_challenge.orchestration.round_orchestrator import RoundOrchestrator
from tsr_challenge.orchestration.scheduler import ManualTickScheduler
from tsr_challenge.services.event_sink import GameEventSink


@pytest.fixture
def app_config(monkeypatch):
    """Four teams, one-minute rounds, built-in catalog."""
    monkeypatch.delenv('DECISION_CATALOG_PATH', raising=False)
    return AppConfig(game=GameConfig(team_count=4, round_duration_seconds=60), catalog=CatalogConfig())


@pytest.fixture
def scheduler():
    return ManualTickScheduler()


@pytest.fixture
def event_sink():
    return MagicMock(spec=GameEventSink)


@pytest.fixture
def orchestrator(app_config, scheduler, event_sink):
    return RoundOrchestrator(
        config=app_config, event_sink=event_sink, scheduler=scheduler, rng=np.random.default_rng(42),
    )


@pytest.fixture
def started_game(orchestrator):
    """Two joined teams (conn-a -> 1, conn-b -> 2) in an active round 1."""
    orchestrator.join_game('Alpha', 'conn-a')
    orchestrator.join_game('Bravo', 'conn-b')
    assert orchestrator.start_game().success
    return orchestrator


def play_round(orchestrator, submissions=None):
    """Submit the given {connection: ids}, settle the round and return its results."""
    for connection_id, decision_ids in (submissions or {}).items():
        result = orchestrator.submit_decisions(connection_id, decision_ids)
        assert result.success, result.error
    assert orchestrator.end_round().success
    return orchestrator.get_last_round_results()


@pytest.fixture
def round_player():
    return play_round
