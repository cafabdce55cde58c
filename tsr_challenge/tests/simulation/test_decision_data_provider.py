"""Tests for DecisionDataProvider."""
import json
from unittest.mock import Mock

import pytest

from tsr_challenge.core.catalog import DecisionCatalog
from tsr_challenge.core.config import CatalogConfig
from tsr_challenge.core.decisions import DEFAULT_DECISION_ROWS
from tsr_challenge.services.decision_data_provider import DecisionDataProvider


SAMPLE_ROWS = [
    {'id': 'alpha', 'name': 'Alpha', 'category': 'grow', 'cost': 100, 'available_rounds': [1, 2], 'is_risky': True},
    {'id': 'beta', 'name': 'Beta', 'category': 'sustain', 'cost': 50, 'available_rounds': [3]},
]


class TestDecisionDataProvider:
    """Test suite for DecisionDataProvider."""

    def test_builtin_catalog(self, monkeypatch):
        monkeypatch.delenv('DECISION_CATALOG_PATH', raising=False)
        provider = DecisionDataProvider(CatalogConfig())
        decisions = provider.get_decisions()

        assert provider.source == 'built-in'
        assert len(decisions) == len(DEFAULT_DECISION_ROWS)
        assert decisions[0].available_rounds == (1, 2, 3, 5)

    def test_reads_json_list(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps(SAMPLE_ROWS), encoding='utf-8')
        provider = DecisionDataProvider(CatalogConfig(catalog_path=path))

        decisions = provider.get_decisions()

        assert provider.source == str(path)
        assert [d.id for d in decisions] == ['alpha', 'beta']
        assert decisions[0].is_risky

    def test_reads_json_object(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({'decisions': SAMPLE_ROWS}), encoding='utf-8')

        assert len(DecisionDataProvider(CatalogConfig(catalog_path=path)).get_rows()) == 2

    def test_rejects_non_list_payload(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({'decisions': 'nope'}), encoding='utf-8')

        with pytest.raises(ValueError):
            DecisionDataProvider(CatalogConfig(catalog_path=path)).get_rows()

    def test_decisions_are_cached(self, tmp_path):
        loader = Mock(return_value=SAMPLE_ROWS)
        provider = DecisionDataProvider(CatalogConfig(catalog_path=tmp_path / 'x.json'), row_loader=loader)

        provider.get_decisions()
        provider.get_decisions()
        assert loader.call_count == 1

        provider.clear_cache()
        provider.get_decisions()
        assert loader.call_count == 2

    def test_malformed_rows_are_reported_not_raised(self, tmp_path):
        rows = SAMPLE_ROWS + [
            {'id': 'gamma', 'name': 'Gamma', 'category': 'grow', 'cost': 80, 'available_rounds': [2],
             'description': 'extra keys are ignored'},
            {'id': 'delta', 'name': 'Delta', 'category': 'grow', 'cost': '500', 'available_rounds': [1]},
            {'id': 'epsilon', 'name': 'Epsilon', 'cost': 10, 'available_rounds': [1]},
            'not-a-row',
        ]
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps(rows), encoding='utf-8')
        provider = DecisionDataProvider(CatalogConfig(catalog_path=path))

        decisions = provider.get_decisions()

        assert [d.id for d in decisions] == ['alpha', 'beta', 'gamma', 'delta']
        assert len(provider.load_errors) == 2
        assert provider.load_errors[0].startswith('Row #4:')
        assert provider.load_errors[1].startswith('Row #5:')

        catalog = DecisionCatalog(decisions, load_errors=provider.load_errors)
        assert not catalog.validation.valid
        assert any('delta: cost must be a number' in e for e in catalog.validation.errors)
        assert catalog.decision_by_id('delta') is None
        assert catalog.decision_by_id('gamma') is not None

        provider.clear_cache()
        assert provider.load_errors == []
