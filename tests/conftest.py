from __future__ import annotations

import pytest

from payoff_dashboard import category_rules, config
from payoff_dashboard.storage import MemoryStore


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep user rule overrides and stored files out of the real data dir."""
    data_dir = tmp_path / 'data'
    monkeypatch.setattr(config, 'DATA_DIR', data_dir)
    monkeypatch.setattr(config, 'USER_RULES_PATH', data_dir / 'category_rules.json')
    monkeypatch.setattr(category_rules, '_default_rules', None)
    return data_dir


@pytest.fixture
def rules():
    return category_rules.get_rule_set()


@pytest.fixture
def store():
    return MemoryStore()
