"""Bundled configuration files and loaders.

Rule tables, budget tables and seed data are stored in JSON files next to
this module so they can be extended without code changes.
"""

from .loader import (
    get_budget_config,
    get_debt_config,
    get_income_config,
    get_rules_config,
    load_config,
)

__all__ = [
    'load_config',
    'get_budget_config',
    'get_debt_config',
    'get_income_config',
    'get_rules_config',
]
