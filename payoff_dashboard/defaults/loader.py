"""Readers for the JSON tables shipped next to this module."""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

DEFAULTS_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _read(name: str) -> Dict[str, Any]:
    path = DEFAULTS_DIR / f"{name}.json"
    if not path.exists():
        raise FileNotFoundError(f"Bundled defaults not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_config(name: str) -> Dict[str, Any]:
    """Return a fresh copy of the bundled table ``name``.

    Callers are free to mutate the result.

    Raises:
        FileNotFoundError: If no ``<name>.json`` ships with the package
        json.JSONDecodeError: If the file is not valid JSON

    Example:
        >>> load_config('budgets')['phase_budgets']['1']['Groceries']
        600
    """
    return copy.deepcopy(_read(name))


def get_budget_config() -> Dict[str, Any]:
    """Phase tables, default settings and one-time merchants."""
    return load_config('budgets')


def get_rules_config() -> Dict[str, Any]:
    return load_config('category_rules')


def get_debt_config() -> Dict[str, Any]:
    """Seed debts, milestone thresholds and the milestone ladder."""
    return load_config('debts')


def get_income_config() -> Dict[str, Any]:
    return load_config('income')
