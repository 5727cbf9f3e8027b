"""Budget settings: weekly budget, budget phase, category overrides, rollover."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .. import storage
from ..defaults import get_budget_config

BUDGET_PHASES = (1, 2)


@dataclass
class BudgetSettings:
    weekly_budget: float = 500.0
    budget_phase: int = 1
    custom_category_budgets: Optional[Dict[str, float]] = None
    enable_rollover: bool = True

    @classmethod
    def defaults(cls) -> 'BudgetSettings':
        return cls.from_dict(get_budget_config().get('default_settings', {}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BudgetSettings':
        custom = data.get('custom_category_budgets')
        return cls(
            weekly_budget=float(data.get('weekly_budget', 500.0)),
            budget_phase=int(data.get('budget_phase', 1)),
            custom_category_budgets={k: float(v) for k, v in custom.items()} if custom else None,
            enable_rollover=bool(data.get('enable_rollover', True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def phase_budgets(phase: int) -> Dict[str, float]:
    """Default category budgets for a budget phase."""
    tables = get_budget_config()['phase_budgets']
    table = tables.get(str(phase), tables['1'])
    return {category: float(amount) for category, amount in table.items()}


def category_budgets(settings: BudgetSettings) -> Dict[str, float]:
    """Per-category budgets: custom overrides when set, else the phase table."""
    if settings.custom_category_budgets:
        return dict(settings.custom_category_budgets)
    return phase_budgets(settings.budget_phase)


def total_monthly_budget(settings: BudgetSettings) -> float:
    return float(sum(category_budgets(settings).values()))


def _non_negative(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be a number, got {value!r}") from None
    if number != number or number < 0:
        raise ValueError(f"{field_name} must be a non-negative number, got {value!r}")
    return number


class BudgetSettingsStore:
    """Budget settings persisted under a single store key.

    Invalid input raises ``ValueError`` and leaves the stored settings as
    they were.
    """

    def __init__(self, store):
        self.store = store

    def load(self) -> BudgetSettings:
        data = self.store.get(storage.SETTINGS_KEY)
        if not isinstance(data, dict):
            return BudgetSettings.defaults()
        merged = {**BudgetSettings.defaults().to_dict(), **data}
        return BudgetSettings.from_dict(merged)

    def save(self, settings: BudgetSettings) -> BudgetSettings:
        self.store.set(storage.SETTINGS_KEY, settings.to_dict())
        return settings

    def set_weekly_budget(self, amount: Any) -> BudgetSettings:
        settings = self.load()
        settings.weekly_budget = _non_negative(amount, 'weekly_budget')
        return self.save(settings)

    def set_budget_phase(self, phase: Any) -> BudgetSettings:
        """Switch phase; custom category budgets are cleared."""
        try:
            phase = int(phase)
        except (TypeError, ValueError):
            raise ValueError(f"budget_phase must be one of {BUDGET_PHASES}, got {phase!r}") from None
        if phase not in BUDGET_PHASES:
            raise ValueError(f"budget_phase must be one of {BUDGET_PHASES}, got {phase!r}")
        settings = self.load()
        settings.budget_phase = phase
        settings.custom_category_budgets = None
        return self.save(settings)

    def set_custom_category_budgets(self, budgets: Optional[Mapping[str, Any]]) -> BudgetSettings:
        cleaned = None
        if budgets:
            cleaned = {category: _non_negative(amount, category) for category, amount in budgets.items()}
        settings = self.load()
        settings.custom_category_budgets = cleaned
        return self.save(settings)

    def set_enable_rollover(self, enabled: bool) -> BudgetSettings:
        settings = self.load()
        settings.enable_rollover = bool(enabled)
        return self.save(settings)

    def reset(self) -> BudgetSettings:
        self.store.remove(storage.SETTINGS_KEY)
        return self.load()
