"""Category Rules - layered mapping of transactions to budget categories.

A transaction is classified by trying, strictly in order:

1. Tag rules (exact tag match, highest priority - user intent)
2. Merchant keyword rules (case-insensitive substring of the name)
3. Parent category map
4. Raw category map
5. Fallback to ``Uncategorized``

The tables are data, loaded from ``defaults/category_rules.json`` and
optionally extended by a user file in the data directory. Classification is
never cached on the transaction as ground truth; callers re-run it whenever
transactions are read because the tables may change.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from . import config
from .defaults import get_budget_config, get_rules_config

logger = logging.getLogger(__name__)

UNCATEGORIZED = 'Uncategorized'
TIER_NAMES = ('flexible', 'trackable', 'fixed', 'other')
EXCLUDED_TYPES = {'income', 'internal_transfer', 'internal transfer'}


@dataclass(frozen=True)
class MerchantRule:
    """Map any of ``keywords`` found in a transaction name to ``category``."""
    keywords: Tuple[str, ...]
    category: str

    def match(self, name: str) -> Optional[str]:
        name_lower = name.lower()
        for keyword in self.keywords:
            if keyword.lower() in name_lower:
                return keyword
        return None


@dataclass(frozen=True)
class CategoryMatch:
    budget_category: str
    source: str
    confidence: str


@dataclass
class CategoryRuleSet:
    """All lookup tables used by :func:`classify`."""
    tiers: Dict[str, List[str]]
    tag_rules: Dict[str, str]
    merchant_rules: List[MerchantRule]
    parent_category_map: Dict[str, str]
    category_map: Dict[str, str]
    payment_patterns: List[Pattern[str]] = field(default_factory=list)
    payment_category_markers: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: Dict[str, str] = {}
        for tier, categories in self.tiers.items():
            for category in categories:
                if category in seen:
                    raise ValueError(
                        f"Category '{category}' is listed in both '{seen[category]}' and '{tier}' tiers"
                    )
                seen[category] = tier
        self._tier_lookup = seen

    def tier_of(self, category: str) -> Optional[str]:
        return self._tier_lookup.get(category)

    @property
    def all_categories(self) -> List[str]:
        return [c for tier in TIER_NAMES for c in self.tiers.get(tier, [])]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _deep_merge(base: Any, incoming: Any) -> Any:
    """Recursively merge a user rules fragment over the bundled one."""
    if isinstance(base, dict) and isinstance(incoming, dict):
        merged: Dict[str, Any] = dict(base)
        for key, value in incoming.items():
            merged[key] = _deep_merge(merged[key], value) if key in merged else value
        return merged
    return incoming


def _build_rule_set(data: Mapping[str, Any]) -> CategoryRuleSet:
    return CategoryRuleSet(
        tiers={tier: list(data.get('tiers', {}).get(tier, [])) for tier in TIER_NAMES},
        tag_rules=dict(data.get('tag_rules', {})),
        merchant_rules=[
            MerchantRule(keywords=tuple(rule['keywords']), category=rule['category'])
            for rule in data.get('merchant_rules', [])
            if rule.get('keywords') and rule.get('category')
        ],
        parent_category_map=dict(data.get('parent_category_map', {})),
        category_map=dict(data.get('category_map', {})),
        payment_patterns=[re.compile(p, re.IGNORECASE) for p in data.get('payment_patterns', [])],
        payment_category_markers=[m.lower() for m in data.get('payment_category_markers', [])],
    )


def load_rule_set(user_rules_path: Optional[Path] = None) -> CategoryRuleSet:
    """Load the bundled rules, merged with a user rules file when one exists.

    User merchant rules are evaluated before the bundled ones; user tag and
    category entries override bundled entries with the same key.

    Raises:
        ValueError: If a category is assigned to more than one tier.
    """
    data = get_rules_config()
    path = Path(user_rules_path) if user_rules_path is not None else config.USER_RULES_PATH
    if path.exists():
        try:
            with path.open('r', encoding='utf-8') as handle:
                user_data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable category rules at %s: %s", path, exc)
            user_data = {}
        if isinstance(user_data, dict):
            user_merchants = user_data.pop('merchant_rules', [])
            data = _deep_merge(data, user_data)
            data['merchant_rules'] = list(user_merchants) + list(data.get('merchant_rules', []))
    return _build_rule_set(data)


_default_rules: Optional[CategoryRuleSet] = None


def get_rule_set() -> CategoryRuleSet:
    """Return the process-wide rule set, loading it on first use."""
    global _default_rules
    if _default_rules is None:
        _default_rules = load_rule_set()
    return _default_rules


def reload_rule_set() -> CategoryRuleSet:
    """Force the rule tables to be re-read (e.g. after the user edits rules)."""
    global _default_rules
    _default_rules = load_rule_set()
    return _default_rules


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _get(transaction: Any, name: str, default: Any = None) -> Any:
    if isinstance(transaction, Mapping):
        return transaction.get(name, default)
    return getattr(transaction, name, default)


def _tag_list(tags: Any) -> List[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(',') if t.strip()]
    return [str(t).strip() for t in tags if str(t).strip()]


def classify(transaction: Any, rules: Optional[CategoryRuleSet] = None) -> CategoryMatch:
    """Classify a transaction into a budget category.

    Any cached ``budget_category`` on the transaction is ignored.

    Args:
        transaction: A :class:`~payoff_dashboard.models.Transaction` or a
            mapping with ``name``, ``tags``, ``category`` and ``parent_category``.
        rules: Rule tables to use; defaults to :func:`get_rule_set`.

    Returns:
        CategoryMatch with the budget category, the rule that produced it
        (``tag:<tag>``, ``merchant:<keyword>``, ``parent:<name>``,
        ``category:<name>`` or ``fallback``) and a confidence label.
    """
    rules = rules or get_rule_set()

    for tag in _tag_list(_get(transaction, 'tags')):
        if tag in rules.tag_rules:
            return CategoryMatch(rules.tag_rules[tag], f"tag:{tag}", 'high')

    name = _get(transaction, 'name') or ''
    if name:
        for rule in rules.merchant_rules:
            keyword = rule.match(name)
            if keyword is not None:
                return CategoryMatch(rule.category, f"merchant:{keyword}", 'high')

    parent = _get(transaction, 'parent_category')
    if parent and parent in rules.parent_category_map:
        return CategoryMatch(rules.parent_category_map[parent], f"parent:{parent}", 'medium')

    category = _get(transaction, 'category')
    if category and category in rules.category_map:
        return CategoryMatch(rules.category_map[category], f"category:{category}", 'medium')

    return CategoryMatch(UNCATEGORIZED, 'fallback', 'low')


def apply_mapping(transactions: Iterable[Any], rules: Optional[CategoryRuleSet] = None) -> List[Any]:
    """Return copies of ``transactions`` with freshly derived category fields."""
    rules = rules or get_rule_set()
    mapped = []
    for txn in transactions:
        match = classify(txn, rules)
        mapped.append(txn.with_mapping(match.budget_category, match.source, match.confidence))
    return mapped


def map_category(raw_category: str, rules: Optional[CategoryRuleSet] = None) -> str:
    """Raw-category-only lookup."""
    rules = rules or get_rule_set()
    return rules.category_map.get(raw_category, UNCATEGORIZED)


def is_excluded(transaction: Any, rules: Optional[CategoryRuleSet] = None) -> bool:
    """Check if a transaction should stay out of spending totals.

    Excludes flagged rows, income and internal transfers, negative amounts
    (refunds), card/loan payment postings and wire/ACH transfers.
    """
    rules = rules or get_rule_set()

    if _get(transaction, 'excluded'):
        return True
    if (_get(transaction, 'type') or '').lower() in EXCLUDED_TYPES:
        return True
    if float(_get(transaction, 'amount', 0.0) or 0.0) < 0:
        return True

    merchant = _get(transaction, 'merchant') or _get(transaction, 'name') or ''
    if any(pattern.search(merchant) for pattern in rules.payment_patterns):
        return True

    category = (_get(transaction, 'category') or '').lower()
    return any(marker in category for marker in rules.payment_category_markers)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def tier_of(category: str, rules: Optional[CategoryRuleSet] = None) -> Optional[str]:
    return (rules or get_rule_set()).tier_of(category)


def is_flexible_category(category: str, rules: Optional[CategoryRuleSet] = None) -> bool:
    """Check if a budget category counts toward the monthly flexible budget."""
    return tier_of(category, rules) == 'flexible'


def budget_categories(rules: Optional[CategoryRuleSet] = None) -> List[str]:
    """Categories that carry a budget (the flexible tier)."""
    return list((rules or get_rule_set()).tiers['flexible'])


def needs_attention(transactions: Sequence[Any], rules: Optional[CategoryRuleSet] = None) -> List[Any]:
    """Transactions that should be reviewed by hand.

    A non-excluded transaction needs attention when it is uncategorized, when
    it was classified with low confidence and is large, or when its raw
    category is the catch-all ``Other``.
    """
    rules = rules or get_rule_set()
    threshold = float(get_budget_config().get('attention_amount_threshold', 50))
    flagged = []
    for txn in transactions:
        if is_excluded(txn, rules):
            continue
        match = classify(txn, rules)
        amount = float(_get(txn, 'amount', 0.0) or 0.0)
        if (
            match.budget_category == UNCATEGORIZED
            or (match.confidence == 'low' and amount > threshold)
            or _get(txn, 'category') == 'Other'
        ):
            flagged.append(txn)
    return flagged
