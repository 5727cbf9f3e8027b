"""Plain records shared by the importer, the budget engine and the debt engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

TRANSACTION_TYPES = ('regular', 'income', 'internal_transfer')
DEBT_CATEGORIES = ('target', 'managed', 'termLoan')


def coerce_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Transaction:
    """A single imported transaction.

    ``amount`` is always the magnitude; direction lives in ``type``. The three
    ``budget_category``/``category_source``/``category_confidence`` fields are
    derived by the category mapper and are recomputed on every read.
    """
    id: str
    date: date
    name: str
    amount: float
    type: str = 'regular'
    category: str = ''
    parent_category: Optional[str] = None
    tags: Tuple[str, ...] = ()
    account: Optional[str] = None
    account_mask: Optional[str] = None
    note: Optional[str] = None
    recurring: bool = False
    status: str = 'posted'
    excluded: bool = False
    budget_category: Optional[str] = None
    category_source: Optional[str] = None
    category_confidence: Optional[str] = None

    def with_mapping(self, budget_category: str, source: str, confidence: str) -> 'Transaction':
        return replace(
            self,
            budget_category=budget_category,
            category_source=source,
            category_confidence=confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['date'] = self.date.isoformat()
        data['tags'] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Transaction':
        tags = data.get('tags') or ()
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(',') if t.strip()]
        return cls(
            id=str(data['id']),
            date=coerce_date(data['date']),
            name=str(data.get('name', '')),
            amount=float(data.get('amount', 0.0)),
            type=data.get('type') or 'regular',
            category=data.get('category') or '',
            parent_category=data.get('parent_category'),
            tags=tuple(tags),
            account=data.get('account'),
            account_mask=data.get('account_mask'),
            note=data.get('note'),
            recurring=bool(data.get('recurring', False)),
            status=data.get('status') or 'posted',
            excluded=bool(data.get('excluded', False)),
            budget_category=data.get('budget_category'),
            category_source=data.get('category_source'),
            category_confidence=data.get('category_confidence'),
        )


@dataclass
class Debt:
    """A tracked balance. ``current`` only changes through user updates."""
    key: str
    name: str
    original: float
    current: float
    apr: float = 0.0
    category: str = 'target'
    monthly_payment: Optional[float] = None
    term_months: Optional[int] = None
    start_date: Optional[date] = None
    note: str = ''

    @property
    def paid_off(self) -> float:
        return self.original - self.current

    @property
    def percentage_paid(self) -> float:
        if not self.original:
            return 0.0
        return self.paid_off / self.original * 100

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop('key')
        data['start_date'] = self.start_date.isoformat() if self.start_date else None
        return data

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> 'Debt':
        term = data.get('term_months')
        payment = data.get('monthly_payment')
        return cls(
            key=key,
            name=str(data.get('name', key)),
            original=float(data.get('original', 0.0)),
            current=float(data.get('current', 0.0)),
            apr=float(data.get('apr', 0.0)),
            category=data.get('category') or 'target',
            monthly_payment=float(payment) if payment is not None else None,
            term_months=int(term) if term is not None else None,
            start_date=coerce_date(data.get('start_date')),
            note=data.get('note') or '',
        )


@dataclass(frozen=True)
class DebtSnapshot:
    """Balances as of one calendar day; at most one snapshot per day."""
    date: date
    total_target_debt: float
    balances: Dict[str, float] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'timestamp': self.timestamp,
            'total_target_debt': self.total_target_debt,
            'balances': dict(self.balances),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DebtSnapshot':
        return cls(
            date=coerce_date(data['date']),
            total_target_debt=float(data.get('total_target_debt', 0.0)),
            balances={k: float(v) for k, v in (data.get('balances') or {}).items()},
            timestamp=data.get('timestamp'),
        )
