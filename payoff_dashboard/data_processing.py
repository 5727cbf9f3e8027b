"""Transaction import: reading exports, normalizing rows and deduplicating.

The expected export is a header row followed by one transaction per line::

    date,name,amount,status,category,parent category,excluded,tags,type,account,account mask,note,recurring

Only ``date``, ``name`` and ``amount`` are required. Amounts are signed in the
export (positive = expense, negative = income); the normalized record keeps
the magnitude and records the direction in ``type``. Rows that cannot be
normalized are dropped individually and never abort the batch.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .category_rules import CategoryRuleSet, classify
from .dates import as_date
from .models import Transaction

logger = logging.getLogger(__name__)

ACCEPTED_MIME_TYPES = {'text/csv', 'application/vnd.ms-excel'}
TRUE_VALUES = {'true', '1'}


class InvalidImportFile(ValueError):
    """Raised when a file is not an acceptable transaction export."""


@dataclass
class ImportResult:
    success: bool
    total_parsed: int = 0
    new_added: int = 0
    duplicates_skipped: int = 0
    transactions: List[Transaction] = field(default_factory=list)
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# File validation and loading
# ---------------------------------------------------------------------------


def is_valid_csv_file(filename: Optional[str], mime_type: Optional[str] = None) -> bool:
    """Accept ``.csv`` files whose MIME type, when present, is a CSV type."""
    if not filename:
        return False
    if not filename.lower().endswith('.csv'):
        return False
    if mime_type and mime_type not in ACCEPTED_MIME_TYPES:
        return False
    return True


def validate_import_file(filename: Optional[str], mime_type: Optional[str] = None) -> None:
    if not is_valid_csv_file(filename, mime_type):
        raise InvalidImportFile(f"Not a CSV export: {filename!r} ({mime_type or 'no MIME type'})")


def read_file(path_or_buffer) -> pd.DataFrame:
    """Load a delimited export into a DataFrame of raw strings.

    Headers are normalized to lowercase without surrounding whitespace so
    ``Parent Category`` and ``parent category`` are treated alike.
    """
    csv_kwargs = {
        'dtype': str,
        'keep_default_na': False,
        'skip_blank_lines': True,
        'index_col': False,
    }
    if hasattr(path_or_buffer, 'read'):
        df = pd.read_csv(path_or_buffer, **csv_kwargs)
    else:
        df = pd.read_csv(Path(path_or_buffer), encoding='utf-8-sig', **csv_kwargs)
    df.columns = [str(col).strip().lower() for col in df.columns]
    return df


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def parse_amount(value: Any) -> Optional[float]:
    """Convert textual amounts such as ``$1,234.56`` or ``(12.00)`` to floats."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    cleaned = _clean(value)
    if cleaned is None:
        return None
    # Accounting negatives e.g. (123.45)
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = f"-{cleaned[1:-1]}"
    cleaned = cleaned.replace('$', '').replace(',', '')
    try:
        number = float(cleaned)
    except ValueError:
        return None
    # Rejects NaN and Infinity spellings
    return number if math.isfinite(number) else None


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    cleaned = _clean(value)
    return cleaned is not None and cleaned.lower() in TRUE_VALUES


def _parse_tags(value: Any) -> tuple:
    cleaned = _clean(value)
    if cleaned is None:
        return ()
    return tuple(tag.strip() for tag in cleaned.split(',') if tag.strip())


def _normalize_type(value: Optional[str], amount: float) -> str:
    txn_type = (value or ('income' if amount < 0 else 'regular')).strip().lower()
    if txn_type == 'internal transfer':
        txn_type = 'internal_transfer'
    return txn_type


def transaction_id(day: str, name: str, amount: float, account: Optional[str], account_mask: Optional[str] = None) -> str:
    """Identity used for deduplication across repeated imports.

    Built from date, normalized name, amount magnitude and account so that
    legitimate same-day repeats on different accounts stay distinct.
    """
    return '-'.join([
        day,
        name.strip().lower(),
        f"{abs(amount):.2f}",
        (account or '').strip().lower(),
        (account_mask or '').strip(),
    ])


def normalize_row(row: Mapping[str, Any], rules: Optional[CategoryRuleSet] = None) -> Optional[Transaction]:
    """Normalize one export row, or return ``None`` when it is unusable."""
    raw_date = _clean(row.get('date'))
    name = _clean(row.get('name'))
    amount = parse_amount(row.get('amount'))
    if raw_date is None or name is None or amount is None:
        return None
    day = as_date(raw_date)
    if day is None:
        return None

    account = _clean(row.get('account'))
    account_mask = _clean(row.get('account mask'))
    txn = Transaction(
        id=transaction_id(day.isoformat(), name, amount, account, account_mask),
        date=day,
        name=name,
        amount=abs(amount),
        type=_normalize_type(_clean(row.get('type')), amount),
        category=_clean(row.get('category')) or '',
        parent_category=_clean(row.get('parent category')),
        tags=_parse_tags(row.get('tags')),
        account=account,
        account_mask=account_mask,
        note=_clean(row.get('note')),
        recurring=_parse_flag(row.get('recurring')),
        status=_clean(row.get('status')) or 'posted',
        excluded=_parse_flag(row.get('excluded')),
    )
    match = classify(txn, rules)
    return txn.with_mapping(match.budget_category, match.source, match.confidence)


def normalize_frame(df: pd.DataFrame, rules: Optional[CategoryRuleSet] = None) -> List[Transaction]:
    """Normalize every row of a raw export frame, dropping malformed rows."""
    if df is None or df.empty:
        return []
    transactions: List[Transaction] = []
    dropped = 0
    for idx, row in enumerate(df.to_dict(orient='records')):
        txn = normalize_row(row, rules)
        if txn is None:
            dropped += 1
            logger.debug("Dropped row %d: missing date, name or amount", idx + 1)
            continue
        transactions.append(txn)
    if dropped:
        logger.info("Dropped %d of %d rows that could not be normalized", dropped, len(df))
    return transactions


def parse_transactions(path_or_buffer, rules: Optional[CategoryRuleSet] = None) -> List[Transaction]:
    """Read and normalize an export in one step."""
    return normalize_frame(read_file(path_or_buffer), rules)


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def dedupe_transactions(existing: Sequence[Transaction], incoming: Iterable[Transaction]) -> List[Transaction]:
    """Merge ``incoming`` into ``existing``, skipping ids already present.

    The merged list is ordered newest first.
    """
    existing_ids = {txn.id for txn in existing}
    unique_new = [txn for txn in incoming if txn.id not in existing_ids]
    combined = list(existing) + unique_new
    combined.sort(key=lambda txn: txn.date, reverse=True)
    return combined


def merge_import(existing: Sequence[Transaction], parsed: Sequence[Transaction]) -> ImportResult:
    """Dedupe a parsed batch against ``existing`` and report the counts."""
    merged = dedupe_transactions(existing, parsed)
    new_added = len(merged) - len(existing)
    return ImportResult(
        success=True,
        total_parsed=len(parsed),
        new_added=new_added,
        duplicates_skipped=len(parsed) - new_added,
        transactions=merged,
    )


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Tabular view of transactions for aggregation."""
    rows: List[Dict[str, Any]] = [txn.to_dict() for txn in transactions]
    df = pd.DataFrame(rows)
    if not df.empty:
        df['date'] = pd.to_datetime(df['date'])
    return df
