"""Backup, restore and reset of every persisted key.

A backup bundle looks like::

    {
        "export_date": "2026-03-01T09:30:00",
        "version": "1.0",
        "data": {"finance-transactions": [...], "finance-debt": {...}, ...}
    }

Restoring validates the whole bundle before writing anything.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from . import storage
from .budgets.settings import BudgetSettings
from .formatting import format_bytes
from .models import Debt, DebtSnapshot, Transaction

logger = logging.getLogger(__name__)

BACKUP_VERSION = '1.0'

LIST_KEYS = {
    storage.TRANSACTIONS_KEY,
    storage.IMPORT_HISTORY_KEY,
    storage.DEBT_HISTORY_KEY,
    storage.CELEBRATED_KEY,
}


@dataclass
class RestoreResult:
    success: bool
    message: str
    keys_restored: List[str] = field(default_factory=list)
    keys_ignored: List[str] = field(default_factory=list)


def export_all_data(store, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Snapshot every stored key into a backup bundle."""
    data: Dict[str, Any] = {}
    for key in storage.STORAGE_KEYS:
        value = store.get(key)
        if value is not None:
            data[key] = value
    return {
        'export_date': (now or datetime.now()).isoformat(),
        'version': BACKUP_VERSION,
        'data': data,
    }


def write_backup(store, path: Path, now: Optional[datetime] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('w', encoding='utf-8') as handle:
        json.dump(export_all_data(store, now), handle, indent=2)
    return path


def _expected_type(key: str) -> type:
    return list if key in LIST_KEYS else dict


def _check_transactions(items: List[Any]) -> None:
    for item in items:
        if Transaction.from_dict(item).date is None:
            raise ValueError(f"transaction {item.get('id')!r} has no date")


def _check_debts(debts: Mapping[str, Any]) -> None:
    for key, item in debts.items():
        Debt.from_dict(key, item)


def _check_snapshots(items: List[Any]) -> None:
    for item in items:
        if DebtSnapshot.from_dict(item).date is None:
            raise ValueError("snapshot has no date")


def _check_records(items: List[Any]) -> None:
    for item in items:
        if not isinstance(item, Mapping):
            raise TypeError(f"expected an object, got {item!r}")


def _check_thresholds(items: List[Any]) -> None:
    for item in items:
        float(item)


# Parse every record the engines will later read
RECORD_CHECKS = {
    storage.TRANSACTIONS_KEY: _check_transactions,
    storage.IMPORT_HISTORY_KEY: _check_records,
    storage.SETTINGS_KEY: BudgetSettings.from_dict,
    storage.DEBT_KEY: _check_debts,
    storage.DEBT_HISTORY_KEY: _check_snapshots,
    storage.CELEBRATED_KEY: _check_thresholds,
}


def _fail(message: str) -> RestoreResult:
    logger.warning("Restore failed: %s", message)
    return RestoreResult(success=False, message=message)


def restore_backup(store, bundle: Any) -> RestoreResult:
    """Replace recognized keys with the values in ``bundle``.

    Unrecognized keys are reported as ignored. If the bundle is malformed, or
    any recognized key holds the wrong kind of value or a record that cannot
    be parsed back, nothing is written.
    """
    if not isinstance(bundle, Mapping) or not isinstance(bundle.get('data'), Mapping):
        return _fail('Invalid backup file format')

    data = bundle['data']
    recognized = [key for key in data if key in storage.STORAGE_KEYS]
    ignored = [key for key in data if key not in storage.STORAGE_KEYS]
    if not recognized:
        return _fail('No valid data found in backup file')

    for key in recognized:
        expected = _expected_type(key)
        if not isinstance(data[key], expected):
            return _fail(f"Invalid value for {key}: expected a JSON {'array' if expected is list else 'object'}")
        check = RECORD_CHECKS.get(key)
        if check is None:
            continue
        try:
            check(data[key])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            return _fail(f"Invalid record in {key}: {exc}")

    for key in recognized:
        store.set(key, data[key])
    return RestoreResult(
        success=True,
        message=f"Restored {len(recognized)} data items.",
        keys_restored=recognized,
        keys_ignored=ignored,
    )


def restore_backup_file(store, path: Path) -> RestoreResult:
    try:
        with Path(path).open('r', encoding='utf-8') as handle:
            bundle = json.load(handle)
    except json.JSONDecodeError as exc:
        return _fail(f"Error parsing backup file: {exc}")
    except OSError as exc:
        return _fail(f"Error reading file: {exc}")
    return restore_backup(store, bundle)


def data_summary(store) -> Dict[str, Any]:
    """Presence, size and item count of every stored key."""
    summary: Dict[str, Any] = {}
    total_size = 0
    for key in storage.STORAGE_KEYS:
        raw = store.raw(key)
        if raw is None:
            summary[key] = {'exists': False, 'size': format_bytes(0), 'count': 0}
            continue
        size = len(raw.encode('utf-8'))
        total_size += size
        value = store.get(key)
        count = len(value) if isinstance(value, (list, dict)) else None
        summary[key] = {'exists': True, 'size': format_bytes(size), 'count': count}
    summary['total_size'] = format_bytes(total_size)
    return summary


def reset_all(store) -> None:
    """Remove every persisted key; each component falls back to its defaults."""
    for key in storage.STORAGE_KEYS:
        store.remove(key)
