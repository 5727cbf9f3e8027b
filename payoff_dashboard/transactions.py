"""Stored transactions and the import history that produced them."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from . import storage
from .category_rules import CategoryRuleSet, apply_mapping
from .data_processing import (
    ImportResult,
    InvalidImportFile,
    merge_import,
    parse_transactions,
    validate_import_file,
)
from .dates import is_in_month
from .models import Transaction

logger = logging.getLogger(__name__)

MAX_IMPORT_HISTORY = 20


class TransactionRepository:
    """Transactions persisted in a keyed store.

    Category fields are re-derived every time transactions are read, so rule
    changes apply to previously imported data.
    """

    def __init__(self, store, rules: Optional[CategoryRuleSet] = None):
        self.store = store
        self.rules = rules

    # -- reading ---------------------------------------------------------

    def all(self) -> List[Transaction]:
        raw = self.store.get(storage.TRANSACTIONS_KEY, [])
        return apply_mapping((Transaction.from_dict(item) for item in raw), self.rules)

    def for_month(self, month: date) -> List[Transaction]:
        return [txn for txn in self.all() if is_in_month(txn.date, month)]

    def date_range(self) -> Optional[Tuple[date, date]]:
        transactions = self.all()
        if not transactions:
            return None
        days = [txn.date for txn in transactions]
        return min(days), max(days)

    def import_history(self) -> List[Dict[str, Any]]:
        return self.store.get(storage.IMPORT_HISTORY_KEY, [])

    def last_import_date(self) -> Optional[str]:
        history = self.import_history()
        return history[0]['imported_at'] if history else None

    # -- writing ---------------------------------------------------------

    def _save(self, transactions: List[Transaction]) -> None:
        self.store.set(storage.TRANSACTIONS_KEY, [txn.to_dict() for txn in transactions])

    def import_file(self, source, filename: Optional[str] = None, mime_type: Optional[str] = None,
                    now: Optional[datetime] = None) -> ImportResult:
        """Parse, dedupe and merge an export, then record the import.

        Nothing is written unless the whole file was read successfully.
        """
        filename = filename or str(getattr(source, 'name', source))
        try:
            validate_import_file(filename, mime_type)
            parsed = parse_transactions(source, self.rules)
        except InvalidImportFile as exc:
            logger.warning("Rejected import %s: %s", filename, exc)
            return ImportResult(success=False, error=str(exc))
        except (OSError, ValueError, pd.errors.ParserError) as exc:
            logger.warning("Failed to read %s: %s", filename, exc)
            return ImportResult(success=False, error=f"Could not read {filename}: {exc}")

        result = merge_import(self.all(), parsed)
        self._save(result.transactions)
        self._record_import(filename, result, now or datetime.now())
        logger.info(
            "Imported %s: %d parsed, %d new, %d duplicates",
            filename, result.total_parsed, result.new_added, result.duplicates_skipped,
        )
        return result

    def _record_import(self, filename: str, result: ImportResult, now: datetime) -> None:
        entry = {
            'id': f"import-{int(now.timestamp() * 1000)}",
            'filename': filename,
            'imported_at': now.isoformat(),
            'total_parsed': result.total_parsed,
            'new_added': result.new_added,
            'duplicates_skipped': result.duplicates_skipped,
        }
        storage.update(
            self.store,
            storage.IMPORT_HISTORY_KEY,
            [],
            lambda history: ([entry] + list(history))[:MAX_IMPORT_HISTORY],
        )

    def remove_import_record(self, import_id: str) -> None:
        """Drop a history entry; the imported transactions are kept."""
        storage.update(
            self.store,
            storage.IMPORT_HISTORY_KEY,
            [],
            lambda history: [item for item in history if item.get('id') != import_id],
        )

    def clear(self) -> None:
        self.store.remove(storage.TRANSACTIONS_KEY)
        self.store.remove(storage.IMPORT_HISTORY_KEY)

    def summary(self) -> Dict[str, Any]:
        transactions = self.all()
        span = self.date_range()
        return {
            'count': len(transactions),
            'first_date': span[0].isoformat() if span else None,
            'last_date': span[1].isoformat() if span else None,
            'last_import': self.last_import_date(),
        }
