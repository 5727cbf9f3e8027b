#!/usr/bin/env python3
"""Show transactions that need a manual look to aid rule creation."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from payoff_dashboard.category_rules import load_rule_set, needs_attention
from payoff_dashboard.data_processing import parse_transactions, validate_import_file


def main(path: Path, limit: int = 200) -> int:
    validate_import_file(path.name)
    rules = load_rule_set()
    transactions = parse_transactions(path, rules)
    flagged = needs_attention(transactions, rules)
    if not flagged:
        print("All transactions are categorized. 🎉")
        return 0

    df = pd.DataFrame([txn.to_dict() for txn in flagged])
    print(f"Needs attention: {len(df)} of {len(transactions)}")
    freq = df['name'].value_counts().head(limit)
    print("\nTop names:")
    print(freq.to_string())

    print("\nBy raw category:")
    print(df['category'].replace('', '(none)').value_counts().to_string())

    sample_columns: List[str] = [
        col for col in ['date', 'name', 'amount', 'category', 'parent_category', 'account']
        if col in df.columns
    ]
    print("\nSample rows:")
    print(df[sample_columns].head(20).to_string(index=False))
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show transactions that need categorization rules.')
    parser.add_argument('csv', type=Path, help='Transaction export (.csv)')
    parser.add_argument('--limit', type=int, default=200, help='How many top names to show')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log dropped rows')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')
    sys.exit(main(args.csv, limit=args.limit))
