"""Unit tests for payoff_dashboard.data_processing."""

from __future__ import annotations

import io
import logging
from datetime import date

import pytest

from payoff_dashboard import data_processing as dp

HEADER = 'date,name,amount,status,category,parent category,excluded,tags,type,account,account mask,note,recurring\n'

SAMPLE_CSV = HEADER + (
    "2026-03-02,Trader Joe's,45.10,posted,Groceries,,false,,regular,Amex Delta,1001,,false\n"
    "2026-03-03,Paycheck,-2500.00,posted,Income,,false,,,Checking,2002,,false\n"
    '2026-03-04,Starbucks,"$1,005.25",posted,Coffee,Restaurants,false,"Date, Work",,Amex Delta,1001,,true\n'
    ',Missing Date,10,posted,,,,,,,,,\n'
    '2026-03-05,Bad Amount,abc,posted,,,,,,,,,\n'
    '2026-03-06,,10,posted,,,,,,,,,\n'
)


def _parse(text: str = SAMPLE_CSV, rules=None):
    return dp.parse_transactions(io.StringIO(text), rules)


def test_parse_drops_rows_missing_required_fields(rules):
    transactions = _parse(rules=rules)

    assert [txn.name for txn in transactions] == ["Trader Joe's", 'Paycheck', 'Starbucks']


def test_parse_normalizes_fields(rules):
    groceries, paycheck, coffee = _parse(rules=rules)

    assert groceries.date == date(2026, 3, 2)
    assert groceries.amount == pytest.approx(45.10)
    assert groceries.type == 'regular'
    assert groceries.budget_category == 'Groceries'
    assert groceries.category_source == 'merchant:Trader Joe'

    assert paycheck.amount == pytest.approx(2500.0)
    assert paycheck.type == 'income'

    assert coffee.amount == pytest.approx(1005.25)
    assert coffee.tags == ('Date', 'Work')
    assert coffee.parent_category == 'Restaurants'
    assert coffee.recurring is True
    assert coffee.budget_category == 'Dates'
    assert coffee.category_confidence == 'high'


def test_rows_with_non_finite_amounts_are_dropped(rules):
    text = 'date,name,amount\n2026-03-02,Safeway,NaN\n2026-03-03,Safeway,20\n2026-03-04,Safeway,Infinity\n'

    (txn,) = _parse(text, rules)

    assert txn.date == date(2026, 3, 3)
    assert txn.amount == pytest.approx(20.0)


def test_headers_are_case_insensitive(rules):
    text = 'Date,Name,Amount,Parent Category\n2026-03-02,Somewhere,12.00,Restaurants\n'

    (txn,) = _parse(text, rules)

    assert txn.parent_category == 'Restaurants'
    assert txn.budget_category == 'Dining'


def test_internal_transfer_type_is_normalized(rules):
    text = 'date,name,amount,type\n2026-03-02,To Savings,100,Internal Transfer\n'

    (txn,) = _parse(text, rules)

    assert txn.type == 'internal_transfer'


def test_dropped_rows_are_logged(rules, caplog):
    caplog.set_level(logging.DEBUG, logger='payoff_dashboard.data_processing')

    _parse(rules=rules)

    assert 'Dropped 3 of 6 rows' in caplog.text


@pytest.mark.parametrize(
    'raw, expected',
    [
        ('45.10', 45.10),
        ('$1,234.56', 1234.56),
        ('(12.50)', -12.50),
        ('-7', -7.0),
        (3, 3.0),
        ('', None),
        ('abc', None),
        (None, None),
        ('NaN', None),
        ('nan', None),
        ('inf', None),
        ('-Infinity', None),
        (float('nan'), None),
        (float('inf'), None),
    ],
)
def test_parse_amount(raw, expected):
    result = dp.parse_amount(raw)
    if expected is None:
        assert result is None
    else:
        assert result == pytest.approx(expected)


def test_transaction_id_components():
    assert dp.transaction_id('2026-03-02', "  Trader Joe's ", -45.1, 'Amex Delta', '1001') == (
        "2026-03-02-trader joe's-45.10-amex delta-1001"
    )


def test_reimport_adds_nothing(rules):
    first = dp.merge_import([], _parse(rules=rules))
    second = dp.merge_import(first.transactions, _parse(rules=rules))

    assert first.new_added == 3
    assert second.success
    assert second.total_parsed == 3
    assert second.new_added == 0
    assert second.duplicates_skipped == 3
    assert len(second.transactions) == 3


def test_same_purchase_on_different_accounts_is_kept(rules):
    text = HEADER + (
        '2026-03-02,Safeway,20.00,posted,Groceries,,false,,,Amex Delta,1001,,false\n'
        '2026-03-02,Safeway,20.00,posted,Groceries,,false,,,BofA Atmos,3003,,false\n'
    )

    result = dp.merge_import([], _parse(text, rules))

    assert result.new_added == 2
    assert len({txn.id for txn in result.transactions}) == 2


def test_merged_transactions_are_newest_first(rules):
    result = dp.merge_import([], _parse(rules=rules))

    days = [txn.date for txn in result.transactions]
    assert days == sorted(days, reverse=True)


@pytest.mark.parametrize(
    'filename, mime, expected',
    [
        ('export.csv', None, True),
        ('EXPORT.CSV', 'text/csv', True),
        ('export.csv', 'application/vnd.ms-excel', True),
        ('export.csv', 'application/json', False),
        ('export.txt', None, False),
        ('', None, False),
    ],
)
def test_is_valid_csv_file(filename, mime, expected):
    assert dp.is_valid_csv_file(filename, mime) is expected


def test_validate_import_file_raises_value_error():
    with pytest.raises(ValueError):
        dp.validate_import_file('statement.pdf', 'application/pdf')


def test_transactions_frame(rules):
    df = dp.transactions_frame(_parse(rules=rules))

    assert len(df) == 3
    assert str(df['date'].dtype).startswith('datetime64')
    assert df['amount'].sum() == pytest.approx(45.10 + 2500.0 + 1005.25)
