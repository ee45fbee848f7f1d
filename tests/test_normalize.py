from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from propledger.services.csv_table import RawRecord
from propledger.services.normalize import (
    INVALID_AMOUNT,
    INVALID_DATE,
    classify_kind,
    enforce_sign,
    normalize_record,
    parse_amount,
    parse_date,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("$1,234.50", Decimal("1234.50")),
        ("(45.00)", Decimal("-45.00")),
        ("-12", Decimal("-12")),
        (" € 7.5 ", Decimal("7.5")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "$", "NaN", "inf", None])
def test_parse_amount_rejects_non_numeric(text):
    assert parse_amount(text) is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2024-03-09", date(2024, 3, 9)),
        ("2024-03-09T10:15:00Z", date(2024, 3, 9)),
        ("3/9/2024", date(2024, 3, 9)),
        ("March 9, 2024", date(2024, 3, 9)),
    ],
)
def test_parse_date(text, expected):
    assert parse_date(text) == expected


@pytest.mark.parametrize("text", ["", "not a date", "2024-02-30", "13/40/2024", None])
def test_parse_date_rejects_garbage(text):
    assert parse_date(text) is None


def test_classify_kind_prefers_type_text():
    assert classify_kind("Credit", Decimal("-5")) == "income"
    assert classify_kind("Withdrawal", Decimal("5")) == "expense"
    assert classify_kind("", Decimal("0")) == "income"
    assert classify_kind(None, Decimal("-0.01")) == "expense"


def test_enforce_sign_rounds_to_cents():
    assert enforce_sign("expense", Decimal("10.005")) == Decimal("-10.01")
    assert enforce_sign("income", Decimal("-3.2")) == Decimal("3.20")
    assert enforce_sign("expense", Decimal("0")) == Decimal("0.00")


def test_normalize_record_reports_skip_reasons():
    assert normalize_record(RawRecord(date="bad", amount="1")).skip_reason == INVALID_DATE
    assert normalize_record(RawRecord(date="2024-01-01", amount="x")).skip_reason == INVALID_AMOUNT


def test_normalize_record_builds_fields():
    outcome = normalize_record(RawRecord(date="1/15/2024", amount="(99.90)", type="Debit"))

    assert outcome.skip_reason is None
    assert outcome.fields is not None
    assert outcome.fields.occurred_on == date(2024, 1, 15)
    assert outcome.fields.kind == "expense"
    assert outcome.fields.amount == Decimal("-99.90")


@pytest.mark.parametrize("text", ["1e30", "9" * 40, "-1E+15", "(2,000,000,000,000,000)"])
def test_out_of_range_amounts_are_skipped(text):
    assert parse_amount(text) is None

    outcome = normalize_record(RawRecord(date="2024-01-01", amount=text))

    assert outcome.fields is None
    assert outcome.skip_reason == INVALID_AMOUNT


def test_large_amount_within_range_is_kept():
    outcome = normalize_record(RawRecord(date="2024-01-01", amount="999999999999999.994"))

    assert outcome.fields is not None
    assert outcome.fields.amount == Decimal("999999999999999.99")


@pytest.mark.parametrize("text", ["today", "Now", " yesterday ", "TOMORROW"])
def test_relative_date_words_are_rejected(text):
    assert parse_date(text) is None
    assert normalize_record(RawRecord(date=text, amount="1")).skip_reason == INVALID_DATE
