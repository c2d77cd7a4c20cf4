from datetime import date

import pytest

from statement_ingest.billing import (
    extract_billing_month_from_filename,
    extract_billing_month_from_transactions,
    generate_display_name,
    get_installment_date,
    resolve_billing_month,
)
from statement_ingest.categories import Owner, SourceTag
from statement_ingest.models import CanonicalRow


def _row(d, *, installment=False):
    return CanonicalRow(date=d, merchant="m", amount=1000, category="기타", is_installment=installment)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("hyundai_202512.xls", "2025-12"),
        ("거래내역_20251231.xls", "2025-12"),
        ("statement_2025-03.xlsx", "2025-03"),
        ("statement_2025_11.xlsx", "2025-11"),
        ("2025년 3월 명세서.xlsx", "2025-03"),
        ("kb_202513_202511.xls", "2025-11"),
        ("notes.xlsx", None),
    ],
)
def test_billing_month_from_filename(filename, expected):
    assert extract_billing_month_from_filename(filename) == expected


def test_billing_month_from_transactions_ignores_installments():
    rows = [_row("2025-11-28"), _row("2025-12-03"), _row("2026-01-10", installment=True)]

    assert extract_billing_month_from_transactions(rows) == "2025-12"
    assert extract_billing_month_from_transactions([_row("2025-03-10", installment=True)]) is None


def test_resolve_prefers_transactions_over_filename():
    assert resolve_billing_month([_row("2025-12-03")], "hyundai_202511.xls") == "2025-12"
    assert resolve_billing_month([], "hyundai_202511.xls") == "2025-11"
    assert resolve_billing_month([], "hyundai.xls") is None


def test_installment_date_lands_on_the_25th():
    assert get_installment_date("2025-03-10", "2025-12") == "2025-12-25"
    assert get_installment_date("2025-03-10", None) == "2025-03-25"


def test_display_name():
    assert (
        generate_display_name("hyundai_202512.xls", SourceTag.HYUNDAI, Owner.HUSBAND, "2025-12")
        == "2025년_12월_남편_현대카드.xls"
    )
    assert (
        generate_display_name("kb.xlsx", SourceTag.KB, Owner.WIFE, "2025-03")
        == "2025년_3월_아내_KB카드.xlsx"
    )


def test_display_name_without_billing_month_uses_today():
    name = generate_display_name(
        "statement", SourceTag.WOORI, Owner.WIFE, None, today=date(2026, 3, 5)
    )

    assert name == "2026년_3월_아내_우리은행.xls"
