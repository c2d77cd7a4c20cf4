"""Billing month resolution and display naming.

The billing month (``YYYY-MM``) is the period a statement file represents.
It is taken from the newest non-installment transaction date, falling back to
a year/month embedded in the filename. Installment rows are re-dated onto the
25th of that month so recurring charges land in the statement's period.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date

from .categories import OWNER_NAMES, SOURCE_DISPLAY_NAMES, Owner, SourceTag
from .models import CanonicalRow

INSTALLMENT_DAY = 25

_FILENAME_MONTH_PATTERNS = (
    re.compile(r"(\d{4})(\d{2})"),
    re.compile(r"(\d{4})[-_](\d{2})"),
    re.compile(r"(\d{4})년\s*(\d{1,2})월"),
)


def _year_month(year: str | int, month: str | int) -> str | None:
    m = int(month)
    if not 1 <= m <= 12:
        return None
    return f"{int(year):04d}-{m:02d}"


def extract_billing_month_from_filename(filename: str) -> str | None:
    """``YYYYMM``, then ``YYYY-MM``/``YYYY_MM``, then ``YYYY년 M월``.

    A digit run whose month part is not 01-12 is not a billing month; the
    search continues with later runs and the next pattern.
    """

    for pattern in _FILENAME_MONTH_PATTERNS:
        for match in pattern.finditer(filename):
            ym = _year_month(match.group(1), match.group(2))
            if ym is not None:
                return ym
    return None


def extract_billing_month_from_transactions(rows: Iterable[CanonicalRow]) -> str | None:
    """Year-month of the latest non-installment date, or ``None``."""

    dates = [r.date for r in rows if not r.is_installment and r.date]
    if not dates:
        return None
    return max(dates)[:7]


def resolve_billing_month(rows: Iterable[CanonicalRow], filename: str) -> str | None:
    return extract_billing_month_from_transactions(rows) or extract_billing_month_from_filename(
        filename
    )


def get_installment_date(original_date: str, billing_month: str | None) -> str:
    if billing_month:
        return f"{billing_month}-{INSTALLMENT_DAY}"
    return f"{original_date[:7]}-{INSTALLMENT_DAY}"


def generate_display_name(
    filename: str,
    source_tag: SourceTag,
    owner: Owner,
    billing_month: str | None,
    today: date | None = None,
) -> str:
    """E.g. ``"2025년_12월_남편_현대카드.xls"``; current month when unknown."""

    ext = filename.rsplit(".", 1)[-1] if "." in filename else "xls"
    source_name = SOURCE_DISPLAY_NAMES.get(source_tag, str(source_tag))
    owner_name = OWNER_NAMES[owner]
    if billing_month:
        year, month = billing_month.split("-")
    else:
        now = today or date.today()
        year, month = str(now.year), str(now.month)
    return f"{year}년_{int(month)}월_{owner_name}_{source_name}.{ext}"


__all__ = [
    "INSTALLMENT_DAY",
    "extract_billing_month_from_filename",
    "extract_billing_month_from_transactions",
    "generate_display_name",
    "get_installment_date",
    "resolve_billing_month",
]
