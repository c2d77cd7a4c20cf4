"""KB Kookmin Card statement parser.

The header spans two rows (``이용하신 가맹점`` on the first, ``회차`` on the
second). Dates are ``YY.MM.DD`` and, as with Hyundai, only written on the first
row of a day. Installment rows are marked by ``구분 == "할부"`` or a numeric
``할부개월`` cell. The final ``합 계 N 건`` row carries the billing total.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, INSTALLMENT_CATEGORY, SourceTag
from ..cells import compact, is_digits, normalize_date, parse_amount
from ..errors import ParseErrorKind
from ..models import CanonicalRow, Grid, ParseOutcome
from .base import (
    cell,
    filename_has,
    find_header_row,
    first_sheet,
    headers_contain,
    headers_equal,
    is_blank,
    largest_amount,
    log_dropped,
    parse_boundary,
    text_at,
)

COL_DATE = 0
COL_TYPE = 2
COL_MERCHANT = 3
COL_INSTALLMENT_MONTHS = 6
COL_PRINCIPAL = 8

FILENAME_HINTS = ("kb", "국민")
SKIP_KEYWORDS = ("my we:sh", "무이자혜택", "할인", "혜택", "포인트", "소계", "합계")


def _is_skipped(merchant: str) -> bool:
    key = merchant.lower()
    return any(k in key for k in SKIP_KEYWORDS)


def _is_total_label(label: str) -> bool:
    key = compact(label)
    return key.startswith("합계") and "소계" not in key


def extract_billing_total(grid: Grid) -> int | None:
    """Principal of the last ``합계`` row, else its largest number."""

    for row in reversed(grid):
        if not row or not _is_total_label(text_at(row, 0)):
            continue
        amount = parse_amount(cell(row, COL_PRINCIPAL))
        if amount > 0:
            return amount
        largest = largest_amount(row, parse_amount)
        if largest > 0:
            return largest
    return None


class KBParser:
    source = SourceTag.KB

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, FILENAME_HINTS)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, "이용하신 가맹점") and headers_equal(headers, "회차")

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        grid = first_sheet(grids)
        header_idx = find_header_row(grid, "이용하신 가맹점")

        rows: list[CanonicalRow] = []
        current_date: str | None = None

        for i in range(header_idx + 1, len(grid)):
            row = grid[i]
            if is_blank(row):
                continue
            if _is_total_label(text_at(row, COL_DATE)):
                continue

            if text_at(row, COL_DATE):
                parsed = normalize_date(cell(row, COL_DATE))
                if parsed:
                    current_date = parsed
            if current_date is None:
                log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                continue

            merchant = text_at(row, COL_MERCHANT)
            if not merchant:
                continue
            if _is_skipped(merchant):
                log_dropped(self.source, i, "subtotal_or_discount")
                continue

            amount = parse_amount(cell(row, COL_PRINCIPAL))
            if amount <= 0:
                log_dropped(self.source, i, "non_positive_amount")
                continue

            installment = text_at(row, COL_TYPE) == "할부" or is_digits(
                text_at(row, COL_INSTALLMENT_MONTHS)
            )
            rows.append(
                CanonicalRow(
                    date=current_date,
                    merchant=merchant,
                    amount=amount,
                    category=INSTALLMENT_CATEGORY if installment else DEFAULT_EXPENSE_CATEGORY,
                    is_installment=installment,
                )
            )

        return ParseOutcome.success(self.source, rows, billing_total=extract_billing_total(grid))


__all__ = ["KBParser", "extract_billing_total"]
