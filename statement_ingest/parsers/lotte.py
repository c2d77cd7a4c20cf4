"""Lotte Card statement parser.

Two sheets: a summary sheet (billing total on its ``합계`` row) and the
detail sheet with one row per charge. Dates are spreadsheet serial numbers.
Installment rows carry a numeric ``할부`` cell; their amount for the month is
principal plus interest.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, INSTALLMENT_CATEGORY, SourceTag
from ..cells import is_digits, normalize_date, parse_amount, row_text
from ..errors import ParseError, ParseErrorKind
from ..models import CanonicalRow, Grid, ParseOutcome
from .base import (
    cell,
    filename_has,
    find_header_row,
    headers_equal,
    is_blank,
    largest_amount,
    log_dropped,
    parse_boundary,
    text_at,
)

COL_DATE = 0
COL_MERCHANT = 2
COL_INSTALLMENT = 5
COL_PRINCIPAL = 6
COL_INTEREST = 7

FILENAME_HINTS = ("롯데", "lotte", "이용대금명세서")
HEADER_SCAN_ROWS = 5


def extract_summary_total(summary: Grid) -> int | None:
    """Largest number on the summary sheet's first ``합계`` row."""

    for row in summary:
        text = row_text(row)
        if "합계" in text and "소계" not in text:
            largest = largest_amount(row, parse_amount)
            if largest > 0:
                return largest
    return None


class LotteParser:
    source = SourceTag.LOTTE

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, FILENAME_HINTS)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_equal(headers, "이용가맹점") and any("입금하실" in h for h in headers)

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        if not grids:
            raise ParseError(ParseErrorKind.NO_DATA, "데이터가 비어있습니다.")
        detail = grids[1] if len(grids) > 1 else grids[0]
        if all(is_blank(r) for r in detail):
            raise ParseError(ParseErrorKind.NO_DATA, "데이터가 비어있습니다.")
        header_idx = find_header_row(detail, "이용일", "이용가맹점", limit=HEADER_SCAN_ROWS)

        rows: list[CanonicalRow] = []
        for i in range(header_idx + 1, len(detail)):
            row = detail[i]
            if is_blank(row):
                continue

            date = normalize_date(cell(row, COL_DATE))
            if date is None:
                log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                continue

            merchant = text_at(row, COL_MERCHANT)
            if not merchant:
                continue
            if "합계" in merchant or "소계" in merchant:
                log_dropped(self.source, i, "subtotal")
                continue

            installment = is_digits(text_at(row, COL_INSTALLMENT))
            amount = parse_amount(cell(row, COL_PRINCIPAL))
            if installment:
                amount += parse_amount(cell(row, COL_INTEREST))
            if amount <= 0:
                log_dropped(self.source, i, "non_positive_amount")
                continue

            rows.append(
                CanonicalRow(
                    date=date,
                    merchant=merchant,
                    amount=amount,
                    category=INSTALLMENT_CATEGORY if installment else DEFAULT_EXPENSE_CATEGORY,
                    is_installment=installment,
                )
            )

        billing_total = extract_summary_total(grids[0]) if len(grids) > 1 else None
        if billing_total is None:
            billing_total = sum(r.amount for r in rows)
        return ParseOutcome.success(self.source, rows, billing_total=billing_total)


__all__ = ["LotteParser", "extract_summary_total"]
