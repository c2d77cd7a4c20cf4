"""Hyundai Card statement parser.

Layout: a single sheet whose header row carries ``이용일`` and ``결제원금``.
Dates are written ``"2025년 08월 14일"`` and only on the first row of a day;
later rows of the same day leave the date cell empty. Merchant cells can have
the amount glued on (``"우지커피판교w시티점3,300"``).

Installment rows are the rows strictly between the ``해외이용소계`` and
``할부소계`` marker rows. Scanning stops at ``할부소계``. The trailing
``총 합계`` row carries the statement billing total.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, INSTALLMENT_CATEGORY, SourceTag
from ..cells import compact, extract_merchant_name, normalize_date, parse_amount, row_text
from ..errors import ParseErrorKind
from ..logging_setup import get_logger
from ..models import CanonicalRow, Grid, ParseOutcome, Row
from .base import (
    InstallmentSectionScanner,
    cell,
    filename_has,
    find_header_row,
    first_sheet,
    headers_contain,
    is_blank,
    log_dropped,
    parse_boundary,
    text_at,
)

_logger = get_logger("statement_ingest.parsers.hyundai")

COL_DATE = 0
COL_MERCHANT = 2
COL_DISCOUNT_AMOUNT = 6  # 예상적립/할인: this month's charge for most rows
COL_PAYMENT_AMOUNT = 7  # 결제원금

FILENAME_HINTS = ("hyundai", "현대")
SECTION_START = "해외이용소계"
SECTION_END = "할부소계"
TOTAL_MARKERS = ("총 합계", "총합계")
TOTAL_SEARCH_ROWS = 15

# Discount, voucher and subtotal lines; matched on the whitespace-free name.
SKIP_KEYWORDS = ("소비쿠폰", "청구할인", "상품권사용", "민생회복", "할인", "소계", "합계")


def _amount_from_end(row: Row) -> int:
    """Payment principal located from the right edge of the row.

    The two trailing columns (balance, interest) are zero on charge rows; the
    first non-zero value before them, no further left than column 4, is used.
    """

    if len(row) < 4:
        return 0
    if parse_amount(row[-1]) != 0 or parse_amount(row[-2]) != 0:
        return 0
    for i in range(len(row) - 3, max(4, len(row) - 6) - 1, -1):
        value = parse_amount(row[i])
        if value != 0:
            return value
    return 0


def resolve_amount(row: Row) -> int:
    """Signed amount for a data row: discount column, then principal, then
    the right-edge scan. Zero means no amount at all."""

    for idx in (COL_DISCOUNT_AMOUNT, COL_PAYMENT_AMOUNT):
        value = parse_amount(cell(row, idx))
        if value != 0:
            return value
    return _amount_from_end(row)


def _find_total_row(grid: Grid, header_idx: int) -> tuple[int, int] | None:
    lower = max(header_idx + 1, len(grid) - TOTAL_SEARCH_ROWS)
    for i in range(len(grid) - 1, lower - 1, -1):
        text = row_text(grid[i])
        if any(m in text for m in TOTAL_MARKERS):
            total = parse_amount(cell(grid[i], COL_PAYMENT_AMOUNT)) or _amount_from_end(grid[i])
            return i, total
    return None


def _is_skipped(merchant: str) -> bool:
    key = compact(merchant)
    return any(k in key for k in SKIP_KEYWORDS)


class HyundaiParser:
    source = SourceTag.HYUNDAI

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, FILENAME_HINTS)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, "결제원금", "할부/회차")

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        grid = first_sheet(grids)
        header_idx = find_header_row(grid, "결제원금", "이용일")

        total_row = _find_total_row(grid, header_idx)
        end_idx = total_row[0] if total_row else len(grid)

        scanner = InstallmentSectionScanner(SECTION_START, SECTION_END)
        scanner.arm(grid, header_idx + 1)

        rows: list[CanonicalRow] = []
        signed_sum = 0
        current_date: str | None = None

        for i in range(header_idx + 1, end_idx):
            if scanner.done:
                break
            row = grid[i]
            if scanner.feed(row) or is_blank(row):
                continue

            if text_at(row, COL_DATE):
                parsed = normalize_date(cell(row, COL_DATE))
                if parsed:
                    current_date = parsed
            if current_date is None:
                log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                continue

            raw_merchant = text_at(row, COL_MERCHANT)
            if not raw_merchant:
                continue
            amount = resolve_amount(row)
            merchant = extract_merchant_name(raw_merchant, amount)
            if _is_skipped(merchant):
                log_dropped(self.source, i, "subtotal_or_discount")
                continue

            if amount == 0:
                log_dropped(self.source, i, "zero_amount")
                continue
            # Refunds and adjustments enter the signed sum, not the rows.
            signed_sum += amount
            if amount < 0:
                log_dropped(self.source, i, "non_positive_amount")
                continue

            installment = scanner.in_section
            rows.append(
                CanonicalRow(
                    date=current_date,
                    merchant=merchant,
                    amount=amount,
                    category=INSTALLMENT_CATEGORY if installment else DEFAULT_EXPENSE_CATEGORY,
                    is_installment=installment,
                )
            )

        billing_total = total_row[1] if total_row else None
        if billing_total is not None and billing_total != signed_sum:
            _logger.warning(
                "parse:total_mismatch source=%s filename=%s billing_total=%d parsed_total=%d",
                self.source,
                filename,
                billing_total,
                signed_sum,
            )
        return ParseOutcome.success(self.source, rows, billing_total=billing_total)


__all__ = ["HyundaiParser", "resolve_amount"]
