"""Samsung Card statement parser.

The workbook has one sheet per section (청구요약, 일시불, 할부, ...); only
sheets whose first cell reads ``일시불`` or ``할부`` hold transactions. Every
row on the ``할부`` sheet is an installment, as is any row with a numeric
``회차``. Dates are ``YYYYMMDD``.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, INSTALLMENT_CATEGORY, SourceTag
from ..cells import cell_text, is_digits, normalize_date, parse_amount, row_text
from ..errors import ParseError, ParseErrorKind
from ..logging_setup import get_logger
from ..models import CanonicalRow, Grid, ParseOutcome
from .base import (
    cell,
    filename_has,
    find_header_row,
    headers_contain,
    headers_equal,
    is_blank,
    largest_amount,
    log_dropped,
    parse_boundary,
    text_at,
)

COL_DATE = 0
COL_MERCHANT = 2
COL_ROUND = 8
COL_PRINCIPAL = 9

_logger = get_logger("statement_ingest.parsers.samsung")

FILENAME_HINTS = ("samsung", "삼성")
LUMP_SUM_SHEET = "일시불"
INSTALLMENT_SHEET = "할부"
SKIP_KEYWORDS = ("합계", "소계", "미리입금")


def _sheet_kind(grid: Grid) -> str | None:
    if not grid or not grid[0]:
        return None
    first = cell_text(grid[0][0])
    return first if first in (LUMP_SUM_SHEET, INSTALLMENT_SHEET) else None


def _sheet_total(grid: Grid, keyword: str) -> int:
    for row in reversed(grid):
        if keyword in row_text(row):
            return largest_amount(row, parse_amount)
    return 0


class SamsungParser:
    source = SourceTag.SAMSUNG

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, FILENAME_HINTS)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_equal(headers, "가맹점") and headers_contain(headers, "일시불합계")

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        sheets = [(g, kind) for g in grids if (kind := _sheet_kind(g))]
        if not sheets:
            raise ParseError(
                ParseErrorKind.HEADER_NOT_FOUND,
                "일시불/할부 시트를 찾을 수 없습니다.",
            )

        rows: list[CanonicalRow] = []
        billing_total = 0
        parsed_sheets = 0
        for grid, kind in sheets:
            installment_sheet = kind == INSTALLMENT_SHEET
            billing_total += _sheet_total(grid, f"{kind}합계")
            try:
                header_idx = find_header_row(grid, "이용일", "가맹점")
            except ParseError:
                _logger.debug("parse:sheet_skipped source=%s sheet=%s", self.source, kind)
                continue
            parsed_sheets += 1

            for i in range(header_idx + 1, len(grid)):
                row = grid[i]
                if is_blank(row):
                    continue
                merchant = text_at(row, COL_MERCHANT)
                if any(k in merchant for k in SKIP_KEYWORDS):
                    log_dropped(self.source, i, "subtotal")
                    continue

                date = normalize_date(cell(row, COL_DATE))
                if date is None:
                    log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                    continue
                if not merchant:
                    continue

                amount = parse_amount(cell(row, COL_PRINCIPAL))
                if amount <= 0:
                    log_dropped(self.source, i, "non_positive_amount")
                    continue

                installment = installment_sheet or is_digits(text_at(row, COL_ROUND))
                rows.append(
                    CanonicalRow(
                        date=date,
                        merchant=merchant,
                        amount=amount,
                        category=INSTALLMENT_CATEGORY if installment else DEFAULT_EXPENSE_CATEGORY,
                        is_installment=installment,
                    )
                )

        if not parsed_sheets:
            raise ParseError(ParseErrorKind.HEADER_NOT_FOUND, "헤더 행을 찾을 수 없습니다.")
        return ParseOutcome.success(
            self.source, rows, billing_total=billing_total if billing_total > 0 else None
        )


__all__ = ["SamsungParser"]
