"""Regional voucher payment exports (Onnuri, Seongnam-sarang).

Both are flat: a metadata preamble, a header row, optionally a sub-header,
then one row per payment. A row counts only when its status cell is exactly
``결제완료`` and its amount is positive. Vouchers have no installments.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, SourceTag
from ..cells import is_digits, normalize_date, parse_amount
from ..errors import ParseErrorKind
from ..models import CanonicalRow, Cell, Grid, ParseOutcome, Row
from .base import (
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

SETTLED_STATUS = "결제완료"


def _voucher_row(
    source: SourceTag,
    row_no: int,
    row: Row,
    *,
    date_col: int,
    merchant_col: int,
    status_col: int,
    amount_col: int,
) -> CanonicalRow | None:
    date = normalize_date(cell(row, date_col))
    if date is None:
        log_dropped(source, row_no, ParseErrorKind.DATE_UNPARSEABLE)
        return None
    merchant = text_at(row, merchant_col)
    if not merchant:
        return None
    if text_at(row, status_col) != SETTLED_STATUS:
        log_dropped(source, row_no, "not_settled")
        return None
    amount = parse_amount(cell(row, amount_col))
    if amount <= 0:
        log_dropped(source, row_no, "non_positive_amount")
        return None
    return CanonicalRow(
        date=date,
        merchant=merchant,
        amount=amount,
        category=DEFAULT_EXPENSE_CATEGORY,
        is_installment=False,
    )


# ---------------------------------------------------------------------------
# Onnuri
# ---------------------------------------------------------------------------

ONNURI_KEYWORDS = ("거래일자", "가맹점 및 상품권명", "거래금액")


class OnnuriParser:
    """온누리상품권 결제내역: ``YYYYMMDD`` dates, status in column 7."""

    source = SourceTag.ONNURI

    COL_DATE = 0
    COL_MERCHANT = 3
    COL_STATUS = 7
    COL_AMOUNT = 8

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, ("온누리", "onnuri"))

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, *ONNURI_KEYWORDS)

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        grid = first_sheet(grids)
        header_idx = find_header_row(grid, "거래일자", "가맹점", "거래금액")

        rows: list[CanonicalRow] = []
        for i in range(header_idx + 1, len(grid)):
            if is_blank(grid[i]):
                continue
            parsed = _voucher_row(
                self.source,
                i,
                grid[i],
                date_col=self.COL_DATE,
                merchant_col=self.COL_MERCHANT,
                status_col=self.COL_STATUS,
                amount_col=self.COL_AMOUNT,
            )
            if parsed is not None:
                rows.append(parsed)
        return ParseOutcome.success(self.source, rows)


# ---------------------------------------------------------------------------
# Seongnam-sarang (Chak app export, password protected)
# ---------------------------------------------------------------------------

SEONGNAM_KEYWORDS = ("거래일시", "사용처", "거래금액")
SEONGNAM_HEADER_SCAN_ROWS = 15


def _is_sequence_cell(value: Cell) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    return isinstance(value, str) and is_digits(value.strip())


class SeongnamParser:
    """성남사랑상품권 결제내역: rows keyed by a numeric 순번 column."""

    source = SourceTag.SEONGNAM

    COL_SEQ = 0
    COL_DATE = 2
    COL_STATUS = 3
    COL_MERCHANT = 5
    COL_AMOUNT = 6

    def matches_filename(self, filename: str) -> bool:
        return filename_has(filename, ("chak", "성남사랑", "seongnam"))

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, *SEONGNAM_KEYWORDS)

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    def _data_start(self, grid: Grid, header_idx: int) -> int:
        # The row after the header may be a sub-header.
        for i in range(header_idx + 1, min(header_idx + 5, len(grid))):
            if _is_sequence_cell(cell(grid[i], self.COL_SEQ)):
                return i
        return header_idx + 2

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        grid = first_sheet(grids)
        header_idx = find_header_row(grid, *SEONGNAM_KEYWORDS, limit=SEONGNAM_HEADER_SCAN_ROWS)

        rows: list[CanonicalRow] = []
        for i in range(self._data_start(grid, header_idx), len(grid)):
            row = grid[i]
            if not _is_sequence_cell(cell(row, self.COL_SEQ)):
                continue
            parsed = _voucher_row(
                self.source,
                i,
                row,
                date_col=self.COL_DATE,
                merchant_col=self.COL_MERCHANT,
                status_col=self.COL_STATUS,
                amount_col=self.COL_AMOUNT,
            )
            if parsed is not None:
                rows.append(parsed)
        return ParseOutcome.success(self.source, rows)


__all__ = ["OnnuriParser", "SeongnamParser", "SETTLED_STATUS"]
