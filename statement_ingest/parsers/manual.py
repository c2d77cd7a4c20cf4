"""Manual-entry workbook (직접입력): rows a person typed in themselves.

Columns are located by header name (``날짜``, ``이용처``, ``금액`` required;
``카테고리``, ``메모`` optional) rather than position. Categories are kept as
entered when they belong to the expense set; anything else becomes ``기타``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from ..categories import DEFAULT_EXPENSE_CATEGORY, EXPENSE_CATEGORIES, SourceTag
from ..cells import cell_text, normalize_date, parse_amount
from ..errors import ParseError, ParseErrorKind
from ..models import CanonicalRow, Cell, Grid, ParseOutcome
from .base import HEADER_SCAN_ROWS, cell, headers_contain, is_blank, log_dropped, parse_boundary

HEADERS = ("날짜", "이용처", "금액", "카테고리", "메모")
REQUIRED_HEADERS = ("날짜", "이용처", "금액")
FILENAME_HINTS = ("직접입력", "manual")

# Browser duplicate-download suffixes: "남편_직접입력 (1).xlsx".
_DUPLICATE_SUFFIX_RE = re.compile(r"\s*\(\d+\)")


def normalize_filename(filename: str) -> str:
    return _DUPLICATE_SUFFIX_RE.sub("", filename)


def _normalize_category(value: Cell) -> str:
    text = cell_text(value)
    return text if text in EXPENSE_CATEGORIES else DEFAULT_EXPENSE_CATEGORY


class ManualEntryParser:
    source = SourceTag.MANUAL

    def matches_filename(self, filename: str) -> bool:
        name = normalize_filename(filename).lower()
        return any(h in name for h in FILENAME_HINTS)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, *HEADERS[:4])

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        grid = grids[0] if grids else []
        if not grid:
            return ParseOutcome.success(self.source, [])

        header_idx = -1
        columns: dict[str, int] = {}
        for i, row in enumerate(grid[:HEADER_SCAN_ROWS]):
            labels = [cell_text(c) for c in row]
            found = {h: labels.index(h) for h in HEADERS if h in labels}
            if all(h in found for h in REQUIRED_HEADERS):
                header_idx, columns = i, found
                break
        if header_idx < 0:
            raise ParseError(
                ParseErrorKind.HEADER_NOT_FOUND,
                "직접입력 파일의 헤더를 찾을 수 없습니다. (날짜, 이용처, 금액 필수)",
            )

        category_col = columns.get("카테고리")
        rows: list[CanonicalRow] = []
        for i in range(header_idx + 1, len(grid)):
            row = grid[i]
            if is_blank(row):
                continue
            date = normalize_date(cell(row, columns["날짜"]))
            if date is None:
                log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                continue
            merchant = cell_text(cell(row, columns["이용처"]))
            if not merchant:
                continue
            amount = abs(parse_amount(cell(row, columns["금액"])))
            if amount <= 0:
                log_dropped(self.source, i, "non_positive_amount")
                continue
            category = (
                _normalize_category(cell(row, category_col))
                if category_col is not None
                else DEFAULT_EXPENSE_CATEGORY
            )
            rows.append(
                CanonicalRow(date=date, merchant=merchant, amount=amount, category=category)
            )

        return ParseOutcome.success(self.source, rows)


__all__ = ["ManualEntryParser", "normalize_filename"]
