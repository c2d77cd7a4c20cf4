"""Woori Bank account history export.

The bank serves an HTML table with an ``.xls`` extension. Columns: No.,
거래일시, 적요, 기재내용, 찾으신금액 (withdrawal), 맡기신금액 (deposit), ...

Deposits become ``income`` rows and withdrawals ``expense`` rows. Small
amounts and configured skip patterns (own-account transfers, card
settlements already covered by card statements, voucher top-ups) are
dropped; wildcard category patterns pin a category.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..categories import DEFAULT_EXPENSE_CATEGORY, SourceTag, TransactionKind
from ..cells import normalize_date, parse_amount
from ..errors import ParseError, ParseErrorKind
from ..mapping_rules import match_any, wildcard_match
from ..models import CanonicalRow, Grid, ParseOutcome
from .base import (
    cell,
    filename_has,
    find_header_row,
    headers_contain,
    is_blank,
    log_dropped,
    parse_boundary,
    text_at,
)

COL_DATE_TIME = 1
COL_SUMMARY = 2
COL_DESCRIPTION = 3
COL_WITHDRAWAL = 4
COL_DEPOSIT = 5

HEADER_KEYWORDS = ("거래일시", "적요", "기재내용")
MIN_AMOUNT = 5000
ATM_MERCHANT = "ATM 인출"
DEFAULT_INCOME_CATEGORY = "강연/도서"


@dataclass(frozen=True, slots=True)
class WooriRules:
    """Skip and category patterns, matched against the 기재내용 cell."""

    income_skip: tuple[str, ...] = ("*예금결산이자*",)
    expense_skip: tuple[str, ...] = (
        "온누리충전",
        "온누리자동충전",
        "성남사랑상품권",
        "*카드*",
    )
    income_categories: tuple[tuple[str, str], ...] = (
        ("*급여", "급여"),
        ("*상여", "상여"),
        ("*환급*", "정부/환급"),
    )
    expense_categories: tuple[tuple[str, str], ...] = (
        ("*이자*", "대출이자"),
        ("*경찰청*", "세금"),
        ("*국세*", "세금"),
        ("*지방세*", "세금"),
        ("*자동차세*", "세금"),
        ("*재산세*", "세금"),
        ("*주민세*", "세금"),
        ("*네이버페이충전*", "쇼핑"),
        ("*당근페이*", "쇼핑"),
    )


def _category_for(text: str, patterns: Sequence[tuple[str, str]], default: str) -> str:
    for pattern, category in patterns:
        if wildcard_match(text, pattern):
            return category
    return default


class WooriParser:
    source = SourceTag.WOORI

    def __init__(self, rules: WooriRules | None = None) -> None:
        self.rules = rules or WooriRules()

    def matches_filename(self, filename: str) -> bool:
        if filename_has(filename, ("woori", "우리은행")):
            return True
        lowered = filename.lower()
        return "거래내역" in lowered and ".xls" in lowered

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool:
        return self.matches_filename(filename) or self.matches_headers(headers)

    def matches_headers(self, headers: Sequence[str]) -> bool:
        return headers_contain(headers, "거래내역조회") or headers_contain(
            headers, "거래일시", "찾으신금액", "맡기신금액"
        )

    def _locate(self, grids: Sequence[Grid]) -> tuple[Grid, int]:
        # HTML exports yield one grid per <table>; the history is one of them.
        for grid in grids:
            try:
                return grid, find_header_row(grid, *HEADER_KEYWORDS)
            except ParseError:
                continue
        raise ParseError(
            ParseErrorKind.HEADER_NOT_FOUND,
            f"헤더 행을 찾을 수 없습니다. (필수: {', '.join(HEADER_KEYWORDS)})",
        )

    @parse_boundary
    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        if not grids or all(is_blank(r) for g in grids for r in g):
            raise ParseError(ParseErrorKind.NO_DATA, "데이터가 없습니다.")
        grid, header_idx = self._locate(grids)

        rows: list[CanonicalRow] = []
        for i in range(header_idx + 1, len(grid)):
            row = grid[i]
            if is_blank(row) or len(row) <= COL_DEPOSIT:
                continue
            date = normalize_date(cell(row, COL_DATE_TIME))
            if date is None:
                log_dropped(self.source, i, ParseErrorKind.DATE_UNPARSEABLE)
                continue

            summary = text_at(row, COL_SUMMARY)
            description = text_at(row, COL_DESCRIPTION)
            merchant = ATM_MERCHANT if "CD" in summary.upper() else (description or summary)
            if not merchant:
                continue
            withdrawal = parse_amount(cell(row, COL_WITHDRAWAL))
            deposit = parse_amount(cell(row, COL_DEPOSIT))

            if deposit > 0 and withdrawal == 0:
                kind, amount = TransactionKind.INCOME, deposit
                skip = self.rules.income_skip
                category_patterns = self.rules.income_categories
                default = DEFAULT_INCOME_CATEGORY
            elif withdrawal > 0 and deposit == 0:
                kind, amount = TransactionKind.EXPENSE, withdrawal
                skip = self.rules.expense_skip
                category_patterns = self.rules.expense_categories
                default = DEFAULT_EXPENSE_CATEGORY
            else:
                log_dropped(self.source, i, "no_single_direction_amount")
                continue

            if amount < MIN_AMOUNT:
                log_dropped(self.source, i, "below_min_amount")
                continue
            if match_any(description, skip):
                log_dropped(self.source, i, "skip_pattern")
                continue

            rows.append(
                CanonicalRow(
                    date=date,
                    merchant=merchant,
                    amount=amount,
                    category=_category_for(description, category_patterns, default),
                    is_installment=False,
                    transaction_kind=kind,
                )
            )

        return ParseOutcome.success(self.source, rows)


__all__ = ["WooriParser", "WooriRules"]
