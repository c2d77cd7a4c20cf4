"""Cell normalizers: amounts, dates and merchant names.

Every function here is pure and total: malformed input yields ``0`` (amounts),
``None`` (dates) or the input text unchanged (merchant names), never an
exception. Callers decide whether a ``None`` date invalidates a row.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .models import Cell

# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_WS_RE = re.compile(r"\s+")


def cell_text(value: Cell) -> str:
    """Render a cell as trimmed text (``""`` for empty cells)."""

    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def compact(value: Cell) -> str:
    """Cell text with every whitespace character removed.

    Statement markers are sometimes letter-spaced ("해 외 이 용 소계").
    """

    return _WS_RE.sub("", cell_text(value))


def row_text(row: list[Cell], sep: str = " ") -> str:
    return sep.join(cell_text(c) for c in row)


def is_digits(text: str) -> bool:
    """ASCII digit run check (``str.isdigit`` also accepts superscripts)."""

    return bool(text) and text.isascii() and text.isdigit()


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

# Leading glyphs statements use for a decrease.
_NEGATIVE_MARKERS = ("-", "△", "▲")
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def parse_amount(value: Cell) -> int:
    """Return the signed whole-currency amount encoded by ``value``.

    Numbers round half away from zero. Strings are trimmed; a leading ``-``,
    ``△`` or ``▲`` marks a negative value; every other non-digit character is
    discarded. No digits at all means ``0``.
    """

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        try:
            return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
        except InvalidOperation:
            return 0
    if isinstance(value, date):
        return 0

    s = str(value).strip()
    if not s:
        return 0
    negative = s.startswith(_NEGATIVE_MARKERS)
    digits = _NON_DIGIT_RE.sub("", s)
    if not digits:
        return 0
    amount = int(digits)
    return -amount if negative else amount


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# Spreadsheet day zero (the 1900 leap-year bug folded in).
EXCEL_EPOCH = date(1899, 12, 30)
# Serials below this (2009-07-06) are treated as amounts or counters, not dates.
MIN_PLAUSIBLE_SERIAL = 40000
MAX_PLAUSIBLE_SERIAL = 2958465

_LABELED_RE = re.compile(r"(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일")
_YEAR_FIRST_RE = re.compile(r"^(\d{4})[-./](\d{1,2})[-./](\d{1,2})(?:[\sT].*)?$")
_YY_DOTTED_RE = re.compile(r"^(\d{2})\.(\d{1,2})\.(\d{1,2})(?:\s.*)?$")
_COMPACT_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_MONTH_FIRST_RE = re.compile(r"^(\d{1,2})[-./](\d{1,2})[-./](\d{4})$")
_SERIAL_TEXT_RE = re.compile(r"^\d{5}(?:\.\d+)?$")


def _iso(year: int | str, month: int | str, day: int | str) -> str | None:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def serial_to_iso(serial: float) -> str | None:
    """Convert a spreadsheet serial day number to ``YYYY-MM-DD``.

    The fractional (time-of-day) part is dropped. Implausible magnitudes
    return ``None``.
    """

    if isinstance(serial, bool) or not math.isfinite(serial):
        return None
    if not MIN_PLAUSIBLE_SERIAL <= serial <= MAX_PLAUSIBLE_SERIAL:
        return None
    return (EXCEL_EPOCH + timedelta(days=int(serial))).isoformat()


def parse_labeled_date(text: str) -> str | None:
    """``"2025년 8월 14일"`` -> ``"2025-08-14"``."""

    m = _LABELED_RE.search(text)
    if not m:
        return None
    return _iso(*m.groups())


def parse_text_date(text: str) -> str | None:
    """Parse the textual encodings found across statement exports.

    Accepted: ``YYYY-MM-DD`` / ``YYYY.MM.DD`` / ``YYYY/MM/DD`` (optionally
    followed by a time), ``YY.MM.DD``, ``YYYYMMDD``, ``MM/DD/YYYY``, the
    labeled ``YYYY년 M월 D일`` form and serial numbers written as text.
    """

    s = text.strip()
    if not s:
        return None
    if "년" in s:
        return parse_labeled_date(s)
    if m := _YEAR_FIRST_RE.match(s):
        return _iso(*m.groups())
    if m := _YY_DOTTED_RE.match(s):
        yy, mm, dd = m.groups()
        return _iso(2000 + int(yy), mm, dd)
    if m := _COMPACT_RE.match(s):
        return _iso(*m.groups())
    if m := _MONTH_FIRST_RE.match(s):
        mm, dd, yyyy = m.groups()
        return _iso(yyyy, mm, dd)
    if _SERIAL_TEXT_RE.match(s):
        return serial_to_iso(float(s))
    return None


def normalize_date(value: Cell) -> str | None:
    """Resolve any supported cell encoding to an ISO date, else ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int | float):
        # YYYYMMDD stored as a number.
        if value > MAX_PLAUSIBLE_SERIAL:
            return parse_text_date(cell_text(value))
        return serial_to_iso(value)
    return parse_text_date(str(value))


# ---------------------------------------------------------------------------
# Merchant names
# ---------------------------------------------------------------------------

# Amount-shaped tails glued onto a merchant cell: comma-grouped amounts,
# a truncated comma group ("19,90"), digits cut off by an ellipsis, or a
# negative amount. A bare digit run without a separator is part of the name
# ("GS25", "7번가") unless it is the row's own amount ("씨유판교점800").
_AMOUNT_SUFFIX_RE = re.compile(
    r"(?:"
    r"-?\d{1,3}(?:,\d{3})+"
    r"|\d{1,3}(?:,\d{3})*,\d{1,2}"
    r"|[\d,]*\d(?:\.{2,}|…)"
    r"|-\d[\d,]*"
    r")$"
)


def strip_amount_suffix(text: str, amount: int | None = None) -> str:
    """Remove one trailing amount-shaped run, returning the input if nothing
    would remain.

    With ``amount``, a bare digit tail equal to it is stripped as well.
    """

    cleaned = _AMOUNT_SUFFIX_RE.sub("", text).strip()
    if cleaned == text and amount:
        cleaned = re.sub(rf"(?<!\d){abs(amount)}$", "", text).strip()
    return cleaned or text


def extract_merchant_name(raw: Cell, amount: int | None = None) -> str:
    """Merchant display name with whitespace collapsed and any concatenated
    amount suffix removed.

    ``"우지커피판교w시티점3,300"`` -> ``"우지커피판교w시티점"``
    """

    text = _WS_RE.sub(" ", cell_text(raw)).strip()
    if not text:
        return ""
    return strip_amount_suffix(text, amount)


__all__ = [
    "EXCEL_EPOCH",
    "MIN_PLAUSIBLE_SERIAL",
    "cell_text",
    "compact",
    "extract_merchant_name",
    "is_digits",
    "normalize_date",
    "parse_amount",
    "parse_labeled_date",
    "parse_text_date",
    "row_text",
    "serial_to_iso",
    "strip_amount_suffix",
]
