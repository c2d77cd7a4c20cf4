"""Shared parser contract and grid helpers.

Each source parser is a plain class satisfying :class:`StatementParser`
(``source``, ``matches_filename``, ``matches_headers``, ``can_parse``,
``parse``); the registry asks each parser ``can_parse`` in a fixed priority
order and takes the first that accepts. There is no parser base class: the
helpers below are plain functions, and :func:`parse_boundary` converts a
:class:`ParseError` raised inside ``parse`` into a failed :class:`ParseOutcome`.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from ..categories import SourceTag
from ..cells import cell_text, compact, row_text
from ..errors import ParseError, ParseErrorKind
from ..logging_setup import get_logger
from ..models import Cell, Grid, ParseOutcome, Row

_logger = get_logger("statement_ingest.parsers")

# Header candidates come from this many leading rows of each sheet.
HEADER_SCAN_ROWS = 10


P = TypeVar("P", bound="StatementParser")


class StatementParser(Protocol):
    source: SourceTag

    def matches_filename(self, filename: str) -> bool: ...

    def matches_headers(self, headers: Sequence[str]) -> bool: ...

    def can_parse(self, filename: str, headers: Sequence[str]) -> bool: ...

    def parse(self, grids: Sequence[Grid], filename: str) -> ParseOutcome: ...


def parse_boundary(
    fn: Callable[[P, Sequence[Grid], str], ParseOutcome],
) -> Callable[[P, Sequence[Grid], str], ParseOutcome]:
    """Decorate ``parse`` so structural failures come back as typed outcomes."""

    @functools.wraps(fn)
    def wrapper(self: P, grids: Sequence[Grid], filename: str) -> ParseOutcome:
        try:
            return fn(self, grids, filename)
        except ParseError as e:
            _logger.warning(
                "parse:failed source=%s kind=%s filename=%s",
                self.source,
                e.kind,
                filename,
            )
            return ParseOutcome.failure(self.source, e.kind, e.message)

    return wrapper


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------


def filename_has(filename: str, hints: Iterable[str]) -> bool:
    lowered = filename.lower()
    return any(h in lowered for h in hints)


def headers_contain(headers: Sequence[str], *keywords: str) -> bool:
    """True when every keyword occurs as a substring of some header cell."""

    return all(any(k in h for h in headers) for k in keywords)


def headers_equal(headers: Sequence[str], *keywords: str) -> bool:
    """True when every keyword is exactly some (trimmed) header cell."""

    stripped = {h.strip() for h in headers}
    return all(k in stripped for k in keywords)


# ---------------------------------------------------------------------------
# Grid access
# ---------------------------------------------------------------------------


def cell(row: Row, idx: int) -> Cell:
    """Cell at ``idx`` or ``None`` for ragged rows."""

    return row[idx] if 0 <= idx < len(row) else None


def text_at(row: Row, idx: int) -> str:
    return cell_text(cell(row, idx))


def is_blank(row: Row | None) -> bool:
    return not row or all(cell_text(c) == "" for c in row)


def first_sheet(grids: Sequence[Grid]) -> Grid:
    """The first worksheet, failing with ``NO_DATA`` when it holds nothing."""

    if not grids or all(is_blank(r) for r in grids[0]):
        raise ParseError(ParseErrorKind.NO_DATA, "데이터가 비어있습니다.")
    return grids[0]


def find_header_row(grid: Grid, *keywords: str, limit: int = HEADER_SCAN_ROWS) -> int:
    """Index of the first row (within ``limit``) whose joined text contains
    every keyword; raises ``HEADER_NOT_FOUND`` otherwise."""

    for i, row in enumerate(grid[:limit]):
        text = row_text(row)
        if all(k in text for k in keywords):
            return i
    raise ParseError(
        ParseErrorKind.HEADER_NOT_FOUND,
        f"헤더 행을 찾을 수 없습니다. (필수: {', '.join(keywords)})",
    )


def largest_amount(row: Row, parse: Callable[[Cell], int]) -> int:
    return max((parse(c) for c in row), default=0)


def log_dropped(source: SourceTag, row_no: int, reason: str) -> None:
    """Record a non-fatal row drop. ``reason`` is a short tag or a per-row
    :class:`ParseErrorKind` such as ``DATE_UNPARSEABLE``."""

    _logger.debug("parse:row_dropped source=%s row=%d reason=%s", source, row_no, reason.lower())


# ---------------------------------------------------------------------------
# Installment section scanning
# ---------------------------------------------------------------------------


class SectionState(Enum):
    SCANNING_NORMAL = "scanning_normal"
    IN_INSTALLMENT_SECTION = "in_installment_section"
    DONE = "done"


@dataclass(slots=True)
class InstallmentSectionScanner:
    """Three-state scanner over data rows.

    ``SCANNING_NORMAL`` -> (start marker row) -> ``IN_INSTALLMENT_SECTION``
    -> (end marker row) -> ``DONE``. Markers are matched against the row text
    with all whitespace removed. Marker rows themselves are never data rows.

    The section only exists when a start marker is followed by an end marker;
    :meth:`arm` pre-scans for that pair. An unarmed scanner stays in
    ``SCANNING_NORMAL`` for every row, so a file carrying only one of the two
    markers has no installment rows and no early stop.
    """

    start_marker: str
    end_marker: str
    state: SectionState = SectionState.SCANNING_NORMAL
    armed: bool = False

    def arm(self, grid: Grid, first_row: int) -> tuple[int, int] | None:
        start = end = None
        for i in range(first_row, len(grid)):
            text = compact_row(grid[i])
            if start is None:
                if self.start_marker in text:
                    start = i
            elif self.end_marker in text:
                end = i
                break
        found = (start, end) if start is not None and end is not None else None
        self.armed = found is not None
        return found

    def feed(self, row: Row) -> bool:
        """Advance on one row; return True when it is a marker row."""

        if not self.armed or self.state is SectionState.DONE:
            return False
        text = compact_row(row)
        if self.state is SectionState.SCANNING_NORMAL and self.start_marker in text:
            self.state = SectionState.IN_INSTALLMENT_SECTION
            return True
        if self.state is SectionState.IN_INSTALLMENT_SECTION and self.end_marker in text:
            self.state = SectionState.DONE
            return True
        return False

    @property
    def in_section(self) -> bool:
        return self.state is SectionState.IN_INSTALLMENT_SECTION

    @property
    def done(self) -> bool:
        return self.state is SectionState.DONE


def compact_row(row: Row) -> str:
    return "".join(compact(c) for c in row)


__all__ = [
    "HEADER_SCAN_ROWS",
    "InstallmentSectionScanner",
    "SectionState",
    "StatementParser",
    "cell",
    "compact_row",
    "filename_has",
    "find_header_row",
    "first_sheet",
    "headers_contain",
    "headers_equal",
    "is_blank",
    "largest_amount",
    "log_dropped",
    "parse_boundary",
    "text_at",
]
