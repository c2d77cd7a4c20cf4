"""Workbook bytes to per-sheet grids.

Statements arrive as OOXML workbooks (``.xlsx``), legacy OLE2 workbooks
(``.xls``) or, for the bank export, an HTML table saved with an ``.xls``
extension. The container is recognised from its leading bytes rather than the
filename. Every sheet becomes a :data:`~statement_ingest.models.Grid` with
pandas' missing values rendered as ``""``, integral floats as ``int`` and
timestamps as :class:`datetime.datetime`.
"""

from __future__ import annotations

import io
import math
import numbers
import zipfile
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from .errors import ParseError, ParseErrorKind
from .logging_setup import get_logger
from .models import Cell, Grid

_logger = get_logger("statement_ingest.workbook")

OOXML_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# Header candidates come from the first rows of every sheet.
HEADER_CANDIDATE_ROWS = 10

_HTML_ENCODINGS = ("utf-8", "cp949")
_READ_ERRORS = (
    ValueError,
    KeyError,
    OSError,
    zipfile.BadZipFile,
    xlrd.XLRDError,
    InvalidFileException,
)


def sniff_container(buffer: bytes) -> str | None:
    """Return ``"xlsx"``, ``"xls"``, ``"html"`` or ``None`` for unknown bytes."""

    if buffer.startswith(OOXML_MAGIC):
        return "xlsx"
    if buffer.startswith(OLE2_MAGIC):
        return "xls"
    head = buffer[:512].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if head.startswith(b"<"):
        return "html"
    return None


def _to_cell(value: Any) -> Cell:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, pd.Timestamp):
        return "" if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        f = float(value)
        if math.isnan(f):
            return ""
        return int(f) if f.is_integer() else f
    if pd.isna(value):
        return ""
    return str(value)


def _is_positional(columns: pd.Index) -> bool:
    return list(columns) == list(range(len(columns)))


def frame_to_grid(df: pd.DataFrame) -> Grid:
    """Convert one sheet's frame; non-positional column labels become row 0."""

    grid: Grid = []
    if not _is_positional(df.columns):
        if isinstance(df.columns, pd.MultiIndex):
            for level in range(df.columns.nlevels):
                grid.append([_to_cell(v) for v in df.columns.get_level_values(level)])
        else:
            grid.append([_to_cell(v) for v in df.columns])
    for values in df.astype(object).itertuples(index=False, name=None):
        grid.append([_to_cell(v) for v in values])
    return grid


def _read_excel(buffer: bytes, engine: str) -> list[Grid]:
    sheets = pd.read_excel(io.BytesIO(buffer), sheet_name=None, header=None, engine=engine)
    return [frame_to_grid(df) for df in sheets.values()]


def _decode_html(buffer: bytes) -> str:
    for encoding in _HTML_ENCODINGS:
        try:
            return buffer.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ParseError(ParseErrorKind.UNREADABLE_WORKBOOK, "HTML 인코딩을 판별할 수 없습니다.")


def _read_html(buffer: bytes) -> list[Grid]:
    frames = pd.read_html(io.StringIO(_decode_html(buffer)), flavor="lxml")
    return [frame_to_grid(df) for df in frames]


def read_workbook(buffer: bytes) -> list[Grid]:
    """Read every sheet (or HTML table) of an unencrypted workbook.

    Raises :class:`ParseError` with ``UNREADABLE_WORKBOOK`` when the bytes are
    not a recognised container or the reader rejects them.
    """

    kind = sniff_container(buffer)
    if kind is None:
        raise ParseError(ParseErrorKind.UNREADABLE_WORKBOOK, "엑셀 파일 형식이 아닙니다.")
    try:
        if kind == "html":
            grids = _read_html(buffer)
        else:
            grids = _read_excel(buffer, "openpyxl" if kind == "xlsx" else "xlrd")
    except _READ_ERRORS as e:
        _logger.warning("workbook:read_failed container=%s error=%s", kind, e)
        raise ParseError(
            ParseErrorKind.UNREADABLE_WORKBOOK, f"파일을 읽을 수 없습니다: {e}"
        ) from e
    _logger.debug(
        "workbook:read container=%s sheets=%d rows=%s",
        kind,
        len(grids),
        [len(g) for g in grids],
    )
    return grids


def header_candidates(grids: Sequence[Grid], rows: int = HEADER_CANDIDATE_ROWS) -> list[str]:
    """Every non-empty string cell in the leading rows of every sheet."""

    out: list[str] = []
    for grid in grids:
        for row in grid[:rows]:
            out.extend(c for c in row if isinstance(c, str) and c)
    return out


__all__ = [
    "HEADER_CANDIDATE_ROWS",
    "frame_to_grid",
    "header_candidates",
    "read_workbook",
    "sniff_container",
]
