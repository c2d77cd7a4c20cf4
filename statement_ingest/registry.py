"""Parser selection and the parse boundary.

:func:`parse_file` is the single entry point from raw bytes to a typed
:class:`~statement_ingest.models.ParseOutcome`. Every structural failure
(encryption, unreadable container, no matching parser, missing header) comes
back as ``ok=False`` with an ``error_kind``; nothing is raised past here.
"""

from __future__ import annotations

from collections.abc import Sequence

from . import crypto
from .categories import SourceTag
from .errors import ParseError, ParseErrorKind
from .logging_setup import get_logger
from .models import Grid, ParseOutcome
from .parsers import PARSERS, StatementParser
from .workbook import header_candidates, read_workbook

_logger = get_logger("statement_ingest.registry")

UNRECOGNIZED_MESSAGE = "지원하지 않는 파일 형식입니다."
PASSWORD_REQUIRED_MESSAGE = "비밀번호가 필요합니다."


def select_parser(
    filename: str,
    headers: Sequence[str],
    parsers: Sequence[StatementParser] = PARSERS,
) -> StatementParser | None:
    """First parser, in registration order, that accepts the file by its
    filename hint or its header keywords."""

    for parser in parsers:
        if parser.can_parse(filename, headers):
            _logger.debug(
                "registry:selected source=%s by=%s",
                parser.source,
                "filename" if parser.matches_filename(filename) else "headers",
            )
            return parser
    return None


def parse_grids(
    grids: Sequence[Grid],
    filename: str,
    parsers: Sequence[StatementParser] = PARSERS,
) -> ParseOutcome:
    parser = select_parser(filename, header_candidates(grids), parsers)
    if parser is None:
        _logger.warning("registry:unrecognized filename=%s sheets=%d", filename, len(grids))
        return ParseOutcome.failure(
            SourceTag.UNKNOWN, ParseErrorKind.UNRECOGNIZED_FORMAT, UNRECOGNIZED_MESSAGE
        )
    outcome = parser.parse(grids, filename)
    if outcome.ok:
        _logger.info(
            "registry:parsed source=%s filename=%s rows=%d total=%d billing_total=%s",
            outcome.source_tag,
            filename,
            len(outcome.rows),
            outcome.total_amount,
            outcome.billing_total,
        )
    return outcome


def parse_file(
    buffer: bytes,
    filename: str,
    password: str | None = None,
    parsers: Sequence[StatementParser] = PARSERS,
) -> ParseOutcome:
    """Decrypt when needed, read every sheet and run the selected parser."""

    try:
        if crypto.is_encrypted(buffer):
            if not password:
                _logger.warning("registry:password_required filename=%s", filename)
                return ParseOutcome.failure(
                    SourceTag.UNKNOWN,
                    ParseErrorKind.PASSWORD_REQUIRED,
                    PASSWORD_REQUIRED_MESSAGE,
                )
            buffer = crypto.decrypt(buffer, password)
        grids = read_workbook(buffer)
    except ParseError as e:
        _logger.warning("registry:failed kind=%s filename=%s", e.kind, filename)
        return ParseOutcome.failure(SourceTag.UNKNOWN, e.kind, e.message)
    return parse_grids(grids, filename, parsers)


__all__ = ["parse_file", "parse_grids", "select_parser"]
