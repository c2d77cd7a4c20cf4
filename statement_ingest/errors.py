"""Typed failure kinds and the exceptions that carry them.

Parser, decryptor and workbook code raise :class:`ParseError`; the parser
boundary (:func:`statement_ingest.registry.parse_file`) converts it into a
failed :class:`~statement_ingest.models.ParseOutcome` so callers only ever see
a typed result. :class:`ClassificationUnavailable` is the one exception that
crosses module boundaries: it aborts the classification step of a single
file's ingestion.
"""

from __future__ import annotations

from enum import StrEnum


class ParseErrorKind(StrEnum):
    HEADER_NOT_FOUND = "HEADER_NOT_FOUND"
    NO_DATA = "NO_DATA"
    UNRECOGNIZED_FORMAT = "UNRECOGNIZED_FORMAT"
    PASSWORD_REQUIRED = "PASSWORD_REQUIRED"
    WRONG_PASSWORD = "WRONG_PASSWORD"
    # Per-row and non-fatal: used for log records, never for a failed outcome.
    DATE_UNPARSEABLE = "DATE_UNPARSEABLE"
    CLASSIFICATION_UNAVAILABLE = "CLASSIFICATION_UNAVAILABLE"
    UNREADABLE_WORKBOOK = "UNREADABLE_WORKBOOK"


class ParseError(Exception):
    """File-level structural failure with a typed ``kind``."""

    def __init__(self, kind: ParseErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind}: {message}")


class DecryptionError(ParseError):
    """The supplied password did not open the encrypted workbook."""

    def __init__(self, message: str = "비밀번호가 올바르지 않습니다.") -> None:
        super().__init__(ParseErrorKind.WRONG_PASSWORD, message)


class ClassificationUnavailable(RuntimeError):
    """The external classification collaborator could not complete."""

    kind = ParseErrorKind.CLASSIFICATION_UNAVAILABLE


__all__ = [
    "ClassificationUnavailable",
    "DecryptionError",
    "ParseError",
    "ParseErrorKind",
]
