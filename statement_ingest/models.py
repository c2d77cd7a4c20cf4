"""Data models for ``statement_ingest``.

Parser output (:class:`CanonicalRow`, :class:`ParseOutcome`) is created once
per uploaded file and never mutated. The classification layer only produces
auxiliary index/category structures next to those rows; the final category
and date overrides happen in :mod:`statement_ingest.transform`, which builds
the separate :class:`TransactionRecord` type.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

from .categories import Owner, SourceTag, TransactionKind
from .errors import ParseErrorKind

# ---------------------------------------------------------------------------
# Cells and grids
# ---------------------------------------------------------------------------

type Cell = str | int | float | date | None
"""A single worksheet cell as delivered by the workbook reader."""

type Row = list[Cell]
type Grid = list[Row]
"""One worksheet: rows of cells, ragged rows allowed."""

type CategoryMap = Mapping[int, str]
"""Row index (position in the parsed row sequence) to category tag."""


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalRow:
    """The normalized transaction shape every parser converges to.

    ``date`` is an ISO ``YYYY-MM-DD`` string; ``amount`` is a positive whole
    currency amount. Rows failing ``amount > 0`` are excluded by parsers and
    never constructed.
    """

    date: str
    merchant: str
    amount: int
    category: str
    is_installment: bool = False
    transaction_kind: TransactionKind = TransactionKind.EXPENSE

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int) or self.amount <= 0:
            raise ValueError(f"CanonicalRow.amount must be a positive integer, got {self.amount!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "merchant": self.merchant,
            "amount": self.amount,
            "category": self.category,
            "is_installment": self.is_installment,
            "transaction_kind": str(self.transaction_kind),
        }


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Typed result of parsing one file.

    ``total_amount`` always equals ``sum(row.amount for row in rows)``; the
    constructor enforces it. Use :meth:`success` / :meth:`failure` rather than
    the raw constructor.
    """

    ok: bool
    rows: tuple[CanonicalRow, ...]
    source_tag: SourceTag
    total_amount: int
    billing_total: int | None = None
    error_kind: ParseErrorKind | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        computed = sum(r.amount for r in self.rows)
        if computed != self.total_amount:
            raise ValueError(
                f"ParseOutcome.total_amount {self.total_amount} != sum of rows {computed}"
            )
        if not self.ok and self.error_kind is None:
            raise ValueError("failed ParseOutcome requires error_kind")

    @classmethod
    def success(
        cls,
        source_tag: SourceTag,
        rows: Iterable[CanonicalRow],
        *,
        billing_total: int | None = None,
    ) -> ParseOutcome:
        materialized = tuple(rows)
        return cls(
            ok=True,
            rows=materialized,
            source_tag=source_tag,
            total_amount=sum(r.amount for r in materialized),
            billing_total=billing_total,
        )

    @classmethod
    def failure(cls, source_tag: SourceTag, kind: ParseErrorKind, message: str) -> ParseOutcome:
        return cls(
            ok=False,
            rows=(),
            source_tag=source_tag,
            total_amount=0,
            error_kind=kind,
            error_message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "source_tag": str(self.source_tag),
            "total_amount": self.total_amount,
            "billing_total": self.billing_total,
            "error_kind": str(self.error_kind) if self.error_kind else None,
            "error_message": self.error_message,
            "rows": [r.to_dict() for r in self.rows],
        }


# ---------------------------------------------------------------------------
# Classification preparation
# ---------------------------------------------------------------------------


class ClassificationMode(StrEnum):
    ALL = "all"
    DEFAULT_ONLY = "defaultOnly"


@dataclass(frozen=True, slots=True)
class ClassifyInput:
    """One request item for the classification collaborator."""

    row_index: int
    merchant: str
    amount: int

    def to_payload(self) -> dict[str, Any]:
        return {"index": self.row_index, "merchant": self.merchant, "amount": self.amount}


@dataclass(frozen=True, slots=True)
class ClassificationPartition:
    """Row indices split by how the classification step must treat them.

    ``expense_inputs`` and ``income_inputs`` are disjoint by construction
    (a row has exactly one transaction kind), and neither contains an index
    from ``installment_indices`` or ``preset_indices``.
    """

    expense_inputs: tuple[ClassifyInput, ...] = ()
    income_inputs: tuple[ClassifyInput, ...] = ()
    installment_indices: frozenset[int] = field(default_factory=frozenset)
    preset_indices: frozenset[int] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.expense_inputs and not self.income_inputs


# ---------------------------------------------------------------------------
# Persistable records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Provenance:
    original_row: CanonicalRow
    row_index: int
    file_id: str | None


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """Final record handed to the persistence collaborator."""

    transaction_date: str
    merchant_name: str
    amount: int
    category: str
    transaction_kind: TransactionKind
    source_tag: SourceTag
    owner: Owner
    provenance: Provenance

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["transaction_kind"] = str(self.transaction_kind)
        out["source_tag"] = str(self.source_tag)
        out["owner"] = str(self.owner)
        out["provenance"]["original_row"] = self.provenance.original_row.to_dict()
        return out


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Outcome of running one file through the whole ingestion pipeline."""

    ok: bool
    filename: str
    source_tag: SourceTag
    display_name: str | None = None
    billing_month: str | None = None
    billing_total: int | None = None
    records: tuple[TransactionRecord, ...] = ()
    error_kind: ParseErrorKind | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "filename": self.filename,
            "display_name": self.display_name,
            "source_tag": str(self.source_tag),
            "billing_month": self.billing_month,
            "billing_total": self.billing_total,
            "error_kind": str(self.error_kind) if self.error_kind else None,
            "error_message": self.error_message,
            "records": [r.to_dict() for r in self.records],
        }


__all__ = [
    "CanonicalRow",
    "CategoryMap",
    "Cell",
    "ClassificationMode",
    "ClassificationPartition",
    "ClassifyInput",
    "Grid",
    "IngestResult",
    "ParseOutcome",
    "Provenance",
    "Row",
    "TransactionRecord",
]
