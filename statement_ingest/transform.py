"""Parsed rows to persistable :class:`TransactionRecord` objects.

This is the only stage that applies the final overrides: installment rows are
re-dated onto the billing cycle and pinned to the installment category; every
other row takes its classified category, falling back to its own.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence

from .billing import get_installment_date
from .categories import INSTALLMENT_CATEGORY, Owner, SourceTag
from .models import CanonicalRow, CategoryMap, Provenance, TransactionRecord


def build_transactions(
    rows: Sequence[CanonicalRow],
    *,
    category_map: CategoryMap,
    installment_indices: Collection[int],
    billing_month: str | None,
    source_tag: SourceTag,
    owner: Owner,
    file_id: str | None = None,
    original_rows: Sequence[CanonicalRow] | None = None,
) -> list[TransactionRecord]:
    """Build one record per row, in row order.

    ``original_rows`` are the rows as parsed, before merchant rules rewrote
    them; they are kept as provenance. Defaults to ``rows``.
    """

    originals = rows if original_rows is None else original_rows
    if len(originals) != len(rows):
        raise ValueError("original_rows must align with rows")

    out: list[TransactionRecord] = []
    for idx, row in enumerate(rows):
        installment = idx in installment_indices
        out.append(
            TransactionRecord(
                transaction_date=(
                    get_installment_date(row.date, billing_month) if installment else row.date
                ),
                merchant_name=row.merchant,
                amount=row.amount,
                category=INSTALLMENT_CATEGORY if installment else category_map.get(idx, row.category),
                transaction_kind=row.transaction_kind,
                source_tag=source_tag,
                owner=owner,
                provenance=Provenance(original_row=originals[idx], row_index=idx, file_id=file_id),
            )
        )
    return out


def build_manual_transactions(
    rows: Sequence[CanonicalRow],
    *,
    owner: Owner,
    file_id: str | None = None,
) -> list[TransactionRecord]:
    """Manual-entry rows are persisted as typed: no overrides, no classification."""

    return [
        TransactionRecord(
            transaction_date=row.date,
            merchant_name=row.merchant,
            amount=row.amount,
            category=row.category,
            transaction_kind=row.transaction_kind,
            source_tag=SourceTag.MANUAL,
            owner=owner,
            provenance=Provenance(original_row=row, row_index=idx, file_id=file_id),
        )
        for idx, row in enumerate(rows)
    ]


__all__ = ["build_manual_transactions", "build_transactions"]
