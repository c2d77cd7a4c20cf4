"""Classification preparation and merge.

Parsed rows are split into what the classification collaborator must see and
what it must never touch:

- installment rows (flagged by the parser, or already carrying the installment
  category) keep their structural category and are tracked separately;
- in ``defaultOnly`` mode, rows whose category is not the generic default for
  their transaction kind are *preset* and left alone;
- everything else is queued, expense and income in separate lists.

Results come back as row-index keyed maps. The expense and income maps are
disjoint because a row has exactly one transaction kind, so merging is a plain
union.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from .categories import INSTALLMENT_CATEGORY, TransactionKind, is_default_category
from .logging_setup import get_logger
from .models import (
    CanonicalRow,
    CategoryMap,
    ClassificationMode,
    ClassificationPartition,
    ClassifyInput,
)

_logger = get_logger("statement_ingest.classify")


class Classifier(Protocol):
    """External classification collaborator.

    Returns a category per request index. Omitted indices mean "unclassified";
    failures raise :class:`~statement_ingest.errors.ClassificationUnavailable`.
    """

    def classify(
        self, inputs: Sequence[ClassifyInput], kind: TransactionKind
    ) -> Mapping[int, str]: ...


def prepare_classification_inputs(
    rows: Sequence[CanonicalRow],
    mode: ClassificationMode = ClassificationMode.ALL,
) -> ClassificationPartition:
    expense: list[ClassifyInput] = []
    income: list[ClassifyInput] = []
    installment: set[int] = set()
    preset: set[int] = set()

    for idx, row in enumerate(rows):
        if row.is_installment or row.category == INSTALLMENT_CATEGORY:
            installment.add(idx)
            continue
        # A row deliberately set back to the default tag is indistinguishable
        # from an untouched one and gets re-classified here.
        if mode is ClassificationMode.DEFAULT_ONLY and not is_default_category(
            row.category, row.transaction_kind
        ):
            preset.add(idx)
            continue
        item = ClassifyInput(row_index=idx, merchant=row.merchant, amount=row.amount)
        if row.transaction_kind is TransactionKind.INCOME:
            income.append(item)
        else:
            expense.append(item)

    return ClassificationPartition(
        expense_inputs=tuple(expense),
        income_inputs=tuple(income),
        installment_indices=frozenset(installment),
        preset_indices=frozenset(preset),
    )


def merge_category_maps(expense_map: CategoryMap, income_map: CategoryMap) -> dict[int, str]:
    merged = dict(expense_map)
    merged.update(income_map)
    return merged


def _run(
    classifier: Classifier, inputs: Sequence[ClassifyInput], kind: TransactionKind
) -> dict[int, str]:
    if not inputs:
        return {}
    requested = {i.row_index for i in inputs}
    result = classifier.classify(inputs, kind)
    kept = {idx: cat for idx, cat in result.items() if idx in requested}
    _logger.info(
        "classify:done kind=%s requested=%d classified=%d",
        kind,
        len(requested),
        len(kept),
    )
    return kept


def classify_partition(
    partition: ClassificationPartition, classifier: Classifier
) -> dict[int, str]:
    """Classify both queues (concurrently) and return the merged map.

    Indices the collaborator omits or invents are left out of the result.
    """

    if partition.is_empty:
        return {}
    with ThreadPoolExecutor(max_workers=2) as pool:
        expense_future = pool.submit(
            _run, classifier, partition.expense_inputs, TransactionKind.EXPENSE
        )
        income_future = pool.submit(
            _run, classifier, partition.income_inputs, TransactionKind.INCOME
        )
        return merge_category_maps(expense_future.result(), income_future.result())


__all__ = [
    "Classifier",
    "classify_partition",
    "merge_category_maps",
    "prepare_classification_inputs",
]
