"""End-to-end ingestion of one uploaded statement file.

Public API:
    - :func:`ingest_file`

Order of operations: parse, billing month, display name, merchant rules,
classification partition, classification, record build. Manual-entry
workbooks skip everything after parsing: their categories were typed by a
person. A classification failure fails the whole file; no records are
returned for it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from .billing import generate_display_name, resolve_billing_month
from .categories import Owner, SourceTag
from .classify import Classifier, classify_partition, prepare_classification_inputs
from .errors import ClassificationUnavailable, ParseErrorKind
from .logging_setup import get_logger
from .mapping_rules import MerchantRule, apply_merchant_rules
from .models import ClassificationMode, IngestResult
from .registry import parse_file
from .transform import build_manual_transactions, build_transactions

_logger = get_logger("statement_ingest.ingest")


def ingest_file(
    buffer: bytes,
    filename: str,
    *,
    owner: Owner,
    file_id: str | None = None,
    password: str | None = None,
    classifier: Classifier | None = None,
    rules: Sequence[MerchantRule] = (),
    mode: ClassificationMode = ClassificationMode.ALL,
    today: date | None = None,
) -> IngestResult:
    """Run one file through the pipeline.

    ``classifier=None`` skips classification: rows keep their parsed (or
    rule-assigned) categories.
    """

    outcome = parse_file(buffer, filename, password)
    if not outcome.ok:
        return IngestResult(
            ok=False,
            filename=filename,
            source_tag=outcome.source_tag,
            error_kind=outcome.error_kind,
            error_message=outcome.error_message,
        )

    rows = list(outcome.rows)
    billing_month = resolve_billing_month(rows, filename)
    display_name = generate_display_name(filename, outcome.source_tag, owner, billing_month, today)

    if outcome.source_tag is SourceTag.MANUAL:
        records = build_manual_transactions(rows, owner=owner, file_id=file_id)
        _logger.info(
            "ingest:done filename=%s source=%s records=%d", filename, SourceTag.MANUAL, len(records)
        )
        return IngestResult(
            ok=True,
            filename=filename,
            source_tag=outcome.source_tag,
            display_name=display_name,
            billing_month=billing_month,
            billing_total=outcome.billing_total,
            records=tuple(records),
        )

    mapped = apply_merchant_rules(rows, rules)
    partition = prepare_classification_inputs(mapped, mode)
    _logger.info(
        "ingest:partition filename=%s expense=%d income=%d installment=%d preset=%d",
        filename,
        len(partition.expense_inputs),
        len(partition.income_inputs),
        len(partition.installment_indices),
        len(partition.preset_indices),
    )

    category_map: dict[int, str] = {}
    if classifier is not None:
        try:
            category_map = classify_partition(partition, classifier)
        except ClassificationUnavailable as e:
            _logger.error("ingest:classification_unavailable filename=%s error=%s", filename, e)
            return IngestResult(
                ok=False,
                filename=filename,
                source_tag=outcome.source_tag,
                display_name=display_name,
                billing_month=billing_month,
                billing_total=outcome.billing_total,
                error_kind=ParseErrorKind.CLASSIFICATION_UNAVAILABLE,
                error_message=str(e),
            )

    records = build_transactions(
        mapped,
        category_map=category_map,
        installment_indices=partition.installment_indices,
        billing_month=billing_month,
        source_tag=outcome.source_tag,
        owner=owner,
        file_id=file_id,
        original_rows=rows,
    )
    _logger.info(
        "ingest:done filename=%s source=%s records=%d classified=%d",
        filename,
        outcome.source_tag,
        len(records),
        len(category_map),
    )
    return IngestResult(
        ok=True,
        filename=filename,
        source_tag=outcome.source_tag,
        display_name=display_name,
        billing_month=billing_month,
        billing_total=outcome.billing_total,
        records=tuple(records),
    )


__all__ = ["ingest_file"]
