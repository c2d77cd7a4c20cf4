"""Public interface for the ``statement_ingest`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .billing import (
    extract_billing_month_from_filename,
    extract_billing_month_from_transactions,
    generate_display_name,
    get_installment_date,
)
from .categories import Owner, SourceTag, TransactionKind
from .classifier import OpenAIClassifier
from .classify import (
    Classifier,
    classify_partition,
    merge_category_maps,
    prepare_classification_inputs,
)
from .errors import ClassificationUnavailable, DecryptionError, ParseError, ParseErrorKind
from .ingest import ingest_file
from .mapping_rules import MerchantRule, apply_merchant_rules, load_rules
from .models import (
    CanonicalRow,
    ClassificationMode,
    ClassificationPartition,
    ClassifyInput,
    IngestResult,
    ParseOutcome,
    TransactionRecord,
)
from .registry import parse_file, parse_grids, select_parser
from .transform import build_transactions

__all__ = [
    # API
    "apply_merchant_rules",
    "build_transactions",
    "classify_partition",
    "extract_billing_month_from_filename",
    "extract_billing_month_from_transactions",
    "generate_display_name",
    "get_installment_date",
    "ingest_file",
    "load_rules",
    "merge_category_maps",
    "parse_file",
    "parse_grids",
    "prepare_classification_inputs",
    "select_parser",
    # Models / types
    "CanonicalRow",
    "ClassificationMode",
    "ClassificationPartition",
    "Classifier",
    "ClassifyInput",
    "IngestResult",
    "MerchantRule",
    "OpenAIClassifier",
    "Owner",
    "ParseOutcome",
    "SourceTag",
    "TransactionKind",
    "TransactionRecord",
    # Errors
    "ClassificationUnavailable",
    "DecryptionError",
    "ParseError",
    "ParseErrorKind",
]
