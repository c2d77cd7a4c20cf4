"""User-defined merchant mapping rules.

A rule pins a category and/or renames a merchant whenever the merchant name
matches its pattern. Patterns are matched case-insensitively against the whole
trimmed merchant name; ``*`` matches any run of characters and a pattern
without ``*`` must match exactly.

Rules are applied after parsing and before classification. Rows they pin to a
non-default category become preset rows in ``defaultOnly`` mode.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import replace
from functools import lru_cache
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator, model_validator

from .categories import ALL_CATEGORIES
from .logging_setup import get_logger
from .models import CanonicalRow

_logger = get_logger("statement_ingest.mapping_rules")


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(p) for p in pattern.split("*"))
    return re.compile("^" + ".*".join(parts) + "$", re.DOTALL)


def wildcard_match(text: str, pattern: str) -> bool:
    """Whole-string, case-insensitive match with ``*`` wildcards."""

    t = text.strip().lower()
    p = pattern.strip().lower()
    if not t or not p:
        return False
    if "*" not in p:
        return t == p
    return _compile(p).match(t) is not None


def match_any(text: str, patterns: Iterable[str]) -> bool:
    return any(wildcard_match(text, p) for p in patterns)


class MerchantRule(BaseModel):
    """One mapping rule. At least one of ``category`` / ``rename`` is set."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    pattern: str
    category: str | None = None
    rename: str | None = None

    @field_validator("pattern")
    @classmethod
    def _pattern_non_empty(cls, v: str) -> str:
        if not v or v.strip("*") == "":
            raise ValueError("pattern must contain at least one literal character")
        return v

    @field_validator("category")
    @classmethod
    def _category_known(cls, v: str | None) -> str | None:
        if v is not None and v not in ALL_CATEGORIES:
            raise ValueError(f"unknown category: {v!r}")
        return v

    @field_validator("rename")
    @classmethod
    def _rename_non_empty(cls, v: str | None) -> str | None:
        if v is not None and not v:
            raise ValueError("rename must be non-empty when given")
        return v

    @model_validator(mode="after")
    def _has_effect(self) -> MerchantRule:
        if self.category is None and self.rename is None:
            raise ValueError("rule needs a category, a rename, or both")
        return self

    def matches(self, merchant: str) -> bool:
        return wildcard_match(merchant, self.pattern)


_RULES_ADAPTER = TypeAdapter(list[MerchantRule])


def load_rules(path: str | PathLike[str]) -> tuple[MerchantRule, ...]:
    """Read a JSON array of rule objects from ``path``.

    Raises ``pydantic.ValidationError`` for malformed files and ``OSError``
    when the file cannot be read.
    """

    text = Path(path).read_text(encoding="utf-8")
    rules = tuple(_RULES_ADAPTER.validate_json(text))
    _logger.info("mapping_rules:loaded path=%s count=%d", path, len(rules))
    return rules


def apply_merchant_rules(
    rows: Sequence[CanonicalRow], rules: Sequence[MerchantRule]
) -> list[CanonicalRow]:
    """Return new rows with the first matching rule applied to each.

    Installment rows may be renamed but never re-categorised. The output has
    the same length and order as ``rows`` so row indices stay stable.
    """

    if not rules:
        return list(rows)

    out: list[CanonicalRow] = []
    applied = 0
    for row in rows:
        rule = next((r for r in rules if r.matches(row.merchant)), None)
        if rule is None:
            out.append(row)
            continue
        applied += 1
        changes: dict[str, str] = {}
        if rule.rename:
            changes["merchant"] = rule.rename
        if rule.category and not row.is_installment:
            changes["category"] = rule.category
        out.append(replace(row, **changes) if changes else row)
    _logger.debug("mapping_rules:applied rows=%d matched=%d", len(rows), applied)
    return out


# ---------------------------------------------------------------------------
# Merchant pattern keys
# ---------------------------------------------------------------------------

_BRANCH_SUFFIXES: tuple[str, ...] = (
    "점",
    "호점",
    "지점",
    "본점",
    "직영점",
    "가맹점",
    "역점",
    "역사점",
    "타워점",
    "센터점",
    "몰점",
    "마트점",
    "백화점",
    "아울렛",
    "강남",
    "홍대",
    "신촌",
    "잠실",
    "판교",
    "분당",
    "서울",
    "부산",
    "대구",
    "인천",
    "광주",
    "대전",
)
_CORPORATE_PREFIX_RE = re.compile(r"^(?:\(주\)|㈜|주식회사)\s*")
_BRACKETED_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_DIGITS_RE = re.compile(r"\d+")
_SEPARATORS_RE = re.compile(r"[-_/\\.,]")
_WS_RE = re.compile(r"\s+")


def extract_pattern(merchant: str) -> str:
    """Normalised merchant key: ``"스타벅스 판교점"`` -> ``"스타벅스"``.

    Strips digits, corporate markers and bracketed text, then each known
    branch or area suffix in turn. Falls back to the first four characters
    when fewer than two remain.
    """

    key = _CORPORATE_PREFIX_RE.sub("", merchant.strip())
    key = _DIGITS_RE.sub("", key)
    key = _BRACKETED_RE.sub("", key)
    key = _WS_RE.sub(" ", _SEPARATORS_RE.sub(" ", key)).strip()
    for suffix in _BRANCH_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            key = key[: -len(suffix)].strip()
    if len(key) < 2:
        return merchant.strip()[:4]
    return key


__all__ = [
    "MerchantRule",
    "apply_merchant_rules",
    "extract_pattern",
    "load_rules",
    "match_any",
    "wildcard_match",
]
