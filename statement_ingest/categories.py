"""Closed category sets and the immutable lookup tables shared by the pipeline.

Categories are plain strings (Korean display tags, as they appear in the
household ledger). ``EXPENSE_CATEGORIES_AUTO`` is the set the classification
collaborator may choose from for expenses; ``EXPENSE_CATEGORIES_MANUAL`` is
only ever assigned by a person or a mapping rule.
"""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType

INSTALLMENT_CATEGORY = "기존할부"
DEFAULT_EXPENSE_CATEGORY = "기타"
DEFAULT_INCOME_CATEGORY = "기타소득"

EXPENSE_CATEGORIES_AUTO: tuple[str, ...] = (
    "식료품",
    "외식/커피",
    "쇼핑",
    "관리비",
    "통신/교통",
    "육아",
    "병원/미용",
    INSTALLMENT_CATEGORY,
    "대출이자",
    "양육비",
    "세금",
)

EXPENSE_CATEGORIES_MANUAL: tuple[str, ...] = (
    "여행",
    "부모님",
    "친구/동료",
    "경조사/선물",
    "가전/가구",
    DEFAULT_EXPENSE_CATEGORY,
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "급여",
    "상여",
    "정부/환급",
    "강연/도서",
    "금융소득",
    DEFAULT_INCOME_CATEGORY,
)

EXPENSE_CATEGORIES: tuple[str, ...] = EXPENSE_CATEGORIES_AUTO + EXPENSE_CATEGORIES_MANUAL
ALL_CATEGORIES: tuple[str, ...] = EXPENSE_CATEGORIES + INCOME_CATEGORIES


class TransactionKind(StrEnum):
    EXPENSE = "expense"
    INCOME = "income"


class Owner(StrEnum):
    HUSBAND = "husband"
    WIFE = "wife"


class SourceTag(StrEnum):
    HYUNDAI = "현대카드"
    KB = "KB국민카드"
    LOTTE = "롯데카드"
    SAMSUNG = "삼성카드"
    ONNURI = "온누리"
    SEONGNAM = "성남사랑"
    WOORI = "우리은행"
    MANUAL = "직접입력"
    UNKNOWN = "기타"


DEFAULT_CATEGORY_BY_KIND = MappingProxyType(
    {
        TransactionKind.EXPENSE: DEFAULT_EXPENSE_CATEGORY,
        TransactionKind.INCOME: DEFAULT_INCOME_CATEGORY,
    }
)

# Categories the collaborator is allowed to return, per transaction kind.
CLASSIFIABLE_CATEGORIES_BY_KIND = MappingProxyType(
    {
        TransactionKind.EXPENSE: EXPENSE_CATEGORIES_AUTO + (DEFAULT_EXPENSE_CATEGORY,),
        TransactionKind.INCOME: INCOME_CATEGORIES,
    }
)

SOURCE_DISPLAY_NAMES = MappingProxyType(
    {
        SourceTag.HYUNDAI: "현대카드",
        SourceTag.KB: "KB카드",
        SourceTag.LOTTE: "롯데카드",
        SourceTag.SAMSUNG: "삼성카드",
        SourceTag.ONNURI: "온누리상품권",
        SourceTag.SEONGNAM: "성남사랑상품권",
        SourceTag.WOORI: "우리은행",
        SourceTag.MANUAL: "직접입력",
        SourceTag.UNKNOWN: "기타",
    }
)

OWNER_NAMES = MappingProxyType(
    {
        Owner.HUSBAND: "남편",
        Owner.WIFE: "아내",
    }
)


def default_category(kind: TransactionKind) -> str:
    return DEFAULT_CATEGORY_BY_KIND[kind]


def is_default_category(category: str, kind: TransactionKind) -> bool:
    return category == DEFAULT_CATEGORY_BY_KIND[kind]


__all__ = [
    "ALL_CATEGORIES",
    "CLASSIFIABLE_CATEGORIES_BY_KIND",
    "DEFAULT_CATEGORY_BY_KIND",
    "DEFAULT_EXPENSE_CATEGORY",
    "DEFAULT_INCOME_CATEGORY",
    "EXPENSE_CATEGORIES",
    "EXPENSE_CATEGORIES_AUTO",
    "EXPENSE_CATEGORIES_MANUAL",
    "INCOME_CATEGORIES",
    "INSTALLMENT_CATEGORY",
    "OWNER_NAMES",
    "Owner",
    "SOURCE_DISPLAY_NAMES",
    "SourceTag",
    "TransactionKind",
    "default_category",
    "is_default_category",
]
