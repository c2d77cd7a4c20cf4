import json

import pytest
from pydantic import ValidationError

from statement_ingest.categories import INSTALLMENT_CATEGORY
from statement_ingest.mapping_rules import (
    MerchantRule,
    apply_merchant_rules,
    extract_pattern,
    load_rules,
    match_any,
    wildcard_match,
)
from statement_ingest.models import CanonicalRow


def _row(merchant, category="기타", *, installment=False):
    return CanonicalRow(
        date="2025-12-01",
        merchant=merchant,
        amount=1000,
        category=category,
        is_installment=installment,
    )


@pytest.mark.parametrize(
    "text, pattern, expected",
    [
        ("회사급여", "*급여", True),
        ("급여이체", "*급여", False),
        ("현대카드 결제", "*카드*", True),
        ("Netflix.com", "netflix*", True),
        ("온누리충전", "온누리충전", True),
        ("온누리충전 자동", "온누리충전", False),
        ("a+b(c)", "a+b(c)", True),
        ("", "*", False),
    ],
)
def test_wildcard_match(text, pattern, expected):
    assert wildcard_match(text, pattern) is expected


def test_match_any():
    assert match_any("지방세 납부", ["*국세*", "*지방세*"])
    assert not match_any("커피", [])


def test_rule_validation():
    with pytest.raises(ValidationError):
        MerchantRule(pattern="*")
    with pytest.raises(ValidationError):
        MerchantRule(pattern="스타벅스*", category="없는카테고리")
    with pytest.raises(ValidationError):
        MerchantRule(pattern="스타벅스*")
    rule = MerchantRule(pattern=" 스타벅스* ", category="외식/커피")
    assert rule.pattern == "스타벅스*"


def test_first_matching_rule_wins_and_installments_keep_category():
    rules = [
        MerchantRule(pattern="스타벅스*", category="외식/커피"),
        MerchantRule(pattern="*판교*", category="쇼핑"),
        MerchantRule(pattern="삼성전자*", category="가전/가구", rename="삼성전자"),
    ]
    rows = [
        _row("스타벅스 판교점"),
        _row("판교 서점"),
        _row("삼성전자 냉장고", INSTALLMENT_CATEGORY, installment=True),
        _row("이마트"),
    ]

    out = apply_merchant_rules(rows, rules)

    assert [(r.merchant, r.category) for r in out] == [
        ("스타벅스 판교점", "외식/커피"),
        ("판교 서점", "쇼핑"),
        ("삼성전자", INSTALLMENT_CATEGORY),
        ("이마트", "기타"),
    ]
    # Inputs are untouched.
    assert rows[2].merchant == "삼성전자 냉장고"


def test_no_rules_returns_rows_as_is():
    rows = [_row("이마트")]

    assert apply_merchant_rules(rows, []) == rows


def test_load_rules_from_json(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            [
                {"pattern": "스타벅스*", "category": "외식/커피"},
                {"pattern": "*쿠팡*", "rename": "쿠팡"},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    rules = load_rules(path)

    assert [r.pattern for r in rules] == ["스타벅스*", "*쿠팡*"]
    assert rules[1].category is None


def test_load_rules_rejects_unknown_fields(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text('[{"pattern": "a*", "category": "쇼핑", "color": "red"}]', encoding="utf-8")

    with pytest.raises(ValidationError):
        load_rules(path)


@pytest.mark.parametrize(
    "merchant, expected",
    [
        ("스타벅스 판교점", "스타벅스"),
        ("스타벅스 강남", "스타벅스"),
        ("(주)쿠팡", "쿠팡"),
        ("이마트24 분당점", "이마트"),
        ("A1", "A1"),
    ],
)
def test_extract_pattern(merchant, expected):
    assert extract_pattern(merchant) == expected
