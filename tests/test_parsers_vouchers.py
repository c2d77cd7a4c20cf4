from statement_ingest.categories import DEFAULT_EXPENSE_CATEGORY, SourceTag
from statement_ingest.errors import ParseErrorKind
from statement_ingest.parsers import OnnuriParser, SeongnamParser
from tests.helpers.statements import onnuri_grid, seongnam_grid


def test_onnuri_keeps_only_settled_positive_payments():
    out = OnnuriParser().parse([onnuri_grid()], "온누리_202512.xlsx")

    assert out.ok
    assert out.source_tag is SourceTag.ONNURI
    assert [(r.date, r.merchant, r.amount) for r in out.rows] == [
        ("2025-12-01", "판교시장 정육점", 35000),
        ("2025-12-04", "판교시장 반찬가게", 8000),
    ]
    assert out.total_amount == 43000
    assert all(r.category == DEFAULT_EXPENSE_CATEGORY for r in out.rows)
    assert not any(r.is_installment for r in out.rows)


def test_onnuri_status_must_match_exactly():
    grid = onnuri_grid()
    grid[3][7] = "결제완료(부분)"

    out = OnnuriParser().parse([grid], "onnuri.xlsx")

    assert [r.merchant for r in out.rows] == ["판교시장 반찬가게"]


def test_onnuri_header_match_needs_every_keyword():
    parser = OnnuriParser()

    assert parser.matches_headers(["거래일자", "가맹점 및 상품권명", "거래금액"])
    assert not parser.matches_headers(["거래일자", "거래금액"])


def test_onnuri_without_header():
    out = OnnuriParser().parse([[["온누리상품권"], ["내역 없음"]]], "onnuri.xlsx")

    assert out.error_kind is ParseErrorKind.HEADER_NOT_FOUND


def test_seongnam_skips_sub_header_and_total_rows():
    out = SeongnamParser().parse([seongnam_grid()], "chak_202512.xlsx")

    assert out.ok
    assert out.source_tag is SourceTag.SEONGNAM
    assert [(r.date, r.merchant, r.amount) for r in out.rows] == [
        ("2025-12-01", "성남 떡집", 12000),
        ("2025-12-02", "분당 꽃집", 30000),
    ]
    assert out.total_amount == 42000


def test_seongnam_matches_by_filename_or_headers():
    parser = SeongnamParser()

    assert parser.matches_filename("Chak_내역.xlsx")
    assert parser.matches_filename("성남사랑_12월.xlsx")
    assert parser.matches_headers(["거래일시", "사용처", "거래금액"])
    assert not parser.matches_headers(["거래일시", "거래금액"])


def test_seongnam_empty_sheet_is_no_data():
    out = SeongnamParser().parse([[]], "chak.xlsx")

    assert out.error_kind is ParseErrorKind.NO_DATA
