from statement_ingest.categories import SourceTag, TransactionKind
from statement_ingest.errors import ParseErrorKind
from statement_ingest.parsers import ManualEntryParser, WooriParser, WooriRules
from statement_ingest.parsers.manual import normalize_filename
from tests.helpers.statements import WOORI_HEADER, manual_grid, woori_grid

# ---- Woori -------------------------------------------------------------------


def test_woori_directions_skips_and_categories():
    out = WooriParser().parse([woori_grid()], "우리은행_거래내역.xls")

    assert out.ok
    assert out.source_tag is SourceTag.WOORI
    assert [(r.merchant, r.amount, r.transaction_kind, r.category) for r in out.rows] == [
        ("회사급여", 3000000, TransactionKind.INCOME, "급여"),
        ("ATM 인출", 100000, TransactionKind.EXPENSE, "기타"),
        ("지방세", 30000, TransactionKind.EXPENSE, "세금"),
        ("홍길동 강연료", 200000, TransactionKind.INCOME, "강연/도서"),
    ]
    assert out.total_amount == 3330000
    assert [r.date for r in out.rows] == ["2025-12-05", "2025-12-06", "2025-12-10", "2025-12-11"]


def test_woori_finds_the_history_table_among_html_tables():
    banner = [["우리은행"], ["고객센터 1588-5000"]]

    out = WooriParser().parse([banner, woori_grid()], "거래내역.xls")

    assert out.ok
    assert len(out.rows) == 4


def test_woori_custom_rules():
    rules = WooriRules(expense_skip=(), expense_categories=(("*카드*", "쇼핑"),))

    out = WooriParser(rules).parse([woori_grid()], "woori.xls")

    card = [r for r in out.rows if r.merchant == "현대카드 결제"]
    assert len(card) == 1
    assert card[0].category == "쇼핑"


def test_woori_row_with_both_directions_is_dropped():
    grid = [["거래내역조회"], WOORI_HEADER, [1, "2025.12.05 09:00", "이체", "정정", 10000, 10000, 0, ""]]

    out = WooriParser().parse([grid], "woori.xls")

    assert out.ok
    assert out.rows == ()


def test_woori_matches_by_filename_or_headers():
    parser = WooriParser()

    assert parser.matches_filename("거래내역_20251231.xls")
    assert not parser.matches_filename("거래내역_20251231.csv")
    assert parser.matches_headers(["거래일시", "찾으신금액", "맡기신금액"])
    assert parser.matches_headers(["거래내역조회"])


def test_woori_without_data():
    out = WooriParser().parse([[[""]]], "woori.xls")

    assert out.error_kind is ParseErrorKind.NO_DATA


# ---- Manual entry ------------------------------------------------------------


def test_manual_rows_by_header_name():
    out = ManualEntryParser().parse([manual_grid()], "남편_직접입력.xlsx")

    assert out.ok
    assert out.source_tag is SourceTag.MANUAL
    assert [(r.date, r.merchant, r.amount, r.category) for r in out.rows] == [
        ("2025-12-01", "동네 세탁소", 15000, "기타"),
        ("2025-12-02", "어머니 용돈", 200000, "부모님"),
        ("2025-12-02", "친구 축의금", 100000, "기타"),
    ]
    assert out.total_amount == 315000


def test_manual_columns_may_be_reordered_and_category_omitted():
    grid = [["금액", "이용처", "날짜"], [5000, "문구점", "2025-12-03"]]

    out = ManualEntryParser().parse([grid], "manual.xlsx")

    assert [(r.date, r.merchant, r.amount, r.category) for r in out.rows] == [
        ("2025-12-03", "문구점", 5000, "기타"),
    ]


def test_manual_empty_workbook_is_an_empty_success():
    assert ManualEntryParser().parse([], "직접입력.xlsx").ok
    out = ManualEntryParser().parse([[]], "직접입력.xlsx")
    assert out.ok
    assert out.rows == ()


def test_manual_missing_required_header():
    out = ManualEntryParser().parse([[["날짜", "금액"], ["2025-12-01", 1000]]], "직접입력.xlsx")

    assert out.error_kind is ParseErrorKind.HEADER_NOT_FOUND


def test_manual_filename_match_ignores_duplicate_download_suffix():
    parser = ManualEntryParser()

    assert normalize_filename("남편_직접입력 (1).xlsx") == "남편_직접입력.xlsx"
    assert parser.matches_filename("아내_직접입력 (2).xlsx")
    assert parser.matches_filename("Manual_entries.xlsx")
    assert not parser.matches_filename("hyundai.xls")
