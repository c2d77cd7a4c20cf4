import pandas as pd
import pytest

from statement_ingest import crypto
from statement_ingest.categories import SourceTag
from statement_ingest.errors import DecryptionError, ParseErrorKind
from statement_ingest.parsers import HyundaiParser, KBParser
from statement_ingest.registry import parse_file, parse_grids, select_parser
from statement_ingest.workbook import frame_to_grid, header_candidates, read_workbook, sniff_container
from tests.helpers.statements import (
    HYUNDAI_HEADER,
    encrypted_xlsx_bytes,
    html_table_bytes,
    hyundai_grid,
    lotte_grids,
    woori_grid,
    xlsx_bytes,
)

# ---- Selection -----------------------------------------------------------------


def test_filename_hint_wins_over_another_parsers_headers():
    parser = select_parser("현대카드_12월.xls", ["이용하신 가맹점", "회차"])

    assert isinstance(parser, HyundaiParser)


def test_headers_decide_when_no_filename_hint_matches():
    parser = select_parser("statement.xls", ["이용일자", "이용하신 가맹점", "회차"])

    assert isinstance(parser, KBParser)


def test_higher_priority_headers_beat_a_lower_priority_filename_hint():
    # "workbook" contains the KB hint "kb"; Hyundai is checked first.
    parser = select_parser("workbook_202512.xls", HYUNDAI_HEADER)

    assert isinstance(parser, HyundaiParser)


def test_parse_file_with_misleading_filename_uses_the_header_match():
    out = parse_file(xlsx_bytes(hyundai_grid()), "workbook_202512.xlsx")

    assert out.ok
    assert out.source_tag is SourceTag.HYUNDAI
    assert out.total_amount == 168300


def test_no_parser_for_unknown_file():
    assert select_parser("notes.xlsx", ["제목", "내용"]) is None


def test_parse_grids_unrecognized_format():
    out = parse_grids([[["제목", "내용"]]], "notes.xlsx")

    assert not out.ok
    assert out.source_tag is SourceTag.UNKNOWN
    assert out.error_kind is ParseErrorKind.UNRECOGNIZED_FORMAT


# ---- Reading -------------------------------------------------------------------


def test_parse_file_reads_xlsx_and_runs_the_parser():
    out = parse_file(xlsx_bytes(hyundai_grid()), "hyundai_202512.xlsx")

    assert out.ok
    assert out.source_tag is SourceTag.HYUNDAI
    assert out.total_amount == 168300
    assert out.billing_total == 163300


def test_parse_file_keeps_every_sheet_for_multi_sheet_sources():
    out = parse_file(xlsx_bytes(*lotte_grids(), titles=["요약", "상세"]), "롯데카드.xlsx")

    assert out.ok
    assert [r.date for r in out.rows] == ["2025-12-01", "2025-12-02"]
    assert out.billing_total == 155000


def test_parse_file_reads_html_bank_export_by_headers():
    out = parse_file(html_table_bytes(woori_grid()), "export.xls")

    assert out.ok
    assert out.source_tag is SourceTag.WOORI
    assert out.total_amount == 3330000


def test_parse_file_decodes_cp949_html():
    out = parse_file(html_table_bytes(woori_grid(), encoding="cp949"), "우리은행.xls")

    assert out.ok
    assert len(out.rows) == 4


def test_parse_file_unreadable_bytes():
    out = parse_file(b"definitely not a workbook", "hyundai.xls")

    assert not out.ok
    assert out.error_kind is ParseErrorKind.UNREADABLE_WORKBOOK
    assert out.source_tag is SourceTag.UNKNOWN


def test_parse_file_propagates_parser_failure():
    out = parse_file(xlsx_bytes([["현대카드"], ["내역 없음"]]), "hyundai.xlsx")

    assert not out.ok
    assert out.source_tag is SourceTag.HYUNDAI
    assert out.error_kind is ParseErrorKind.HEADER_NOT_FOUND


# ---- Encryption ----------------------------------------------------------------


@pytest.fixture(scope="module")
def locked_hyundai():
    return encrypted_xlsx_bytes(xlsx_bytes(hyundai_grid()), "940101")


def test_encrypted_workbook_is_detected(locked_hyundai):
    assert crypto.is_encrypted(locked_hyundai)


def test_encrypted_without_password(locked_hyundai):
    out = parse_file(locked_hyundai, "hyundai_202512.xlsx")

    assert out.error_kind is ParseErrorKind.PASSWORD_REQUIRED
    assert out.rows == ()


def test_encrypted_with_wrong_password(locked_hyundai):
    out = parse_file(locked_hyundai, "hyundai_202512.xlsx", password="000000")

    assert not out.ok
    assert out.error_kind is ParseErrorKind.WRONG_PASSWORD


def test_decrypt_rejects_wrong_password(locked_hyundai):
    with pytest.raises(DecryptionError):
        crypto.decrypt(locked_hyundai, "000000")


def test_encrypted_with_password_parses_decrypted_bytes(locked_hyundai):
    out = parse_file(locked_hyundai, "hyundai_202512.xlsx", password="940101")

    assert out.ok
    assert out.source_tag is SourceTag.HYUNDAI
    assert out.total_amount == 168300
    assert out.billing_total == 163300


def test_decrypt_output_that_is_not_a_workbook_is_a_wrong_password(monkeypatch):
    class Garbled:
        def __init__(self, fp):
            pass

        def load_key(self, password):
            pass

        def decrypt(self, out):
            out.write(b"\x13\x37 not a zip")

    monkeypatch.setattr(crypto.msoffcrypto, "OfficeFile", Garbled)

    with pytest.raises(DecryptionError):
        crypto.decrypt(b"\xd0\xcf\x11\xe0", "1234")


def test_plain_containers_are_not_encrypted():
    assert not crypto.is_encrypted(xlsx_bytes([["a"]]))
    assert not crypto.is_encrypted(html_table_bytes([["a"]]))
    assert not crypto.is_encrypted(b"")


# ---- Workbook helpers ------------------------------------------------------------


def test_sniff_container():
    assert sniff_container(b"PK\x03\x04rest") == "xlsx"
    assert sniff_container(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1rest") == "xls"
    assert sniff_container(b"\xef\xbb\xbf  <html>") == "html"
    assert sniff_container(b"a,b,c") is None


def test_read_workbook_normalises_cells():
    grids = read_workbook(xlsx_bytes([["이용일", "금액"], ["2025-12-01", 3300], ["", 12.5]]))

    assert grids == [[["이용일", "금액"], ["2025-12-01", 3300], ["", 12.5]]]


def test_frame_to_grid_puts_column_labels_first():
    df = pd.DataFrame({"거래일시": ["2025.12.01"], "금액": [1000.0]})

    assert frame_to_grid(df) == [["거래일시", "금액"], ["2025.12.01", 1000]]


def test_header_candidates_only_leading_text_cells():
    grid = [["가맹점", 1, ""]] + [["x"]] * 10 + [["late header"]]

    assert header_candidates([grid]) == ["가맹점"] + ["x"] * 9
