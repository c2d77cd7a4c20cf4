from datetime import date, datetime

import pytest

from statement_ingest.cells import (
    cell_text,
    compact,
    extract_merchant_name,
    normalize_date,
    parse_amount,
    serial_to_iso,
    strip_amount_suffix,
)


# ---- Amounts -----------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        (3300, 3300),
        (3300.4, 3300),
        (2.5, 3),
        (-2.5, -3),
        ("3,300", 3300),
        ("  12,000원 ", 12000),
        ("-5,000", -5000),
        ("△1,200", -1200),
        ("▲700", -700),
        ("", 0),
        ("   ", 0),
        ("없음", 0),
        (None, 0),
        (float("nan"), 0),
        (True, 0),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_parse_amount_ignores_non_ascii_digits():
    # Full-width digits are noise, not a number.
    assert parse_amount("１２３") == 0


# ---- Dates -------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025년 08월 14일", "2025-08-14"),
        ("2025년 8월 4일", "2025-08-04"),
        ("2025-12-01", "2025-12-01"),
        ("2025.12.1", "2025-12-01"),
        ("2025/12/01 10:20:30", "2025-12-01"),
        ("2025.12.05 09:00:00", "2025-12-05"),
        ("25.12.01", "2025-12-01"),
        ("20251201", "2025-12-01"),
        (20251201, "2025-12-01"),
        ("12/04/2025", "2025-12-04"),
        (45992, "2025-12-01"),
        (45992.75, "2025-12-01"),
        ("45992", "2025-12-01"),
        (datetime(2025, 12, 1, 13, 0), "2025-12-01"),
        (date(2025, 12, 1), "2025-12-01"),
    ],
)
def test_normalize_date_accepts_known_encodings(value, expected):
    assert normalize_date(value) == expected


@pytest.mark.parametrize(
    "value",
    ["", "합계", "2025-13-01", "2025년 2월 30일", 3300, 0, None, "12:00", True],
)
def test_normalize_date_returns_none_for_non_dates(value):
    assert normalize_date(value) is None


def test_serial_to_iso_rejects_implausible_magnitudes():
    assert serial_to_iso(39999) is None
    assert serial_to_iso(40000) == "2009-07-06"
    assert serial_to_iso(float("inf")) is None


# ---- Merchant names ------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("우지커피판교w시티점3,300", "우지커피판교w시티점"),
        ("스타벅스 판교점", "스타벅스 판교점"),
        ("GS25 판교역점", "GS25 판교역점"),
        ("GS25", "GS25"),
        ("쿠팡(쿠페이)12,345,678", "쿠팡(쿠페이)"),
        ("네이버파이낸셜19,90", "네이버파이낸셜"),
        ("올리브영 판교점1,2...", "올리브영 판교점"),
        ("배달의민족12…", "배달의민족"),
        ("환불가맹점-5,000", "환불가맹점"),
        ("  이마트   판교점  ", "이마트 판교점"),
        ("", ""),
    ],
)
def test_extract_merchant_name(raw, expected):
    assert extract_merchant_name(raw) == expected


@pytest.mark.parametrize(
    "raw, amount, expected",
    [
        ("씨유판교점800", 800, "씨유판교점"),
        ("씨유판교점800", 1800, "씨유판교점800"),
        ("씨유판교점1800", 800, "씨유판교점1800"),
        ("GS25", 4500, "GS25"),
        ("우지커피판교w시티점3,300", 3300, "우지커피판교w시티점"),
        ("800", 800, "800"),
    ],
)
def test_bare_digit_tail_is_stripped_only_when_it_is_the_row_amount(raw, amount, expected):
    assert extract_merchant_name(raw, amount) == expected


def test_strip_amount_suffix_keeps_text_that_is_only_an_amount():
    assert strip_amount_suffix("3,300") == "3,300"


def test_cell_text_and_compact():
    assert cell_text(None) == ""
    assert cell_text(12.0) == "12"
    assert cell_text(float("nan")) == ""
    assert cell_text("  a b ") == "a b"
    assert compact("해 외 이 용 소계") == "해외이용소계"
