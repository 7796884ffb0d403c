from __future__ import annotations

from ocr_extractor.services.duplicates import flag_duplicates
from ocr_extractor.services.fixtures import fixtures_enabled, write_text_fixture
from ocr_extractor.services.ocr_text import clean_ocr_text, decode_ocr_text, looks_like_text, text_debug_stats


def test_flag_duplicates_matches_on_date_amount_and_merchant() -> None:
    parsed = [
        {"date": "2024-09-05", "merchant": "Grab Ride", "amount": 12.0},
        {"date": "2024-09-05", "merchant": "Grab Ride", "amount": 12.5},
        {"date": "2024-09-06", "merchant": "Tesco", "amount": 30.1},
    ]
    existing = [
        {"date": "2024-09-05", "merchant": "Grab Ride", "amount": "12.00"},
        {"date": "2024-09-06", "merchant": "Tesco", "amount": None},
    ]

    count = flag_duplicates(parsed, existing)

    assert count == 1
    assert [t["isDuplicate"] for t in parsed] == [True, False, False]


def test_flag_duplicates_without_existing_records() -> None:
    parsed = [{"date": "2024-09-05", "merchant": "Grab Ride", "amount": 12.0}]
    assert flag_duplicates(parsed, []) == 0
    assert parsed[0]["isDuplicate"] is False


def test_clean_ocr_text_keeps_lines() -> None:
    raw = "23 Oct,\t 14:32\r\nStar  bucks \f-RM6.50"
    assert clean_ocr_text(raw) == "23 Oct, 14:32\nStar bucks\n-RM6.50"
    assert clean_ocr_text("") == ""


def test_decode_and_sniff_text() -> None:
    assert looks_like_text(b"hello") is True
    assert looks_like_text(b"") is False
    assert looks_like_text(b"a\x00b") is False
    assert decode_ocr_text("\ufeffGrab".encode("utf-8")) == "Grab"


def test_text_debug_stats() -> None:
    line_count, avg, sample = text_debug_stats("ab\n\nabcd")
    assert line_count == 3
    assert avg == 3.0
    assert sample == ["ab", "", "abcd"]


def test_write_text_fixture_overwrites(tmp_path) -> None:
    path = write_text_fixture(filename="x.txt", raw_text="one", base_dir=tmp_path)
    write_text_fixture(filename="x.txt", raw_text="two", base_dir=tmp_path)

    assert path == tmp_path / "tests" / "fixtures" / "x.txt"
    assert path.read_text(encoding="utf-8") == "two"


def test_fixtures_enabled_flag(monkeypatch) -> None:
    monkeypatch.delenv("SAVE_TEXT_FIXTURES", raising=False)
    assert fixtures_enabled() is False
    monkeypatch.setenv("SAVE_TEXT_FIXTURES", "1")
    assert fixtures_enabled() is True
