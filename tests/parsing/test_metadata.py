from __future__ import annotations

from datetime import date

from hansard_mine.parsing import extract_metadata
from hansard_mine.parsing.metadata import UNKNOWN, session_label


def test_filename_date_takes_precedence(sample_transcript):
    metadata = extract_metadata(sample_transcript, "DR-15022024.txt")

    assert metadata.session_date == date(2024, 2, 15)
    assert metadata.session_number == "DR.15.02.2024"
    assert metadata.parliament_term == "KELIMA BELAS"
    assert metadata.sitting == "KEDUA"


def test_content_date_is_used_without_filename(sample_transcript):
    metadata = extract_metadata(sample_transcript)

    assert metadata.session_date == date(2023, 3, 1)
    assert metadata.session_number == "DR.01.03.2023"


def test_invalid_filename_date_falls_back_to_content(sample_transcript):
    metadata = extract_metadata(sample_transcript, "DR-32132023.txt")

    assert metadata.session_date == date(2023, 3, 1)


def test_missing_everything_uses_today_and_unknown():
    metadata = extract_metadata("nothing useful", "notes.txt", today=lambda: date(2025, 1, 2))

    assert metadata.session_date == date(2025, 1, 2)
    assert metadata.session_number == "DR.02.01.2025"
    assert metadata.parliament_term == UNKNOWN
    assert metadata.sitting == UNKNOWN


def test_english_markers_are_recognised():
    text = "PARLIAMENT FIFTEENTH\nMEETING FIRST\nBil. 3.7.2023\n"

    metadata = extract_metadata(text)

    assert metadata.parliament_term == "FIFTEENTH"
    assert metadata.sitting == "FIRST"
    assert metadata.session_date == date(2023, 7, 3)


def test_session_label_pads_day_and_month():
    assert session_label(date(2023, 3, 1)) == "DR.01.03.2023"


def test_markers_are_found_inside_cover_lines():
    text = "PENYATA RASMI PARLIMEN KELIMA BELAS\nDEWAN RAKYAT PENGGAL KEDUA\nDR.1.3.2023\n"

    metadata = extract_metadata(text)

    assert metadata.parliament_term == "KELIMA BELAS"
    assert metadata.sitting == "KEDUA"
