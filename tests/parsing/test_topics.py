from __future__ import annotations

from hansard_mine.parsing import extract_topics


def test_headings_from_contents_section(sample_transcript):
    topics = extract_topics(sample_transcript)

    assert topics == [
        "PERTANYAAN-PERTANYAAN MULUT DARIPADA MENTERI",
        "RANG UNDANG-UNDANG DIBAWA KE DALAM MESYUARAT",
    ]


def test_keywords_are_added_once():
    text = "The Supply Bill was read. Question Time followed. Question Time ended."

    assert extract_topics(text) == ["Supply Bill", "Question Time"]


def test_topic_count_is_capped():
    contents = "\n".join(f"HEADING NUMBER {chr(65 + index)}" for index in range(15))
    text = f"KANDUNGAN\n{contents}\nKEHADIRAN\n"

    assert len(extract_topics(text)) == 10
    assert len(extract_topics(text, max_topics=3)) == 3


def test_no_topics():
    assert extract_topics("plain words") == []
