from __future__ import annotations

from datetime import date

from hansard_mine.core import TranscriptDocument
from hansard_mine.parsing import HansardParser, parse_transcript


def test_full_transcript_is_parsed(snapshot, sample_transcript):
    parsed = parse_transcript(sample_transcript, snapshot, filename="DR-01032023.txt")

    assert parsed.metadata.session_number == "DR.01.03.2023"
    assert parsed.source_filename == "DR-01032023.txt"
    assert [(s.member_id, s.speaking_order) for s in parsed.speakers] == [("m-john", 1), ("m-siti", 2)]
    assert [i.instance_number for i in parsed.instances_for("m-john")] == [1, 2]
    assert [i.line_number for i in parsed.instances_for("m-john")] == [23, 26]
    assert parsed.instance_counts() == {"m-john": 2, "m-siti": 1}
    assert {u.reason for u in parsed.unmatched} == {
        "presiding officer",
        "constituency not recognised: Kuala Kedah",
    }
    assert parsed.attendance.attended_member_ids == frozenset({"m-john", "m-siti", "m-lim"})
    assert parsed.attendance.absent_member_ids == frozenset({"m-raj"})
    assert parsed.attendance.unresolved_constituencies == ("Bukit Bintang",)
    assert len(parsed.topics) == 2


def test_speaker_ids_come_from_the_snapshot(snapshot, sample_transcript):
    parsed = parse_transcript(sample_transcript, snapshot)
    speaker_ids = {speaker.member_id for speaker in parsed.speakers}

    assert speaker_ids <= {member.id for member in snapshot}
    assert {instance.member_id for instance in parsed.instances} == speaker_ids


def test_excerpt_is_truncated(snapshot, sample_transcript):
    parser = HansardParser(snapshot, excerpt_chars=20)

    parsed = parser.parse(TranscriptDocument(text=sample_transcript))

    assert parsed.transcript_excerpt == sample_transcript[:20]


def test_parser_is_deterministic(snapshot, sample_transcript):
    parser = HansardParser(snapshot, today=lambda: date(2020, 1, 1))
    document = TranscriptDocument(text=sample_transcript, filename="DR-01032023.txt")

    assert parser.parse(document) == parser.parse(document)
