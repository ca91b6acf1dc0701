import pytest

from hansard_mine.clients import TranscriptDirectory, TranscriptExtractionError, TranscriptFiles


def test_directory_lists_matching_files_in_order(tmp_path):
    (tmp_path / "DR-02032023.txt").write_text("second", encoding="utf8")
    (tmp_path / "DR-01032023.txt").write_text("first", encoding="utf8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf8")

    source = TranscriptDirectory(tmp_path)
    refs = list(source.iter_transcripts())

    assert [ref.filename for ref in refs] == ["DR-01032023.txt", "DR-02032023.txt"]
    document = source.fetch_transcript(refs[0])
    assert document.text == "first"
    assert document.filename == "DR-01032023.txt"


def test_missing_directory_raises(tmp_path):
    source = TranscriptDirectory(tmp_path / "absent")

    with pytest.raises(TranscriptExtractionError):
        list(source.iter_transcripts())


def test_undecodable_and_empty_files_raise(tmp_path):
    broken = tmp_path / "DR-01032023.txt"
    broken.write_bytes(b"\xff\xfe\xfa")
    empty = tmp_path / "DR-02032023.txt"
    empty.write_text("   \n", encoding="utf8")

    source = TranscriptFiles([broken, empty])
    refs = list(source.iter_transcripts())

    with pytest.raises(TranscriptExtractionError):
        source.fetch_transcript(refs[0])
    with pytest.raises(TranscriptExtractionError, match="empty"):
        source.fetch_transcript(refs[1])


def test_custom_extractor_is_used(tmp_path):
    pdf = tmp_path / "DR-01032023.pdf"
    pdf.write_bytes(b"%PDF")

    source = TranscriptDirectory(tmp_path, pattern="DR-*.pdf", extractor=lambda path: f"text of {path.name}")
    document = source.fetch_transcript(next(source.iter_transcripts()))

    assert document.text == "text of DR-01032023.pdf"
