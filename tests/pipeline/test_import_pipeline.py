from __future__ import annotations

from threading import Event
from typing import Dict, List

import pytest

from hansard_mine.clients import TranscriptExtractionError
from hansard_mine.config import ParserConfig
from hansard_mine.core import TranscriptDocument
from hansard_mine.pipeline import ImportPipeline, PipelineEvent


class DummySource:
    def __init__(self, documents: Dict[str, str]):
        self._documents = documents

    def iter_transcripts(self):
        yield from self._documents

    def fetch_transcript(self, ref: str) -> TranscriptDocument:
        text = self._documents[ref]
        if not text:
            raise TranscriptExtractionError(f"Transcript {ref} is empty")
        return TranscriptDocument(text=text, filename=ref)


@pytest.fixture()
def documents(sample_transcript) -> Dict[str, str]:
    return {
        "DR-01032023.txt": sample_transcript,
        "DR-02032023.txt": sample_transcript,
    }


def test_pipeline_emits_events_and_persists_sessions(seeded_storage, documents):
    pipeline = ImportPipeline(source=DummySource(documents), storage=seeded_storage)

    captured: List[PipelineEvent] = []
    report = pipeline.run(progress_callback=captured.append)

    kinds = [event.kind for event in captured]
    assert kinds[0] == "start"
    assert kinds.count("stored") == 2
    assert kinds[-1] == "finished"
    assert (report.succeeded, report.skipped, report.failed) == (2, 0, 0)
    assert report.unmatched_speakers == 4
    assert [overview.session_number for overview in seeded_storage.list_sessions()] == [
        "DR.02.03.2023",
        "DR.01.03.2023",
    ]
    john = seeded_storage.get_member("m-john")
    assert (john.sessions_spoken, john.total_speech_instances) == (2, 4)


def test_rerunning_a_batch_skips_existing_sessions(seeded_storage, documents):
    pipeline = ImportPipeline(source=DummySource(documents), storage=seeded_storage)
    pipeline.run()

    captured: List[PipelineEvent] = []
    report = pipeline.run(progress_callback=captured.append)

    assert (report.succeeded, report.skipped) == (0, 2)
    assert [event.kind for event in captured].count("skipped") == 2
    john = seeded_storage.get_member("m-john")
    assert john.sessions_spoken == 2


def test_failing_transcript_does_not_abort_batch(seeded_storage, sample_transcript):
    source = DummySource({"DR-01032023.txt": "", "DR-02032023.txt": sample_transcript})
    pipeline = ImportPipeline(source=source, storage=seeded_storage)

    captured: List[PipelineEvent] = []
    report = pipeline.run(progress_callback=captured.append)

    assert report.failed == 1
    assert report.succeeded == 1
    assert report.failures[0][0] == "DR-01032023.txt"
    assert any(event.kind == "error" and event.filename == "DR-01032023.txt" for event in captured)
    assert captured[-1].kind == "finished"


def test_limit_stops_after_n_transcripts(seeded_storage, documents):
    pipeline = ImportPipeline(source=DummySource(documents), storage=seeded_storage)

    report = pipeline.run(limit=1)

    assert report.processed == 1
    assert len(seeded_storage.list_sessions()) == 1


def test_pipeline_cancellation_stops_execution(seeded_storage, documents):
    pipeline = ImportPipeline(source=DummySource(documents), storage=seeded_storage)

    cancel_event = Event()
    captured: List[PipelineEvent] = []

    def record(event: PipelineEvent) -> None:
        captured.append(event)
        if event.kind == "progress":
            cancel_event.set()

    report = pipeline.run(progress_callback=record, cancel_event=cancel_event)

    assert report.cancelled is True
    assert report.processed == 1
    assert captured[-1].kind == "cancelled"


def test_parser_config_is_applied(seeded_storage, documents):
    config = ParserConfig(excerpt_chars=10, name_aliases={"Menteri Kewangan": "John Tan"})
    pipeline = ImportPipeline(
        source=DummySource({"DR-05052023.txt": "Menteri Kewangan: Terima kasih.\n"}),
        storage=seeded_storage,
        parser_config=config,
    )

    report = pipeline.run()

    assert report.succeeded == 1
    john = seeded_storage.get_member("m-john")
    assert (john.sessions_spoken, john.total_speech_instances) == (1, 1)
