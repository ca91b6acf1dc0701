"""Batch orchestration: fetch, parse and persist a set of transcripts."""
from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event
from typing import Callable, Iterator, List, Literal, Optional, Protocol, Tuple
import logging

from ..config import ParserConfig
from ..core.registry import RegistrySnapshot
from ..core.types import SessionMetadata, TranscriptDocument
from ..database import Storage
from ..parsing import HansardParser
from .reconcile import ReconcilingPersister

LOGGER = logging.getLogger(__name__)

PipelineEventKind = Literal[
    "start",
    "fetched",
    "parsed",
    "stored",
    "skipped",
    "progress",
    "finished",
    "cancelled",
    "error",
]


class TranscriptSource(Protocol):
    def iter_transcripts(self) -> Iterator[object]: ...

    def fetch_transcript(self, ref) -> TranscriptDocument: ...


@dataclass(slots=True)
class PipelineEvent:
    """Fine grained progress notification emitted by :class:`ImportPipeline`."""

    kind: PipelineEventKind
    processed: int
    metadata: SessionMetadata | None = None
    filename: str | None = None
    message: str | None = None
    speaker_count: int | None = None
    unmatched_count: int | None = None


ProgressCallback = Callable[[PipelineEvent], None]


@dataclass(slots=True)
class BatchReport:
    """Outcome counts of one :meth:`ImportPipeline.run`."""

    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    unmatched_speakers: int = 0
    reconciled_ids: int = 0
    flagged_ids: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + self.failed


class ImportPipeline:
    """Parse transcripts against one registry snapshot and persist them.

    The snapshot is read once when :meth:`run` starts and is used to parse
    every transcript of the batch. Ids are re-resolved against the live
    registry by :class:`ReconcilingPersister` when each session is written.
    """

    def __init__(
        self,
        *,
        source: TranscriptSource,
        storage: Storage,
        parser_config: Optional[ParserConfig] = None,
    ) -> None:
        self._source = source
        self._storage = storage
        self._config = parser_config or ParserConfig()
        self._persister = ReconcilingPersister(
            storage,
            aliases=self._config.name_aliases,
            min_fuzzy_length=self._config.min_fuzzy_length,
        )

    def _parser(self, snapshot: RegistrySnapshot) -> HansardParser:
        return HansardParser(
            snapshot,
            chunk_size=self._config.chunk_size,
            excerpt_chars=self._config.excerpt_chars,
            max_topics=self._config.max_topics,
            min_fuzzy_length=self._config.min_fuzzy_length,
            aliases=self._config.name_aliases,
        )

    def run(
        self,
        *,
        limit: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[Event] = None,
    ) -> BatchReport:
        """Run the batch. A failing transcript is reported and the batch continues."""

        report = BatchReport()
        snapshot = self._storage.load_registry()
        if not len(snapshot):
            LOGGER.warning("Member registry is empty - every speaker will be unmatched")
        parser = self._parser(snapshot)
        self._notify(
            progress_callback,
            PipelineEvent(
                kind="start",
                processed=0,
                message=f"Pipeline run started with {len(snapshot)} registry members",
            ),
        )

        for ref in self._source.iter_transcripts():
            if limit is not None and report.processed >= limit:
                break
            if cancel_event and cancel_event.is_set():
                report.cancelled = True
                break
            filename = getattr(ref, "filename", None) or str(ref)
            LOGGER.info("Processing transcript %s", filename)
            try:
                document = self._source.fetch_transcript(ref)
                self._notify(
                    progress_callback,
                    PipelineEvent(
                        kind="fetched",
                        processed=report.processed,
                        filename=filename,
                        message=f"Fetched {len(document.text)} characters",
                    ),
                )
                parsed = parser.parse(document)
                self._notify(
                    progress_callback,
                    PipelineEvent(
                        kind="parsed",
                        processed=report.processed,
                        metadata=parsed.metadata,
                        filename=filename,
                        message=f"Parsed {len(parsed.speakers)} speakers",
                        speaker_count=len(parsed.speakers),
                        unmatched_count=len(parsed.unmatched),
                    ),
                )
                outcome = self._persister.persist(parsed)
            except Exception as exc:
                LOGGER.exception("Failed to import %s: %s", filename, exc)
                report.failed += 1
                report.failures.append((filename, str(exc)))
                self._notify(
                    progress_callback,
                    PipelineEvent(kind="error", processed=report.processed, filename=filename, message=str(exc)),
                )
                continue

            if outcome.status == "skipped":
                report.skipped += 1
                self._notify(
                    progress_callback,
                    PipelineEvent(
                        kind="skipped",
                        processed=report.processed,
                        metadata=parsed.metadata,
                        filename=filename,
                        message=f"Session {parsed.metadata.session_number} already stored",
                    ),
                )
            else:
                report.succeeded += 1
                report.unmatched_speakers += len(parsed.unmatched)
                report.reconciled_ids += outcome.reconciled
                report.flagged_ids += outcome.flagged
                self._notify(
                    progress_callback,
                    PipelineEvent(
                        kind="stored",
                        processed=report.processed,
                        metadata=parsed.metadata,
                        filename=filename,
                        message=f"Stored session {parsed.metadata.session_number}",
                        speaker_count=len(parsed.speakers),
                        unmatched_count=len(parsed.unmatched),
                    ),
                )
            self._notify(
                progress_callback,
                PipelineEvent(
                    kind="progress",
                    processed=report.processed,
                    metadata=parsed.metadata,
                    filename=filename,
                    message=f"Completed transcript {filename}",
                ),
            )

        if cancel_event and cancel_event.is_set():
            report.cancelled = True
        self._notify(
            progress_callback,
            PipelineEvent(
                kind="cancelled" if report.cancelled else "finished",
                processed=report.processed,
                message=(
                    f"{report.succeeded} stored, {report.skipped} skipped, {report.failed} failed"
                ),
            ),
        )
        LOGGER.info(
            "Batch finished: %s stored, %s skipped, %s failed, %s unmatched speakers",
            report.succeeded,
            report.skipped,
            report.failed,
            report.unmatched_speakers,
        )
        return report

    @staticmethod
    def _notify(callback: Optional[ProgressCallback], event: PipelineEvent) -> None:
        if callback:
            callback(event)


__all__ = ["BatchReport", "ImportPipeline", "PipelineEvent", "TranscriptSource"]
