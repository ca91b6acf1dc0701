"""Assembly of a :class:`ParsedSession` from one transcript."""

from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Optional
import logging

from ..core.registry import RegistrySnapshot
from ..core.types import ParsedSession, TranscriptDocument
from ..matching import NameResolver
from .attendance import extract_attendance
from .metadata import extract_metadata
from .speakers import DEFAULT_CHUNK_SIZE, SpeakerExtractionEngine
from .topics import MAX_TOPICS, extract_topics

LOGGER = logging.getLogger(__name__)

DEFAULT_EXCERPT_CHARS = 10_000


class HansardParser:
    """Run every extractor over a transcript against one registry snapshot."""

    def __init__(
        self,
        snapshot: RegistrySnapshot,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
        max_topics: int = MAX_TOPICS,
        min_fuzzy_length: int = 4,
        aliases: Optional[Mapping[str, str]] = None,
        resolver: Optional[NameResolver] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.snapshot = snapshot
        self.resolver = resolver or NameResolver(snapshot, aliases=aliases, min_fuzzy_length=min_fuzzy_length)
        self.engine = SpeakerExtractionEngine(self.resolver, chunk_size=chunk_size)
        self._excerpt_chars = excerpt_chars
        self._max_topics = max_topics
        self._today = today

    def parse(self, document: TranscriptDocument) -> ParsedSession:
        text = document.text
        metadata = extract_metadata(text, document.filename, today=self._today)
        attendance = extract_attendance(text, self.resolver.constituencies)
        speakers = self.engine.extract(text)
        topics = extract_topics(text, max_topics=self._max_topics)

        LOGGER.info(
            "Parsed %s: %s speakers, %s instances, %s unmatched, %s present, %s absent",
            metadata.session_number,
            len(speakers.speakers),
            len(speakers.instances),
            len(speakers.unmatched),
            len(attendance.attended_member_ids),
            len(attendance.absent_member_ids),
        )
        return ParsedSession(
            metadata=metadata,
            attendance=attendance,
            speakers=speakers.speakers,
            instances=speakers.instances,
            unmatched=speakers.unmatched,
            topics=tuple(topics),
            transcript_excerpt=text[: self._excerpt_chars],
            source_filename=document.filename,
        )


def parse_transcript(
    text: str,
    snapshot: RegistrySnapshot,
    filename: Optional[str] = None,
    **options,
) -> ParsedSession:
    """Parse ``text`` with a one-off :class:`HansardParser`."""

    return HansardParser(snapshot, **options).parse(TranscriptDocument(text=text, filename=filename))


__all__ = ["DEFAULT_EXCERPT_CHARS", "HansardParser", "parse_transcript"]
