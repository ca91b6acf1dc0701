"""Transcript parsing components."""
from __future__ import annotations

from .attendance import extract_attendance
from .hansard import HansardParser, parse_transcript
from .metadata import extract_metadata
from .speakers import (
    RegexSpeakerMatcher,
    SpeakerExtraction,
    SpeakerExtractionEngine,
    SpeakerMatcher,
    TranscriptParseError,
    default_matchers,
)
from .topics import extract_topics

__all__ = [
    "HansardParser",
    "RegexSpeakerMatcher",
    "SpeakerExtraction",
    "SpeakerExtractionEngine",
    "SpeakerMatcher",
    "TranscriptParseError",
    "default_matchers",
    "extract_attendance",
    "extract_metadata",
    "extract_topics",
    "parse_transcript",
]
