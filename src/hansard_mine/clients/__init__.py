"""Clients for external data sources."""
from __future__ import annotations

from .roster import RosterClient, RosterClientError, load_roster_file, parse_roster
from .transcripts import (
    TextExtractor,
    TranscriptDirectory,
    TranscriptExtractionError,
    TranscriptFiles,
    TranscriptRef,
)

__all__ = [
    "RosterClient",
    "RosterClientError",
    "TextExtractor",
    "TranscriptDirectory",
    "TranscriptExtractionError",
    "TranscriptFiles",
    "TranscriptRef",
    "load_roster_file",
    "parse_roster",
]
