"""Core domain entities used across the pipeline."""
from __future__ import annotations

from .registry import RegistrySnapshot
from .types import (
    AttendanceResult,
    MemberRecord,
    ParsedSession,
    SessionMetadata,
    SpeakerRecord,
    SpeakingInstance,
    TranscriptDocument,
    UnmatchedSpeaker,
)

__all__ = [
    "AttendanceResult",
    "MemberRecord",
    "ParsedSession",
    "RegistrySnapshot",
    "SessionMetadata",
    "SpeakerRecord",
    "SpeakingInstance",
    "TranscriptDocument",
    "UnmatchedSpeaker",
]
