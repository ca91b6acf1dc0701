"""Database integration components."""
from __future__ import annotations

from .models import (
    Base,
    HansardSessionModel,
    MemberModel,
    ReconciliationFlagModel,
    SessionSpeakerModel,
    SpeakingInstanceModel,
    UnmatchedSpeakerModel,
)
from .storage import (
    MemberOverview,
    RemapReport,
    SessionOverview,
    SessionWriter,
    Storage,
    UnmatchedOverview,
    create_storage,
)

__all__ = [
    "Base",
    "HansardSessionModel",
    "MemberModel",
    "MemberOverview",
    "ReconciliationFlagModel",
    "RemapReport",
    "SessionOverview",
    "SessionSpeakerModel",
    "SessionWriter",
    "SpeakingInstanceModel",
    "Storage",
    "UnmatchedOverview",
    "UnmatchedSpeakerModel",
    "create_storage",
]
