"""Typed domain objects for the Hansard attribution pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True, slots=True)
class MemberRecord:
    """A member of parliament as known to the registry."""

    id: str
    name: str
    constituency: str
    party: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TranscriptDocument:
    """Raw transcript text together with the filename it came from."""

    text: str
    filename: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SessionMetadata:
    """Identifying information of a single sitting."""

    session_number: str
    session_date: date
    parliament_term: str
    sitting: str


@dataclass(frozen=True, slots=True)
class AttendanceResult:
    """Members present and absent according to the attendance rosters."""

    attended_member_ids: FrozenSet[str] = frozenset()
    absent_member_ids: FrozenSet[str] = frozenset()
    attended_constituencies: Tuple[str, ...] = ()
    absent_constituencies: Tuple[str, ...] = ()
    unresolved_constituencies: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SpeakerRecord:
    """A unique member who spoke during the session."""

    member_id: str
    name: str
    constituency: str
    speaking_order: int


@dataclass(frozen=True, slots=True)
class SpeakingInstance:
    """One occurrence of a speaker introduction in the transcript."""

    member_id: str
    name: str
    constituency: str
    instance_number: int
    line_number: int
    position: int = 0
    header: str = ""
    speech_text: str = ""


@dataclass(frozen=True, slots=True)
class UnmatchedSpeaker:
    """A speaker introduction that could not be attributed to a member."""

    name: str
    constituency: Optional[str] = None
    reason: str = ""
    raw_header: str = ""
    suggested_member_ids: Tuple[str, ...] = ()
    line_number: Optional[int] = None

    @property
    def key(self) -> str:
        if self.name and self.constituency:
            return f"{self.name} ({self.constituency})"
        if self.constituency:
            return f"({self.constituency})"
        return self.name


@dataclass(frozen=True, slots=True)
class ParsedSession:
    """Everything extracted from one transcript, ready to be persisted."""

    metadata: SessionMetadata
    attendance: AttendanceResult
    speakers: Tuple[SpeakerRecord, ...]
    instances: Tuple[SpeakingInstance, ...]
    unmatched: Tuple[UnmatchedSpeaker, ...] = ()
    topics: Tuple[str, ...] = ()
    transcript_excerpt: str = ""
    source_filename: Optional[str] = None

    def instances_for(self, member_id: str) -> Tuple[SpeakingInstance, ...]:
        return tuple(instance for instance in self.instances if instance.member_id == member_id)

    def instance_counts(self) -> Dict[str, int]:
        """Return the number of speaking instances per member id."""

        counts: Dict[str, int] = {}
        for instance in self.instances:
            counts[instance.member_id] = counts.get(instance.member_id, 0) + 1
        return counts


__all__ = [
    "AttendanceResult",
    "MemberRecord",
    "ParsedSession",
    "SessionMetadata",
    "SpeakerRecord",
    "SpeakingInstance",
    "TranscriptDocument",
    "UnmatchedSpeaker",
]
