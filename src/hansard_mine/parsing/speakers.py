"""Attribution of speaker introductions in a transcript to registry members.

The transcript is scanned in windows that always end on a line boundary.
Every window is searched by an ordered cascade of :class:`SpeakerMatcher`
objects, most specific first. A match whose span overlaps text already
claimed by an earlier matcher is discarded, so one introduction is never
counted twice. The surviving matches are then attributed in document order.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple
import logging
import re

from ..core.types import SpeakerRecord, SpeakingInstance, UnmatchedSpeaker
from ..matching import NameResolver

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50_000

_TITLES = (
    r"Yang\s+Berhormat|Y\.\s?Bhg\.|Timbalan\s+Menteri|Menteri|Deputy\s+Minister|Minister|"
    r"Datuk\s+Seri|Dato['’]\s+Sri|Dato['’]\s+Seri|Tan\s+Sri|Toh\s+Puan|Datuk|Dato['’]|"
    r"Tuan|Puan|YB|Dr\.?|Senator|Kapten|Ir\.|Ts\.|Mr\.?|Mrs\.?|Ms\.?|Madam"
)

_NAME_PARTICLE = re.compile(r"(?:\b(?:bin|binti)\b|a/l|a/p|@)", re.IGNORECASE)
_ROLE_PREFIX = re.compile(
    r"^(?:timbalan\s+menteri|menteri|deputy\s+minister|minister|menteri\s+besar|ketua\s+menteri|"
    r"timbalan\s+yang\s+di-pertua|yang\s+di-pertua|deputy\s+speaker|speaker|pengerusi|chairman|"
    r"tuan|puan|datuk|dato'|senator)\b",
    re.IGNORECASE,
)
_PRESIDING_OFFICER = re.compile(
    r"\b(?:yang\s+di-pertua|speaker|pengerusi|chairman)\b",
    re.IGNORECASE,
)
_EDGE_PUNCTUATION = re.compile(r"^[\s:\-\[\]()]+|[\s:\-\[\]()]+$")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_BLANK_LINES = re.compile(r"\n{3,}")


class TranscriptParseError(RuntimeError):
    """Raised when a transcript cannot be parsed completely."""


@dataclass(frozen=True, slots=True)
class HeaderMatch:
    """A candidate speaker introduction found inside a window."""

    start: int
    end: int
    text: str
    matcher: str
    name: Optional[str] = None
    constituency: Optional[str] = None
    swappable: bool = False


class SpeakerMatcher(Protocol):
    """One step of the speaker-introduction cascade."""

    name: str

    def find(self, window: str) -> Iterator[HeaderMatch]:
        ...


class RegexSpeakerMatcher:
    """Speaker matcher backed by a single regular expression.

    The pattern may define the named groups ``name`` and ``constituency``.
    Patterns whose two fragments can appear in either order (``[A - B]:``)
    set ``swappable`` so the engine decides which one is the name.
    """

    def __init__(self, name: str, pattern: str, *, swappable: bool = False, flags: int = re.MULTILINE) -> None:
        self.name = name
        self.pattern = re.compile(pattern, flags)
        self.swappable = swappable

    def find(self, window: str) -> Iterator[HeaderMatch]:
        groups = self.pattern.groupindex
        for match in self.pattern.finditer(window):
            yield HeaderMatch(
                start=match.start(),
                end=match.end(),
                text=match.group(0),
                matcher=self.name,
                name=match.group("name") if "name" in groups else None,
                constituency=match.group("constituency") if "constituency" in groups else None,
                swappable=self.swappable,
            )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"RegexSpeakerMatcher({self.name!r})"


def default_matchers() -> List[SpeakerMatcher]:
    """Return the speaker-introduction cascade, most specific first."""

    return [
        RegexSpeakerMatcher(
            "name_bracket_constituency",
            r"^[ \t]*(?P<name>[^\[\]\n:]+?)[ \t]*\[(?P<constituency>[^\]\n]+)\][ \t]*:",
            swappable=True,
        ),
        RegexSpeakerMatcher(
            "title_name_constituency",
            rf"^[ \t]*(?:{_TITLES})[ \t]+(?P<name>[^(\[:\n]+?)[ \t]*\((?P<constituency>[^)\n]+)\)[ \t]*:",
        ),
        RegexSpeakerMatcher(
            "bracket_pair",
            r"^[ \t]*\[(?P<name>[^\]\n]{1,60}?)[ \t]+[-–][ \t]+(?P<constituency>[^\]\n]{1,60})\][ \t]*:",
            swappable=True,
        ),
        RegexSpeakerMatcher(
            "title_name",
            rf"^[ \t]*(?P<name>(?:{_TITLES})[ \t]+[^:(\[\n,]{{2,80}}?)[ \t]*:(?=\s|$)",
        ),
        RegexSpeakerMatcher(
            "name_constituency",
            r"^[ \t]*(?P<name>[A-Z][^(\[:\n]{1,80}?)[ \t]*\((?P<constituency>[^)\n]+)\)[ \t]*:",
        ),
        RegexSpeakerMatcher(
            "constituency_only",
            r"^[ \t]*\((?P<constituency>[A-Z][^)\n]{1,60})\)[ \t]*:",
        ),
    ]


def iter_windows(text: str, size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Tuple[int, str]]:
    """Yield ``(offset, window)`` pairs covering ``text``.

    Each window holds at least ``size`` characters and is extended to the end
    of its last line so that no introduction is split across two windows.
    """

    if size <= 0:
        raise ValueError("Window size must be positive")
    start = 0
    length = len(text)
    while start < length:
        end = min(start + size, length)
        if end < length:
            newline = text.find("\n", end - 1)
            end = length if newline == -1 else newline + 1
        yield start, text[start:end]
        start = end


def clean_fragment(value: Optional[str]) -> str:
    if not value:
        return ""
    return _EDGE_PUNCTUATION.sub("", _WHITESPACE.sub(" ", value)).strip()


def looks_like_name(fragment: str) -> bool:
    """A fragment with a connector particle or more than three words is a name."""

    return bool(_NAME_PARTICLE.search(fragment)) or len(fragment.split()) > 3


def is_role(fragment: str) -> bool:
    return bool(_ROLE_PREFIX.match(fragment))


def is_presiding_officer(fragment: str) -> bool:
    return bool(_PRESIDING_OFFICER.search(fragment))


@dataclass(frozen=True, slots=True)
class SpeakerExtraction:
    """Result of scanning one transcript."""

    speakers: Tuple[SpeakerRecord, ...]
    instances: Tuple[SpeakingInstance, ...]
    unmatched: Tuple[UnmatchedSpeaker, ...]


@dataclass(slots=True)
class _ExtractionState:
    speakers: Dict[str, SpeakerRecord] = field(default_factory=dict)
    instances: List[SpeakingInstance] = field(default_factory=list)
    instance_counts: Dict[str, int] = field(default_factory=dict)
    unmatched: Dict[str, UnmatchedSpeaker] = field(default_factory=dict)
    header_spans: List[Tuple[int, int]] = field(default_factory=list)
    line_position: int = 0
    line_number: int = 1

    def line_at(self, text: str, position: int) -> int:
        self.line_number += text.count("\n", self.line_position, position)
        self.line_position = position
        return self.line_number


class SpeakerExtractionEngine:
    """Find, attribute and number every speaker introduction of a transcript."""

    def __init__(
        self,
        resolver: NameResolver,
        *,
        matchers: Optional[Sequence[SpeakerMatcher]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._resolver = resolver
        self._matchers: Tuple[SpeakerMatcher, ...] = tuple(matchers) if matchers is not None else tuple(default_matchers())
        self._chunk_size = chunk_size

    @property
    def matchers(self) -> Tuple[SpeakerMatcher, ...]:
        return self._matchers

    def extract(self, text: str) -> SpeakerExtraction:
        state = _ExtractionState()
        for offset, window in iter_windows(text, self._chunk_size):
            try:
                for match in self.claim(window):
                    self._attribute(match, offset, text, state)
            except Exception as exc:
                raise TranscriptParseError(
                    f"Speaker extraction failed in window starting at offset {offset}"
                ) from exc

        instances = self._attach_speech_text(text, state)
        speakers = tuple(sorted(state.speakers.values(), key=lambda record: record.speaking_order))
        LOGGER.info(
            "Extracted %s unique speakers and %s speaking instances", len(speakers), len(instances)
        )
        if state.unmatched:
            LOGGER.warning("%s speakers could not be matched to members", len(state.unmatched))
        return SpeakerExtraction(
            speakers=speakers,
            instances=instances,
            unmatched=tuple(state.unmatched.values()),
        )

    def claim(self, window: str) -> List[HeaderMatch]:
        """Apply the cascade to ``window`` and return non-overlapping matches in order."""

        claimed: List[HeaderMatch] = []
        for matcher in self._matchers:
            for match in matcher.find(window):
                if match.end <= match.start:
                    continue
                if any(other.start < match.end and match.start < other.end for other in claimed):
                    continue
                claimed.append(match)
        claimed.sort(key=lambda match: match.start)
        return claimed

    def split_fragments(self, match: HeaderMatch) -> Tuple[str, str]:
        """Return ``(name, constituency)`` for ``match``; either may be empty."""

        name = clean_fragment(match.name)
        constituency = clean_fragment(match.constituency)
        if match.swappable and name and constituency:
            constituencies = self._resolver.constituencies
            if looks_like_name(constituency) and not looks_like_name(name):
                name, constituency = constituency, name
            elif name in constituencies and constituency not in constituencies:
                name, constituency = constituency, name
            elif is_role(name) and not is_role(constituency):
                name, constituency = constituency, name
        if name and constituency and is_role(constituency):
            constituency = ""
        return name, constituency

    def _attribute(self, match: HeaderMatch, offset: int, text: str, state: _ExtractionState) -> None:
        position = offset + match.start
        line_number = state.line_at(text, position)
        state.header_spans.append((position, offset + match.end))
        name, constituency = self.split_fragments(match)
        if not name and not constituency:
            return

        if any(is_presiding_officer(fragment) for fragment in (name, constituency) if fragment):
            self._record_unmatched(state, match, name, constituency, "presiding officer", line_number, suggest=False)
            return

        member = self._resolver.resolve(name or None, constituency or None)
        if member is None:
            if constituency:
                reason = f"constituency not recognised: {constituency}"
            else:
                reason = "no constituency given and name not found in registry"
            self._record_unmatched(state, match, name, constituency, reason, line_number)
            return

        if member.id not in state.speakers:
            state.speakers[member.id] = SpeakerRecord(
                member_id=member.id,
                name=member.name,
                constituency=member.constituency,
                speaking_order=len(state.speakers) + 1,
            )
        count = state.instance_counts.get(member.id, 0) + 1
        state.instance_counts[member.id] = count
        state.instances.append(
            SpeakingInstance(
                member_id=member.id,
                name=member.name,
                constituency=member.constituency,
                instance_number=count,
                line_number=line_number,
                position=position,
                header=match.text.strip(),
            )
        )

    def _record_unmatched(
        self,
        state: _ExtractionState,
        match: HeaderMatch,
        name: str,
        constituency: str,
        reason: str,
        line_number: int,
        *,
        suggest: bool = True,
    ) -> None:
        unmatched = UnmatchedSpeaker(
            name=name,
            constituency=constituency or None,
            reason=reason,
            raw_header=match.text.strip(),
            line_number=line_number,
        )
        if unmatched.key in state.unmatched:
            return
        if suggest:
            unmatched = replace(
                unmatched,
                suggested_member_ids=self._resolver.suggest(name or None, constituency or None),
            )
        LOGGER.warning("Could not match speaker %r at line %s (%s)", unmatched.key, line_number, reason)
        state.unmatched[unmatched.key] = unmatched

    @staticmethod
    def _attach_speech_text(text: str, state: _ExtractionState) -> Tuple[SpeakingInstance, ...]:
        spans = sorted(state.header_spans)
        starts = [start for start, _ in spans]
        ends = dict(spans)
        result: List[SpeakingInstance] = []
        for instance in state.instances:
            speech_start = ends.get(instance.position, instance.position)
            index = bisect_right(starts, instance.position)
            speech_end = starts[index] if index < len(starts) else len(text)
            speech = _TRAILING_SPACE.sub("\n", text[speech_start:speech_end].strip())
            speech = _BLANK_LINES.sub("\n\n", speech)
            result.append(replace(instance, speech_text=speech))
        return tuple(result)


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "HeaderMatch",
    "RegexSpeakerMatcher",
    "SpeakerExtraction",
    "SpeakerExtractionEngine",
    "SpeakerMatcher",
    "TranscriptParseError",
    "clean_fragment",
    "default_matchers",
    "is_presiding_officer",
    "is_role",
    "iter_windows",
    "looks_like_name",
]
