"""Resolution of free-text speaker names against a registry snapshot.

Resolution is a cascade of independent strategies. The first strategy that
returns a member wins:

1. :class:`ExactNameStrategy` - normalized full name (and configured aliases).
2. :class:`ConstituencyStrategy` - normalized constituency equality.
3. :class:`SubstringStrategy` - normalized name contained in, or containing, a
   registry name. Candidates shorter than ``min_length`` never match here
   because short fragments such as a common surname produce false positives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple
import logging
import re

from ..core.registry import RegistrySnapshot
from ..core.types import MemberRecord
from .constituency import ConstituencyIndex

LOGGER = logging.getLogger(__name__)

HONORIFICS: Sequence[str] = (
    "yang amat berhormat",
    "yang berhormat",
    "timbalan perdana menteri",
    "perdana menteri",
    "timbalan menteri",
    "menteri",
    "deputy prime minister",
    "prime minister",
    "deputy minister",
    "minister",
    "tan sri",
    "toh puan",
    "dato' sri",
    "dato' seri",
    "datuk seri",
    "datuk",
    "dato'",
    "datin",
    "tun",
    "yab",
    "yb",
    "y.bhg.",
    "haji",
    "hajjah",
    "tuan",
    "puan",
    "madam",
    "mrs.",
    "mr.",
    "ms.",
    "dr.",
    "ir.",
    "ts.",
    "senator",
    "kapten",
)

CONNECTOR_PARTICLES: Sequence[str] = ("bin", "binti", "a/l", "a/p", "@")


def _honorific_alternation() -> str:
    parts = []
    for title in sorted(HONORIFICS, key=len, reverse=True):
        escaped = re.escape(title.rstrip("."))
        escaped = escaped.replace(r"\ ", r"\s+")
        parts.append(escaped + r"\.?")
    return "|".join(parts)


_HONORIFIC_PREFIX = re.compile(rf"^(?:(?:{_honorific_alternation()})(?:\s+|$))+")
_BRACKETED = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_CONNECTORS = re.compile(
    r"\s+(?:" + "|".join(re.escape(particle) for particle in CONNECTOR_PARTICLES) + r")\s+"
)
_PUNCTUATION = re.compile(r"[^\w\s']")
_MULTISPACE = re.compile(r"\s+")


def normalize_name(value: str) -> str:
    """Normalize a speaker name for comparison.

    The result is lowercase, has leading honorifics removed, connector
    particles such as ``bin`` or ``a/l`` collapsed to a single space and all
    punctuation except apostrophes replaced by whitespace.
    """

    text = (value or "").lower().replace("’", "'").replace("‘", "'")
    text = _BRACKETED.sub(" ", text)
    text = _MULTISPACE.sub(" ", text).strip()
    text = _HONORIFIC_PREFIX.sub("", text)
    text = _CONNECTORS.sub(" ", f" {text} ")
    text = _PUNCTUATION.sub(" ", text)
    return _MULTISPACE.sub(" ", text).strip()


def _significant_words(value: str) -> List[str]:
    return [word for word in value.split(" ") if len(word) > 2]


class ResolutionStrategy(Protocol):
    """A single step of the resolution cascade."""

    name: str

    def resolve(self, name: Optional[str], constituency: Optional[str]) -> Optional[MemberRecord]:
        ...


class ExactNameStrategy:
    """Lookup by normalized name, including the surname-first variant."""

    name = "exact"

    def __init__(self, snapshot: RegistrySnapshot, aliases: Optional[Mapping[str, str]] = None) -> None:
        self._index: Dict[str, MemberRecord] = {}
        self._aliases: Dict[str, MemberRecord] = {}
        for member in snapshot:
            key = normalize_name(member.name)
            if not key:
                continue
            self._index.setdefault(key, member)
            parts = key.split(" ")
            if len(parts) > 1:
                self._index.setdefault(" ".join([parts[-1], *parts[:-1]]), member)
        for alias, canonical in (aliases or {}).items():
            member = self._index.get(normalize_name(canonical))
            if member is None:
                LOGGER.debug("Alias %r points to unknown member %r", alias, canonical)
                continue
            self._aliases[normalize_name(alias)] = member

    def resolve(self, name: Optional[str], constituency: Optional[str]) -> Optional[MemberRecord]:
        if not name:
            return None
        key = normalize_name(name)
        if not key:
            return None
        return self._aliases.get(key) or self._index.get(key)


class ConstituencyStrategy:
    """Lookup by normalized constituency."""

    name = "constituency"

    def __init__(self, snapshot: RegistrySnapshot) -> None:
        self._index = ConstituencyIndex(snapshot)

    def resolve(self, name: Optional[str], constituency: Optional[str]) -> Optional[MemberRecord]:
        return self._index.get(constituency)


class SubstringStrategy:
    """Containment match between normalized candidate and registry names."""

    name = "substring"

    def __init__(self, snapshot: RegistrySnapshot, *, min_length: int = 4) -> None:
        self._min_length = max(1, min_length)
        self._names: List[Tuple[str, MemberRecord]] = [
            (normalize_name(member.name), member) for member in snapshot
        ]

    def resolve(self, name: Optional[str], constituency: Optional[str]) -> Optional[MemberRecord]:
        if not name:
            return None
        candidate = normalize_name(name)
        if len(candidate) < self._min_length:
            return None
        for registry_name, member in self._names:
            if len(registry_name) < self._min_length:
                continue
            if candidate in registry_name or registry_name in candidate:
                LOGGER.debug("Fuzzy matched %r -> %s (%s)", name, member.name, member.id)
                return member
        return None


@dataclass(frozen=True, slots=True)
class Resolution:
    """A successful resolution and the strategy that produced it."""

    member: MemberRecord
    strategy: str


def default_strategies(
    snapshot: RegistrySnapshot,
    *,
    aliases: Optional[Mapping[str, str]] = None,
    min_fuzzy_length: int = 4,
) -> List[ResolutionStrategy]:
    return [
        ExactNameStrategy(snapshot, aliases),
        ConstituencyStrategy(snapshot),
        SubstringStrategy(snapshot, min_length=min_fuzzy_length),
    ]


class NameResolver:
    """Resolve name/constituency fragments to exactly one registry member."""

    def __init__(
        self,
        snapshot: RegistrySnapshot,
        *,
        strategies: Optional[Iterable[ResolutionStrategy]] = None,
        aliases: Optional[Mapping[str, str]] = None,
        min_fuzzy_length: int = 4,
    ) -> None:
        self.snapshot = snapshot
        self.constituencies = ConstituencyIndex(snapshot)
        if strategies is None:
            strategies = default_strategies(snapshot, aliases=aliases, min_fuzzy_length=min_fuzzy_length)
        self._strategies: List[ResolutionStrategy] = list(strategies)

    @property
    def strategies(self) -> Tuple[ResolutionStrategy, ...]:
        return tuple(self._strategies)

    def match(self, name: Optional[str], constituency: Optional[str] = None) -> Optional[Resolution]:
        for strategy in self._strategies:
            member = strategy.resolve(name, constituency)
            if member is not None:
                return Resolution(member=member, strategy=strategy.name)
        LOGGER.debug("No registry match for %r (%s)", name, constituency or "-")
        return None

    def resolve(self, name: Optional[str], constituency: Optional[str] = None) -> Optional[MemberRecord]:
        resolution = self.match(name, constituency)
        return resolution.member if resolution else None

    def suggest(self, name: Optional[str], constituency: Optional[str] = None, *, limit: int = 3) -> Tuple[str, ...]:
        """Return ids of members that plausibly match an unresolved speaker."""

        by_constituency = self.constituencies.get(constituency)
        if by_constituency is not None:
            return (by_constituency.id,)
        words = _significant_words(normalize_name(name or ""))
        if not words:
            return ()
        scored: List[Tuple[float, int, str]] = []
        for position, member in enumerate(self.snapshot):
            member_words = _significant_words(normalize_name(member.name))
            if not member_words:
                continue
            overlap = sum(1 for word in words if word in member_words)
            score = overlap / max(len(words), len(member_words))
            if overlap >= 1 and score >= 0.3:
                scored.append((-score, position, member.id))
        scored.sort()
        return tuple(member_id for _, _, member_id in scored[:limit])


__all__ = [
    "CONNECTOR_PARTICLES",
    "ConstituencyStrategy",
    "ExactNameStrategy",
    "HONORIFICS",
    "NameResolver",
    "Resolution",
    "ResolutionStrategy",
    "SubstringStrategy",
    "default_strategies",
    "normalize_name",
]
