"""Constituency normalisation and exact lookup."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
import logging
import re

from ..core.types import MemberRecord

LOGGER = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_constituency(value: str) -> str:
    """Lowercase ``value`` and drop everything that is not a letter."""

    return _NON_LETTERS.sub("", (value or "").lower())


class ConstituencyIndex:
    """Exact lookup of members by normalized constituency name."""

    def __init__(self, members: Iterable[MemberRecord]) -> None:
        self._index: Dict[str, MemberRecord] = {}
        for member in members:
            key = normalize_constituency(member.constituency)
            if not key:
                continue
            if key in self._index:
                LOGGER.debug(
                    "Constituency %r is shared by %s and %s; keeping the first",
                    member.constituency,
                    self._index[key].id,
                    member.id,
                )
                continue
            self._index[key] = member

    def get(self, constituency: Optional[str]) -> Optional[MemberRecord]:
        if not constituency:
            return None
        key = normalize_constituency(constituency)
        if not key:
            return None
        return self._index.get(key)

    def __contains__(self, constituency: object) -> bool:
        return isinstance(constituency, str) and self.get(constituency) is not None

    def resolve_all(self, constituencies: Iterable[str]) -> List[MemberRecord]:
        """Resolve ``constituencies`` in order, skipping unknown and repeated members."""

        resolved: List[MemberRecord] = []
        seen: set[str] = set()
        for constituency in constituencies:
            member = self.get(constituency)
            if member is None or member.id in seen:
                continue
            seen.add(member.id)
            resolved.append(member)
        return resolved


__all__ = ["ConstituencyIndex", "normalize_constituency"]
