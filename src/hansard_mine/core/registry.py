"""Point-in-time views of the member registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .types import MemberRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Immutable list of members as read from the registry at ``taken_at``.

    The pipeline reads one snapshot when a transcript is parsed and a second
    one when the parsed session is written. Identifiers are only guaranteed
    to be stable within a single snapshot.
    """

    members: Tuple[MemberRecord, ...]
    taken_at: datetime = field(default_factory=_utcnow)
    _by_id: Dict[str, MemberRecord] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_id", {member.id: member for member in self.members})

    @classmethod
    def of(cls, members: Iterable[MemberRecord], *, taken_at: Optional[datetime] = None) -> "RegistrySnapshot":
        if taken_at is None:
            return cls(members=tuple(members))
        return cls(members=tuple(members), taken_at=taken_at)

    def get(self, member_id: str) -> Optional[MemberRecord]:
        return self._by_id.get(member_id)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._by_id

    def __iter__(self) -> Iterator[MemberRecord]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)


__all__ = ["RegistrySnapshot"]
