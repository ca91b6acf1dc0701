"""Re-resolution of captured member ids at write time.

A transcript is parsed against the registry snapshot taken when the batch
started. By the time the session is written the registry may have issued new
identifiers for the same people (for example after a reseed). Every id is
therefore looked up again, by name, against a snapshot taken immediately
before the write.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Literal, Mapping, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError

from ..core.registry import RegistrySnapshot
from ..core.types import AttendanceResult, ParsedSession, SpeakerRecord, SpeakingInstance
from ..database import RemapReport, Storage
from ..matching import NameResolver, normalize_name

LOGGER = logging.getLogger(__name__)

ReconciliationStatus = Literal["unchanged", "remapped", "unresolved"]


class DuplicateSessionError(RuntimeError):
    """Raised when a session with the same number and date is already stored."""


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """The id to store for a member captured at parse time."""

    captured_id: str
    captured_name: str
    member_id: str
    status: ReconciliationStatus
    member_name: Optional[str] = None
    constituency: Optional[str] = None


def reconcile_member_id(
    captured_name: str,
    captured_id: str,
    snapshot: RegistrySnapshot,
    *,
    resolver: Optional[NameResolver] = None,
) -> Reconciliation:
    """Return the current id for a member captured as ``captured_name``/``captured_id``.

    The captured id is kept when it still belongs to a member of that name.
    Otherwise the name is resolved against ``snapshot``. If that fails too the
    captured id is kept as a fallback with status ``unresolved``, even when
    the id now belongs to somebody else, so that it is flagged for review.
    """

    current = snapshot.get(captured_id)
    if current is not None and normalize_name(current.name) == normalize_name(captured_name):
        return Reconciliation(
            captured_id=captured_id,
            captured_name=captured_name,
            member_id=current.id,
            status="unchanged",
            member_name=current.name,
            constituency=current.constituency,
        )

    resolver = resolver or NameResolver(snapshot)
    member = resolver.resolve(captured_name)
    if member is not None:
        return Reconciliation(
            captured_id=captured_id,
            captured_name=captured_name,
            member_id=member.id,
            status="unchanged" if member.id == captured_id else "remapped",
            member_name=member.name,
            constituency=member.constituency,
        )

    if current is not None:
        LOGGER.warning(
            "Captured id %s of %s now belongs to %s; keeping it for review",
            captured_id,
            captured_name,
            current.name,
        )
    return Reconciliation(
        captured_id=captured_id,
        captured_name=captured_name,
        member_id=captured_id,
        status="unresolved",
    )


def reconcile_session(
    parsed: ParsedSession,
    snapshot: RegistrySnapshot,
    *,
    resolver: Optional[NameResolver] = None,
) -> Tuple[ParsedSession, List[Reconciliation]]:
    """Rewrite every member id of ``parsed`` against ``snapshot``.

    Speakers that collapse onto the same current member are merged; speaking
    orders and instance numbers are renumbered so they stay contiguous.
    """

    resolver = resolver or NameResolver(snapshot)
    reconciliations: Dict[str, Reconciliation] = {}
    for speaker in parsed.speakers:
        reconciliation = reconcile_member_id(speaker.name, speaker.member_id, snapshot, resolver=resolver)
        reconciliations[speaker.member_id] = reconciliation
        if reconciliation.status == "remapped":
            LOGGER.info(
                "Reconciled %s: %s -> %s", speaker.name, speaker.member_id, reconciliation.member_id
            )
        elif reconciliation.status == "unresolved":
            LOGGER.warning(
                "Could not re-resolve %s; keeping captured id %s for review", speaker.name, speaker.member_id
            )

    speakers: List[SpeakerRecord] = []
    seen: set[str] = set()
    for speaker in parsed.speakers:
        reconciliation = reconciliations[speaker.member_id]
        if reconciliation.member_id in seen:
            continue
        seen.add(reconciliation.member_id)
        speakers.append(
            replace(
                speaker,
                member_id=reconciliation.member_id,
                name=reconciliation.member_name or speaker.name,
                constituency=reconciliation.constituency or speaker.constituency,
                speaking_order=len(speakers) + 1,
            )
        )

    instances: List[SpeakingInstance] = []
    counts: Dict[str, int] = {}
    for instance in parsed.instances:
        reconciliation = reconciliations.get(instance.member_id)
        if reconciliation is None:
            reconciliation = reconcile_member_id(instance.name, instance.member_id, snapshot, resolver=resolver)
            reconciliations[instance.member_id] = reconciliation
        member_id = reconciliation.member_id
        counts[member_id] = counts.get(member_id, 0) + 1
        instances.append(
            replace(
                instance,
                member_id=member_id,
                name=reconciliation.member_name or instance.name,
                constituency=reconciliation.constituency or instance.constituency,
                instance_number=counts[member_id],
            )
        )

    reconciled = replace(
        parsed,
        speakers=tuple(speakers),
        instances=tuple(instances),
        attendance=_reconcile_attendance(parsed.attendance, resolver),
    )
    return reconciled, list(reconciliations.values())


def _reconcile_attendance(attendance: AttendanceResult, resolver: NameResolver) -> AttendanceResult:
    constituencies = resolver.constituencies
    attended = {member.id for member in constituencies.resolve_all(attendance.attended_constituencies)}
    absent = {member.id for member in constituencies.resolve_all(attendance.absent_constituencies)} - attended
    unresolved = tuple(
        name
        for name in (*attendance.attended_constituencies, *attendance.absent_constituencies)
        if constituencies.get(name) is None
    )
    return replace(
        attendance,
        attended_member_ids=frozenset(attended),
        absent_member_ids=frozenset(absent),
        unresolved_constituencies=unresolved,
    )



def _flag_reason(item: Reconciliation, snapshot: RegistrySnapshot) -> str:
    holder = snapshot.get(item.captured_id)
    if holder is None:
        return "member id not found in current registry"
    return f"name not found in current registry; id now belongs to {holder.name}"


@dataclass(frozen=True, slots=True)
class PersistOutcome:
    """What happened to one parsed session."""

    status: Literal["created", "skipped"]
    session_id: Optional[int] = None
    reconciled: int = 0
    flagged: int = 0


class ReconcilingPersister:
    """Store parsed sessions with ids re-resolved against the current registry."""

    def __init__(
        self,
        storage: Storage,
        *,
        aliases: Optional[Mapping[str, str]] = None,
        min_fuzzy_length: int = 4,
    ) -> None:
        self._storage = storage
        self._aliases = dict(aliases or {})
        self._min_fuzzy_length = min_fuzzy_length

    def persist(self, parsed: ParsedSession) -> PersistOutcome:
        metadata = parsed.metadata
        snapshot = self._storage.load_registry()
        resolver = NameResolver(snapshot, aliases=self._aliases, min_fuzzy_length=self._min_fuzzy_length)
        reconciled, reconciliations = reconcile_session(parsed, snapshot, resolver=resolver)
        remapped = [item for item in reconciliations if item.status == "remapped"]
        unresolved = [item for item in reconciliations if item.status == "unresolved"]
        counts = reconciled.instance_counts()
        credited = {item.member_id for item in reconciliations if item.status != "unresolved"}

        try:
            with self._storage.unit_of_work() as writer:
                if writer.session_exists(metadata.session_number, metadata.session_date):
                    raise DuplicateSessionError(
                        f"Session {metadata.session_number} on {metadata.session_date} already exists"
                    )
                session_id = writer.create_session(reconciled)
                for item in unresolved:
                    writer.flag_member(
                        session_id,
                        member_name=item.captured_name,
                        captured_member_id=item.captured_id,
                        reason=_flag_reason(item, snapshot),
                    )
                for speaker in reconciled.speakers:
                    if speaker.member_id not in credited or speaker.member_id not in snapshot:
                        continue
                    if not writer.update_member_counters(speaker.member_id, 1, counts.get(speaker.member_id, 0)):
                        raise RuntimeError(f"Member {speaker.member_id} vanished while updating counters")
        except DuplicateSessionError as exc:
            LOGGER.info("%s - skipping", exc)
            return PersistOutcome(status="skipped")
        except IntegrityError:
            LOGGER.info(
                "Session %s on %s was stored concurrently - skipping",
                metadata.session_number,
                metadata.session_date,
            )
            return PersistOutcome(status="skipped")

        LOGGER.info(
            "Stored session %s (%s speakers, %s reconciled, %s flagged)",
            metadata.session_number,
            len(reconciled.speakers),
            len(remapped),
            len(unresolved),
        )
        return PersistOutcome(
            status="created",
            session_id=session_id,
            reconciled=len(remapped),
            flagged=len(unresolved),
        )


def remap_stored_sessions(
    storage: Storage,
    *,
    aliases: Optional[Mapping[str, str]] = None,
    min_fuzzy_length: int = 4,
) -> RemapReport:
    """Re-resolve the member ids of all stored sessions against the current registry."""

    snapshot = storage.load_registry()
    resolver = NameResolver(snapshot, aliases=aliases, min_fuzzy_length=min_fuzzy_length)

    def _resolve(name: str, member_id: str) -> Optional[str]:
        reconciliation = reconcile_member_id(name, member_id, snapshot, resolver=resolver)
        if reconciliation.status == "unresolved":
            return None
        return reconciliation.member_id

    return storage.remap_member_ids(_resolve)


__all__ = [
    "DuplicateSessionError",
    "PersistOutcome",
    "Reconciliation",
    "ReconcilingPersister",
    "reconcile_member_id",
    "reconcile_session",
    "remap_stored_sessions",
]
