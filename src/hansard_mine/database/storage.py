"""Persistence helpers built on SQLAlchemy."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, Iterator, Optional
import logging
import uuid

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..core.registry import RegistrySnapshot
from ..core.types import MemberRecord, ParsedSession
from .models import (
    Base,
    HansardSessionModel,
    MemberModel,
    ReconciliationFlagModel,
    SessionSpeakerModel,
    SpeakingInstanceModel,
    UnmatchedSpeakerModel,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionOverview:
    """Lightweight representation of a persisted sitting."""

    identifier: int
    session_number: str
    session_date: date
    parliament_term: str
    speaker_count: int
    created_at: datetime | None


@dataclass(slots=True)
class MemberOverview:
    """A registry member with the aggregate counters maintained by the pipeline."""

    id: str
    name: str
    constituency: str
    party: str | None
    sessions_spoken: int
    total_speech_instances: int


@dataclass(slots=True)
class UnmatchedOverview:
    """An unmatched speaker or reconciliation fallback awaiting review."""

    session_number: str
    name: str
    constituency: str | None
    reason: str


@dataclass(slots=True)
class RemapReport:
    """Outcome of re-resolving the member ids of stored sessions."""

    speakers_updated: int = 0
    speakers_unresolved: int = 0
    sessions_updated: int = 0


class SessionWriter:
    """Write operations that must share one transaction.

    Instances are only handed out by :meth:`Storage.unit_of_work`; everything
    done through one writer is committed or rolled back together.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def session_exists(self, session_number: str, session_date: date) -> bool:
        stmt = select(HansardSessionModel.id).where(
            HansardSessionModel.session_number == session_number,
            HansardSessionModel.session_date == session_date,
        )
        return self._session.execute(stmt).first() is not None

    def create_session(self, parsed: ParsedSession) -> int:
        metadata = parsed.metadata
        attendance = parsed.attendance
        counts = parsed.instance_counts()
        model = HansardSessionModel(
            session_number=metadata.session_number,
            session_date=metadata.session_date,
            parliament_term=metadata.parliament_term,
            sitting=metadata.sitting,
            source_filename=parsed.source_filename,
            topics=list(parsed.topics),
            transcript_excerpt=parsed.transcript_excerpt,
            attended_member_ids=sorted(attendance.attended_member_ids),
            absent_member_ids=sorted(attendance.absent_member_ids),
            attended_constituencies=list(attendance.attended_constituencies),
            absent_constituencies=list(attendance.absent_constituencies),
        )
        model.speakers = [
            SessionSpeakerModel(
                member_id=speaker.member_id,
                member_name=speaker.name,
                constituency=speaker.constituency,
                speaking_order=speaker.speaking_order,
                total_speeches=counts.get(speaker.member_id, 0),
            )
            for speaker in parsed.speakers
        ]
        model.instances = [
            SpeakingInstanceModel(
                member_id=instance.member_id,
                member_name=instance.name,
                constituency=instance.constituency,
                instance_number=instance.instance_number,
                line_number=instance.line_number,
                header=instance.header,
                speech_text=instance.speech_text,
            )
            for instance in parsed.instances
        ]
        model.unmatched = [
            UnmatchedSpeakerModel(
                name=unmatched.name,
                constituency=unmatched.constituency,
                reason=unmatched.reason,
                raw_header=unmatched.raw_header,
                suggested_member_ids=list(unmatched.suggested_member_ids),
                line_number=unmatched.line_number,
            )
            for unmatched in parsed.unmatched
        ]
        self._session.add(model)
        self._session.flush()
        return model.id

    def flag_member(self, session_id: int, *, member_name: str, captured_member_id: str, reason: str) -> None:
        self._session.add(
            ReconciliationFlagModel(
                session_id=session_id,
                member_name=member_name,
                captured_member_id=captured_member_id,
                reason=reason,
            )
        )

    def update_member_counters(self, member_id: str, sessions_delta: int, instances_delta: int) -> bool:
        """Increment the aggregates of ``member_id``; return ``False`` if it does not exist."""

        result = self._session.execute(
            update(MemberModel)
            .where(MemberModel.id == member_id)
            .values(
                sessions_spoken=MemberModel.sessions_spoken + sessions_delta,
                total_speech_instances=MemberModel.total_speech_instances + instances_delta,
            )
        )
        return bool(result.rowcount)


class Storage:
    """Wrapper around SQLAlchemy to store members and parsed sittings."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def unit_of_work(self) -> Iterator[SessionWriter]:
        with self.session() as session:
            yield SessionWriter(session)

    def ensure_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    # --- member registry --------------------------------------------------
    def load_registry(self) -> RegistrySnapshot:
        """Read the current member registry into an immutable snapshot."""

        with self.session() as session:
            stmt = select(MemberModel).order_by(MemberModel.name, MemberModel.id)
            members = [
                MemberRecord(id=row.id, name=row.name, constituency=row.constituency, party=row.party)
                for row in session.scalars(stmt)
            ]
        return RegistrySnapshot.of(members)

    def upsert_members(self, members: Iterable[MemberRecord]) -> int:
        """Insert or update ``members``.

        Records without an id keep the id of an existing member with the same
        name, or receive a freshly generated one.
        """

        count = 0
        with self.session() as session:
            for record in members:
                member_id = record.id
                if not member_id:
                    existing_id = session.scalar(select(MemberModel.id).where(MemberModel.name == record.name))
                    member_id = existing_id or str(uuid.uuid4())
                model = session.get(MemberModel, member_id)
                if model is None:
                    session.add(
                        MemberModel(
                            id=member_id,
                            name=record.name,
                            constituency=record.constituency,
                            party=record.party,
                            sessions_spoken=0,
                            total_speech_instances=0,
                        )
                    )
                else:
                    model.name = record.name
                    model.constituency = record.constituency
                    model.party = record.party
                session.flush()
                count += 1
        return count

    def reseed_members(self) -> Dict[str, str]:
        """Give every member a new identifier and return the ``old -> new`` mapping.

        Stored sessions keep referring to the old identifiers until they are
        remapped.
        """

        mapping: Dict[str, str] = {}
        with self.session() as session:
            members = list(session.scalars(select(MemberModel)))
            for member in members:
                new_id = str(uuid.uuid4())
                mapping[member.id] = new_id
                session.add(
                    MemberModel(
                        id=new_id,
                        name=member.name,
                        constituency=member.constituency,
                        party=member.party,
                        sessions_spoken=member.sessions_spoken,
                        total_speech_instances=member.total_speech_instances,
                    )
                )
                session.delete(member)
        LOGGER.info("Reseeded %s member identifiers", len(mapping))
        return mapping

    def list_members(self) -> list[MemberOverview]:
        with self.session() as session:
            stmt = select(MemberModel).order_by(MemberModel.name, MemberModel.id)
            return [
                MemberOverview(
                    id=row.id,
                    name=row.name,
                    constituency=row.constituency,
                    party=row.party,
                    sessions_spoken=row.sessions_spoken,
                    total_speech_instances=row.total_speech_instances,
                )
                for row in session.scalars(stmt)
            ]

    def get_member(self, member_id: str) -> Optional[MemberOverview]:
        with self.session() as session:
            row = session.get(MemberModel, member_id)
            if row is None:
                return None
            return MemberOverview(
                id=row.id,
                name=row.name,
                constituency=row.constituency,
                party=row.party,
                sessions_spoken=row.sessions_spoken,
                total_speech_instances=row.total_speech_instances,
            )

    # --- sessions ---------------------------------------------------------
    def session_exists(self, session_number: str, session_date: date) -> bool:
        with self.unit_of_work() as writer:
            return writer.session_exists(session_number, session_date)

    def session_speakers(self, session_id: int) -> list[SessionSpeakerModel]:
        with self.session() as session:
            stmt = (
                select(SessionSpeakerModel)
                .where(SessionSpeakerModel.session_id == session_id)
                .order_by(SessionSpeakerModel.speaking_order)
            )
            return list(session.scalars(stmt))

    def session_instances(self, session_id: int) -> list[SpeakingInstanceModel]:
        with self.session() as session:
            stmt = (
                select(SpeakingInstanceModel)
                .where(SpeakingInstanceModel.session_id == session_id)
                .order_by(SpeakingInstanceModel.line_number, SpeakingInstanceModel.id)
            )
            return list(session.scalars(stmt))

    def list_sessions(self, limit: int = 25) -> list[SessionOverview]:
        """Return the latest stored sittings, newest first."""

        with self.session() as session:
            stmt = (
                select(
                    HansardSessionModel.id,
                    HansardSessionModel.session_number,
                    HansardSessionModel.session_date,
                    HansardSessionModel.parliament_term,
                    HansardSessionModel.created_at,
                    func.count(SessionSpeakerModel.id).label("speaker_count"),
                )
                .outerjoin(SessionSpeakerModel, SessionSpeakerModel.session_id == HansardSessionModel.id)
                .group_by(
                    HansardSessionModel.id,
                    HansardSessionModel.session_number,
                    HansardSessionModel.session_date,
                    HansardSessionModel.parliament_term,
                    HansardSessionModel.created_at,
                )
                .order_by(HansardSessionModel.session_date.desc(), HansardSessionModel.id.desc())
                .limit(limit)
            )
            rows = session.execute(stmt).all()
            return [
                SessionOverview(
                    identifier=row.id,
                    session_number=row.session_number,
                    session_date=row.session_date,
                    parliament_term=row.parliament_term,
                    speaker_count=row.speaker_count or 0,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    def list_unmatched(self, limit: int = 100) -> list[UnmatchedOverview]:
        """Return unmatched speakers and reconciliation fallbacks for review."""

        with self.session() as session:
            unmatched_stmt = (
                select(HansardSessionModel.session_number, UnmatchedSpeakerModel)
                .join(UnmatchedSpeakerModel, UnmatchedSpeakerModel.session_id == HansardSessionModel.id)
                .order_by(HansardSessionModel.session_date.desc(), UnmatchedSpeakerModel.id)
                .limit(limit)
            )
            entries = [
                UnmatchedOverview(
                    session_number=number,
                    name=row.name,
                    constituency=row.constituency,
                    reason=row.reason,
                )
                for number, row in session.execute(unmatched_stmt).all()
            ]
            flag_stmt = (
                select(HansardSessionModel.session_number, ReconciliationFlagModel)
                .join(ReconciliationFlagModel, ReconciliationFlagModel.session_id == HansardSessionModel.id)
                .order_by(ReconciliationFlagModel.id)
                .limit(limit)
            )
            entries.extend(
                UnmatchedOverview(
                    session_number=number,
                    name=row.member_name,
                    constituency=None,
                    reason=f"{row.reason} (kept id {row.captured_member_id})",
                )
                for number, row in session.execute(flag_stmt).all()
            )
            return entries[:limit]

    # --- maintenance ------------------------------------------------------
    def remap_member_ids(self, resolve: Callable[[str, str], Optional[str]]) -> RemapReport:
        """Rewrite stored speaker ids with ``resolve(name, current_id)``.

        ``resolve`` returns the id to store or ``None`` when the name cannot be
        resolved, in which case the stored id is kept. Speakers of one session
        that end up with the same id are merged and the session is renumbered.
        """

        report = RemapReport()
        with self.session() as session:
            stored_sessions = list(session.scalars(select(HansardSessionModel).order_by(HansardSessionModel.id)))
            for stored in stored_sessions:
                mapping: Dict[str, str] = {}
                for speaker in stored.speakers:
                    resolved = resolve(speaker.member_name, speaker.member_id)
                    if resolved is None:
                        report.speakers_unresolved += 1
                        LOGGER.warning(
                            "Could not re-resolve %s; keeping id %s", speaker.member_name, speaker.member_id
                        )
                        continue
                    if resolved == speaker.member_id:
                        continue
                    LOGGER.info("Remapping %s: %s -> %s", speaker.member_name, speaker.member_id, resolved)
                    mapping[speaker.member_id] = resolved
                    report.speakers_updated += 1
                if mapping:
                    _apply_member_mapping(stored, mapping)
                    report.sessions_updated += 1
        return report

    def recompute_member_counters(self) -> int:
        """Rebuild every member's aggregates from the stored sittings."""

        with self.session() as session:
            totals: Dict[str, list[int]] = {}
            stmt = select(
                SessionSpeakerModel.session_id,
                SessionSpeakerModel.member_id,
                SessionSpeakerModel.total_speeches,
            )
            seen: set[tuple[int, str]] = set()
            for session_id, member_id, total_speeches in session.execute(stmt).all():
                entry = totals.setdefault(member_id, [0, 0])
                if (session_id, member_id) not in seen:
                    seen.add((session_id, member_id))
                    entry[0] += 1
                entry[1] += total_speeches or 0

            updated = 0
            for member in session.scalars(select(MemberModel)):
                sessions_spoken, instances = totals.get(member.id, (0, 0))
                member.sessions_spoken = sessions_spoken
                member.total_speech_instances = instances
                updated += 1
        LOGGER.info("Recomputed speaking aggregates for %s members", updated)
        return updated

    def dispose(self) -> None:
        """Dispose the underlying SQLAlchemy engine."""

        self._engine.dispose()


def _apply_member_mapping(stored: HansardSessionModel, mapping: Dict[str, str]) -> None:
    """Rewrite the ids of ``stored`` with ``mapping`` and renumber the session."""

    merged: Dict[str, SessionSpeakerModel] = {}
    for speaker in sorted(stored.speakers, key=lambda row: row.speaking_order):
        member_id = mapping.get(speaker.member_id, speaker.member_id)
        kept = merged.get(member_id)
        if kept is None:
            speaker.member_id = member_id
            merged[member_id] = speaker
            continue
        LOGGER.info("Merging duplicate speaker %s into %s", speaker.member_name, member_id)
        kept.total_speeches = (kept.total_speeches or 0) + (speaker.total_speeches or 0)
        stored.speakers.remove(speaker)
    for order, speaker in enumerate(merged.values(), start=1):
        speaker.speaking_order = order

    counts: Dict[str, int] = {}
    for instance in sorted(stored.instances, key=lambda row: (row.line_number, row.id)):
        instance.member_id = mapping.get(instance.member_id, instance.member_id)
        counts[instance.member_id] = counts.get(instance.member_id, 0) + 1
        instance.instance_number = counts[instance.member_id]


def create_storage(database_url: str, *, echo: bool = False) -> Storage:
    engine = create_engine(database_url, echo=echo, future=True)
    storage = Storage(engine)
    storage.ensure_schema()
    return storage


__all__ = [
    "MemberOverview",
    "RemapReport",
    "SessionOverview",
    "SessionWriter",
    "Storage",
    "UnmatchedOverview",
    "create_storage",
]
