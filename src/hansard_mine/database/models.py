"""SQLAlchemy models for the Hansard attribution pipeline."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative SQLAlchemy base class."""


class MemberModel(Base):
    """A member of parliament together with their speaking aggregates."""

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), index=True)
    constituency: Mapped[str] = mapped_column(String(256))
    party: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sessions_spoken: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_speech_instances: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class HansardSessionModel(Base):
    """A persisted sitting."""

    __tablename__ = "hansard_sessions"
    __table_args__ = (UniqueConstraint("session_number", "session_date", name="uq_session_number_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_number: Mapped[str] = mapped_column(String(64), index=True)
    session_date: Mapped[date] = mapped_column(Date)
    parliament_term: Mapped[str] = mapped_column(String(256))
    sitting: Mapped[str] = mapped_column(String(256))
    source_filename: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    topics: Mapped[list] = mapped_column(JSON, default=list)
    transcript_excerpt: Mapped[str] = mapped_column(Text, default="")
    attended_member_ids: Mapped[list] = mapped_column(JSON, default=list)
    absent_member_ids: Mapped[list] = mapped_column(JSON, default=list)
    attended_constituencies: Mapped[list] = mapped_column(JSON, default=list)
    absent_constituencies: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    speakers: Mapped[List["SessionSpeakerModel"]] = relationship(
        back_populates="session", cascade="all, delete-orphan", order_by="SessionSpeakerModel.speaking_order"
    )
    instances: Mapped[List["SpeakingInstanceModel"]] = relationship(
        back_populates="session", cascade="all, delete-orphan", order_by="SpeakingInstanceModel.line_number"
    )
    unmatched: Mapped[List["UnmatchedSpeakerModel"]] = relationship(
        back_populates="session", cascade="all, delete-orphan"
    )
    flags: Mapped[List["ReconciliationFlagModel"]] = relationship(
        back_populates="session", cascade="all, delete-orphan"
    )


class SessionSpeakerModel(Base):
    """A unique speaker of a sitting."""

    __tablename__ = "session_speakers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(Integer, ForeignKey("hansard_sessions.id"), index=True)
    member_id: Mapped[str] = mapped_column(String(64), index=True)
    member_name: Mapped[str] = mapped_column(String(256))
    constituency: Mapped[str] = mapped_column(String(256))
    speaking_order: Mapped[int] = mapped_column(Integer)
    total_speeches: Mapped[int] = mapped_column(Integer, default=0)

    session: Mapped[HansardSessionModel] = relationship(back_populates="speakers")


class SpeakingInstanceModel(Base):
    """A single speaker introduction within a sitting."""

    __tablename__ = "speaking_instances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(Integer, ForeignKey("hansard_sessions.id"), index=True)
    member_id: Mapped[str] = mapped_column(String(64), index=True)
    member_name: Mapped[str] = mapped_column(String(256))
    constituency: Mapped[str] = mapped_column(String(256))
    instance_number: Mapped[int] = mapped_column(Integer)
    line_number: Mapped[int] = mapped_column(Integer)
    header: Mapped[str] = mapped_column(Text, default="")
    speech_text: Mapped[str] = mapped_column(Text, default="")

    session: Mapped[HansardSessionModel] = relationship(back_populates="instances")


class UnmatchedSpeakerModel(Base):
    """A speaker introduction kept for operator review."""

    __tablename__ = "unmatched_speakers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(Integer, ForeignKey("hansard_sessions.id"), index=True)
    name: Mapped[str] = mapped_column(String(256))
    constituency: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    reason: Mapped[str] = mapped_column(String(512), default="")
    raw_header: Mapped[str] = mapped_column(Text, default="")
    suggested_member_ids: Mapped[list] = mapped_column(JSON, default=list)
    line_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    session: Mapped[HansardSessionModel] = relationship(back_populates="unmatched")


class ReconciliationFlagModel(Base):
    """A member id that could not be re-resolved when the session was written."""

    __tablename__ = "reconciliation_flags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(Integer, ForeignKey("hansard_sessions.id"), index=True)
    member_name: Mapped[str] = mapped_column(String(256))
    captured_member_id: Mapped[str] = mapped_column(String(64))
    reason: Mapped[str] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    session: Mapped[HansardSessionModel] = relationship(back_populates="flags")


__all__ = [
    "Base",
    "HansardSessionModel",
    "MemberModel",
    "ReconciliationFlagModel",
    "SessionSpeakerModel",
    "SpeakingInstanceModel",
    "UnmatchedSpeakerModel",
]
