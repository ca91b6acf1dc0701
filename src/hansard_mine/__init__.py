"""Attribution of Hansard speaker turns to parliament members."""
from __future__ import annotations

from .clients import RosterClient, RosterClientError, TranscriptDirectory, TranscriptExtractionError
from .config import AppConfig, ParserConfig, RosterConfig, SourceConfig, StorageConfig, load_config
from .core import (
    AttendanceResult,
    MemberRecord,
    ParsedSession,
    RegistrySnapshot,
    SessionMetadata,
    SpeakerRecord,
    SpeakingInstance,
    TranscriptDocument,
    UnmatchedSpeaker,
)
from .database import Storage, create_storage
from .matching import NameResolver
from .parsing import HansardParser, parse_transcript
from .pipeline import BatchReport, ImportPipeline, PipelineEvent, ReconcilingPersister
from .runtime import PipelineResources, create_pipeline

__all__ = [
    "AppConfig",
    "AttendanceResult",
    "BatchReport",
    "HansardParser",
    "ImportPipeline",
    "MemberRecord",
    "NameResolver",
    "ParsedSession",
    "ParserConfig",
    "PipelineEvent",
    "PipelineResources",
    "ReconcilingPersister",
    "RegistrySnapshot",
    "RosterClient",
    "RosterClientError",
    "RosterConfig",
    "SessionMetadata",
    "SourceConfig",
    "SpeakerRecord",
    "SpeakingInstance",
    "Storage",
    "StorageConfig",
    "TranscriptDirectory",
    "TranscriptDocument",
    "TranscriptExtractionError",
    "UnmatchedSpeaker",
    "create_pipeline",
    "create_storage",
    "load_config",
    "parse_transcript",
]
