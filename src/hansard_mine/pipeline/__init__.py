"""Pipeline orchestration for importing Hansard transcripts."""
from __future__ import annotations

from .import_pipeline import BatchReport, ImportPipeline, PipelineEvent, TranscriptSource
from .reconcile import (
    DuplicateSessionError,
    PersistOutcome,
    Reconciliation,
    ReconcilingPersister,
    reconcile_member_id,
    reconcile_session,
    remap_stored_sessions,
)

__all__ = [
    "BatchReport",
    "DuplicateSessionError",
    "ImportPipeline",
    "PersistOutcome",
    "PipelineEvent",
    "Reconciliation",
    "ReconcilingPersister",
    "TranscriptSource",
    "reconcile_member_id",
    "reconcile_session",
    "remap_stored_sessions",
]
