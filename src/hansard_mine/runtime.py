"""Application level helpers for assembling pipeline dependencies."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging

from .clients import RosterClient, TranscriptDirectory, TranscriptFiles, load_roster_file
from .config import AppConfig
from .core.types import MemberRecord
from .database import Storage, create_storage
from .pipeline import ImportPipeline, TranscriptSource

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResources:
    """Container bundling the objects needed to run the pipeline."""

    pipeline: ImportPipeline
    source: TranscriptSource
    storage: Storage
    owns_storage: bool = True

    def close(self) -> None:
        if self.owns_storage:
            self.storage.dispose()


def create_pipeline(
    config: AppConfig,
    *,
    source_dir: Optional[Path] = None,
    files: Optional[List[Path]] = None,
    storage: Storage | None = None,
    source: TranscriptSource | None = None,
) -> PipelineResources:
    owns_storage = storage is None
    transcript_source: TranscriptSource
    if source is not None:
        transcript_source = source
    elif files:
        transcript_source = TranscriptFiles(files)
    else:
        transcript_source = TranscriptDirectory(
            source_dir or Path(config.source.directory),
            pattern=config.source.pattern,
        )
    storage_instance = storage or create_storage(config.storage.database_url, echo=config.storage.echo_sql)
    pipeline = ImportPipeline(source=transcript_source, storage=storage_instance, parser_config=config.parser)
    return PipelineResources(
        pipeline=pipeline,
        source=transcript_source,
        storage=storage_instance,
        owns_storage=owns_storage,
    )


def fetch_roster(config: AppConfig, *, roster_file: Optional[Path] = None) -> List[MemberRecord]:
    """Load the member roster from ``roster_file`` or the configured endpoint."""

    if roster_file is not None:
        return load_roster_file(roster_file)
    if not config.roster.base_url:
        raise ValueError("No roster file given and roster.base_url is not configured")
    with RosterClient(
        config.roster.base_url,
        config.roster.api_key,
        members_path=config.roster.members_path,
        timeout=config.roster.timeout,
        max_retries=config.roster.max_retries,
    ) as client:
        members = client.fetch_members()
    LOGGER.info("Fetched %s members from %s", len(members), config.roster.base_url)
    return members


__all__ = ["PipelineResources", "create_pipeline", "fetch_roster"]
