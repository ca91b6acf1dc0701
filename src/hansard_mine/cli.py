"""Command line interface for the Hansard pipeline."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from .clients import TranscriptExtractionError
from .config import load_config
from .database import create_storage
from .pipeline import remap_stored_sessions
from .runtime import create_pipeline, fetch_roster

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hansard transcript attribution pipeline")
    parser.add_argument("--config", type=Path, help="Path to an explicit configuration file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Parse and store transcripts")
    import_parser.add_argument("--source", type=Path, help="Directory holding the transcript text files")
    import_parser.add_argument(
        "--file",
        dest="files",
        type=Path,
        action="append",
        help="Import this transcript file instead of scanning a directory (repeatable)",
    )
    import_parser.add_argument("--limit", type=int, help="Maximum number of transcripts to import")

    sync_parser = subparsers.add_parser("sync-members", help="Load the member roster into the registry")
    sync_parser.add_argument("--file", type=Path, help="Read the roster from a JSON file instead of the API")
    sync_parser.add_argument(
        "--reseed",
        action="store_true",
        help="Issue new identifiers for every member after syncing",
    )

    subparsers.add_parser("remap", help="Re-resolve member ids of stored sessions against the registry")
    subparsers.add_parser("aggregate", help="Recompute member speaking counters from stored sessions")

    sessions_parser = subparsers.add_parser("sessions", help="List stored sessions")
    sessions_parser.add_argument("--limit", type=int, default=25)

    unmatched_parser = subparsers.add_parser("unmatched", help="List unmatched speakers and flagged ids")
    unmatched_parser.add_argument("--limit", type=int, default=100)

    subparsers.add_parser("members", help="List registry members with their counters")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.command == "import":
        resources = create_pipeline(config, source_dir=args.source, files=args.files)
        try:
            report = resources.pipeline.run(limit=args.limit)
        except TranscriptExtractionError as exc:
            LOGGER.error("%s", exc)
            return 1
        finally:
            resources.close()
        LOGGER.info(
            "Imported %s transcripts (%s skipped, %s failed, %s unmatched speakers)",
            report.succeeded,
            report.skipped,
            report.failed,
            report.unmatched_speakers,
        )
        for filename, error in report.failures:
            print(f"FAILED {filename}: {error}")
        return 1 if report.failed else 0

    storage = create_storage(config.storage.database_url, echo=config.storage.echo_sql)
    try:
        if args.command == "sync-members":
            members = fetch_roster(config, roster_file=args.file)
            count = storage.upsert_members(members)
            LOGGER.info("Synced %s members", count)
            if args.reseed:
                mapping = storage.reseed_members()
                LOGGER.info("Issued %s new member ids; run 'remap' to update stored sessions", len(mapping))
            return 0
        if args.command == "remap":
            report = remap_stored_sessions(
                storage,
                aliases=config.parser.name_aliases,
                min_fuzzy_length=config.parser.min_fuzzy_length,
            )
            LOGGER.info(
                "Remapped %s speakers in %s sessions (%s unresolved)",
                report.speakers_updated,
                report.sessions_updated,
                report.speakers_unresolved,
            )
            return 0
        if args.command == "aggregate":
            storage.recompute_member_counters()
            return 0
        if args.command == "sessions":
            for overview in storage.list_sessions(limit=args.limit):
                print(
                    f"{overview.session_number}\t{overview.session_date.isoformat()}\t"
                    f"{overview.parliament_term}\t{overview.speaker_count} speakers"
                )
            return 0
        if args.command == "unmatched":
            for entry in storage.list_unmatched(limit=args.limit):
                constituency = f" ({entry.constituency})" if entry.constituency else ""
                print(f"{entry.session_number}\t{entry.name}{constituency}\t{entry.reason}")
            return 0
        if args.command == "members":
            for member in storage.list_members():
                print(
                    f"{member.id}\t{member.name}\t{member.constituency}\t"
                    f"{member.sessions_spoken} sessions\t{member.total_speech_instances} instances"
                )
            return 0
    finally:
        storage.dispose()
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
