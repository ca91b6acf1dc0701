"""Extraction of session metadata from filenames and transcript headers."""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Sequence
import logging
import re

from ..core.types import SessionMetadata

LOGGER = logging.getLogger(__name__)

UNKNOWN = "Unknown"
HEADER_WINDOW = 5000

_FILENAME_PATTERN = re.compile(r"DR-(?P<day>\d{2})(?P<month>\d{2})(?P<year>\d{4})", re.IGNORECASE)
_CONTENT_SESSION_PATTERN = re.compile(
    r"(?:DR\.|Bil\.)\s*(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{4})",
    re.IGNORECASE,
)
_TERM_MARKERS: Sequence[str] = ("PARLIMEN", "PARLIAMENT")
_SITTING_MARKERS: Sequence[str] = ("PENGGAL", "MEETING")


def _line_marker(markers: Sequence[str]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(marker) for marker in markers)
    return re.compile(rf"\b(?:{alternation})[ \t]+(?P<value>[^\n]+)", re.IGNORECASE)


_TERM_PATTERN = _line_marker(_TERM_MARKERS)
_SITTING_PATTERN = _line_marker(_SITTING_MARKERS)


def session_label(value: date) -> str:
    """Return the ``DR.DD.MM.YYYY`` label used for sittings on ``value``."""

    return f"DR.{value.day:02d}.{value.month:02d}.{value.year:04d}"


def _build_date(day: str, month: str, year: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _from_filename(filename: Optional[str]) -> Optional[date]:
    if not filename:
        return None
    match = _FILENAME_PATTERN.search(filename)
    if not match:
        return None
    parsed = _build_date(match.group("day"), match.group("month"), match.group("year"))
    if parsed is None:
        LOGGER.warning("Filename %s contains an invalid date token", filename)
    return parsed


def _from_content(header: str) -> Optional[date]:
    match = _CONTENT_SESSION_PATTERN.search(header)
    if not match:
        return None
    return _build_date(match.group("day"), match.group("month"), match.group("year"))


def _marker_value(pattern: re.Pattern[str], header: str) -> str:
    match = pattern.search(header)
    if not match:
        return UNKNOWN
    value = match.group("value").strip()
    return value or UNKNOWN


def extract_metadata(
    text: str,
    filename: Optional[str] = None,
    *,
    today: Callable[[], date] = date.today,
) -> SessionMetadata:
    """Derive :class:`SessionMetadata` for a transcript. Never raises."""

    header = (text or "")[:HEADER_WINDOW]
    session_date = _from_filename(filename)
    if session_date is not None:
        LOGGER.debug("Session date %s taken from filename %s", session_date, filename)
    else:
        session_date = _from_content(header)
        if session_date is not None:
            LOGGER.debug("Session date %s taken from transcript header", session_date)
        else:
            session_date = today()
            LOGGER.warning(
                "No session date found for %s; falling back to %s",
                filename or "transcript",
                session_date,
            )

    return SessionMetadata(
        session_number=session_label(session_date),
        session_date=session_date,
        parliament_term=_marker_value(_TERM_PATTERN, header),
        sitting=_marker_value(_SITTING_PATTERN, header),
    )


__all__ = ["HEADER_WINDOW", "UNKNOWN", "extract_metadata", "session_label"]
