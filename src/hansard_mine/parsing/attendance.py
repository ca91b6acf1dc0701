"""Attendance roster extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import re

from ..core.types import AttendanceResult
from ..matching import ConstituencyIndex, normalize_constituency

LOGGER = logging.getLogger(__name__)

_CONSTITUENCY_TOKEN = re.compile(r"\((?P<name>[A-Z][a-z'\-]+(?:\s+[A-Z][a-z'\-]+)*)\)")


@dataclass(frozen=True, slots=True)
class RosterSection:
    """Header markers of a roster section and the markers that end it."""

    headers: Tuple[str, ...]
    terminators: Tuple[str, ...]


PRESENT_SECTION = RosterSection(
    headers=("Ahli-Ahli Yang Hadir:", "Members Present:"),
    terminators=(
        "Senator Yang Turut Hadir:",
        "Ahli-Ahli Yang Tidak Hadir:",
        "Members Absent:",
    ),
)
ABSENT_SECTION = RosterSection(
    headers=("Ahli-Ahli Yang Tidak Hadir:", "Members Absent:"),
    terminators=("PERTANYAAN", "USUL:", "RANG UNDANG-UNDANG"),
)


def _find_first(text: str, markers: Sequence[str], start: int = 0) -> Optional[Tuple[int, str]]:
    best: Optional[Tuple[int, str]] = None
    for marker in markers:
        index = text.find(marker, start)
        if index != -1 and (best is None or index < best[0]):
            best = (index, marker)
    return best


def section_window(text: str, section: RosterSection) -> Optional[str]:
    """Return the text of ``section`` or ``None`` when its header is missing."""

    header = _find_first(text, section.headers)
    if header is None:
        return None
    body_start = header[0] + len(header[1])
    end = _find_first(text, section.terminators, body_start)
    return text[body_start : end[0] if end else len(text)]


def collect_constituencies(window: str) -> List[str]:
    """Return parenthesized constituency names in ``window`` without repeats."""

    found: List[str] = []
    for match in _CONSTITUENCY_TOKEN.finditer(window):
        name = " ".join(match.group("name").split())
        if name and name not in found:
            found.append(name)
    return found


def extract_attendance(
    text: str,
    constituencies: ConstituencyIndex,
    *,
    present: RosterSection = PRESENT_SECTION,
    absent: RosterSection = ABSENT_SECTION,
) -> AttendanceResult:
    """Convert the attendance rosters of ``text`` into member id sets."""

    present_window = section_window(text, present)
    absent_window = section_window(text, absent)
    if present_window is None:
        LOGGER.info("No attendance section found; attendance is unknown")
    if absent_window is None:
        LOGGER.info("No absence section found; absences are unknown")

    attended_names = collect_constituencies(present_window) if present_window is not None else []
    attended_keys = {normalize_constituency(name) for name in attended_names}
    absent_names = [
        name
        for name in (collect_constituencies(absent_window) if absent_window is not None else [])
        if normalize_constituency(name) not in attended_keys
    ]

    attended_ids = {member.id for member in constituencies.resolve_all(attended_names)}
    absent_ids = {member.id for member in constituencies.resolve_all(absent_names)} - attended_ids
    unresolved = tuple(name for name in [*attended_names, *absent_names] if constituencies.get(name) is None)
    if unresolved:
        LOGGER.warning("Unresolved attendance constituencies: %s", ", ".join(unresolved))

    LOGGER.info(
        "Attendance parsed: %s present (%s matched), %s absent (%s matched)",
        len(attended_names),
        len(attended_ids),
        len(absent_names),
        len(absent_ids),
    )
    return AttendanceResult(
        attended_member_ids=frozenset(attended_ids),
        absent_member_ids=frozenset(absent_ids),
        attended_constituencies=tuple(attended_names),
        absent_constituencies=tuple(absent_names),
        unresolved_constituencies=unresolved,
    )


__all__ = [
    "ABSENT_SECTION",
    "PRESENT_SECTION",
    "RosterSection",
    "collect_constituencies",
    "extract_attendance",
    "section_window",
]
