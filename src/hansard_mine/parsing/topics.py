"""Best-effort topic labels for a transcript."""

from __future__ import annotations

from typing import List, Sequence
import re

from .attendance import RosterSection, section_window

MAX_TOPICS = 10

CONTENTS_SECTION = RosterSection(headers=("KANDUNGAN",), terminators=("KEHADIRAN", "DR."))
TOPIC_KEYWORDS: Sequence[str] = (
    "Supply Bill",
    "Development Budget",
    "Question Time",
    "Motion",
    "Adjournment",
    "Committee Stage",
)

_HEADING = re.compile(r"^[ \t]*(?P<heading>[A-Z][A-Z \t'\-]*[A-Z])[ \t]*:?[ \t]*$", re.MULTILINE)


def extract_topics(text: str, *, max_topics: int = MAX_TOPICS) -> List[str]:
    topics: List[str] = []
    contents = section_window(text, CONTENTS_SECTION)
    if contents:
        for match in _HEADING.finditer(contents):
            heading = " ".join(match.group("heading").split())
            if len(heading) > 3 and heading not in topics:
                topics.append(heading)

    lowered = text.lower()
    for keyword in TOPIC_KEYWORDS:
        if keyword.lower() in lowered and keyword not in topics:
            topics.append(keyword)
    return topics[:max_topics]


__all__ = ["CONTENTS_SECTION", "MAX_TOPICS", "TOPIC_KEYWORDS", "extract_topics"]
