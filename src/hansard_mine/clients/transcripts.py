"""Access to transcript files on disk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional
import logging

from ..core.types import TranscriptDocument

LOGGER = logging.getLogger(__name__)

TextExtractor = Callable[[Path], str]


class TranscriptExtractionError(RuntimeError):
    """Raised when the text of a transcript cannot be obtained."""


@dataclass(frozen=True, slots=True)
class TranscriptRef:
    """A transcript that has been found but not read yet."""

    filename: str
    path: Path


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf8")


class TranscriptDirectory:
    """Transcript source backed by a directory of extracted text files.

    ``extractor`` turns a file into text. The default reads UTF-8 text; other
    formats (such as PDFs) are handled by passing an external extractor.
    """

    def __init__(
        self,
        root: Path,
        *,
        pattern: str = "DR-*.txt",
        extractor: Optional[TextExtractor] = None,
    ) -> None:
        self._root = root
        self._pattern = pattern
        self._extractor = extractor or read_text

    def iter_transcripts(self) -> Iterator[TranscriptRef]:
        if not self._root.is_dir():
            raise TranscriptExtractionError(f"Transcript directory {self._root} does not exist")
        for path in sorted(self._root.glob(self._pattern)):
            if path.is_file():
                yield TranscriptRef(filename=path.name, path=path)

    def fetch_transcript(self, ref: TranscriptRef) -> TranscriptDocument:
        try:
            text = self._extractor(ref.path)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise TranscriptExtractionError(f"Could not extract text from {ref.filename}: {exc}") from exc
        if not text or not text.strip():
            raise TranscriptExtractionError(f"Transcript {ref.filename} is empty")
        LOGGER.debug("Extracted %s characters from %s", len(text), ref.filename)
        return TranscriptDocument(text=text, filename=ref.filename)


class TranscriptFiles(TranscriptDirectory):
    """Transcript source for an explicit list of files."""

    def __init__(self, paths: list[Path], *, extractor: Optional[TextExtractor] = None) -> None:
        super().__init__(Path("."), extractor=extractor)
        self._paths = list(paths)

    def iter_transcripts(self) -> Iterator[TranscriptRef]:
        for path in self._paths:
            yield TranscriptRef(filename=path.name, path=path)


__all__ = [
    "TextExtractor",
    "TranscriptDirectory",
    "TranscriptExtractionError",
    "TranscriptFiles",
    "TranscriptRef",
]
