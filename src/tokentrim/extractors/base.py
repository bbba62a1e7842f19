"""Common extractor interface.

An extraction attempt returns a value, never raises: either the records it
found or the ``ParseError`` explaining why it gave up.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from tokentrim.errors import ParseError
from tokentrim.models import Record, RecordKind


class ExtractMode(str, Enum):
    """How forgiving an extraction attempt is."""

    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class Extracted:
    """Records found by an extractor."""

    records: tuple[Record, ...]
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractionFailed:
    """Extraction gave up."""

    error: ParseError


Extraction = Extracted | ExtractionFailed


class Extractor(ABC):
    """Turns tool output text into records."""

    @abstractmethod
    def extract(self, text: str, mode: ExtractMode) -> Extraction:
        """Extract records from ``text``.

        Args:
            text: Decoded tool output.
            mode: STRICT treats any malformed input as failure; LENIENT keeps
                whatever can be recovered.

        Returns:
            ``Extracted`` or ``ExtractionFailed``.
        """
        ...


# Severity words found in tool output, mapped to record kinds
SEVERITY_KINDS: dict[str, RecordKind] = {
    "error": RecordKind.ERROR,
    "fatal": RecordKind.ERROR,
    "critical": RecordKind.ERROR,
    "failure": RecordKind.ERROR,
    "warning": RecordKind.WARNING,
    "warn": RecordKind.WARNING,
    "note": RecordKind.INFO,
    "info": RecordKind.INFO,
    "hint": RecordKind.INFO,
}


def pluralize(count: int, word: str, plural: str | None = None) -> str:
    """Format ``count word`` with a naive English plural."""
    return f"{count} {word if count == 1 else (plural or word + 's')}"
