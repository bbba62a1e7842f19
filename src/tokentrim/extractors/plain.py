"""Line-per-record extraction for plain logs."""

from __future__ import annotations

import re

from tokentrim.aggregate import strip_ansi
from tokentrim.extractors.base import Extracted, Extraction, Extractor, ExtractMode
from tokentrim.models import Record, RecordKind

# Leading timestamps: ISO 8601, syslog ("Jan  2 15:04:05") and bare clock times
_TIMESTAMP = re.compile(
    r"^\s*\[?(?:"
    r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d+)?(?:Z|[+-]\d{2}:?\d{2})?"
    r"|[A-Z][a-z]{2} [ \d]\d \d{2}:\d{2}:\d{2}"
    r"|\d{2}:\d{2}:\d{2}(?:[.,]\d+)?"
    r")\]?\s*"
)
_ERROR_WORDS = re.compile(r"\b(?:error|err|fatal|critical|panic|exception|traceback)\b", re.IGNORECASE)
_WARNING_WORDS = re.compile(r"\b(?:warn|warning|deprecated)\b", re.IGNORECASE)


def classify_line(message: str) -> RecordKind:
    """Guess the record kind of a log line from its level keywords."""
    if _ERROR_WORDS.search(message):
        return RecordKind.ERROR
    if _WARNING_WORDS.search(message):
        return RecordKind.WARNING
    return RecordKind.INFO


class PlainExtractor(Extractor):
    """Turns every non-blank line into a record.

    A leading timestamp is dropped from the message (the full line stays in
    ``raw_line``) so the same event logged at different times deduplicates.
    Both modes behave the same: plain text cannot be malformed.
    """

    def extract(self, text: str, mode: ExtractMode) -> Extraction:  # noqa: ARG002
        """Extract one record per non-blank line."""
        records: list[Record] = []
        for raw_line in text.splitlines():
            line = strip_ansi(raw_line).rstrip()
            if not line.strip():
                continue
            message = _TIMESTAMP.sub("", line, count=1) or line
            records.append(Record(kind=classify_line(message), message=message, raw_line=line))
        return Extracted(records=tuple(records))
