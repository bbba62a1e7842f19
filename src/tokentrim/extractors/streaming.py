"""Extraction of newline-delimited JSON event streams."""

from __future__ import annotations

import re

from tokentrim.errors import ErrorKind, ParseError
from tokentrim.extractors.base import (
    Extracted,
    ExtractionFailed,
    Extraction,
    Extractor,
    ExtractMode,
    pluralize,
)
from tokentrim.extractors.pattern import PatternExtractor
from tokentrim.models import Record
from tokentrim.parsing.registry import EventRegistry, ParsedEvent, UnparsedLine


class StreamingExtractor(Extractor):
    """Parses one self-describing JSON event per line.

    Event types are told apart by the registry's matchers; each schema's
    converter decides whether an event becomes a record.
    """

    def __init__(
        self,
        events: EventRegistry,
        *,
        fallback: PatternExtractor | None = None,
        ignore: re.Pattern[str] | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            events: Registry of event schemas and converters.
            fallback: Templates offered non-JSON lines in lenient mode.
            ignore: Known non-event lines (run summaries) skipped in both modes.
        """
        self.events = events
        self.fallback = fallback
        self.ignore = ignore

    def extract(self, text: str, mode: ExtractMode) -> Extraction:
        """Extract records from every event line.

        In strict mode the first bad line fails the whole extraction. In
        lenient mode bad lines are skipped and counted.
        """
        records: list[Record] = []
        skipped = 0

        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip() or (self.ignore is not None and self.ignore.match(line)):
                continue

            result = self.events.decode_line(line)
            if isinstance(result, ParsedEvent):
                if result.record is not None:
                    records.append(result.record)
                continue

            if mode is ExtractMode.STRICT:
                return ExtractionFailed(
                    ParseError(ErrorKind.MALFORMED_STREAMING_LINE, result.describe(), number)
                )

            if self.fallback is not None and isinstance(result, UnparsedLine):
                if record := self.fallback.match_line(line, ExtractMode.LENIENT):
                    records.append(record)
                    continue
            skipped += 1

        warnings = (f"{pluralize(skipped, 'line')} skipped",) if skipped else ()
        return Extracted(records=tuple(records), warnings=warnings)
