"""Regex template extraction for free-form text output."""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass

from tokentrim.aggregate import strip_ansi
from tokentrim.errors import ErrorKind, ParseError
from tokentrim.extractors.base import (
    SEVERITY_KINDS,
    Extracted,
    ExtractionFailed,
    Extraction,
    Extractor,
    ExtractMode,
    pluralize,
)
from tokentrim.models import Location, Record, RecordKind

# Prefixes that CI runners and log multiplexers put in front of tool output:
# "[build] ", "12:01:02.123 ", "web_1  | "
_NOISE_PREFIX = re.compile(r"^\s*(?:\[[^\]]*\]\s*|\d{2}:\d{2}:\d{2}\S*\s+|[\w.-]+\s+\|\s*)+")


@dataclass(frozen=True)
class PatternTemplate:
    """One regex template producing records of one kind.

    Recognized named groups: ``file``, ``line``, ``column``, ``code``,
    ``message``, ``severity`` (overrides ``kind``) and ``key``.
    Table rows build their message from several columns with
    ``message_format``, e.g. ``"{name} {status}"``; groups that did not
    participate format as empty strings.
    """

    kind: RecordKind
    regex: re.Pattern[str]
    code: str | None = None  # fixed code label when the regex has no code group
    message_format: str | None = None

    @classmethod
    def compile(
        cls,
        kind: RecordKind,
        pattern: str,
        *,
        code: str | None = None,
        message_format: str | None = None,
        flags: int = 0,
    ) -> PatternTemplate:
        """Build a template from a regex source string."""
        return cls(kind=kind, regex=re.compile(pattern, flags), code=code, message_format=message_format)

    def to_record(self, match: re.Match[str], raw_line: str) -> Record:
        """Build a record from a successful match."""
        groups = {k: v for k, v in match.groupdict().items() if v is not None}
        kind = self.kind
        if severity := groups.get("severity"):
            kind = SEVERITY_KINDS.get(severity.lower(), kind)

        location = None
        if file := groups.get("file"):
            location = Location(file=file, line=groups.get("line"), column=groups.get("column"))

        if self.message_format is not None:
            message = " ".join(self.message_format.format_map(defaultdict(str, groups)).split())
        else:
            message = groups.get("message")
        if not message:
            # A template without a message group describes a file (git status)
            has_message = "message" in self.regex.groupindex
            if has_message:
                message = groups.get("code") or match.group(0)
            else:
                message = groups.get("file") or match.group(0)
        return Record(
            kind=kind,
            location=location,
            code=groups.get("code", self.code),
            message=message.strip(),
            raw_line=raw_line,
        )


class PatternExtractor(Extractor):
    """Applies ordered templates line by line; the first matching template wins.

    Lines no template matches are context, not records.
    """

    def __init__(self, templates: tuple[PatternTemplate, ...] | list[PatternTemplate]) -> None:
        """Initialize with templates in priority order."""
        self.templates = tuple(templates)

    def match_line(self, line: str, mode: ExtractMode = ExtractMode.STRICT) -> Record | None:
        """Return the record for one line, or None if no template matches.

        Strict mode matches the ANSI-stripped line from its first character.
        Lenient mode also retries after stripping runner prefixes.
        """
        clean = strip_ansi(line).rstrip()
        if not clean.strip():
            return None
        candidates = [clean]
        if mode is ExtractMode.LENIENT:
            unprefixed = _NOISE_PREFIX.sub("", clean, count=1)
            for candidate in (clean.strip(), unprefixed):
                if candidate and candidate not in candidates:
                    candidates.append(candidate)

        for template in self.templates:
            for candidate in candidates:
                if match := template.regex.match(candidate):
                    return template.to_record(match, clean)
        return None

    def extract(self, text: str, mode: ExtractMode) -> Extraction:
        """Extract one record per matching line."""
        records: list[Record] = []
        lines = 0
        for line in text.splitlines():
            if not line.strip():
                continue
            lines += 1
            if record := self.match_line(line, mode):
                records.append(record)

        if mode is ExtractMode.STRICT and lines and not records:
            return ExtractionFailed(
                ParseError(
                    ErrorKind.NO_PATTERN_MATCH,
                    f"none of {pluralize(len(self.templates), 'template')} matched "
                    f"{pluralize(lines, 'line')}",
                )
            )
        return Extracted(records=tuple(records))
