"""State-machine extraction for multi-phase text output (test runners).

A ``PhaseTable`` names the phases of a tool's output and lists the rules
that apply in each. Each line is checked against the rules for the current
phase (plus the rules marked ``"*"``, which apply everywhere), in
declaration order. The first rule that matches may emit a record, attach
the line to the last record, annotate the last record's location, and move
the machine to another phase. A line no rule matches is context: the
machine stays where it is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from tokentrim.aggregate import strip_ansi
from tokentrim.errors import ErrorKind, ParseError, ProfileConfigError
from tokentrim.extractors.base import Extracted, ExtractionFailed, Extraction, Extractor, ExtractMode
from tokentrim.models import Location, Record, RecordKind

ANY_PHASE = "*"

# Default number of detail lines kept per record; renderers show fewer
MAX_CAPTURED_DETAILS = 20


class PhaseAction(str, Enum):
    """What a matching rule does with its line."""

    EMIT = "emit"  # new record (or merge into the record with the same key)
    ATTACH = "attach"  # append the line to the last record's details
    ANNOTATE = "annotate"  # fill in the last record's missing location/code, keep its message as detail
    NONE = "none"  # transition only


@dataclass(frozen=True)
class PhaseRule:
    """A transition rule keyed on a line-prefix predicate."""

    phase: str
    prefix: str = ""
    pattern: re.Pattern[str] | None = None
    action: PhaseAction = PhaseAction.NONE
    kind: RecordKind = RecordKind.ERROR
    goto: str | None = None

    def match(self, phase: str, line: str) -> re.Match[str] | None:
        """Return the match object if this rule applies to ``line`` in ``phase``."""
        if self.phase != ANY_PHASE and self.phase != phase:
            return None
        if not line.startswith(self.prefix):
            return None
        if self.pattern is None:
            return re.match(r".*", line)
        return self.pattern.match(line)


@dataclass(frozen=True)
class PhaseTable:
    """Named phases and their ordered transition rules."""

    phases: tuple[str, ...]
    initial: str
    terminal: frozenset[str]
    rules: tuple[PhaseRule, ...] = field(default_factory=tuple)
    max_details: int | None = MAX_CAPTURED_DETAILS  # None keeps every attached line (diff hunks)

    def __post_init__(self) -> None:
        """Reject tables that reference unknown phases."""
        known = set(self.phases)
        if self.initial not in known:
            raise ProfileConfigError(f"initial phase '{self.initial}' is not declared")
        if not self.terminal <= known:
            raise ProfileConfigError(f"unknown terminal phases: {sorted(self.terminal - known)}")
        for rule in self.rules:
            if rule.phase != ANY_PHASE and rule.phase not in known:
                raise ProfileConfigError(f"rule references unknown phase '{rule.phase}'")
            if rule.goto is not None and rule.goto not in known:
                raise ProfileConfigError(f"rule jumps to unknown phase '{rule.goto}'")
            if not rule.prefix and rule.pattern is None:
                raise ProfileConfigError("rule needs a prefix or a pattern")
        if self.max_details is not None and self.max_details < 0:
            raise ProfileConfigError(f"max_details must not be negative, got {self.max_details}")

    def find_rule(self, phase: str, line: str) -> tuple[PhaseRule, re.Match[str]] | None:
        """Return the first rule matching ``line`` in ``phase``."""
        for rule in self.rules:
            if (match := rule.match(phase, line)) is not None:
                return rule, match
        return None


def normalize_key(key: str) -> str:
    """Reduce a test identifier to a form shared by all phases.

    ``tests/test_a.py::TestX::test_b`` and ``TestX.test_b`` both become
    ``TestX.test_b``; ``tests::parse`` becomes ``tests.parse``.
    """
    head, sep, rest = key.partition("::")
    if sep and ("/" in head or "." in head):
        key = rest
    return key.replace("::", ".").strip()


def _merge(existing: Record, new: Record, limit: int | None) -> Record:
    return existing.model_copy(
        update={
            "message": new.message,
            "location": existing.location or new.location,
            "code": new.code or existing.code,
            "details": (existing.details + new.details)[:limit],
        }
    )


def _record_from_match(rule: PhaseRule, match: re.Match[str], line: str) -> Record:
    groups = {k: v for k, v in match.groupdict().items() if v is not None}
    location = None
    if file := groups.get("file"):
        location = Location(file=file, line=groups.get("line"), column=groups.get("column"))
    message = groups.get("message") or groups.get("key") or line.strip()
    return Record(
        kind=rule.kind,
        location=location,
        code=groups.get("code"),
        message=message.strip(),
        raw_line=line,
    )


class PhasedExtractor(Extractor):
    """Runs a ``PhaseTable`` over the output lines.

    Unexpected lines never fail the extraction. Strict mode only fails when
    the output ends outside a terminal phase (e.g. the run was cut short
    before its summary).
    """

    def __init__(self, table: PhaseTable) -> None:
        """Initialize with the tool's phase table."""
        self.table = table

    def extract(self, text: str, mode: ExtractMode) -> Extraction:
        """Walk the lines through the state machine."""
        phase = self.table.initial
        limit = self.table.max_details
        records: list[Record] = []
        by_key: dict[str, int] = {}
        last: int | None = None

        for raw_line in text.splitlines():
            line = strip_ansi(raw_line).rstrip()
            if not line.strip():
                continue
            found = self.table.find_rule(phase, line)
            if found is None:
                continue
            rule, match = found

            if rule.action is PhaseAction.EMIT:
                record = _record_from_match(rule, match, line)
                key = match.groupdict().get("key")
                norm = normalize_key(key) if key else None
                if norm is not None and norm in by_key:
                    last = by_key[norm]
                    records[last] = _merge(records[last], record, limit)
                else:
                    records.append(record)
                    last = len(records) - 1
                    if norm is not None:
                        by_key[norm] = last
            elif rule.action is PhaseAction.ATTACH and last is not None:
                current = records[last]
                if limit is None or len(current.details) < limit:
                    detail = (match.groupdict().get("message") or line).strip()
                    records[last] = current.model_copy(update={"details": (*current.details, detail)})
            elif rule.action is PhaseAction.ANNOTATE and last is not None:
                current = records[last]
                annotation = _record_from_match(rule, match, line)
                details = current.details
                if match.groupdict().get("message") and (limit is None or len(details) < limit):
                    details = (*details, annotation.message)
                records[last] = current.model_copy(
                    update={
                        "location": current.location or annotation.location,
                        "code": current.code or annotation.code,
                        "details": details,
                    }
                )

            if rule.goto is not None:
                phase = rule.goto

        if mode is ExtractMode.STRICT and phase not in self.table.terminal:
            return ExtractionFailed(
                ParseError(
                    ErrorKind.UNEXPECTED_PHASE_TRANSITION,
                    f"output ended in phase '{phase}', expected one of: "
                    f"{', '.join(sorted(self.table.terminal))}",
                )
            )
        return Extracted(records=tuple(records))
