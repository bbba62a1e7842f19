"""Renderers turning records into condensed text.

A renderer is a pure function of the records and the configured listing
limits. The controller adds tier markers and exit-code lines around it.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Sequence

from tokentrim.aggregate import by_code, by_file, dedupe, group_by, normalize_message
from tokentrim.config import EngineConfig
from tokentrim.extractors.base import pluralize
from tokentrim.models import Record, RecordKind, Strategy
from tokentrim.tools.base import GroupMode, RendererKind, ToolProfile, ToolRegistry

# Sentinels and markers shared with the controller
NO_OUTPUT = "(no output)"
NO_FINDINGS = "(no findings)"
DEGRADED_MARKER = "[degraded parse: results may be incomplete]"

# Line numbers listed per grouped entry
_MAX_LINES_PER_ENTRY = 5


class Renderer(ABC):
    """Condenses records into text."""

    @abstractmethod
    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render records; an empty string means there was nothing to show."""
        ...


def _more(hidden: int, noun: str = "more") -> str:
    return f"... +{hidden} {noun}"


# =============================================================================
# TEST RUNNERS
# =============================================================================

# Canonical order of the counts line
COUNT_LABELS = (
    "passed",
    "failed",
    "errors",
    "skipped",
    "xfailed",
    "xpassed",
    "deselected",
    "warnings",
    "ignored",
)
_SINGULAR = {"errors": "error", "warnings": "warning"}
_PLURAL = {v: k for k, v in _SINGULAR.items()}
_COUNT = re.compile(r"(\d+) (\w+)")


def summary_counts(records: Sequence[Record]) -> Counter[str]:
    """Collect test counts from SUMMARY records.

    Runners without a counts line (``go test -json``) get counts derived
    from the records themselves: failures, plus INFO records coded
    ``pass``/``skip``.
    """
    counts: Counter[str] = Counter()
    for record in records:
        if record.kind is not RecordKind.SUMMARY:
            continue
        for number, word in _COUNT.findall(record.message):
            label = _PLURAL.get(word.lower(), word.lower())
            if label in COUNT_LABELS:
                counts[label] += int(number)

    if not counts:
        for record in records:
            if record.kind is RecordKind.ERROR:
                counts["failed"] += 1
            elif record.code == "pass":
                counts["passed"] += 1
            elif record.code == "skip":
                counts["skipped"] += 1
    return counts


def format_counts(counts: Counter[str]) -> str:
    """Format counts as ``8 passed, 2 failed`` (zero counts omitted)."""
    parts = []
    for label in COUNT_LABELS:
        if number := counts.get(label, 0):
            parts.append(f"{number} {_SINGULAR.get(label, label) if number == 1 else label}")
    return ", ".join(parts)


class TestFailuresRenderer(Renderer):
    """Failing tests with their first detail lines, then the counts line."""

    __test__ = False  # not a pytest test class

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render failures and counts."""
        failures = [r for r in records if r.kind is RecordKind.ERROR]
        # Assertion output attached to its test by name (go test)
        notes = group_by(
            (r for r in records if r.code == "output" and r.details),
            lambda r: r.details[0],
        )

        lines: list[str] = []
        for failure in failures:
            head = f"FAIL {failure.message}"
            if failure.location is not None:
                head += f" [{failure.location}]"
            lines.append(head)
            details = [d for d in failure.details if d != failure.message]
            notes_for = [f"{n.location}: {n.message}" for n in notes.get(failure.message, [])]
            shown = (details + notes_for)[: config.max_details]
            lines.extend(f"    {d}" for d in shown)
            if hidden := len(details) + len(notes_for) - len(shown):
                lines.append(f"    {_more(hidden, 'lines')}")

        if summary := format_counts(summary_counts(records)):
            lines.append(summary)
        return "\n".join(lines)


# =============================================================================
# LINTERS
# =============================================================================


class GroupedByFileRenderer(Renderer):
    """Diagnostics grouped by file, files in order of first appearance."""

    def __init__(self, group_mode: GroupMode = GroupMode.FILE) -> None:
        """Initialize with the grouping key."""
        self.group_mode = group_mode

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render a totals line and one block per file."""
        diagnostics = [r for r in records if r.kind is not RecordKind.SUMMARY]
        if not diagnostics:
            return "no issues found"

        files = group_by(diagnostics, by_file)
        kinds = Counter(r.kind for r in diagnostics)
        totals = (
            f"{pluralize(kinds[RecordKind.ERROR], 'error')}, "
            f"{pluralize(kinds[RecordKind.WARNING], 'warning')}"
        )
        if kinds[RecordKind.INFO]:
            totals += f", {pluralize(kinds[RecordKind.INFO], 'note')}"
        lines = [f"{totals} in {pluralize(len(files), 'file')}"]

        for (file,), in_file in list(files.items())[: config.max_groups]:
            lines.append(f"{file or '<no file>'} ({len(in_file)})")
            entries = self._entries(in_file)
            lines.extend(f"  {entry}" for entry in entries[: config.max_per_group])
            if len(entries) > config.max_per_group:
                lines.append(f"  {_more(len(entries) - config.max_per_group)}")

        if len(files) > config.max_groups:
            lines.append(_more(len(files) - config.max_groups, "more files"))
        return "\n".join(lines)

    def _entries(self, records: list[Record]) -> list[str]:
        if self.group_mode is GroupMode.FILE_AND_CODE:
            groups = group_by(records, by_code)
            return [_entry(same, code) for code, same in groups.items()]
        by_message = group_by(records, lambda r: (r.kind, normalize_message(r.message)))
        return [_entry(same, None) for same in by_message.values()]


def _entry(records: list[Record], code: str | None) -> str:
    first = records[0]
    lines = [str(r.location.line) for r in records if r.location and r.location.line is not None]
    where = ", ".join(dict.fromkeys(lines[:_MAX_LINES_PER_ENTRY]))
    if len(lines) > _MAX_LINES_PER_ENTRY:
        where += ", ..."
    text = f"{where}: " if where else ""
    if code:
        text += f"[{code}] "
    text += normalize_message(first.message)
    if len(records) > 1:
        text += f" (x{len(records)})"
    return text


# =============================================================================
# ENTITIES
# =============================================================================


class EntityRenderer(Renderer):
    """One line per entity (commits, containers, services), capped.

    SUMMARY records (table headers) are not entities and are not shown.
    """

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render one line per entity record."""
        entities = [r for r in records if r.kind is not RecordKind.SUMMARY]
        lines = [f"{r.code} {r.message}" if r.code else r.message for r in entities[: config.max_entities]]
        if len(entities) > config.max_entities:
            lines.append(_more(len(entities) - config.max_entities))
        return "\n".join(lines)


class ByCodeRenderer(Renderer):
    """Records grouped by code label with counts; SUMMARY records first."""

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render summaries, then one block per code label."""
        lines = [r.message for r in records if r.kind is RecordKind.SUMMARY]
        entries = [r for r in records if r.kind is not RecordKind.SUMMARY]
        if not entries:
            lines.append("no changes")
            return "\n".join(lines)

        for code, same in group_by(entries, by_code).items():
            lines.append(f"{code or 'other'}: {len(same)}")
            lines.extend(f"  {r.message}" for r in same[: config.max_per_group])
            if len(same) > config.max_per_group:
                lines.append(f"  {_more(len(same) - config.max_per_group)}")
        return "\n".join(lines)


# =============================================================================
# DIFFS
# =============================================================================


def split_hunks(details: Sequence[str]) -> tuple[list[str], list[list[str]]]:
    """Split a file's diff lines into notes and hunks.

    Notes (``new file``, ``Binary files ... differ``) come before the first
    ``@@`` header; each hunk is its header followed by its changed lines.
    """
    notes: list[str] = []
    hunks: list[list[str]] = []
    for detail in details:
        if detail.startswith("@@"):
            hunks.append([detail])
        elif hunks:
            hunks[-1].append(detail)
        else:
            notes.append(detail)
    return notes, hunks


def diff_stat(hunks: Sequence[Sequence[str]]) -> tuple[int, int]:
    """Count added and removed lines."""
    changes = [line for hunk in hunks for line in hunk[1:]]
    return sum(1 for c in changes if c.startswith("+")), sum(1 for c in changes if c.startswith("-"))


class DiffRenderer(Renderer):
    """Changed files with ``+N -M`` counts and their hunks, each hunk capped."""

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render a totals line and one block per file."""
        files = [(r, *split_hunks(r.details)) for r in records if r.kind is not RecordKind.SUMMARY]
        if not files:
            return ""
        stats = [diff_stat(hunks) for _, _, hunks in files]
        added = sum(a for a, _ in stats)
        removed = sum(r for _, r in stats)
        lines = [f"{pluralize(len(files), 'file')} changed, +{added} -{removed}"]

        for (record, notes, hunks), (plus, minus) in list(zip(files, stats))[: config.max_groups]:
            lines.append(f"{record.message} +{plus} -{minus}")
            lines.extend(f"  {note}" for note in notes)
            for header, *body in hunks[: config.max_per_group]:
                lines.append(f"  {header}")
                lines.extend(f"  {change}" for change in body[: config.max_hunk_lines])
                if len(body) > config.max_hunk_lines:
                    lines.append(f"  {_more(len(body) - config.max_hunk_lines, 'more lines')}")
            if len(hunks) > config.max_per_group:
                lines.append(f"  {_more(len(hunks) - config.max_per_group, 'more hunks')}")

        if len(files) > config.max_groups:
            lines.append(_more(len(files) - config.max_groups, "more files"))
        return "\n".join(lines)


# =============================================================================
# LOGS
# =============================================================================


class DedupedRenderer(Renderer):
    """Repeated lines collapsed with ``(xN)`` counts.

    Errors and warnings are always listed; other lines are capped.
    """

    def render(self, records: Sequence[Record], config: EngineConfig) -> str:
        """Render a tally line and the collapsed entries."""
        deduped = dedupe(records)
        tally: Counter[RecordKind] = Counter()
        for record, count in deduped:
            tally[record.kind] += count

        lines = [
            f"{pluralize(len(records), 'line')} ({len(deduped)} unique): "
            f"{pluralize(tally[RecordKind.ERROR], 'error')}, "
            f"{pluralize(tally[RecordKind.WARNING], 'warning')}"
        ]
        shown = hidden = 0
        for record, count in deduped:
            important = record.kind in (RecordKind.ERROR, RecordKind.WARNING)
            if not important and shown >= config.max_entities:
                hidden += 1
                continue
            if not important:
                shown += 1
            suffix = f" (x{count})" if count > 1 else ""
            lines.append(f"{normalize_message(record.message)}{suffix}")
        if hidden:
            lines.append(_more(hidden, "more unique lines"))
        return "\n".join(lines)


# =============================================================================
# SELECTION
# =============================================================================


def renderer_for(profile: ToolProfile) -> Renderer:
    """Build the renderer a profile asks for."""
    kind = profile.renderer
    if kind is RendererKind.TEST_FAILURES:
        return TestFailuresRenderer()
    if kind is RendererKind.GROUPED_BY_FILE:
        return GroupedByFileRenderer(profile.group_mode)
    if kind is RendererKind.ENTITY:
        return EntityRenderer()
    if kind is RendererKind.BY_CODE:
        return ByCodeRenderer()
    if kind is RendererKind.DIFF:
        return DiffRenderer()
    return DedupedRenderer()


def select_renderer(strategy: Strategy | None, tool_id: str, registry: ToolRegistry) -> Renderer:
    """Pick the renderer for a tool.

    Args:
        strategy: Strategy the caller expects, or None for the bound one.
        tool_id: Originating tool identity.
        registry: Tool registry.

    Returns:
        The renderer of the tool's profile (or of the generic profile).
    """
    return renderer_for(registry.resolve(tool_id, strategy))
