"""Tests for the renderers."""

from __future__ import annotations

from collections import Counter

from tokentrim.config import EngineConfig
from tokentrim.models import Location, Record, RecordKind, Strategy
from tokentrim.render import (
    ByCodeRenderer,
    DedupedRenderer,
    DiffRenderer,
    EntityRenderer,
    GroupedByFileRenderer,
    TestFailuresRenderer,
    format_counts,
    renderer_for,
    select_renderer,
    split_hunks,
    summary_counts,
)
from tokentrim.tools import GroupMode, ToolRegistry
from tokentrim.tools.pytest_tool import pytest_profile


def _diag(
    file: str, line: int, code: str, message: str = "msg", kind: RecordKind = RecordKind.ERROR
) -> Record:
    return Record(kind=kind, message=message, code=code, location=Location(file=file, line=line))


class TestCounts:
    """Tests for the counts line."""

    def test_from_summary_record(self) -> None:
        """Test counts parsed from a runner's summary line."""
        records = [Record(kind=RecordKind.SUMMARY, message="2 failed, 8 passed, 1 warning in 0.12s")]
        counts = summary_counts(records)
        assert counts == Counter({"passed": 8, "failed": 2, "warnings": 1})
        assert format_counts(counts) == "8 passed, 2 failed, 1 warning"

    def test_derived_without_summary(self) -> None:
        """Test counts derived from failures and pass/skip records."""
        records = [
            Record(kind=RecordKind.ERROR, message="TestA", code="fail"),
            Record(kind=RecordKind.INFO, message="TestB", code="pass"),
            Record(kind=RecordKind.INFO, message="TestC", code="pass"),
        ]
        assert format_counts(summary_counts(records)) == "2 passed, 1 failed"

    def test_singular_forms(self) -> None:
        """Test singular and plural labels."""
        assert format_counts(Counter({"errors": 1, "warnings": 2})) == "1 error, 2 warnings"
        assert format_counts(Counter({"errors": 0})) == ""


class TestTestFailuresRenderer:
    """Tests for the test failure renderer."""

    def test_details_capped(self) -> None:
        """Test that only the first detail lines are shown."""
        failure = Record(
            kind=RecordKind.ERROR,
            message="test_a",
            location=Location(file="t.py", line=3),
            details=("one", "two", "three"),
        )
        summary = Record(kind=RecordKind.SUMMARY, message="1 failed in 0.01s")
        rendered = TestFailuresRenderer().render([failure, summary], EngineConfig(max_details=1))
        assert rendered.splitlines() == ["FAIL test_a [t.py:3]", "    one", "    ... +2 lines", "1 failed"]

    def test_passing_run(self) -> None:
        """Test that a passing run renders only its counts."""
        summary = Record(kind=RecordKind.SUMMARY, message="12 passed in 0.30s")
        assert TestFailuresRenderer().render([summary], EngineConfig()) == "12 passed"


class TestGroupedByFileRenderer:
    """Tests for the grouped-by-file renderer."""

    def test_file_and_code_groups(self) -> None:
        """Test that repeated codes in one file collapse with their lines."""
        records = [_diag("file.py", 10, "E1"), _diag("file.py", 20, "E1")]
        rendered = GroupedByFileRenderer(GroupMode.FILE_AND_CODE).render(records, EngineConfig())
        assert rendered.splitlines() == [
            "2 errors, 0 warnings in 1 file",
            "file.py (2)",
            "  10, 20: [E1] msg (x2)",
        ]

    def test_group_by_message(self) -> None:
        """Test grouping by file only."""
        records = [
            _diag("a.py", 1, "W1", "unused", RecordKind.WARNING),
            _diag("a.py", 2, "W1", "unused", RecordKind.WARNING),
            _diag("a.py", 3, "N1", "see here", RecordKind.INFO),
        ]
        rendered = GroupedByFileRenderer().render(records, EngineConfig())
        assert rendered.splitlines() == [
            "0 errors, 2 warnings, 1 note in 1 file",
            "a.py (3)",
            "  1, 2: unused (x2)",
            "  3: see here",
        ]

    def test_limits(self) -> None:
        """Test the per-file and file count limits."""
        records = [_diag("a.py", 1, "E1"), _diag("a.py", 2, "E2"), _diag("b.py", 1, "E1")]
        config = EngineConfig(max_groups=1, max_per_group=1)
        rendered = GroupedByFileRenderer(GroupMode.FILE_AND_CODE).render(records, config)
        assert rendered.splitlines() == [
            "3 errors, 0 warnings in 2 files",
            "a.py (2)",
            "  1: [E1] msg",
            "  ... +1 more",
            "... +1 more files",
        ]

    def test_no_diagnostics(self) -> None:
        """Test a clean run."""
        summary = Record(kind=RecordKind.SUMMARY, message="0 errors")
        assert GroupedByFileRenderer().render([summary], EngineConfig()) == "no issues found"


class TestOtherRenderers:
    """Tests for the entity, by-code and deduped renderers."""

    def test_entity_cap(self) -> None:
        """Test the one-line-per-entity cap."""
        records = [Record(kind=RecordKind.INFO, code=f"c{i}", message=f"commit {i}") for i in range(3)]
        rendered = EntityRenderer().render(records, EngineConfig(max_entities=2))
        assert rendered.splitlines() == ["c0 commit 0", "c1 commit 1", "... +1 more"]

    def test_entity_skips_table_headers(self) -> None:
        """Test that SUMMARY records are neither shown nor counted against the cap."""
        records = [
            Record(kind=RecordKind.SUMMARY, message="NAME TYPE CLUSTER-IP"),
            Record(kind=RecordKind.INFO, message="web ClusterIP 10.0.0.1 80/TCP"),
            Record(kind=RecordKind.ERROR, message="api Exited (1)"),
        ]
        rendered = EntityRenderer().render(records, EngineConfig(max_entities=2))
        assert rendered.splitlines() == ["web ClusterIP 10.0.0.1 80/TCP", "api Exited (1)"]

    def test_by_code(self) -> None:
        """Test grouping by code label."""
        records = [
            Record(kind=RecordKind.INFO, code="staged", message="a.py"),
            Record(kind=RecordKind.INFO, code="untracked", message="b.py"),
            Record(kind=RecordKind.INFO, code="staged", message="c.py"),
        ]
        rendered = ByCodeRenderer().render(records, EngineConfig())
        assert rendered.splitlines() == ["staged: 2", "  a.py", "  c.py", "untracked: 1", "  b.py"]

    def test_deduped_keeps_errors(self) -> None:
        """Test that errors are listed even past the entry cap."""
        records = [
            Record(kind=RecordKind.INFO, message="a"),
            Record(kind=RecordKind.INFO, message="b"),
            Record(kind=RecordKind.INFO, message="a"),
            Record(kind=RecordKind.INFO, message="c"),
            Record(kind=RecordKind.ERROR, message="boom"),
        ]
        rendered = DedupedRenderer().render(records, EngineConfig(max_entities=1))
        assert rendered.splitlines() == [
            "5 lines (4 unique): 1 error, 0 warnings",
            "a (x2)",
            "boom",
            "... +2 more unique lines",
        ]


def _file(path: str, *details: str) -> Record:
    return Record(kind=RecordKind.INFO, message=path, location=Location(file=path), details=details)


class TestDiffRenderer:
    """Tests for the diff renderer."""

    def test_split_hunks(self) -> None:
        """Test that notes precede the first hunk header."""
        notes, hunks = split_hunks(["new file", "@@ -0,0 +1 @@", "+a", "@@ -5 +6 @@", "-b"])
        assert notes == ["new file"]
        assert hunks == [["@@ -0,0 +1 @@", "+a"], ["@@ -5 +6 @@", "-b"]]

    def test_counts_and_hunks(self) -> None:
        """Test per-file change counts and the totals line."""
        records = [
            _file("a.py", "@@ -1,2 +1,2 @@", "-x = 1", "+x = 2"),
            _file("b.py", "deleted file", "@@ -1 +0,0 @@", "-gone"),
        ]
        rendered = DiffRenderer().render(records, EngineConfig())
        assert rendered.splitlines() == [
            "2 files changed, +1 -2",
            "a.py +1 -1",
            "  @@ -1,2 +1,2 @@",
            "  -x = 1",
            "  +x = 2",
            "b.py +0 -1",
            "  deleted file",
            "  @@ -1 +0,0 @@",
            "  -gone",
        ]

    def test_hunk_lines_capped(self) -> None:
        """Test that long hunks are cut but still counted in full."""
        body = [f"+line {i}" for i in range(6)]
        records = [_file("big.py", "@@ -0,0 +1,6 @@", *body)]
        rendered = DiffRenderer().render(records, EngineConfig(max_hunk_lines=2))
        assert rendered.splitlines() == [
            "1 file changed, +6 -0",
            "big.py +6 -0",
            "  @@ -0,0 +1,6 @@",
            "  +line 0",
            "  +line 1",
            "  ... +4 more lines",
        ]

    def test_hunks_and_files_capped(self) -> None:
        """Test the per-file hunk cap and the file cap."""
        hunks = [line for i in range(3) for line in (f"@@ -{i} +{i} @@", f"+h{i}")]
        records = [_file("a.py", *hunks), _file("b.py", "@@ -1 +1 @@", "+b")]
        rendered = DiffRenderer().render(records, EngineConfig(max_groups=1, max_per_group=2))
        assert rendered.splitlines() == [
            "2 files changed, +4 -0",
            "a.py +3 -0",
            "  @@ -0 +0 @@",
            "  +h0",
            "  @@ -1 +1 @@",
            "  +h1",
            "  ... +1 more hunks",
            "... +1 more files",
        ]

    def test_no_files(self) -> None:
        """Test that nothing renders to an empty string."""
        assert DiffRenderer().render([], EngineConfig()) == ""


class TestSelection:
    """Tests for renderer selection."""

    def test_renderer_for_profile(self) -> None:
        """Test that a profile's renderer kind picks the renderer."""
        assert isinstance(renderer_for(pytest_profile()), TestFailuresRenderer)

    def test_select_renderer(self, registry: ToolRegistry) -> None:
        """Test selection by tool and by generic strategy."""
        assert isinstance(select_renderer(None, "git-log", registry), EntityRenderer)
        assert isinstance(select_renderer(None, "git-diff", registry), DiffRenderer)
        assert isinstance(select_renderer(Strategy.PATTERN, "make", registry), GroupedByFileRenderer)
        assert isinstance(select_renderer(None, "make", registry), DedupedRenderer)
