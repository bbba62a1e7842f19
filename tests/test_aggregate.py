"""Tests for deduplication and grouping."""

from __future__ import annotations

from tokentrim.aggregate import (
    by_code,
    by_file,
    by_file_and_code,
    dedupe,
    expand,
    group_by,
    normalize_message,
    strip_ansi,
)
from tokentrim.extractors import ExtractMode, PatternExtractor
from tokentrim.models import Location, Record, RecordKind
from tokentrim.tools.generic import DIAGNOSTIC_TEMPLATES


def _record(
    message: str,
    kind: RecordKind = RecordKind.INFO,
    file: str | None = None,
    line: int | None = None,
) -> Record:
    location = Location(file=file, line=line) if file else None
    return Record(kind=kind, message=message, location=location)


class TestNormalizeMessage:
    """Tests for message normalization."""

    def test_strip_ansi(self) -> None:
        """Test removal of color escapes."""
        assert strip_ansi("\x1b[31merror\x1b[0m: boom") == "error: boom"

    def test_whitespace_collapsed(self) -> None:
        """Test that runs of whitespace compare equal."""
        assert normalize_message("  a \t b\n") == "a b"


class TestDedupe:
    """Tests for dedupe."""

    def test_identical_lines_collapse(self) -> None:
        """Test that 1000 identical lines become one entry counted 1000."""
        records = [_record("connection refused", RecordKind.ERROR)] * 1000
        deduped = dedupe(records)
        assert len(deduped) == 1
        assert deduped[0][1] == 1000

    def test_first_occurrence_order(self) -> None:
        """Test that entries keep first-seen order, not count order."""
        records = [_record("a"), _record("b"), _record("b"), _record("c"), _record("a")]
        assert [(r.message, n) for r, n in dedupe(records)] == [("a", 2), ("b", 2), ("c", 1)]

    def test_kind_is_part_of_key(self) -> None:
        """Test that the same text with different kinds stays apart."""
        records = [_record("x", RecordKind.INFO), _record("x", RecordKind.ERROR)]
        assert len(dedupe(records)) == 2

    def test_location_is_not_part_of_key(self) -> None:
        """Test that the first location is kept when messages repeat."""
        records = [_record("boom", file="a.py", line=1), _record("boom", file="b.py", line=2)]
        ((first, count),) = dedupe(records)
        assert count == 2
        assert first.file == "a.py"

    def test_ansi_variants_collapse(self) -> None:
        """Test that colored and plain copies of a line collapse."""
        records = [_record("\x1b[33mslow query\x1b[0m"), _record("slow  query")]
        assert len(dedupe(records)) == 1

    def test_idempotent(self) -> None:
        """Test that deduping the expanded result changes nothing."""
        records = [_record("a"), _record("b"), _record("a"), _record("a", RecordKind.ERROR)]
        once = dedupe(records)
        assert dedupe(expand(once)) == once

    def test_counts_sum_to_input(self) -> None:
        """Test that no record is lost."""
        records = [_record(str(i % 7)) for i in range(50)]
        assert sum(n for _, n in dedupe(records)) == 50


class TestGroupBy:
    """Tests for group_by and its key functions."""

    def test_file_and_code_groups(self) -> None:
        """Test two occurrences of one code in one file form one group."""
        extractor = PatternExtractor(DIAGNOSTIC_TEMPLATES)
        lines = ["file.py:10: error E1", "file.py:20: error E1"]
        records = [extractor.match_line(line, ExtractMode.STRICT) for line in lines]
        assert all(r is not None for r in records)

        groups = group_by([r for r in records if r is not None], by_file_and_code)

        assert list(groups) == [("file.py", "E1")]
        (occurrences,) = groups.values()
        assert len(occurrences) == 2
        assert occurrences[0].location is not None
        assert occurrences[0].location.line == 10

    def test_group_order_is_first_appearance(self) -> None:
        """Test that groups are ordered by first appearance, not size."""
        records = [
            _record("x", file="b.py"),
            _record("y", file="a.py"),
            _record("z", file="a.py"),
            _record("w", file="b.py"),
        ]
        groups = group_by(records, by_file)
        assert list(groups) == [("b.py",), ("a.py",)]
        assert [r.message for r in groups[("b.py",)]] == ["x", "w"]

    def test_records_without_location(self) -> None:
        """Test the key of records with no location."""
        record = _record("no file")
        assert by_file(record) == ("",)
        assert by_code(record) == ""
        assert by_file_and_code(record) == ("", "")
