"""Tests for the tier controller."""

from __future__ import annotations

import json
import logging

import pytest

from tokentrim import parse
from tokentrim.config import EngineConfig
from tokentrim.controller import Engine, truncate
from tokentrim.errors import StrategyMismatchError
from tokentrim.models import RawOutput, RecordKind, Strategy, Tier
from tokentrim.render import DEGRADED_MARKER, NO_FINDINGS, NO_OUTPUT
from tokentrim.tools import ToolRegistry


def _mypy_line(line: int) -> str:
    return json.dumps(
        {"file": "a.py", "line": line, "column": 0, "message": "bad", "code": "misc", "severity": "error"}
    )


class TestTruncate:
    """Tests for passthrough truncation."""

    def test_under_ceiling(self) -> None:
        """Test that short text is untouched."""
        assert truncate("abc", 10) == ("abc", False)

    def test_over_ceiling(self) -> None:
        """Test the single explicit marker."""
        text, truncated = truncate("x" * 20, 10)
        assert truncated
        assert text == "x" * 10 + "\n--- truncated at 10 chars ---"


class TestTiers:
    """Tests for tier selection."""

    def test_full(self, engine: Engine) -> None:
        """Test that clean structured output parses at the full tier."""
        raw = RawOutput(stdout=f"{_mypy_line(1)}\n{_mypy_line(2)}\n".encode(), exit_code=1, tool_id="mypy")
        result = engine.parse(raw)
        assert result.tier is Tier.FULL
        assert result.warnings == ()
        assert result.count(RecordKind.ERROR) == 2

    def test_degraded_streaming(self, engine: Engine) -> None:
        """Test three valid events and one malformed line."""
        stdout = "\n".join([_mypy_line(1), _mypy_line(2), _mypy_line(3), "{broken"]).encode()
        result = engine.parse(RawOutput(stdout=stdout, exit_code=1, tool_id="mypy"))
        assert result.tier is Tier.DEGRADED
        assert len(result.records) == 3
        assert "1 line skipped" in result.warnings
        assert result.warnings[0].startswith("degraded parse: malformed-streaming-line (line 4)")
        assert result.rendered.startswith(DEGRADED_MARKER + "\n")

    def test_structured_garbage_passthrough(self, engine: Engine) -> None:
        """Test that unusable structured output is passed through verbatim."""
        garbage = b"Traceback (most recent call last):\n  oops\nKeyError: 'x'\n"
        result = engine.parse(RawOutput(stdout=garbage, exit_code=2, tool_id="ruff"))
        assert result.tier is Tier.PASSTHROUGH
        assert result.rendered == garbage.decode()
        assert result.records == ()
        assert result.warnings[0].startswith("passthrough: malformed-structured")

    @pytest.mark.parametrize(
        ("tool_id", "stdout"),
        [
            ("ruff", b"[" * 100_000),
            ("eslint", b"[" * 100_000),
            ("generic-structured", b"[" * 100_000),
            ("mypy", b'{"a":' * 100_000),
        ],
    )
    def test_deeply_nested_json(self, engine: Engine, tool_id: str, stdout: bytes) -> None:
        """Test that JSON too deep to decode falls through to passthrough."""
        result = engine.parse(RawOutput(stdout=stdout, exit_code=1, tool_id=tool_id))
        assert result.tier is Tier.PASSTHROUGH
        assert result.exit_code == 1
        assert result.records == ()
        assert result.warnings[0].startswith("passthrough: malformed-")
        assert "too deeply nested" in result.warnings[0]

    def test_passthrough_keeps_both_streams(self, engine: Engine) -> None:
        """Test that passthrough text is stdout followed by stderr."""
        raw = RawOutput(stdout=b"partial [\n", stderr=b"Killed\n", exit_code=137, tool_id="ruff")
        result = engine.parse(raw)
        assert result.tier is Tier.PASSTHROUGH
        assert result.rendered == "partial [\nKilled\n"
        assert result.exit_code == 137

    def test_passthrough_separates_unterminated_stdout(self, engine: Engine) -> None:
        """Test that a newline is inserted when stdout does not end with one."""
        raw = RawOutput(stdout=b"Segmentation fault", stderr=b"core dumped\n", exit_code=139, tool_id="ruff")
        result = engine.parse(raw)
        assert result.tier is Tier.PASSTHROUGH
        assert result.rendered == "Segmentation fault\ncore dumped\n"

    def test_passthrough_truncated(self, registry: ToolRegistry) -> None:
        """Test that passthrough text is cut at the configured ceiling."""
        engine = Engine(registry, EngineConfig(output_ceiling=100))
        garbage = ("not json " * 50).encode()
        result = engine.parse(RawOutput(stdout=garbage, exit_code=1, tool_id="ruff"))
        assert result.tier is Tier.PASSTHROUGH
        assert result.rendered.endswith("\n--- truncated at 100 chars ---")
        assert result.rendered.count("truncated at") == 1
        assert any(w.startswith("output-too-large") for w in result.warnings)

    def test_lenient_finds_more(self, engine: Engine) -> None:
        """Test that strict success with fewer records than lenient is degraded."""
        stdout = b"12:00:01 a.py:1: error: first\nb.py:2: error: second\n"
        result = engine.parse(RawOutput(stdout=stdout, exit_code=1, tool_id="make"), Strategy.PATTERN)
        assert result.tier is Tier.DEGRADED
        assert result.count(RecordKind.ERROR) == 2

    def test_phased_without_terminal_phase(self, engine: Engine) -> None:
        """Test a truncated test run."""
        stdout = b"running 2 tests\ntest a ... FAILED\n"
        result = engine.parse(RawOutput(stdout=stdout, exit_code=101, tool_id="cargo-test"))
        assert result.tier is Tier.DEGRADED
        assert "unexpected-phase-transition" in result.warnings[0]

    def test_phased_nothing_recognized(self, engine: Engine) -> None:
        """Test that phased output with no records falls to passthrough."""
        stdout = b"Killed\n"
        result = engine.parse(RawOutput(stdout=stdout, exit_code=137, tool_id="cargo-test"))
        assert result.tier is Tier.PASSTHROUGH
        assert result.rendered == "Killed\n"
        assert result.exit_code == 137

    def test_degraded_logs_warning(self, engine: Engine, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a tier downgrade is logged."""
        stdout = f"{_mypy_line(1)}\n{{broken\n".encode()
        with caplog.at_level(logging.WARNING, logger="tokentrim.controller"):
            engine.parse(RawOutput(stdout=stdout, exit_code=1, tool_id="mypy"))
        assert "degraded parse" in caplog.text


class TestExitCode:
    """Tests for exit code fidelity."""

    @pytest.mark.parametrize("exit_code", [0, 1, 2, 101, 137, -9])
    def test_exit_code_preserved(self, engine: Engine, exit_code: int) -> None:
        """Test that every tier returns the original exit code."""
        for stdout in (b"", b"garbage", f"{_mypy_line(1)}\n".encode()):
            result = engine.parse(RawOutput(stdout=stdout, exit_code=exit_code, tool_id="mypy"))
            assert result.exit_code == exit_code

    def test_exit_line_without_errors(self, engine: Engine) -> None:
        """Test that a failing exit with no error records says so."""
        result = engine.parse(RawOutput(stdout=b"?? new.txt\n", exit_code=128, tool_id="git-status"))
        assert result.tier is Tier.FULL
        assert result.rendered.splitlines()[-1] == "exit code 128"

    def test_no_exit_line_on_success(self, engine: Engine) -> None:
        """Test that a zero exit adds nothing."""
        result = engine.parse(RawOutput(stdout=b"?? new.txt\n", exit_code=0, tool_id="git-status"))
        assert "exit code" not in result.rendered


class TestEmptyOutput:
    """Tests for empty input."""

    def test_empty_success(self, engine: Engine) -> None:
        """Test the empty sentinel."""
        result = engine.parse(RawOutput(exit_code=0, tool_id="ruff"))
        assert result.tier is Tier.FULL
        assert result.rendered == NO_OUTPUT
        assert result.records == ()

    def test_empty_failure(self, engine: Engine) -> None:
        """Test that an empty failing run keeps its exit code visible."""
        result = engine.parse(RawOutput(stdout=b"\n\n", exit_code=3, tool_id="pytest"))
        assert result.rendered == f"{NO_OUTPUT}\nexit code 3"

    def test_no_findings(self, engine: Engine) -> None:
        """Test a document with no items."""
        result = engine.parse(RawOutput(stdout=b"[]", exit_code=0, tool_id="eslint"))
        assert result.tier is Tier.FULL
        assert result.rendered == "no issues found"

    def test_no_findings_sentinel(self, engine: Engine) -> None:
        """Test the sentinel for renderers with nothing to show."""
        stdout = b'{"Action": "start", "Package": "example.com/p"}\n'
        result = engine.parse(RawOutput(stdout=stdout, exit_code=0, tool_id="go-test"))
        assert result.tier is Tier.FULL
        assert result.rendered == NO_FINDINGS


class TestStrategySelection:
    """Tests for strategy selection."""

    def test_mismatch_raises(self, engine: Engine) -> None:
        """Test that a caller cannot override the bound strategy."""
        with pytest.raises(StrategyMismatchError):
            engine.parse(RawOutput(stdout=b"x", tool_id="pytest"), Strategy.STRUCTURED)

    def test_unknown_tool_plain(self, engine: Engine) -> None:
        """Test that unknown tools are treated as plain logs."""
        result = engine.parse(RawOutput(stdout=b"line\nline\n", tool_id="my-script"))
        assert result.strategy is Strategy.PLAIN
        assert result.tier is Tier.FULL
        assert "line (x2)" in result.rendered

    def test_generic_pattern_profile(self, engine: Engine) -> None:
        """Test an unknown linter with the common diagnostic format."""
        stdout = b"file.py:10: error E1\nfile.py:20: error E1\n"
        result = engine.parse(RawOutput(stdout=stdout, exit_code=1, tool_id="mylint"), Strategy.PATTERN)
        assert result.tier is Tier.FULL
        assert result.rendered.splitlines() == [
            "2 errors, 0 warnings in 1 file",
            "file.py (2)",
            "  10, 20: E1 (x2)",
        ]

    def test_module_level_parse(self) -> None:
        """Test the one-off parse helper."""
        result = parse(RawOutput(stdout=b"hello\n", tool_id="anything"))
        assert result.tier is Tier.FULL
        assert result.tool_id == "anything"


class TestUsage:
    """Tests for the usage summary."""

    def test_sizes(self, engine: Engine) -> None:
        """Test input and output sizes."""
        raw = RawOutput(stdout=b"a\n" * 10, stderr=b"err\n", tool_id="docker-logs")
        result = engine.parse(raw)
        usage = result.usage()
        assert usage.input_size == 24
        assert usage.output_size == len(result.rendered.encode())
        assert usage.strategy is Strategy.PLAIN
        assert usage.tier is Tier.FULL
