"""cargo test profile: a phase table over libtest output.

A failing test is announced as ``test x ... FAILED`` while running, then
again as ``---- x stdout ----`` in the ``failures:`` section where its panic
message lives. Both mentions merge into one record.
"""

from __future__ import annotations

import re

from tokentrim.extractors import ANY_PHASE, PhaseAction, PhaseRule, PhaseTable
from tokentrim.models import RecordKind, Strategy
from tokentrim.tools.base import InputStream, RendererKind, ToolProfile

CARGO_TEST_PHASES = PhaseTable(
    phases=("start", "running", "failures", "done"),
    initial="start",
    terminal=frozenset({"done"}),
    rules=(
        PhaseRule(
            ANY_PHASE,
            prefix="test result: ",
            pattern=re.compile(r"^test result: (?P<message>.+)$"),
            action=PhaseAction.EMIT,
            kind=RecordKind.SUMMARY,
            goto="done",
        ),
        PhaseRule(ANY_PHASE, prefix="running ", pattern=re.compile(r"^running \d+ tests?$"), goto="running"),
        PhaseRule(
            "running",
            prefix="test ",
            pattern=re.compile(r"^test (?P<key>\S+) \.\.\. FAILED$"),
            action=PhaseAction.EMIT,
        ),
        PhaseRule(ANY_PHASE, prefix="failures:", goto="failures"),
        PhaseRule(
            "failures",
            prefix="---- ",
            pattern=re.compile(r"^---- (?P<key>\S+) std(?:out|err) ----$"),
            action=PhaseAction.EMIT,
        ),
        # thread 'x' panicked at src/lib.rs:10:9:  (message on the next lines)
        PhaseRule(
            "failures",
            prefix="thread ",
            pattern=re.compile(
                r"^thread '.*' panicked at (?P<file>[^:\s']+):(?P<line>\d+):(?P<column>\d+):?$"
            ),
            action=PhaseAction.ANNOTATE,
        ),
        # Older toolchains: thread 'x' panicked at 'message', src/lib.rs:10:9
        PhaseRule(
            "failures",
            prefix="thread ",
            pattern=re.compile(
                r"^thread '.*' panicked at '(?P<message>.*)', "
                r"(?P<file>[^:\s]+):(?P<line>\d+):(?P<column>\d+)$"
            ),
            action=PhaseAction.ANNOTATE,
        ),
        # The closing list of failed test names and backtrace hints carry nothing new
        PhaseRule("failures", prefix="    ", pattern=re.compile(r"^ {4}\S+$")),
        PhaseRule("failures", prefix="note: "),
        PhaseRule("failures", pattern=re.compile(r"^(?P<message>.+)$"), action=PhaseAction.ATTACH),
    ),
)


def cargo_test_profile() -> ToolProfile:
    """Build the cargo test profile."""
    return ToolProfile(
        tool_id="cargo-test",
        strategy=Strategy.PHASED,
        renderer=RendererKind.TEST_FAILURES,
        phases=CARGO_TEST_PHASES,
        stream=InputStream.COMBINED,
    )
