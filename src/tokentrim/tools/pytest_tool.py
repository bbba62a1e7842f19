"""pytest profile: a phase table over the terminal report.

Phases:
- start: header, collection and progress lines (``..F..``)
- failures: the ``FAILURES`` / ``ERRORS`` sections, one ``___ test ___``
  header per failing test followed by its traceback
- summary: ``short test summary info``, one ``FAILED`` line per test
- done: reached on the final counts line (``2 failed, 8 passed in 0.12s``)

Failures reported in both the failures section and the short summary are
merged on the test id, so each failing test yields one record.
"""

from __future__ import annotations

import re

from tokentrim.extractors import ANY_PHASE, PhaseAction, PhaseRule, PhaseTable
from tokentrim.models import RecordKind, Strategy
from tokentrim.tools.base import InputStream, RendererKind, ToolProfile

_COUNTS = r"(?:no tests ran|\d+ \w+(?:, \d+ \w+)*)(?: in [\d.]+s(?: \([^)]*\))?)?"

PYTEST_PHASES = PhaseTable(
    phases=("start", "failures", "summary", "done"),
    initial="start",
    terminal=frozenset({"done"}),
    rules=(
        # ====== 2 failed, 8 passed in 0.12s ======
        PhaseRule(
            ANY_PHASE,
            prefix="=",
            pattern=re.compile(rf"^=+ (?P<message>{_COUNTS}) =+$"),
            action=PhaseAction.EMIT,
            kind=RecordKind.SUMMARY,
            goto="done",
        ),
        # -q: "2 failed, 8 passed in 0.12s"
        PhaseRule(
            ANY_PHASE,
            pattern=re.compile(
                r"^(?P<message>(?:no tests ran|\d+ \w+(?:, \d+ \w+)*) in [\d.]+s(?: \([^)]*\))?)$"
            ),
            action=PhaseAction.EMIT,
            kind=RecordKind.SUMMARY,
            goto="done",
        ),
        PhaseRule(ANY_PHASE, prefix="=", pattern=re.compile(r"^=+ (?:FAILURES|ERRORS) =+$"), goto="failures"),
        PhaseRule(
            ANY_PHASE, prefix="=", pattern=re.compile(r"^=+ short test summary info =+$"), goto="summary"
        ),
        # ____ TestX.test_b ____ / ____ ERROR at setup of test_c ____
        PhaseRule(
            "failures",
            prefix="_",
            pattern=re.compile(
                r"^_{3,} (?:ERROR (?:at (?:setup|teardown) of|collecting) )?(?P<key>\S.*?) _{3,}$"
            ),
            action=PhaseAction.EMIT,
        ),
        PhaseRule(
            "failures", prefix="E ", pattern=re.compile(r"^E\s+(?P<message>.+)$"), action=PhaseAction.ATTACH
        ),
        # tests/test_a.py:12: AssertionError
        PhaseRule(
            "failures",
            pattern=re.compile(r"^(?P<file>[^\s:]+\.py):(?P<line>\d+): (?P<code>\w+(?:\.\w+)*)$"),
            action=PhaseAction.ANNOTATE,
        ),
        # FAILED tests/test_a.py::TestX::test_b - assert 1 == 2
        PhaseRule(
            "summary",
            pattern=re.compile(
                r"^(?:FAILED|ERROR) (?P<message>(?P<key>(?P<file>[^\s:]+)(?:::\S+)?)(?: - .+)?)$"
            ),
            action=PhaseAction.EMIT,
        ),
    ),
)


def pytest_profile() -> ToolProfile:
    """Build the pytest profile."""
    return ToolProfile(
        tool_id="pytest",
        strategy=Strategy.PHASED,
        renderer=RendererKind.TEST_FAILURES,
        phases=PYTEST_PHASES,
        stream=InputStream.COMBINED,
        aliases=("py.test",),
    )
