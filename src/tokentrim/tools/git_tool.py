"""git profiles: ``git status --porcelain -b``, one-line ``git log`` and ``git diff``.

Status lines are labelled by change type through the template's code, so
the by-code renderer can show "staged: 3" style groups. A path that is
both staged and modified (``MM``) is reported once, as staged.

A diff is walked as a phase table: each ``diff --git`` header opens a file
record, and the hunk headers and changed lines after it are attached to
that record. Context lines, ``index`` lines and the ``---``/``+++`` file
names are dropped. The diff renderer counts and caps what was kept.
"""

from __future__ import annotations

import re

from tokentrim.extractors import ANY_PHASE, PatternTemplate, PhaseAction, PhaseRule, PhaseTable
from tokentrim.models import RecordKind, Strategy
from tokentrim.tools.base import RendererKind, ToolProfile

GIT_STATUS_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.SUMMARY, r"^## (?P<message>.+)$", code="branch"),
    PatternTemplate.compile(RecordKind.WARNING, r"^(?:U.|.U|AA|DD) (?P<file>.+)$", code="conflict"),
    PatternTemplate.compile(RecordKind.INFO, r"^\?\? (?P<file>.+)$", code="untracked"),
    PatternTemplate.compile(RecordKind.INFO, r"^[MADRCT]. (?P<file>.+)$", code="staged"),
    PatternTemplate.compile(RecordKind.INFO, r"^ [MDT] (?P<file>.+)$", code="modified"),
    PatternTemplate.compile(RecordKind.INFO, r"^!! (?P<file>.+)$", code="ignored"),
)

# --pretty=format:"%h %s (%ar) <%an>" or --oneline
GIT_LOG_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.INFO, r"^(?P<code>[0-9a-f]{7,40}) (?P<message>.+)$"),
)

GIT_DIFF_PHASES = PhaseTable(
    phases=("start", "file", "hunk"),
    initial="start",
    terminal=frozenset({"file", "hunk"}),
    max_details=None,
    rules=(
        PhaseRule(
            ANY_PHASE,
            prefix="diff --git ",
            pattern=re.compile(r"^diff --git a/.+ b/(?P<message>(?P<file>.+))$"),
            action=PhaseAction.EMIT,
            kind=RecordKind.INFO,
            goto="file",
        ),
        PhaseRule(
            "file",
            pattern=re.compile(r"^(?P<message>new file|deleted file) mode \d+$"),
            action=PhaseAction.ATTACH,
        ),
        PhaseRule("file", pattern=re.compile(r"^rename (?:from|to) .+$"), action=PhaseAction.ATTACH),
        PhaseRule("file", pattern=re.compile(r"^Binary files .+ differ$"), action=PhaseAction.ATTACH),
        # @@ -1,4 +1,5 @@ def run():
        PhaseRule(
            ANY_PHASE,
            prefix="@@",
            pattern=re.compile(r"^@@ [^@]*@@.*$"),
            action=PhaseAction.ATTACH,
            goto="hunk",
        ),
        PhaseRule("hunk", prefix="+", action=PhaseAction.ATTACH),
        PhaseRule("hunk", prefix="-", action=PhaseAction.ATTACH),
    ),
)


def git_status_profile() -> ToolProfile:
    """Build the git status profile."""
    return ToolProfile(
        tool_id="git-status",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.BY_CODE,
        templates=GIT_STATUS_TEMPLATES,
    )


def git_log_profile() -> ToolProfile:
    """Build the git log profile."""
    return ToolProfile(
        tool_id="git-log",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.ENTITY,
        templates=GIT_LOG_TEMPLATES,
    )


def git_diff_profile() -> ToolProfile:
    """Build the git diff profile."""
    return ToolProfile(
        tool_id="git-diff",
        strategy=Strategy.PHASED,
        renderer=RendererKind.DIFF,
        phases=GIT_DIFF_PHASES,
        aliases=("git-show",),
    )
