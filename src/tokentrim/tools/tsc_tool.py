"""TypeScript compiler profile: line templates over ``tsc`` text output.

Handles both the plain format ``src/a.ts(10,5): error TS2322: ...`` and the
``--pretty`` format ``src/a.ts:10:5 - error TS2322: ...``. Continuation
lines (code frames, related information) are context.
"""

from __future__ import annotations

from tokentrim.extractors import PatternTemplate
from tokentrim.models import RecordKind, Strategy
from tokentrim.tools.base import GroupMode, RendererKind, ToolProfile

TSC_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^(\s][^(]*)\((?P<line>\d+),(?P<column>\d+)\): "
        r"(?P<severity>error|warning) (?P<code>TS\d+): (?P<message>.+)$",
    ),
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?P<column>\d+) - "
        r"(?P<severity>error|warning) (?P<code>TS\d+): (?P<message>.+)$",
    ),
    PatternTemplate.compile(
        RecordKind.ERROR, r"^(?P<severity>error|warning) (?P<code>TS\d+): (?P<message>.+)$"
    ),
    PatternTemplate.compile(
        RecordKind.SUMMARY, r"^Found (?P<message>\d+ errors?(?: in \d+ files?)?)\.?.*$"
    ),
)


def tsc_profile() -> ToolProfile:
    """Build the tsc profile."""
    return ToolProfile(
        tool_id="tsc",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.GROUPED_BY_FILE,
        templates=TSC_TEMPLATES,
        group_mode=GroupMode.FILE_AND_CODE,
        aliases=("typescript",),
    )
