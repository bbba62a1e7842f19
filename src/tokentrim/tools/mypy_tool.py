"""mypy profile: JSON lines with a text fallback.

``mypy --output json`` prints one JSON object per diagnostic. Syntax errors
and tool-level failures bypass the JSON formatter and arrive as text, so the
profile carries text templates for those lines:
- ``file:line:col: severity: message [code]`` (column optional)
- ``mypy: error: ...`` / ``error: ...`` on stderr (file not found, bad config)
"""

from __future__ import annotations

import re
from typing import Any

from tokentrim.extractors import PatternTemplate
from tokentrim.models import Record, RecordKind, Strategy
from tokentrim.parsing.models import MypyJsonOutput, get_mypy_json_schema
from tokentrim.parsing.registry import EventRegistry, HasFields
from tokentrim.tools.base import GroupMode, RendererKind, ToolProfile

# Regex for mypy text output: file:line:col: severity: message [code]
# Or: file:line: severity: message [code] (without column)
MYPY_TEXT_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
        r"(?P<severity>error|warning|note):\s*(?P<message>.+?)(?:\s*\[(?P<code>[^\]]+)\])?$",
    ),
    # mypy-level errors, reported without a location
    PatternTemplate.compile(RecordKind.ERROR, r"^(?:mypy: )?error: (?P<message>.+)$", code="mypy-error"),
)


# Run summaries mypy prints as text even in JSON mode
MYPY_SUMMARY = re.compile(r"^(?:Found \d+ errors? in \d+ files?|Success: no issues found)")


def _to_record(data: dict[str, Any]) -> Record:
    return MypyJsonOutput.model_validate(data).to_record()


def mypy_events() -> EventRegistry:
    """Registry for mypy's JSON lines, validated against the pydantic schema."""
    return EventRegistry().register(
        "MypyDiagnostic",
        get_mypy_json_schema(),
        _to_record,
        HasFields(frozenset({"file", "line", "message", "severity"})),
    )


def mypy_profile() -> ToolProfile:
    """Build the mypy profile."""
    return ToolProfile(
        tool_id="mypy",
        strategy=Strategy.STREAMING,
        renderer=RendererKind.GROUPED_BY_FILE,
        events=mypy_events(),
        ignore_lines=MYPY_SUMMARY,
        fallback_templates=MYPY_TEXT_TEMPLATES,
        group_mode=GroupMode.FILE_AND_CODE,
        aliases=("dmypy",),
    )
