"""Generic profiles used for tools without a registered profile.

One profile per strategy. They recognize the conventions most tools share
(``file:line:col: severity: message``, ``error: message``) and render with
the most general renderer for their dialect.
"""

from __future__ import annotations

import re
from typing import Any

from tokentrim.extractors import ANY_PHASE, PatternTemplate, PhaseAction, PhaseRule, PhaseTable
from tokentrim.models import Record, RecordKind, Strategy
from tokentrim.parsing.models import GenericDiagnostic
from tokentrim.parsing.registry import EventRegistry, HasFields, schema_from_fields
from tokentrim.tools.base import InputStream, RendererKind, ToolProfile

# =============================================================================
# TEXT TEMPLATES
# =============================================================================

# file:line[:col]: severity: message [code], then "severity CODE", then bare file:line
DIAGNOSTIC_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
        r"(?P<severity>error|warning|note|info|hint):\s*"
        r"(?P<message>.+?)(?:\s+\[(?P<code>[^\]]+)\])?$",
        flags=re.IGNORECASE,
    ),
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
        r"(?P<severity>error|warning|note)\s+(?P<code>[A-Za-z]+-?\d+)(?::\s*(?P<message>.*))?$",
        flags=re.IGNORECASE,
    ),
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?\.\w+):(?P<line>\d+):(?:(?P<column>\d+):)?\s*(?P<message>\S.*)$",
    ),
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<severity>error|fatal|warning)(?:\[(?P<code>[^\]]+)\])?:\s*(?P<message>.+)$",
        flags=re.IGNORECASE,
    ),
)

# =============================================================================
# EVENTS
# =============================================================================

_DIAGNOSTIC_EVENT_SCHEMA = schema_from_fields(required={"message": "string"}, title="Diagnostic")


def _diagnostic_event(data: dict[str, Any]) -> Record:
    return GenericDiagnostic.model_validate(data).to_records()[0]


def generic_events() -> EventRegistry:
    """Events carrying at least a ``message`` field."""
    return EventRegistry().register(
        "Diagnostic",
        _DIAGNOSTIC_EVENT_SCHEMA,
        _diagnostic_event,
        HasFields(frozenset({"message"})),
    )


# =============================================================================
# PHASES
# =============================================================================

# Any test runner: failure lines until a results line
GENERIC_PHASES = PhaseTable(
    phases=("running", "done"),
    initial="running",
    terminal=frozenset({"done"}),
    rules=(
        PhaseRule(
            ANY_PHASE,
            pattern=re.compile(
                r"^(?:=+ )?(?P<message>(?:test result|tests?|results?)\b"
                r".*?\d+ (?:passed|failed|ok).*?)(?: =+)?$",
                re.IGNORECASE,
            ),
            action=PhaseAction.EMIT,
            kind=RecordKind.SUMMARY,
            goto="done",
        ),
        PhaseRule(
            ANY_PHASE,
            pattern=re.compile(r"^\s*(?:FAIL(?:ED)?|ERROR)\b:?\s*(?P<key>\S+)?.*$"),
            action=PhaseAction.EMIT,
            kind=RecordKind.ERROR,
            goto="running",
        ),
    ),
)

# =============================================================================
# PROFILES
# =============================================================================


def generic_profiles() -> list[ToolProfile]:
    """One fresh generic profile per strategy."""
    return [
        ToolProfile(
            tool_id="generic-structured",
            strategy=Strategy.STRUCTURED,
            renderer=RendererKind.GROUPED_BY_FILE,
            document_model=GenericDiagnostic,
            fallback_templates=DIAGNOSTIC_TEMPLATES,
        ),
        ToolProfile(
            tool_id="generic-streaming",
            strategy=Strategy.STREAMING,
            renderer=RendererKind.GROUPED_BY_FILE,
            events=generic_events(),
            fallback_templates=DIAGNOSTIC_TEMPLATES,
        ),
        ToolProfile(
            tool_id="generic-pattern",
            strategy=Strategy.PATTERN,
            renderer=RendererKind.GROUPED_BY_FILE,
            templates=DIAGNOSTIC_TEMPLATES,
            stream=InputStream.COMBINED,
        ),
        ToolProfile(
            tool_id="generic-phased",
            strategy=Strategy.PHASED,
            renderer=RendererKind.TEST_FAILURES,
            phases=GENERIC_PHASES,
            stream=InputStream.COMBINED,
        ),
        ToolProfile(
            tool_id="generic-plain",
            strategy=Strategy.PLAIN,
            renderer=RendererKind.DEDUPED,
            stream=InputStream.COMBINED,
        ),
    ]
