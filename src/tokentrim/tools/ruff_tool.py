"""ruff profile: a JSON array of diagnostics (``--output-format json``)."""

from __future__ import annotations

from tokentrim.extractors import PatternTemplate
from tokentrim.models import RecordKind, Strategy
from tokentrim.parsing.models import RuffDiagnostic
from tokentrim.tools.base import GroupMode, RendererKind, ToolProfile

# Concise text output and ruff's own errors
RUFF_TEXT_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?P<column>\d+): "
        r"(?P<code>[A-Z]+\d+) (?:\[\*\] )?(?P<message>.+)$",
    ),
    PatternTemplate.compile(RecordKind.ERROR, r"^(?:ruff failed|error): (?P<message>.+)$", code="ruff-error"),
)


def ruff_profile() -> ToolProfile:
    """Build the ruff profile."""
    return ToolProfile(
        tool_id="ruff",
        strategy=Strategy.STRUCTURED,
        renderer=RendererKind.GROUPED_BY_FILE,
        document_model=RuffDiagnostic,
        fallback_templates=RUFF_TEXT_TEMPLATES,
        group_mode=GroupMode.FILE_AND_CODE,
    )
