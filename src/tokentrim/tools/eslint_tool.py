"""ESLint profile: a JSON array of per-file results (``--format json``)."""

from __future__ import annotations

from tokentrim.extractors import PatternTemplate
from tokentrim.models import RecordKind, Strategy
from tokentrim.parsing.models import EslintFileResult
from tokentrim.tools.base import GroupMode, RendererKind, ToolProfile

ESLINT_TEXT_TEMPLATES: tuple[PatternTemplate, ...] = (
    # --format unix: file:line:col: message [Error/rule]
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^(?P<file>[^:\s][^:]*?):(?P<line>\d+):(?P<column>\d+): (?P<message>.+?) "
        r"\[(?P<severity>Error|Warning)(?:/(?P<code>[^\]]+))?\]$",
    ),
    # stylish rows (the file name is on its own header line)
    PatternTemplate.compile(
        RecordKind.ERROR,
        r"^\s*(?P<line>\d+):(?P<column>\d+)\s+(?P<severity>error|warning)\s+"
        r"(?P<message>.+?)(?:\s{2,}(?P<code>[\w@/-]+))?$",
    ),
    PatternTemplate.compile(RecordKind.ERROR, r"^Oops! (?P<message>.+)$", code="eslint-error"),
)


def eslint_profile() -> ToolProfile:
    """Build the ESLint profile."""
    return ToolProfile(
        tool_id="eslint",
        strategy=Strategy.STRUCTURED,
        renderer=RendererKind.GROUPED_BY_FILE,
        document_model=EslintFileResult,
        fallback_templates=ESLINT_TEXT_TEMPLATES,
        group_mode=GroupMode.FILE_AND_CODE,
    )
