"""Tool profiles and the registry that binds tools to strategies.

A profile is data only: which extraction dialect a tool speaks, which
renderer condenses it, and the templates, phase table, document model or
event registry its extractor needs. Profiles are validated when they are
built, so a misbound profile fails at startup instead of mid-parse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property

from pydantic import BaseModel

from tokentrim.errors import ProfileConfigError, StrategyMismatchError
from tokentrim.extractors import (
    Extractor,
    PatternExtractor,
    PatternTemplate,
    PhasedExtractor,
    PhaseTable,
    PlainExtractor,
    StreamingExtractor,
    StructuredExtractor,
)
from tokentrim.models import RawOutput, Strategy
from tokentrim.parsing.registry import EventRegistry


class RendererKind(str, Enum):
    """Renderer used to condense a tool's records."""

    TEST_FAILURES = "test-failures"
    GROUPED_BY_FILE = "grouped-by-file"
    ENTITY = "entity"
    BY_CODE = "by-code"
    DEDUPED = "deduped"
    DIFF = "diff"


class GroupMode(str, Enum):
    """Group key used by the grouped-by-file renderer."""

    FILE = "file"
    FILE_AND_CODE = "file+code"


class InputStream(str, Enum):
    """Which captured stream carries the tool's primary output."""

    STDOUT = "stdout"
    STDERR = "stderr"
    COMBINED = "combined"


@dataclass(frozen=True)
class ToolProfile:
    """Everything the engine needs to know about one tool."""

    tool_id: str
    strategy: Strategy
    renderer: RendererKind
    templates: tuple[PatternTemplate, ...] = ()
    fallback_templates: tuple[PatternTemplate, ...] = ()
    phases: PhaseTable | None = None
    document_model: type[BaseModel] | None = None
    items_key: str | None = None
    events: EventRegistry | None = None
    ignore_lines: re.Pattern[str] | None = None  # non-event lines of a stream
    group_mode: GroupMode = GroupMode.FILE
    stream: InputStream = InputStream.STDOUT
    aliases: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Reject data that does not belong to the bound strategy."""
        strategy = self.strategy
        supplied = {
            "templates": bool(self.templates),
            "phase table": self.phases is not None,
            "document model": self.document_model is not None,
            "event registry": self.events is not None,
        }
        allowed = {
            Strategy.STRUCTURED: {"document model"},
            Strategy.STREAMING: {"event registry"},
            Strategy.PATTERN: {"templates"},
            Strategy.PHASED: {"phase table"},
            Strategy.PLAIN: set(),
        }[strategy]

        for name, present in supplied.items():
            if present and name not in allowed:
                raise ProfileConfigError(
                    f"{self.tool_id}: a {strategy.value} profile cannot carry a {name}"
                )
        for name in allowed:
            if not supplied[name]:
                raise ProfileConfigError(f"{self.tool_id}: a {strategy.value} profile needs a {name}")

        if self.ignore_lines is not None and strategy is not Strategy.STREAMING:
            raise ProfileConfigError(f"{self.tool_id}: ignored lines only apply to streaming profiles")
        if self.fallback_templates and strategy not in (Strategy.STRUCTURED, Strategy.STREAMING):
            raise ProfileConfigError(
                f"{self.tool_id}: fallback templates only apply to structured and streaming profiles"
            )
        if self.document_model is not None and not callable(
            getattr(self.document_model, "to_records", None)
        ):
            raise ProfileConfigError(
                f"{self.tool_id}: document model {self.document_model.__name__} has no to_records()"
            )

    @cached_property
    def extractor(self) -> Extractor:
        """The extractor for this profile's strategy (built once)."""
        fallback = PatternExtractor(self.fallback_templates) if self.fallback_templates else None
        # __post_init__ guarantees the data of the bound strategy is present
        if self.strategy is Strategy.STRUCTURED and self.document_model is not None:
            return StructuredExtractor(self.document_model, items_key=self.items_key, fallback=fallback)
        if self.strategy is Strategy.STREAMING and self.events is not None:
            return StreamingExtractor(self.events, fallback=fallback, ignore=self.ignore_lines)
        if self.strategy is Strategy.PATTERN:
            return PatternExtractor(self.templates)
        if self.strategy is Strategy.PHASED and self.phases is not None:
            return PhasedExtractor(self.phases)
        return PlainExtractor()

    @cached_property
    def stderr_scanner(self) -> PatternExtractor | None:
        """Templates applied to stderr when the primary output is JSON on stdout."""
        if self.stream is not InputStream.STDOUT or not self.fallback_templates:
            return None
        return PatternExtractor(self.fallback_templates)

    def input_text(self, raw: RawOutput) -> str:
        """Select the text the extractor should see."""
        if self.stream is InputStream.STDERR:
            return raw.stderr_text
        if self.stream is InputStream.COMBINED:
            return raw.combined_text()
        return raw.stdout_text


# =============================================================================
# REGISTRY
# =============================================================================


class ToolRegistry:
    """Maps tool ids (and aliases) to profiles.

    Built once by the caller and passed to the engine explicitly. Each
    strategy also has a generic profile used for tools nobody registered.

    Usage:
        registry = ToolRegistry()
        registry.register(tsc_profile())
        registry.register(generic_pattern_profile(), generic=True)
        profile = registry.resolve("tsc")
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._profiles: dict[str, ToolProfile] = {}
        self._generic: dict[Strategy, ToolProfile] = {}

    def register(self, profile: ToolProfile, *, generic: bool = False) -> ToolRegistry:
        """Register a profile. Returns self for chaining.

        Raises:
            ProfileConfigError: If the id or an alias is already taken, or a
                generic profile for the strategy exists.
        """
        if generic:
            if profile.strategy in self._generic:
                raise ProfileConfigError(f"duplicate generic profile for {profile.strategy.value}")
            self._generic[profile.strategy] = profile
        for name in (profile.tool_id, *profile.aliases):
            if name in self._profiles:
                raise ProfileConfigError(f"tool id '{name}' is already registered")
            self._profiles[name] = profile
        return self

    def get(self, tool_id: str) -> ToolProfile | None:
        """Get a profile by tool id or alias."""
        return self._profiles.get(tool_id)

    def generic(self, strategy: Strategy) -> ToolProfile:
        """Get the generic profile for a strategy."""
        try:
            return self._generic[strategy]
        except KeyError:
            raise ProfileConfigError(f"no generic profile for strategy '{strategy.value}'") from None

    def resolve(self, tool_id: str, strategy: Strategy | None = None) -> ToolProfile:
        """Find the profile the engine should use.

        Args:
            tool_id: Originating tool identity.
            strategy: Strategy the caller expects, or None to use the bound one.

        Returns:
            The registered profile, or the generic profile for ``strategy``
            (plain text when no strategy is given) if the tool is unknown.

        Raises:
            StrategyMismatchError: If the tool is bound to another strategy.
        """
        profile = self.get(tool_id)
        if profile is None:
            return self.generic(strategy or Strategy.PLAIN)
        if strategy is not None and strategy is not profile.strategy:
            raise StrategyMismatchError(tool_id, profile.strategy.value, strategy.value)
        return profile

    def profiles(self) -> list[ToolProfile]:
        """Registered profiles, each once, in registration order."""
        return list({id(p): p for p in self._profiles.values()}.values())

    def tool_ids(self) -> list[str]:
        """Primary ids of registered tools, in registration order."""
        return [p.tool_id for p in self.profiles()]

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._profiles

    def __len__(self) -> int:
        return len(self.tool_ids())
