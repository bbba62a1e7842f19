"""Parsing tier controller.

Chooses the extractor bound to the originating tool, tries strict
extraction, falls back to lenient extraction and finally to verbatim
passthrough. The outcome is always a ``ParseResult``; runtime content never
makes ``parse`` raise.

Tiers:
- FULL: strict extraction succeeded and lenient found nothing more
- DEGRADED: only lenient extraction produced records; the rendered text
  starts with ``DEGRADED_MARKER``
- PASSTHROUGH: nothing usable was extracted; the rendered text is the raw
  stdout+stderr, truncated at ``output_ceiling`` with a single marker
"""

from __future__ import annotations

import logging
from functools import partial

from tokentrim.config import EngineConfig
from tokentrim.errors import ErrorKind, ParseError
from tokentrim.extractors import Extracted, ExtractMode
from tokentrim.models import ParseResult, RawOutput, Record, RecordKind, Strategy, Tier
from tokentrim.render import DEGRADED_MARKER, NO_FINDINGS, NO_OUTPUT, renderer_for
from tokentrim.tools import ToolProfile, ToolRegistry, default_registry

logger = logging.getLogger(__name__)


def truncate(text: str, ceiling: int) -> tuple[str, bool]:
    """Cut ``text`` at ``ceiling`` characters, appending one explicit marker.

    Returns:
        The possibly truncated text and whether it was truncated.
    """
    if len(text) <= ceiling:
        return text, False
    return f"{text[:ceiling]}\n--- truncated at {ceiling} chars ---", True


def _exit_line(exit_code: int) -> str:
    return f"exit code {exit_code}"


class Engine:
    """Output transformation engine bound to a registry and a config.

    Usage:
        engine = Engine(default_registry(), EngineConfig())
        result = engine.parse(RawOutput(stdout=out, exit_code=1, tool_id="pytest"))
        print(result.rendered)
    """

    def __init__(self, registry: ToolRegistry | None = None, config: EngineConfig | None = None) -> None:
        """Initialize the engine.

        Args:
            registry: Tool registry; a fresh default registry if omitted.
            config: Limits for passthrough and renderers.
        """
        self.registry = registry if registry is not None else default_registry()
        self.config = config if config is not None else EngineConfig()

    def parse(self, raw: RawOutput, strategy: Strategy | None = None) -> ParseResult:
        """Transform captured output into a condensed result.

        Args:
            raw: Captured output of the finished process.
            strategy: Strategy the caller expects for the tool, or None to
                use the one bound in the registry.

        Returns:
            The result at the highest tier the output supports.

        Raises:
            StrategyMismatchError: If ``strategy`` disagrees with the tool's
                registered strategy.
        """
        profile = self.registry.resolve(raw.tool_id, strategy)
        result = partial(
            ParseResult,
            exit_code=raw.exit_code,
            strategy=profile.strategy,
            tool_id=raw.tool_id,
            input_size=raw.size,
        )

        if not raw.stdout.strip() and not raw.stderr.strip():
            logger.debug("%s: no output, tier=full", raw.tool_id)
            rendered = NO_OUTPUT if raw.exit_code == 0 else f"{NO_OUTPUT}\n{_exit_line(raw.exit_code)}"
            return result(tier=Tier.FULL, rendered=rendered)

        text = profile.input_text(raw)
        stderr_records = self._scan_stderr(profile, raw)

        if not text.strip():
            if stderr_records:
                logger.debug("%s: only stderr recognized, tier=full", raw.tool_id)
                return self._render(profile, raw, Tier.FULL, stderr_records, (), result)
            return self._passthrough(
                raw, result, f"no {profile.stream.value} output and stderr not recognized"
            )

        strict = profile.extractor.extract(text, ExtractMode.STRICT)
        lenient = profile.extractor.extract(text, ExtractMode.LENIENT)

        if isinstance(strict, Extracted):
            if isinstance(lenient, Extracted) and len(lenient.records) > len(strict.records):
                extra = len(lenient.records) - len(strict.records)
                reason = f"lenient parse recovered {extra} more record(s) than strict"
                logger.warning("%s: degraded parse: %s", raw.tool_id, reason)
                warnings = (f"degraded parse: {reason}", *lenient.warnings)
                records = lenient.records + stderr_records
                return self._render(profile, raw, Tier.DEGRADED, records, warnings, result)
            logger.debug("%s: strict parse, %d record(s), tier=full", raw.tool_id, len(strict.records))
            records = strict.records + stderr_records
            return self._render(profile, raw, Tier.FULL, records, strict.warnings, result)

        reason = str(strict.error)
        if isinstance(lenient, Extracted) and lenient.records:
            logger.warning("%s: degraded parse: %s", raw.tool_id, reason)
            warnings = (f"degraded parse: {reason}", *lenient.warnings)
            records = lenient.records + stderr_records
            return self._render(profile, raw, Tier.DEGRADED, records, warnings, result)

        if not isinstance(lenient, Extracted):
            reason = f"{reason}; lenient: {lenient.error}"
        return self._passthrough(raw, result, reason)

    def _scan_stderr(self, profile: ToolProfile, raw: RawOutput) -> tuple[Record, ...]:
        """Tool-level errors on stderr, for tools whose records live on stdout."""
        scanner = profile.stderr_scanner
        if scanner is None or not raw.stderr.strip():
            return ()
        extraction = scanner.extract(raw.stderr_text, ExtractMode.LENIENT)
        return extraction.records if isinstance(extraction, Extracted) else ()

    def _render(
        self,
        profile: ToolProfile,
        raw: RawOutput,
        tier: Tier,
        records: tuple[Record, ...],
        warnings: tuple[str, ...],
        result: partial[ParseResult],
    ) -> ParseResult:
        body = renderer_for(profile).render(records, self.config) or NO_FINDINGS
        if raw.exit_code != 0 and not any(r.kind is RecordKind.ERROR for r in records):
            body = f"{body}\n{_exit_line(raw.exit_code)}"
        if tier is Tier.DEGRADED:
            body = f"{DEGRADED_MARKER}\n{body}"
        return result(tier=tier, records=records, rendered=body, warnings=warnings)

    def _passthrough(self, raw: RawOutput, result: partial[ParseResult], reason: str) -> ParseResult:
        logger.warning("%s: passthrough: %s", raw.tool_id, reason)
        warnings = [f"passthrough: {reason}"]
        text, truncated = truncate(raw.combined_text(), self.config.output_ceiling)
        if truncated:
            error = ParseError(
                ErrorKind.OUTPUT_TOO_LARGE,
                f"{len(raw.combined_text())} chars exceed the {self.config.output_ceiling} char ceiling",
            )
            warnings.append(str(error))
        return result(tier=Tier.PASSTHROUGH, rendered=text, warnings=tuple(warnings))


def parse(
    raw: RawOutput,
    strategy: Strategy | None = None,
    *,
    registry: ToolRegistry | None = None,
    config: EngineConfig | None = None,
) -> ParseResult:
    """Transform captured output with a one-off engine.

    Callers parsing many outputs should build an ``Engine`` (and its
    registry) once instead.
    """
    return Engine(registry, config).parse(raw, strategy)
