"""Core data model for the output transformation engine.

Every model is a frozen pydantic model: records, results and raw output are
value types created once per invocation and never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

# =============================================================================
# ENUMERATIONS
# =============================================================================


class Strategy(str, Enum):
    """Extraction dialect bound to a tool's output format."""

    STRUCTURED = "structured"
    STREAMING = "streaming"
    PATTERN = "pattern"
    PHASED = "phased"
    PLAIN = "plain"


class RecordKind(str, Enum):
    """Kind of an extracted record."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUMMARY = "summary"


class Tier(str, Enum):
    """Confidence level of a parse result."""

    FULL = "full"
    DEGRADED = "degraded"
    PASSTHROUGH = "passthrough"


class FilterLevel(str, Enum):
    """Aggressiveness of the source filter."""

    NONE = "none"
    MINIMAL = "minimal"
    AGGRESSIVE = "aggressive"


# =============================================================================
# RAW INPUT
# =============================================================================


class RawOutput(BaseModel):
    """Captured output of an already-terminated process."""

    model_config = ConfigDict(frozen=True)

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0
    tool_id: str

    @property
    def stdout_text(self) -> str:
        """Decoded stdout (invalid UTF-8 is replaced, never fatal)."""
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        """Decoded stderr."""
        return self.stderr.decode("utf-8", errors="replace")

    def combined_text(self) -> str:
        """Return stdout followed by stderr, separated by a newline if needed."""
        out, err = self.stdout_text, self.stderr_text
        if out and err and not out.endswith("\n"):
            return f"{out}\n{err}"
        return out + err

    @property
    def size(self) -> int:
        """Total number of captured bytes."""
        return len(self.stdout) + len(self.stderr)


# =============================================================================
# RECORDS
# =============================================================================


class Location(BaseModel):
    """Source location of a record."""

    model_config = ConfigDict(frozen=True)

    file: str
    line: int | None = None  # 1-indexed
    column: int | None = None

    @field_validator("line", "column", mode="before")
    @classmethod
    def ensure_non_negative(cls, v: int | str | None) -> int | None:
        """Coerce textual numbers and reject negative positions."""
        if v is None or v == "":
            return None
        return max(0, int(v))

    def __str__(self) -> str:
        parts = [self.file]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)


class Record(BaseModel):
    """One normalized unit of extracted information."""

    model_config = ConfigDict(frozen=True)

    kind: RecordKind
    message: str
    location: Location | None = None
    code: str | None = None
    raw_line: str | None = None
    details: tuple[str, ...] = ()

    @property
    def file(self) -> str | None:
        """File of the location, if any."""
        return self.location.file if self.location else None


# =============================================================================
# RESULT
# =============================================================================


class UsageSummary(BaseModel):
    """Figures a caller may forward to the usage-tracking store."""

    model_config = ConfigDict(frozen=True)

    tool_id: str
    input_size: int
    output_size: int
    exit_code: int
    strategy: Strategy
    tier: Tier


class ParseResult(BaseModel):
    """Final, immutable result of one engine invocation."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    records: tuple[Record, ...] = ()
    rendered: str
    exit_code: int
    warnings: tuple[str, ...] = ()
    strategy: Strategy
    tool_id: str
    input_size: int = 0

    def count(self, kind: RecordKind) -> int:
        """Number of records of the given kind."""
        return sum(1 for r in self.records if r.kind is kind)

    def usage(self) -> UsageSummary:
        """Build the tracking summary for this result."""
        return UsageSummary(
            tool_id=self.tool_id,
            input_size=self.input_size,
            output_size=len(self.rendered.encode("utf-8")),
            exit_code=self.exit_code,
            strategy=self.strategy,
            tier=self.tier,
        )
