"""Error taxonomy.

Runtime parse problems are values (``ParseError``) that the controller turns
into lower tiers. Only configuration defects are raised as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of parse problems. None of them is fatal to ``parse``."""

    MALFORMED_STRUCTURED = "malformed-structured"
    MALFORMED_STREAMING_LINE = "malformed-streaming-line"
    NO_PATTERN_MATCH = "no-pattern-match"
    UNEXPECTED_PHASE_TRANSITION = "unexpected-phase-transition"
    OUTPUT_TOO_LARGE = "output-too-large"


@dataclass(frozen=True)
class ParseError:
    """Why an extraction attempt failed."""

    kind: ErrorKind
    detail: str
    line_number: int | None = None  # 1-indexed

    def __str__(self) -> str:
        where = f" (line {self.line_number})" if self.line_number is not None else ""
        return f"{self.kind.value}{where}: {self.detail}"


class TokentrimError(Exception):
    """Base class for configuration defects."""


class ProfileConfigError(TokentrimError):
    """A tool profile carries data incompatible with its strategy."""


class StrategyMismatchError(TokentrimError):
    """A caller asked for a strategy other than the one bound to the tool."""

    def __init__(self, tool_id: str, bound: str, requested: str) -> None:
        super().__init__(
            f"tool '{tool_id}' is bound to strategy '{bound}', not '{requested}'"
        )
        self.tool_id = tool_id
        self.bound = bound
        self.requested = requested
