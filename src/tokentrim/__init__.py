"""tokentrim - token-minimizing output transformation for developer tools.

This package condenses the captured output of linters, compilers, test
runners, version control and container tools while keeping what a reader
needs to act on it: exit codes, failure locations and error identifiers.

Usage:
    # Run via CLI
    pytest 2>&1 | tokentrim parse --tool pytest --exit-code $?

    # Or call the engine directly
    from tokentrim import Engine, RawOutput
    result = Engine().parse(RawOutput(stdout=out, exit_code=1, tool_id="pytest"))
    print(result.rendered)

    # Source filtering
    from tokentrim import filter_source
    print(filter_source(code, "rust", "aggressive"))

Every result carries a tier: full, degraded (partial parse, marked) or
passthrough (the raw output, truncated at a ceiling).
"""

import logging

from tokentrim.config import EngineConfig
from tokentrim.controller import Engine, parse
from tokentrim.errors import ErrorKind, ParseError, ProfileConfigError, StrategyMismatchError, TokentrimError
from tokentrim.models import FilterLevel, Location, ParseResult, RawOutput, Record, RecordKind, Strategy, Tier
from tokentrim.source_filter import detect_language, filter_source
from tokentrim.tools import ToolRegistry, default_registry

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Engine",
    "parse",
    "EngineConfig",
    "RawOutput",
    "ParseResult",
    "Record",
    "RecordKind",
    "Location",
    "Strategy",
    "Tier",
    "FilterLevel",
    "ErrorKind",
    "ParseError",
    "TokentrimError",
    "ProfileConfigError",
    "StrategyMismatchError",
    "ToolRegistry",
    "default_registry",
    "filter_source",
    "detect_language",
]
__version__ = "0.1.0"
