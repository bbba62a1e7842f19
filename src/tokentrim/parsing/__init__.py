"""Parsing infrastructure for tool output.

This module provides:
- Event registry for newline-delimited JSON streams
- Pydantic models for structured tool outputs
- A lexical tokenizer for source code in several languages
"""

from tokentrim.parsing.models import (
    EslintFileResult,
    EslintMessage,
    GenericDiagnostic,
    MypyJsonOutput,
    RuffDiagnostic,
    get_mypy_json_schema,
)
from tokentrim.parsing.registry import (
    EventMatcher,
    EventRegistry,
    EventSchema,
    FieldEquals,
    HasFields,
    LineResult,
    ParsedEvent,
    Predicate,
    RejectedEvent,
    UnparsedLine,
    schema_from_fields,
)
from tokentrim.parsing.tokenizer import (
    LANGUAGES,
    LanguageSpec,
    Token,
    TokenKind,
    get_language,
    language_for_extension,
    tokenize,
)

__all__ = [
    # Registry
    "EventRegistry",
    "EventSchema",
    "LineResult",
    "ParsedEvent",
    "UnparsedLine",
    "RejectedEvent",
    # Matchers
    "EventMatcher",
    "FieldEquals",
    "HasFields",
    "Predicate",
    # Utilities
    "schema_from_fields",
    # Models
    "MypyJsonOutput",
    "get_mypy_json_schema",
    "RuffDiagnostic",
    "EslintFileResult",
    "EslintMessage",
    "GenericDiagnostic",
    # Tokenizer
    "LANGUAGES",
    "LanguageSpec",
    "Token",
    "TokenKind",
    "get_language",
    "language_for_extension",
    "tokenize",
]
