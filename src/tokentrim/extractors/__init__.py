"""Extractors turning tool output text into records.

- StructuredExtractor: one JSON document validated by a pydantic model
- StreamingExtractor: newline-delimited JSON events dispatched by an EventRegistry
- PatternExtractor: ordered regex templates, first match wins
- PhasedExtractor: explicit state machine over lines
- PlainExtractor: one record per line (logs)
"""

from tokentrim.extractors.base import (
    Extracted,
    ExtractionFailed,
    Extraction,
    Extractor,
    ExtractMode,
)
from tokentrim.extractors.pattern import PatternExtractor, PatternTemplate
from tokentrim.extractors.phased import (
    ANY_PHASE,
    PhaseAction,
    PhasedExtractor,
    PhaseRule,
    PhaseTable,
)
from tokentrim.extractors.plain import PlainExtractor
from tokentrim.extractors.streaming import StreamingExtractor
from tokentrim.extractors.structured import StructuredExtractor

__all__ = [
    # Results
    "Extracted",
    "ExtractionFailed",
    "Extraction",
    "Extractor",
    "ExtractMode",
    # Implementations
    "PatternExtractor",
    "PatternTemplate",
    "PhasedExtractor",
    "PhaseTable",
    "PhaseRule",
    "PhaseAction",
    "ANY_PHASE",
    "PlainExtractor",
    "StreamingExtractor",
    "StructuredExtractor",
]
