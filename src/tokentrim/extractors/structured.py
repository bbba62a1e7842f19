"""Extraction of a single JSON document validated by a pydantic model."""

from __future__ import annotations

import json
from typing import Any, Protocol

from pydantic import BaseModel, TypeAdapter, ValidationError

from tokentrim.errors import ErrorKind, ParseError
from tokentrim.extractors.base import (
    Extracted,
    ExtractionFailed,
    Extraction,
    Extractor,
    ExtractMode,
    pluralize,
)
from tokentrim.extractors.pattern import PatternExtractor
from tokentrim.models import Record

# Bracket positions tried when looking for a document embedded in noise
_MAX_DOCUMENT_ATTEMPTS = 64


class RecordSource(Protocol):
    """A validated document item that knows its records."""

    def to_records(self) -> list[Record]:
        """Return the records described by this item."""
        ...


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    where = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{pluralize(error.error_count(), 'schema violation')}, first at {where}: {first['msg']}"


class StructuredExtractor(Extractor):
    """Parses the whole text as one JSON array of items.

    Strict mode requires the text to be exactly one JSON document whose
    items all validate against ``item_model``. Lenient mode keeps the items
    that validate, tolerates text around the document, and when no JSON can
    be found at all falls back to line templates over the same text.
    """

    def __init__(
        self,
        item_model: type[BaseModel],
        *,
        items_key: str | None = None,
        fallback: PatternExtractor | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            item_model: Pydantic model for one array item; must implement
                ``to_records()``.
            items_key: Key of the array when the document is an object.
            fallback: Templates tried in lenient mode when the JSON is unusable.
        """
        self.item_model = item_model
        self.items_key = items_key
        self.fallback = fallback
        self._adapter: TypeAdapter[list[Any]] = TypeAdapter(list[item_model])  # type: ignore[valid-type]

    def extract(self, text: str, mode: ExtractMode) -> Extraction:
        """Extract records from the JSON document in ``text``."""
        if mode is ExtractMode.STRICT:
            return self._extract_strict(text)
        return self._extract_lenient(text)

    def _items(self, document: Any) -> list[Any] | None:
        if self.items_key is not None:
            if not isinstance(document, dict):
                return None
            document = document.get(self.items_key)
        return document if isinstance(document, list) else None

    def _extract_strict(self, text: str) -> Extraction:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            return ExtractionFailed(
                ParseError(ErrorKind.MALFORMED_STRUCTURED, f"invalid JSON: {e.msg}", e.lineno)
            )
        except RecursionError:
            return ExtractionFailed(
                ParseError(ErrorKind.MALFORMED_STRUCTURED, "invalid JSON: too deeply nested")
            )

        items = self._items(document)
        if items is None:
            where = f"an array under '{self.items_key}'" if self.items_key else "a JSON array"
            return ExtractionFailed(ParseError(ErrorKind.MALFORMED_STRUCTURED, f"expected {where}"))

        try:
            parsed: list[RecordSource] = self._adapter.validate_python(items)
        except ValidationError as e:
            return ExtractionFailed(ParseError(ErrorKind.MALFORMED_STRUCTURED, _describe(e)))

        return Extracted(records=tuple(r for item in parsed for r in item.to_records()))

    def _extract_lenient(self, text: str) -> Extraction:
        document = _find_document(text)
        items = self._items(document) if document is not None else None
        if items is None:
            if self.fallback is not None:
                return self.fallback.extract(text, ExtractMode.LENIENT)
            return ExtractionFailed(
                ParseError(ErrorKind.MALFORMED_STRUCTURED, "no usable JSON document found")
            )

        records: list[Record] = []
        skipped = 0
        for item in items:
            try:
                source: RecordSource = self.item_model.model_validate(item)  # type: ignore[assignment]
            except ValidationError:
                skipped += 1
                continue
            records.extend(source.to_records())

        warnings = (f"{pluralize(skipped, 'item')} skipped (schema violation)",) if skipped else ()
        return Extracted(records=tuple(records), warnings=warnings)


def _find_document(text: str) -> Any | None:
    """Decode the first JSON document in ``text``, ignoring surrounding noise."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        pass

    decoder = json.JSONDecoder()
    for opener in ("[", "{"):
        start = text.find(opener)
        attempts = 0
        while start != -1 and attempts < _MAX_DOCUMENT_ATTEMPTS:
            attempts += 1
            try:
                document, _ = decoder.raw_decode(text, start)
            except (json.JSONDecodeError, RecursionError):
                start = text.find(opener, start + 1)
                continue
            return document
    return None
