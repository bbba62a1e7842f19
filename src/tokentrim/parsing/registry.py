"""Event registry for newline-delimited JSON output.

Tools such as ``go test -json`` and ``mypy -O json`` print one JSON object
per line, and one stream often mixes several event shapes. An
``EventRegistry`` holds one named schema per shape. Each line is decoded,
offered to the schemas whose matcher accepts it (most specific first),
validated with jsonschema and finally handed to the schema's converter,
which turns the event into a ``Record`` or drops it by returning ``None``.

Usage:
    registry = (
        EventRegistry()
        .register("TestFailed", event_schema, to_failure, FieldEquals("Action", "fail"))
        .register("Event", event_schema, lambda _: None)
    )

    result = registry.decode_line(line)
    if isinstance(result, ParsedEvent) and result.record:
        print(result.record.message)
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError, best_match

from tokentrim.errors import ProfileConfigError
from tokentrim.models import Record

Converter = Callable[[dict[str, Any]], Record | None]

DRAFT7 = "http://json-schema.org/draft-07/schema#"

# =============================================================================
# MATCHERS
# =============================================================================


class EventMatcher(ABC):
    """Cheap pre-check deciding whether a schema is tried for an event.

    Schemas with a higher ``priority`` are tried first; schemas registered
    without a matcher accept every event at priority 0.
    """

    priority: int = 0

    @abstractmethod
    def matches(self, event: dict[str, Any]) -> bool:
        """Return True if the schema should be tried for this event."""


@dataclass(frozen=True)
class FieldEquals(EventMatcher):
    """Match a discriminator value, e.g. ``{"Action": "fail"}``."""

    name: str
    value: Any
    priority: int = 80

    def matches(self, event: dict[str, Any]) -> bool:
        return self.name in event and event[self.name] == self.value


@dataclass(frozen=True)
class HasFields(EventMatcher):
    """Match by the presence (and absence) of top-level fields."""

    required: frozenset[str]
    forbidden: frozenset[str] = frozenset()
    priority: int = 50

    def matches(self, event: dict[str, Any]) -> bool:
        return all(f in event for f in self.required) and not any(f in event for f in self.forbidden)


@dataclass(frozen=True)
class Predicate(EventMatcher):
    """Match with an arbitrary function of the event."""

    test: Callable[[dict[str, Any]], bool]
    priority: int = 60

    def matches(self, event: dict[str, Any]) -> bool:
        return bool(self.test(event))


# =============================================================================
# SCHEMAS
# =============================================================================


@dataclass(frozen=True)
class EventSchema:
    """One event shape: a JSON Schema, its matcher and its converter."""

    name: str
    schema: dict[str, Any]
    converter: Converter
    matcher: EventMatcher | None = None
    validator: Draft7Validator = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            Draft7Validator.check_schema(self.schema)
        except SchemaError as e:
            raise ProfileConfigError(f"event schema '{self.name}' is invalid: {e.message}") from e
        object.__setattr__(self, "validator", Draft7Validator(self.schema))

    @property
    def priority(self) -> int:
        return self.matcher.priority if self.matcher else 0

    def first_error(self, event: dict[str, Any]) -> str | None:
        """Return the most relevant validation error, or None if the event is valid."""
        error = best_match(self.validator.iter_errors(event))
        return error.message if error is not None else None


# =============================================================================
# LINE RESULTS
# =============================================================================


@dataclass(frozen=True)
class ParsedEvent:
    """A decoded event accepted by one schema."""

    schema_name: str
    event: dict[str, Any]
    record: Record | None  # None when the schema drops this event


@dataclass(frozen=True)
class UnparsedLine:
    """A line that is not a JSON object."""

    line: str
    reason: str

    def describe(self) -> str:
        return self.reason


@dataclass(frozen=True)
class RejectedEvent:
    """A JSON object no schema accepted."""

    event: dict[str, Any]
    misses: tuple[tuple[str, str], ...]  # (schema name, first error), in the order tried

    def describe(self) -> str:
        if not self.misses:
            return "no event schema matched"
        name, error = self.misses[0]
        return f"event failed schema '{name}': {error}"


LineResult = ParsedEvent | UnparsedLine | RejectedEvent


# =============================================================================
# REGISTRY
# =============================================================================


class EventRegistry:
    """Named event schemas with priority dispatch."""

    def __init__(self) -> None:
        self._schemas: dict[str, EventSchema] = {}

    def register(
        self,
        name: str,
        schema: dict[str, Any],
        converter: Converter,
        matcher: EventMatcher | None = None,
    ) -> EventRegistry:
        """Register an event shape. Returns self for chaining.

        Raises:
            ProfileConfigError: If the name is taken or the schema is not valid JSON Schema.
        """
        if name in self._schemas:
            raise ProfileConfigError(f"event schema '{name}' is registered twice")
        self._schemas[name] = EventSchema(name, schema, converter, matcher)
        return self

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def candidates(self, event: dict[str, Any]) -> list[EventSchema]:
        """Schemas whose matcher accepts the event, highest priority first.

        Ties keep registration order.
        """
        accepted = [s for s in self._schemas.values() if s.matcher is None or s.matcher.matches(event)]
        return sorted(accepted, key=lambda s: -s.priority)

    def decode_line(self, line: str) -> LineResult:
        """Decode one line and dispatch it to the first schema that accepts it.

        A converter raising ``ValueError`` (pydantic's ``ValidationError``
        included) counts as a miss for its schema, and the next candidate
        is tried.
        """
        text = line.strip()
        if not text:
            return UnparsedLine(text, "empty")
        if not text.startswith("{"):
            return UnparsedLine(text, "not JSON")
        try:
            event = json.loads(text)
        except json.JSONDecodeError as e:
            return UnparsedLine(text, f"JSON decode error: {e}")
        except RecursionError:
            return UnparsedLine(text, "JSON decode error: too deeply nested")

        misses: list[tuple[str, str]] = []
        for candidate in self.candidates(event):
            error = candidate.first_error(event)
            if error is None:
                try:
                    return ParsedEvent(candidate.name, event, candidate.converter(event))
                except ValueError as e:
                    error = str(e).partition("\n")[0] or "rejected by converter"
            misses.append((candidate.name, error))
        return RejectedEvent(event, tuple(misses))


# =============================================================================
# UTILITIES
# =============================================================================


def _field_schema(spec: str) -> dict[str, Any]:
    if spec.startswith("enum:"):
        return {"type": "string", "enum": [v.strip() for v in spec.removeprefix("enum:").split(",")]}
    types = [t.strip() for t in spec.split("|")]
    if len(types) == 1:
        return {"type": types[0]}
    return {"anyOf": [{"type": t} for t in types]}


def schema_from_fields(
    required: dict[str, str],
    optional: dict[str, str] | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Build an object schema from short field specs.

    Specs are JSON type names (``"string"``, ``"integer"``...), unions such
    as ``"string|null"``, or string enumerations written ``"enum:a,b,c"``.
    """
    specs = {**(optional or {}), **required}
    schema: dict[str, Any] = {
        "$schema": DRAFT7,
        "type": "object",
        "properties": {name: _field_schema(spec) for name, spec in specs.items()},
        "required": list(required),
    }
    if title:
        schema["title"] = title
    return schema
