"""go test profile: ``go test -json`` event stream.

Every line is a test2json event with an ``Action`` discriminator. Failed
tests become ERROR records, passed and skipped tests INFO records (kept for
the counts line), package results SUMMARY records. ``output`` events are
ignored except for assertion lines (``    x_test.go:12: got 1``), which are
kept as INFO records labelled with their test. Compiler errors reported
through ``build-output`` events become ERROR records.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from tokentrim.extractors import PatternTemplate
from tokentrim.models import Location, Record, RecordKind, Strategy
from tokentrim.parsing.registry import (
    EventRegistry,
    FieldEquals,
    HasFields,
    Predicate,
    schema_from_fields,
)
from tokentrim.tools.base import RendererKind, ToolProfile

GO_TEST_EVENT_SCHEMA = schema_from_fields(
    required={"Action": "string"},
    optional={
        "Time": "string",
        "Package": "string",
        "ImportPath": "string",
        "Test": "string",
        "Output": "string",
        "Elapsed": "number",
    },
    title="TestEvent",
)

_ASSERTION = re.compile(r"^\s+(?P<file>[\w./-]+\.go):(?P<line>\d+): (?P<message>.*)$")
_COMPILE_ERROR = re.compile(r"^(?P<file>[\w./-]+\.go):(?P<line>\d+):(?P<column>\d+): (?P<message>.+)$")

# Plain `go test` output, for lines that are not events (build failures)
GO_TEST_TEXT_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate(RecordKind.ERROR, _COMPILE_ERROR),
    PatternTemplate.compile(RecordKind.ERROR, r"^--- FAIL: (?P<message>\S+).*$", code="fail"),
    PatternTemplate.compile(RecordKind.SUMMARY, r"^(?P<message>(?:FAIL|ok)\s+\S+.*)$"),
)


def _is_test(action: str) -> Callable[[dict[str, Any]], bool]:
    return lambda data: data.get("Action") == action and "Test" in data


def _test_failed(data: dict[str, Any]) -> Record:
    return Record(kind=RecordKind.ERROR, code="fail", message=data["Test"])


def _test_passed(data: dict[str, Any]) -> Record:
    return Record(kind=RecordKind.INFO, code="pass", message=data["Test"])


def _test_skipped(data: dict[str, Any]) -> Record:
    return Record(kind=RecordKind.INFO, code="skip", message=data["Test"])


def _package_result(data: dict[str, Any]) -> Record:
    status = "ok" if data["Action"] == "pass" else data["Action"].upper()
    elapsed = f" {data['Elapsed']}s" if "Elapsed" in data else ""
    message = f"{status} {data.get('Package', '')}{elapsed}"
    return Record(kind=RecordKind.SUMMARY, code="package", message=message)


def _build_output(data: dict[str, Any]) -> Record | None:
    match = _COMPILE_ERROR.match(data.get("Output", "").rstrip("\n"))
    if not match:
        return None
    return Record(
        kind=RecordKind.ERROR,
        code="build",
        location=Location(file=match["file"], line=match["line"], column=match["column"]),
        message=match["message"],
    )


def _output(data: dict[str, Any]) -> Record | None:
    match = _ASSERTION.match(data.get("Output", "").rstrip("\n"))
    if not match or "Test" not in data:
        return None
    return Record(
        kind=RecordKind.INFO,
        code="output",
        location=Location(file=match["file"], line=match["line"]),
        message=match["message"],
        details=(data["Test"],),
    )


def go_test_events() -> EventRegistry:
    """Registry for test2json events."""
    return (
        EventRegistry()
        .register("TestFailed", GO_TEST_EVENT_SCHEMA, _test_failed, Predicate(_is_test("fail"), 90))
        .register("TestPassed", GO_TEST_EVENT_SCHEMA, _test_passed, Predicate(_is_test("pass"), 90))
        .register("TestSkipped", GO_TEST_EVENT_SCHEMA, _test_skipped, Predicate(_is_test("skip"), 90))
        .register("Output", GO_TEST_EVENT_SCHEMA, _output, Predicate(_is_test("output"), 85))
        .register(
            "PackageResult",
            GO_TEST_EVENT_SCHEMA,
            _package_result,
            Predicate(lambda d: d.get("Action") in ("pass", "fail", "skip") and "Test" not in d, 70),
        )
        .register("BuildOutput", GO_TEST_EVENT_SCHEMA, _build_output, FieldEquals("Action", "build-output"))
        # run/pause/cont/start/bench, build-fail and package-level output
        .register("Event", GO_TEST_EVENT_SCHEMA, lambda _: None, HasFields(frozenset({"Action"})))
    )


def go_test_profile() -> ToolProfile:
    """Build the go test profile."""
    return ToolProfile(
        tool_id="go-test",
        strategy=Strategy.STREAMING,
        renderer=RendererKind.TEST_FAILURES,
        events=go_test_events(),
        fallback_templates=GO_TEST_TEXT_TEMPLATES,
    )
