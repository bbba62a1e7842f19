"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tokentrim.config import EngineConfig
from tokentrim.controller import Engine
from tokentrim.models import ParseResult, RawOutput
from tokentrim.tools import ToolRegistry, default_registry


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures_exempt"


@pytest.fixture
def read_fixture(fixtures_dir: Path) -> Callable[[str], bytes]:
    """Return a helper reading a fixture file as captured bytes."""

    def read(name: str) -> bytes:
        return (fixtures_dir / name).read_bytes()

    return read


@pytest.fixture
def registry() -> ToolRegistry:
    """Return a fresh registry with the built-in profiles."""
    return default_registry()


@pytest.fixture
def engine(registry: ToolRegistry) -> Engine:
    """Return an engine with default limits."""
    return Engine(registry, EngineConfig())


@pytest.fixture
def run_tool(engine: Engine, read_fixture: Callable[[str], bytes]) -> Callable[..., ParseResult]:
    """Return a helper parsing a fixture file as a tool's stdout."""

    def run(tool_id: str, name: str, exit_code: int = 1, stderr: bytes = b"") -> ParseResult:
        raw = RawOutput(stdout=read_fixture(name), stderr=stderr, exit_code=exit_code, tool_id=tool_id)
        return engine.parse(raw)

    return run
