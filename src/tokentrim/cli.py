"""Command-line front end for the engine.

The proxy that runs commands is a separate program; this CLI only
transforms output that was already captured.

Usage:
    pytest 2>&1 | tokentrim parse --tool pytest --exit-code $?
    tokentrim parse --tool mypy --stderr mypy.err mypy.out
    tokentrim read src/app.py --level aggressive
    tokentrim tools

``parse`` prints the rendered result on stdout, the tier and any warnings
on stderr, and exits with the original exit code. Limits are read from
``TOKENTRIM_*`` environment variables (see ``tokentrim.config``).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from tokentrim.config import EngineConfig
from tokentrim.controller import Engine
from tokentrim.errors import TokentrimError
from tokentrim.models import FilterLevel, RawOutput, Strategy, Tier
from tokentrim.source_filter import detect_language, filter_source
from tokentrim.tools import default_registry

logger = logging.getLogger(__name__)

# Exit status for usage and configuration errors
EXIT_USAGE = 2


def _read_input(source: str | None) -> bytes:
    if source is None or source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tokentrim", description="Condense developer tool output.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="log more (-vv for debug)")
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser("parse", help="condense captured tool output")
    parse_cmd.add_argument("input", nargs="?", help="captured stdout (default: stdin)")
    parse_cmd.add_argument("--tool", required=True, help="originating tool id, e.g. pytest")
    parse_cmd.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        help="expected strategy (must match the tool's registered one)",
    )
    parse_cmd.add_argument("--exit-code", type=int, default=0, help="exit code of the tool")
    parse_cmd.add_argument("--stderr", metavar="FILE", help="captured stderr")

    read_cmd = commands.add_parser("read", help="print a source file with comments or bodies removed")
    read_cmd.add_argument("file")
    read_cmd.add_argument("--level", choices=[f.value for f in FilterLevel], help="filter level")
    read_cmd.add_argument("--language", help="override language detection")

    commands.add_parser("tools", help="list registered tool profiles")
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _run_parse(args: argparse.Namespace, config: EngineConfig) -> int:
    raw = RawOutput(
        stdout=_read_input(args.input),
        stderr=Path(args.stderr).read_bytes() if args.stderr else b"",
        exit_code=args.exit_code,
        tool_id=args.tool,
    )
    strategy = Strategy(args.strategy) if args.strategy else None
    result = Engine(default_registry(), config).parse(raw, strategy)

    sys.stdout.write(result.rendered)
    if not result.rendered.endswith("\n"):
        sys.stdout.write("\n")
    if result.tier is not Tier.FULL:
        print(f"[tokentrim] tier: {result.tier.value}", file=sys.stderr)
    for warning in result.warnings:
        print(f"[tokentrim] {warning}", file=sys.stderr)

    usage = result.usage()
    logger.info(
        "%s: %d -> %d bytes (%s, %s)",
        usage.tool_id,
        usage.input_size,
        usage.output_size,
        usage.strategy.value,
        usage.tier.value,
    )
    return result.exit_code


def _run_read(args: argparse.Namespace, config: EngineConfig) -> int:
    text = Path(args.file).read_text(encoding="utf-8", errors="replace")
    language = args.language or detect_language(args.file)
    level = FilterLevel(args.level) if args.level else config.filter_level
    sys.stdout.write(filter_source(text, language, level))
    return 0


def _run_tools() -> int:
    for profile in default_registry().profiles():
        aliases = f" (aliases: {', '.join(profile.aliases)})" if profile.aliases else ""
        print(f"{profile.tool_id:<20} {profile.strategy.value:<11} {profile.renderer.value}{aliases}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv: Arguments without the program name (default: ``sys.argv[1:]``).

    Returns:
        Exit code: the tool's exit code for ``parse``, 2 on usage errors.
    """
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = EngineConfig.from_env(os.environ)
        if args.command == "parse":
            return _run_parse(args, config)
        if args.command == "read":
            return _run_read(args, config)
        return _run_tools()
    except (TokentrimError, ValidationError, OSError) as e:
        print(f"tokentrim: error: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
