"""Deduplication and grouping of records.

Both operations are order-stable: collapsed entries and groups appear in
the order their key was first seen, never re-sorted by count.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from tokentrim.models import Record, RecordKind

K = TypeVar("K", bound=Hashable)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)|\x1b[@-Z\\-_]")
_WHITESPACE = re.compile(r"\s+")


def strip_ansi(text: str) -> str:
    """Remove ANSI color and control escape sequences."""
    return _ANSI_ESCAPE.sub("", text)


def normalize_message(text: str) -> str:
    """Normalize a message for equality: no ANSI escapes, collapsed whitespace."""
    return _WHITESPACE.sub(" ", strip_ansi(text)).strip()


def dedupe(records: Iterable[Record]) -> list[tuple[Record, int]]:
    """Collapse records with the same kind and normalized message.

    Location is not part of the key, so the same line repeated at different
    places collapses; the first-seen record (and its location) is kept.

    Args:
        records: Records in emission order.

    Returns:
        (first record, occurrence count) pairs in first-occurrence order.
    """
    first_seen: dict[tuple[RecordKind, str], Record] = {}
    counts: Counter[tuple[RecordKind, str]] = Counter()
    for record in records:
        key = (record.kind, normalize_message(record.message))
        first_seen.setdefault(key, record)
        counts[key] += 1
    return [(record, counts[key]) for key, record in first_seen.items()]


def expand(deduped: Iterable[tuple[Record, int]]) -> list[Record]:
    """Inverse of ``dedupe``: repeat each record ``count`` times."""
    return [record for record, count in deduped for _ in range(count)]


def group_by(records: Iterable[Record], key_fn: Callable[[Record], K]) -> dict[K, list[Record]]:
    """Group records by key.

    Keys are ordered by first appearance; records keep emission order
    inside each group.
    """
    groups: dict[K, list[Record]] = {}
    for record in records:
        groups.setdefault(key_fn(record), []).append(record)
    return groups


# =============================================================================
# KEY FUNCTIONS
# =============================================================================


def by_file(record: Record) -> tuple[str]:
    """Group key: the record's file ('' when it has no location)."""
    return (record.file or "",)


def by_file_and_code(record: Record) -> tuple[str, str]:
    """Group key: file plus error code."""
    return (record.file or "", record.code or "")


def by_code(record: Record) -> str:
    """Group key: the record's code label."""
    return record.code or ""
