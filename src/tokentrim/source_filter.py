"""Language-aware source filter.

Strips comments and blank-line runs (minimal) and additionally elides
function bodies (aggressive). Filtering is a pure function of the text, the
language and the level, and filtering already-filtered text is a no-op.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath

from tokentrim.models import FilterLevel
from tokentrim.parsing.tokenizer import (
    MASK_CODE,
    MASK_STRING,
    BlockStyle,
    LanguageSpec,
    TokenKind,
    get_language,
    kind_mask,
    language_for_extension,
    tokenize,
)

logger = logging.getLogger(__name__)

CONTROL_KEYWORDS: frozenset[str] = frozenset(
    {
        "if", "else", "for", "while", "do", "switch", "case", "default", "catch",
        "try", "finally", "return", "match", "loop", "with", "using", "lock",
        "foreach", "synchronized", "select", "defer", "go", "when", "new",
        "class", "struct", "enum", "interface", "union", "namespace", "extern",
        "impl", "trait", "mod", "object", "record", "type",
    }
)

_PY_DEF = re.compile(r"^(\s*)(?:async\s+)?def\s")
_FIRST_WORD = re.compile(r"[A-Za-z_]\w*")
_ASSIGNMENT = re.compile(r"(?<![=!<>])=(?![=>])")


def detect_language(path: str | PurePath) -> str | None:
    """Return the language name for a file path, or None if unsupported."""
    spec = language_for_extension(PurePath(path).suffix)
    return spec.name if spec else None


def filter_source(
    text: str,
    language: str | None,
    level: FilterLevel | str = FilterLevel.MINIMAL,
) -> str:
    """Filter source code for compact reading.

    Args:
        text: Source code.
        language: Language name or alias; unknown languages are left untouched.
        level: none, minimal or aggressive.

    Returns:
        Filtered source.
    """
    level = FilterLevel(level)
    spec = get_language(language)
    if level is FilterLevel.NONE or spec is None:
        if spec is None and language:
            logger.debug("no lexer for language %r, leaving source unfiltered", language)
        return text

    result = strip_comments(text, spec)
    if level is FilterLevel.AGGRESSIVE:
        if spec.block_style is BlockStyle.BRACE:
            result = elide_brace_bodies(result, spec)
        elif spec.block_style is BlockStyle.INDENT:
            result = elide_indented_bodies(result, spec)
    return result


# =============================================================================
# MINIMAL: COMMENTS AND BLANK LINES
# =============================================================================


@dataclass
class _Line:
    parts: list[tuple[str, bool]] = field(default_factory=list)  # (text, protected)
    had_comment: bool = False
    starts_in_string: bool = False
    ends_in_string: bool = False

    @property
    def protected(self) -> bool:
        return self.starts_in_string or any(p for _, p in self.parts)


def strip_comments(text: str, spec: LanguageSpec) -> str:
    """Remove comments, trailing whitespace and repeated blank lines.

    String and char literals are copied verbatim, including any lines they
    span. A shebang on the first line is kept.
    """
    lines = [_Line()]
    for token in tokenize(text, spec):
        if token.kind is TokenKind.LINE_COMMENT:
            if token.start == 0 and token.text.startswith("#!"):
                lines[-1].parts.append((token.text, True))
            else:
                lines[-1].had_comment = True
            continue
        if token.kind is TokenKind.BLOCK_COMMENT:
            lines[-1].had_comment = True
            for _ in range(token.text.count("\n")):
                lines.append(_Line(had_comment=True))
            continue

        protected = token.kind is TokenKind.STRING
        for k, segment in enumerate(token.text.split("\n")):
            if k > 0:
                lines[-1].ends_in_string = protected
                lines.append(_Line(starts_in_string=protected))
            if segment:
                lines[-1].parts.append((segment, protected))

    out: list[str] = []
    previous_blank = False
    for line in lines:
        content = "".join(text for text, _ in line.parts)
        if not line.ends_in_string and (not line.parts or not line.parts[-1][1]):
            content = content.rstrip(" \t")
        blank = not line.protected and not content.strip()
        if blank:
            if line.had_comment or previous_blank:
                continue
            content = ""
        out.append(content)
        previous_blank = blank
    return "\n".join(out)


# =============================================================================
# AGGRESSIVE: BRACE-DELIMITED BODIES
# =============================================================================


def _leading_ws(text: str) -> str:
    return text[: len(text) - len(text.lstrip(" \t"))]


def _opens_function(header: str, spec: LanguageSpec) -> bool:
    """Decide whether the code before a '{' is a function signature."""
    if spec.function_keywords and spec.function_keywords.search(header):
        return True
    if spec.method_header is None:
        return False
    stripped = header.strip()
    word = _FIRST_WORD.match(stripped)
    if word and word.group(0) in CONTROL_KEYWORDS:
        return False
    before_params = stripped.split("(", 1)[0]
    if _ASSIGNMENT.search(before_params) or re.search(r"\bnew\b", before_params):
        return False
    return bool(spec.method_header.search(stripped))


def _matching_brace(text: str, mask: bytearray, open_index: int) -> int | None:
    depth = 0
    for j in range(open_index, len(text)):
        if mask[j] != MASK_CODE:
            continue
        ch = text[j]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j
    return None


def elide_brace_bodies(text: str, spec: LanguageSpec) -> str:
    """Replace function bodies with a one-line marker.

    Braces inside strings never count towards the nesting depth.
    """
    mask = kind_mask(text, spec)
    out: list[str] = []
    header: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if mask[i] == MASK_STRING:
            out.append(ch)
            if i == 0 or mask[i - 1] != MASK_STRING:
                header.append('""')
            i += 1
            continue
        if ch == "{":
            close = _matching_brace(text, mask, i) if _opens_function("".join(header), spec) else None
            if close is not None:
                line_start = text.rfind("\n", 0, i) + 1
                indent = _leading_ws(text[line_start:i])
                out.append(f"{{\n{indent}    {spec.elision_marker}\n{indent}}}")
                i = close + 1
            else:
                out.append(ch)
                i += 1
            header = []
            continue
        out.append(ch)
        if ch in ";}":
            header = []
        else:
            header.append(ch)
        i += 1
    return "".join(out)


# =============================================================================
# AGGRESSIVE: INDENTATION-DELIMITED BODIES
# =============================================================================


def _find_header_colon(text: str, mask: bytearray, start: int) -> int | None:
    depth = 0
    for j in range(start, len(text)):
        if mask[j] != MASK_CODE:
            continue
        ch = text[j]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == ":" and depth == 0:
            return j
    return None


def elide_indented_bodies(text: str, spec: LanguageSpec) -> str:
    """Replace ``def`` bodies with the ellipsis marker."""
    mask = kind_mask(text, spec)
    lines = text.split("\n")
    offsets: list[int] = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line) + 1

    def in_string(index: int) -> bool:
        offset = offsets[index]
        return offset > 0 and mask[offset - 1] == MASK_STRING

    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        match = _PY_DEF.match(line)
        if match is None or in_string(i) or mask[offsets[i] + len(match.group(1))] != MASK_CODE:
            out.append(line)
            i += 1
            continue

        colon = _find_header_colon(text, mask, offsets[i] + match.end())
        if colon is None:
            out.append(line)
            i += 1
            continue
        last = i
        while last + 1 < len(lines) and offsets[last + 1] <= colon:
            last += 1

        tail = text[colon + 1 : offsets[last] + len(lines[last])]
        if tail.strip():
            # Body on the header line: def f(): return 1
            out.extend(lines[i:last])
            out.append(lines[last][: colon - offsets[last] + 1] + " " + spec.elision_marker)
            i = last + 1
            continue

        out.extend(lines[i : last + 1])
        indent = len(match.group(1))
        body_indent: str | None = None
        j = body_end = last + 1
        while j < len(lines):
            body_line = lines[j]
            if in_string(j):
                j += 1
                body_end = j
                continue
            if not body_line.strip():
                j += 1
                continue
            lead = _leading_ws(body_line)
            if len(lead) <= indent:
                break
            if body_indent is None:
                body_indent = lead
            j += 1
            body_end = j
        out.append((body_indent or " " * (indent + 4)) + spec.elision_marker)
        i = body_end
    return "\n".join(out)
