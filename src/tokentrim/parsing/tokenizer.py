"""Lexical scanner for source code in several languages.

The scanner only knows enough about a language to tell code apart from
comments and string/char literals. Its output is lossless: joining the text
of every token gives back the input exactly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

# =============================================================================
# TOKENS
# =============================================================================


class TokenKind(str, Enum):
    """Lexical category of a token."""

    CODE = "code"
    STRING = "string"
    LINE_COMMENT = "line-comment"
    BLOCK_COMMENT = "block-comment"


@dataclass(frozen=True)
class Token:
    """A contiguous run of text of one lexical category."""

    kind: TokenKind
    text: str
    start: int


# Per-character kinds returned by kind_mask()
MASK_CODE = 0
MASK_STRING = 1
MASK_COMMENT = 2


# =============================================================================
# LANGUAGE SPECS
# =============================================================================


class BlockStyle(str, Enum):
    """How a language delimits function bodies."""

    BRACE = "brace"
    INDENT = "indent"
    NONE = "none"


class CharStyle(str, Enum):
    """How single quotes behave."""

    NONE = "none"  # single quote is an ordinary string quote (or not special)
    C = "c"  # 'x' char literal with escapes
    RUST = "rust"  # 'x' char literal, or a lifetime like 'a


class RawStyle(str, Enum):
    """Raw string syntax without escapes."""

    NONE = "none"
    RUST = "rust"  # r"..", r#".."#, br".."
    CPP = "cpp"  # R"delim(..)delim"


@dataclass(frozen=True)
class LanguageSpec:
    """Lexical and structural facts about one language."""

    name: str
    extensions: tuple[str, ...]
    line_comments: tuple[str, ...] = ()
    block_comment: tuple[str, str] | None = None
    nested_block_comments: bool = False
    # Longest delimiters first: '"""' must be tried before '"'
    quotes: tuple[str, ...] = ('"',)
    multiline_quotes: frozenset[str] = field(default_factory=frozenset)
    verbatim_quotes: frozenset[str] = field(default_factory=frozenset)  # backslash is literal
    char_style: CharStyle = CharStyle.NONE
    raw_style: RawStyle = RawStyle.NONE
    template_quote: str | None = None  # JS backtick with ${...} holes
    regex_literals: bool = False
    comment_needs_boundary: bool = False  # shell: '#' only starts a comment at a word start
    heredocs: bool = False  # shell: <<WORD ... WORD bodies are literal text
    format_prefixes: str = ""  # prefix letters (f, t) whose strings hold {...} replacement fields
    block_style: BlockStyle = BlockStyle.NONE
    # Headers matching function_keywords always open a function body;
    # method_header matches only when the header doesn't start with a control keyword.
    function_keywords: re.Pattern[str] | None = None
    method_header: re.Pattern[str] | None = None
    elision_marker: str = "..."


_C_INIT_LIST = r"\s*:\s*[\w:<>]+\s*\([^;{}]*\)(?:\s*,\s*[\w:<>]+\s*\([^;{}]*\))*"

_C_METHOD_HEADER = re.compile(
    r"[\w\]>*&]\s+[*&]*\s*[~A-Za-z_][\w:<>,~]*\s*\([^;{}]*\)"
    r"\s*(?:const\s*)?(?:noexcept\s*)?(?:override\s*)?(?:final\s*)?"
    r"(?:throws\s+[\w.,\s]+)?(?:->\s*[\w:<>*&\s]+)?$"
    # Constructors have no return type: A::A(int x) : x_(x) outside the class,
    # A(int x) : x_(x) inside it
    r"|(?:^|\n)\s*(?:[\w<>]+::)+~?[A-Za-z_]\w*\s*\([^;{}]*\)\s*(?:noexcept\s*)?"
    rf"(?:{_C_INIT_LIST})?$"
    rf"|(?:^|\n)\s*~?[A-Za-z_]\w*\s*\([^;{{}}]*\){_C_INIT_LIST}$"
)

_JS_METHOD_HEADER = re.compile(
    r"^\s*(?:(?:public|private|protected|static|async|get|set|override|readonly|abstract)\s+)*"
    r"\*?\s*[A-Za-z_$#][\w$]*\s*(?:<[^>]*>)?\s*\([^)]*\)\s*(?::\s*[^{;=]+)?$"
)

LANGUAGES: dict[str, LanguageSpec] = {
    spec.name: spec
    for spec in (
        LanguageSpec(
            name="python",
            extensions=(".py", ".pyi", ".pyw"),
            line_comments=("#",),
            quotes=('"""', "'''", '"', "'"),
            multiline_quotes=frozenset({'"""', "'''"}),
            format_prefixes="fFtT",
            block_style=BlockStyle.INDENT,
            elision_marker="...",
        ),
        LanguageSpec(
            name="rust",
            extensions=(".rs",),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            nested_block_comments=True,
            quotes=('"',),
            multiline_quotes=frozenset({'"'}),
            char_style=CharStyle.RUST,
            raw_style=RawStyle.RUST,
            block_style=BlockStyle.BRACE,
            function_keywords=re.compile(r"\bfn\s+[A-Za-z_]\w*"),
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="go",
            extensions=(".go",),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            quotes=('"', "`"),
            multiline_quotes=frozenset({"`"}),
            verbatim_quotes=frozenset({"`"}),
            char_style=CharStyle.C,
            block_style=BlockStyle.BRACE,
            # "func" in a type such as map[string]func() int is not a function literal
            function_keywords=re.compile(r"(?m)^\s*func\b|(?:[(,=:{;]|\b(?:return|go|defer))\s*func\b"),
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="javascript",
            extensions=(".js", ".jsx", ".mjs", ".cjs"),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            quotes=('"', "'"),
            template_quote="`",
            regex_literals=True,
            block_style=BlockStyle.BRACE,
            function_keywords=re.compile(r"\bfunction\b|=>\s*$"),
            method_header=_JS_METHOD_HEADER,
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="typescript",
            extensions=(".ts", ".tsx", ".mts", ".cts"),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            quotes=('"', "'"),
            template_quote="`",
            regex_literals=True,
            block_style=BlockStyle.BRACE,
            function_keywords=re.compile(r"\bfunction\b|=>\s*$"),
            method_header=_JS_METHOD_HEADER,
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="c",
            extensions=(".c", ".h"),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            char_style=CharStyle.C,
            block_style=BlockStyle.BRACE,
            method_header=_C_METHOD_HEADER,
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="cpp",
            extensions=(".cc", ".cpp", ".cxx", ".hpp", ".hh", ".hxx"),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            char_style=CharStyle.C,
            raw_style=RawStyle.CPP,
            block_style=BlockStyle.BRACE,
            method_header=_C_METHOD_HEADER,
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="java",
            extensions=(".java",),
            line_comments=("//",),
            block_comment=("/*", "*/"),
            quotes=('"""', '"'),
            multiline_quotes=frozenset({'"""'}),
            char_style=CharStyle.C,
            block_style=BlockStyle.BRACE,
            method_header=_C_METHOD_HEADER,
            elision_marker="// ...",
        ),
        LanguageSpec(
            name="shell",
            extensions=(".sh", ".bash", ".zsh"),
            line_comments=("#",),
            quotes=('"', "'"),
            multiline_quotes=frozenset({'"', "'"}),
            verbatim_quotes=frozenset({"'"}),
            comment_needs_boundary=True,
            heredocs=True,
        ),
    )
}

ALIASES: dict[str, str] = {
    "py": "python",
    "rs": "rust",
    "golang": "go",
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "c++": "cpp",
    "cxx": "cpp",
    "sh": "shell",
    "bash": "shell",
    "zsh": "shell",
}


def get_language(name: str | None) -> LanguageSpec | None:
    """Look up a language by name or alias (case-insensitive)."""
    if not name:
        return None
    key = name.strip().lower()
    return LANGUAGES.get(ALIASES.get(key, key))


def language_for_extension(suffix: str) -> LanguageSpec | None:
    """Look up a language by file suffix such as ``.rs``."""
    suffix = suffix.lower()
    for spec in LANGUAGES.values():
        if suffix in spec.extensions:
            return spec
    return None


# =============================================================================
# SCANNER
# =============================================================================

_RUST_CHAR = re.compile(r"'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^\\'\n])'")
_RUST_RAW = re.compile(r'b?r(#*)"')
_CPP_RAW = re.compile(r'(?:u8|u|U|L)?R"([^()\\\s]{0,16})\(')
# <<EOF, <<-EOF, <<'EOF', <<"EOF"; not the <<< here-string
_HEREDOC = re.compile(r"""(?<!<)<<(?!<)(-?)[ \t]*(?:'(\w+)'|"(\w+)"|\\?([A-Za-z_]\w*))""")
_STRING_PREFIX_CHARS = "rRbBuUfFtT"

# A '/' after one of these (or at the start) begins a regex literal, not a division
_REGEX_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = ("return", "typeof", "case", "in", "of", "delete", "void", "throw", "yield")


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _scan_quoted(text: str, i: int, quote: str, spec: LanguageSpec) -> int:
    """Return the end index of the string starting with ``quote`` at ``i``."""
    n = len(text)
    escapes = quote not in spec.verbatim_quotes
    multiline = quote in spec.multiline_quotes
    j = i + len(quote)
    while j < n:
        if text.startswith(quote, j):
            return j + len(quote)
        ch = text[j]
        if ch == "\\" and escapes:
            j += 2
            continue
        if ch == "\n" and not multiline:
            return j  # unterminated: stop before the newline
        j += 1
    return n


def _scan_block_comment(text: str, i: int, delimiters: tuple[str, str], nested: bool) -> int:
    open_, close = delimiters
    depth = 1
    j = i + len(open_)
    n = len(text)
    while j < n:
        if text.startswith(close, j):
            depth -= 1
            j += len(close)
            if depth == 0 or not nested:
                return j
            continue
        if nested and text.startswith(open_, j):
            depth += 1
            j += len(open_)
            continue
        j += 1
    return n


def _scan_template(text: str, i: int, quote: str, spec: LanguageSpec) -> int:
    """Scan a template literal, skipping over ``${...}`` holes."""
    n = len(text)
    j = i + len(quote)
    while j < n:
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if text.startswith(quote, j):
            return j + len(quote)
        if text.startswith("${", j):
            j = _scan_template_hole(text, j + 2, spec)
            continue
        j += 1
    return n


def _scan_template_hole(text: str, j: int, spec: LanguageSpec) -> int:
    depth = 1
    n = len(text)
    while j < n:
        special = _match_special(text, j, spec)
        if special is not None:
            j = special[0]
            continue
        ch = text[j]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j + 1
        j += 1
    return n


def _has_format_prefix(text: str, i: int, format_prefixes: str) -> bool:
    """True if the quote at ``i`` carries a prefix such as ``f`` or ``rf``."""
    k = i
    while k > 0 and i - k < 2 and text[k - 1] in _STRING_PREFIX_CHARS:
        k -= 1
    if k > 0 and _is_ident_char(text[k - 1]):
        return False
    return any(c in format_prefixes for c in text[k:i])


def _scan_format_string(text: str, i: int, quote: str, spec: LanguageSpec) -> int:
    """Scan an f-string; replacement fields may contain strings with the same quote."""
    n = len(text)
    multiline = quote in spec.multiline_quotes
    j = i + len(quote)
    while j < n:
        if text.startswith(quote, j):
            return j + len(quote)
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == "\n" and not multiline:
            return j
        if text.startswith("{{", j):
            j += 2
            continue
        if ch == "{":
            j = _scan_replacement_field(text, j + 1, spec)
            continue
        j += 1
    return n


def _scan_replacement_field(text: str, j: int, spec: LanguageSpec) -> int:
    """Scan from just after a field's '{' to just after its '}'.

    After a top-level ':' the rest is a format spec: plain text (``#x``
    included) with nested fields.
    """
    n = len(text)
    nesting = 0
    in_format_spec = False
    while j < n:
        ch = text[j]
        if in_format_spec:
            if ch == "{":
                j = _scan_replacement_field(text, j + 1, spec)
                continue
            if ch == "}":
                return j + 1
            j += 1
            continue
        special = _match_special(text, j, spec)
        if special is not None and special[1] is TokenKind.STRING:
            j = special[0]
            continue
        if ch == "}" and nesting == 0:
            return j + 1
        if ch in "([{":
            nesting += 1
        elif ch in ")]}":
            nesting -= 1
        elif ch == ":" and nesting == 0:
            in_format_spec = True
        j += 1
    return n


def _scan_heredoc(text: str, header: re.Match[str]) -> int:
    """Scan a here-document from its ``<<WORD`` operator to its terminator line.

    Without a terminator only the operator itself is taken, so a stray
    ``<<`` never swallows the rest of the file.
    """
    strip_tabs = bool(header.group(1))
    word = header.group(2) or header.group(3) or header.group(4)
    n = len(text)
    newline = text.find("\n", header.end())
    if newline == -1:
        return header.end()
    j = newline + 1
    while j < n:
        end = text.find("\n", j)
        line = text[j:] if end == -1 else text[j:end]
        if (line.lstrip("\t") if strip_tabs else line) == word:
            return j + len(line)
        if end == -1:
            break
        j = end + 1
    return header.end()


def _scan_regex_literal(text: str, i: int) -> int | None:
    """Scan a JS regex literal; None if it doesn't close on this line."""
    n = len(text)
    j = i + 1
    in_class = False
    while j < n:
        ch = text[j]
        if ch == "\n":
            return None
        if ch == "\\":
            j += 2
            continue
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            j += 1
            while j < n and text[j].isalpha():  # flags
                j += 1
            return j
        j += 1
    return None


def _regex_allowed(text: str, i: int) -> bool:
    k = i - 1
    while k >= 0 and text[k] in " \t":
        k -= 1
    if k < 0 or text[k] == "\n":
        return True
    if text[k] in _REGEX_PRECEDERS:
        return True
    for word in _REGEX_KEYWORDS:
        start = k - len(word) + 1
        if start >= 0 and text[start : k + 1] == word and (start == 0 or not _is_ident_char(text[start - 1])):
            return True
    return False


def _match_special(text: str, i: int, spec: LanguageSpec) -> tuple[int, TokenKind] | None:
    """Return (end, kind) if a comment or literal starts at ``i``."""
    ch = text[i]

    for marker in spec.line_comments:
        if text.startswith(marker, i):
            if spec.comment_needs_boundary and i > 0 and text[i - 1] not in " \t\n;|&(":
                break
            end = text.find("\n", i)
            return (len(text) if end == -1 else end), TokenKind.LINE_COMMENT

    if spec.block_comment and text.startswith(spec.block_comment[0], i):
        end = _scan_block_comment(text, i, spec.block_comment, spec.nested_block_comments)
        return end, TokenKind.BLOCK_COMMENT

    if spec.heredocs and ch == "<" and (m := _HEREDOC.match(text, i)):
        return _scan_heredoc(text, m), TokenKind.STRING

    prev_is_ident = i > 0 and _is_ident_char(text[i - 1])

    if spec.raw_style is RawStyle.RUST and ch in "br" and not prev_is_ident:
        if m := _RUST_RAW.match(text, i):
            closing = '"' + m.group(1)
            end = text.find(closing, m.end())
            return (len(text) if end == -1 else end + len(closing)), TokenKind.STRING

    if spec.raw_style is RawStyle.CPP and ch in "uULR" and not prev_is_ident:
        if m := _CPP_RAW.match(text, i):
            closing = ")" + m.group(1) + '"'
            end = text.find(closing, m.end())
            return (len(text) if end == -1 else end + len(closing)), TokenKind.STRING

    if spec.template_quote and text.startswith(spec.template_quote, i):
        return _scan_template(text, i, spec.template_quote, spec), TokenKind.STRING

    if ch == "/" and spec.regex_literals and _regex_allowed(text, i):
        end = _scan_regex_literal(text, i)
        if end is not None:
            return end, TokenKind.STRING

    if ch == "'" and spec.char_style is not CharStyle.NONE:
        if spec.char_style is CharStyle.RUST:
            if m := _RUST_CHAR.match(text, i):
                return m.end(), TokenKind.STRING
            return None  # lifetime or label
        return _scan_quoted(text, i, "'", spec), TokenKind.STRING

    for quote in spec.quotes:
        if text.startswith(quote, i):
            if spec.format_prefixes and _has_format_prefix(text, i, spec.format_prefixes):
                return _scan_format_string(text, i, quote, spec), TokenKind.STRING
            return _scan_quoted(text, i, quote, spec), TokenKind.STRING

    return None


def tokenize(text: str, spec: LanguageSpec) -> list[Token]:
    """Split ``text`` into code, string and comment tokens.

    Args:
        text: Source code.
        spec: Language to scan with.

    Returns:
        Tokens in order; adjacent code is merged into one token.
    """
    tokens: list[Token] = []
    code_start = 0
    i = 0
    n = len(text)
    while i < n:
        special = _match_special(text, i, spec)
        if special is None:
            i += 1
            continue
        end, kind = special
        if i > code_start:
            tokens.append(Token(TokenKind.CODE, text[code_start:i], code_start))
        tokens.append(Token(kind, text[i:end], i))
        i = code_start = end
    if n > code_start:
        tokens.append(Token(TokenKind.CODE, text[code_start:], code_start))
    return tokens


def kind_mask(text: str, spec: LanguageSpec) -> bytearray:
    """Per-character lexical kind (MASK_CODE, MASK_STRING or MASK_COMMENT)."""
    mask = bytearray(len(text))
    for token in tokenize(text, spec):
        if token.kind is TokenKind.CODE:
            continue
        value = MASK_STRING if token.kind is TokenKind.STRING else MASK_COMMENT
        mask[token.start : token.start + len(token.text)] = bytes([value]) * len(token.text)
    return mask
