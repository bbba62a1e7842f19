"""Tests for the tokenizer and the source filter."""

from __future__ import annotations

import pytest

from tokentrim.models import FilterLevel
from tokentrim.parsing.tokenizer import LANGUAGES, TokenKind, get_language, tokenize
from tokentrim.source_filter import detect_language, filter_source

PYTHON_SOURCE = '''#!/usr/bin/env python3
# module comment
import os


def add(a, b):
    """Add numbers. # not a comment"""
    return a + b  # trailing


x = "# keep"
'''

RUST_SOURCE = '''fn render() -> String {
    let s = "{ not a brace }}";
    format!("{}", s)
}

struct Point {
    x: i32,
}
'''

JS_SOURCE = """// header
const url = "http://example.com"; // trailing
/* block
   comment */
function greet(name) {
  return `hi ${name} // not a comment`;
}
const re = /\\/\\*x/;
"""

SAMPLES = {
    "python": PYTHON_SOURCE,
    "rust": RUST_SOURCE,
    "javascript": JS_SOURCE,
    "go": 'package main\n\n// Add adds.\nfunc Add(a, b int) int {\n\treturn a + b // sum\n}\nvar s = `raw // text`\n',
    "c": 'int main(void) {\n    char c = \'"\';\n    /* c */ return 0; // done\n}\n',
    "shell": '#!/bin/sh\necho "a # b" # comment\nx=a#b\n',
    "cpp": (
        "class A {\npublic:\n    A(int x) : x_(x) {\n        init();\n    }\n};\n"
        "A::A(int x, int y) : x_(x), y_(y) {\n    init();\n}\n"
    ),
}


class TestTokenizer:
    """Tests for the lexical scanner."""

    @pytest.mark.parametrize("language", sorted(SAMPLES))
    def test_lossless(self, language: str) -> None:
        """Test that token texts concatenate back to the input."""
        text = SAMPLES[language]
        tokens = tokenize(text, LANGUAGES[language])
        assert "".join(t.text for t in tokens) == text

    def test_comment_marker_in_string(self) -> None:
        """Test that '//' inside a string is not a comment."""
        tokens = tokenize('let u = "http://x"; // c', LANGUAGES["rust"])
        kinds = [(t.kind, t.text) for t in tokens]
        assert (TokenKind.STRING, '"http://x"') in kinds
        assert (TokenKind.LINE_COMMENT, "// c") in kinds

    def test_rust_lifetime_is_code(self) -> None:
        """Test that a lifetime does not open a char literal."""
        tokens = tokenize("fn f<'a>(x: &'a str) -> char { 'x' }", LANGUAGES["rust"])
        strings = [t.text for t in tokens if t.kind is TokenKind.STRING]
        assert strings == ["'x'"]

    def test_nested_block_comment(self) -> None:
        """Test that rust block comments nest."""
        tokens = tokenize("/* a /* b */ c */ x", LANGUAGES["rust"])
        assert tokens[0].kind is TokenKind.BLOCK_COMMENT
        assert tokens[0].text == "/* a /* b */ c */"

    def test_shell_hash_inside_word(self) -> None:
        """Test that '#' only starts a shell comment at a word boundary."""
        tokens = tokenize("x=a#b # c", LANGUAGES["shell"])
        comments = [t.text for t in tokens if t.kind is TokenKind.LINE_COMMENT]
        assert comments == ["# c"]

    def test_shell_heredoc_is_string(self) -> None:
        """Test that a here-document body is literal text up to its terminator."""
        tokens = tokenize("cat <<EOF\n# Title\nit's here\nEOF\necho done # c\n", LANGUAGES["shell"])
        strings = [t.text for t in tokens if t.kind is TokenKind.STRING]
        comments = [t.text for t in tokens if t.kind is TokenKind.LINE_COMMENT]
        assert strings == ["<<EOF\n# Title\nit's here\nEOF"]
        assert comments == ["# c"]

    def test_shell_here_string_is_not_heredoc(self) -> None:
        """Test that <<< is not mistaken for a here-document."""
        tokens = tokenize("cat <<<'x' # c\nx\n", LANGUAGES["shell"])
        strings = [t.text for t in tokens if t.kind is TokenKind.STRING]
        assert strings == ["'x'"]

    def test_python_fstring_nested_quotes(self) -> None:
        """Test that an f-string field may reuse the enclosing quote."""
        tokens = tokenize('x = f"{d["#"]}" # c', LANGUAGES["python"])
        strings = [t.text for t in tokens if t.kind is TokenKind.STRING]
        assert strings == ['"{d["#"]}"']
        assert (tokens[-1].kind, tokens[-1].text) == (TokenKind.LINE_COMMENT, "# c")

    def test_aliases(self) -> None:
        """Test language lookup by alias."""
        spec = get_language("RS")
        assert spec is not None
        assert spec.name == "rust"
        assert get_language("cobol") is None
        assert get_language(None) is None


class TestDetectLanguage:
    """Tests for language detection by extension."""

    def test_known_extensions(self) -> None:
        """Test common extensions."""
        assert detect_language("src/main.rs") == "rust"
        assert detect_language("app/models.py") == "python"
        assert detect_language("web/App.tsx") == "typescript"
        assert detect_language("cmd/main.go") == "go"

    def test_unknown_extension(self) -> None:
        """Test that unsupported files have no language."""
        assert detect_language("README.md") is None


class TestMinimalFilter:
    """Tests for comment and blank-line stripping."""

    def test_python(self) -> None:
        """Test stripping comments while keeping strings and the shebang."""
        result = filter_source(PYTHON_SOURCE, "python", FilterLevel.MINIMAL)
        assert result == (
            "#!/usr/bin/env python3\n"
            "import os\n"
            "\n"
            "def add(a, b):\n"
            '    """Add numbers. # not a comment"""\n'
            "    return a + b\n"
            "\n"
            'x = "# keep"\n'
        )

    def test_string_literal_safety(self) -> None:
        """Test that comment markers inside strings survive."""
        result = filter_source(JS_SOURCE, "javascript", "minimal")
        assert 'const url = "http://example.com";' in result
        assert "`hi ${name} // not a comment`" in result
        assert "// header" not in result
        assert "// trailing" not in result
        assert "block" not in result

    def test_regex_literal_kept(self) -> None:
        """Test that a JS regex containing comment openers is code."""
        result = filter_source(JS_SOURCE, "javascript", "minimal")
        assert "const re = /\\/\\*x/;" in result

    def test_shell(self) -> None:
        """Test shell comments and quoted hashes."""
        result = filter_source(SAMPLES["shell"], "shell", "minimal")
        assert result == '#!/bin/sh\necho "a # b"\nx=a#b\n'

    def test_shell_heredoc_kept(self) -> None:
        """Test that comment markers and quotes inside a here-document are kept."""
        text = "cat <<EOF\n# Title\nit's here\nEOF\necho done # c\n"
        result = filter_source(text, "shell", "minimal")
        assert result == "cat <<EOF\n# Title\nit's here\nEOF\necho done\n"

    def test_shell_indented_quoted_heredoc(self) -> None:
        """Test <<- with a quoted word and a tab-indented terminator."""
        text = "cat <<-'EOF'\n\t# not a comment\n\tit's\n\tEOF\n# real\nls\n"
        result = filter_source(text, "shell", "minimal")
        assert result == "cat <<-'EOF'\n\t# not a comment\n\tit's\n\tEOF\nls\n"

    def test_python_fstrings(self) -> None:
        """Test f-strings with nested quotes and a '#' in the format spec."""
        text = 'x = f"{d["#"]}"\nn = f"{v:#x}"  # hex\ny = 1\n'
        result = filter_source(text, "python", "minimal")
        assert result == 'x = f"{d["#"]}"\nn = f"{v:#x}"\ny = 1\n'

    def test_none_level_is_identity(self) -> None:
        """Test that level none returns the input unchanged."""
        assert filter_source(PYTHON_SOURCE, "python", FilterLevel.NONE) == PYTHON_SOURCE

    def test_unknown_language_is_identity(self) -> None:
        """Test that unsupported languages are passed through."""
        text = "* a comment?\n\n\n  body\n"
        assert filter_source(text, "cobol", FilterLevel.AGGRESSIVE) == text
        assert filter_source(text, None, FilterLevel.MINIMAL) == text

    def test_invalid_level(self) -> None:
        """Test that an unknown level is rejected."""
        with pytest.raises(ValueError):
            filter_source("x = 1\n", "python", "extreme")


class TestAggressiveFilter:
    """Tests for function body elision."""

    def test_rust_braces_in_strings(self) -> None:
        """Test that braces inside string literals do not end the body."""
        result = filter_source(RUST_SOURCE, "rust", FilterLevel.AGGRESSIVE)
        assert result == (
            "fn render() -> String {\n"
            "    // ...\n"
            "}\n"
            "\n"
            "struct Point {\n"
            "    x: i32,\n"
            "}\n"
        )

    def test_python_def_body(self) -> None:
        """Test that def bodies become an ellipsis."""
        result = filter_source(PYTHON_SOURCE, "python", FilterLevel.AGGRESSIVE)
        assert "def add(a, b):\n    ...\n" in result
        assert "return a + b" not in result
        assert 'x = "# keep"' in result

    def test_python_inline_body(self) -> None:
        """Test a body on the header line."""
        result = filter_source("def f(): return 1\n", "python", FilterLevel.AGGRESSIVE)
        assert result == "def f(): ...\n"

    def test_go_function(self) -> None:
        """Test eliding a Go function body."""
        result = filter_source(SAMPLES["go"], "go", FilterLevel.AGGRESSIVE)
        assert "func Add(a, b int) int {\n    // ...\n}" in result
        assert "return a + b" not in result
        assert "var s = `raw // text`" in result

    def test_control_blocks_kept(self) -> None:
        """Test that blocks that are not functions are kept in C."""
        text = "struct S {\n    int x;\n};\nint main(void) {\n    if (x) {\n        y();\n    }\n}\n"
        result = filter_source(text, "c", FilterLevel.AGGRESSIVE)
        assert "struct S {\n    int x;\n};" in result
        assert "int main(void) {\n    // ...\n}" in result

    def test_go_map_of_funcs_kept(self) -> None:
        """Test that func in a type is not a function body."""
        text = 'var m = map[string]func() int{\n\t"a": one,\n}\n'
        assert filter_source(text, "go", FilterLevel.AGGRESSIVE) == text

    def test_go_func_literal(self) -> None:
        """Test that an assigned func literal is elided."""
        text = "var f = func(a int) int {\n\treturn a\n}\n"
        result = filter_source(text, "go", FilterLevel.AGGRESSIVE)
        assert result == "var f = func(a int) int {\n    // ...\n}\n"

    def test_cpp_constructor_init_list(self) -> None:
        """Test constructors with member initializer lists."""
        result = filter_source(SAMPLES["cpp"], "cpp", FilterLevel.AGGRESSIVE)
        assert result == (
            "class A {\n"
            "public:\n"
            "    A(int x) : x_(x) {\n"
            "        // ...\n"
            "    }\n"
            "};\n"
            "A::A(int x, int y) : x_(x), y_(y) {\n"
            "    // ...\n"
            "}\n"
        )

    @pytest.mark.parametrize("language", sorted(SAMPLES))
    @pytest.mark.parametrize("level", [FilterLevel.MINIMAL, FilterLevel.AGGRESSIVE])
    def test_idempotent(self, language: str, level: FilterLevel) -> None:
        """Test that filtering filtered source changes nothing."""
        once = filter_source(SAMPLES[language], language, level)
        assert filter_source(once, language, level) == once
