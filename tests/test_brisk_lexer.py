"""
Tests for the Brisk lexer.
"""

import pytest
from brisk import tokenize, Lexer, TokenType, LexerError


def types_of(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic tokenization."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Whitespace-only source produces only EOF."""
        assert types_of("   \n\t  \r\n") == [TokenType.EOF]

    def test_declaration(self):
        """A declaration lexes to type, name, '=' and literal."""
        tokens = tokenize("int x = 42")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EQ,
            TokenType.DEC, TokenType.EOF,
        ]
        assert tokens[0].value == "int"
        assert tokens[1].value == "x"
        assert tokens[3].value == "42"

    def test_identifiers(self):
        """Identifiers may contain underscores and digits."""
        tokens = tokenize("_private camelCase snake_case x1")
        assert [t.value for t in tokens[:-1]] == ["_private", "camelCase", "snake_case", "x1"]
        assert all(t.type == TokenType.IDENTIFIER for t in tokens[:-1])

    def test_span_tracking(self):
        """Tokens record their line and column."""
        tokens = tokenize("a\n  b")
        assert tokens[0].span.start.line == 1
        assert tokens[0].span.start.column == 1
        assert tokens[1].span.start.line == 2
        assert tokens[1].span.start.column == 3

    def test_filename_in_location(self):
        """The filename is carried into source locations."""
        tokens = tokenize("x", filename="demo.bk")
        assert str(tokens[0].span.start) == "demo.bk:1:1"


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        """Line comments run to the end of the line."""
        assert types_of("1 // two\n3") == [TokenType.DEC, TokenType.DEC, TokenType.EOF]

    def test_block_comment(self):
        """Block comments may span lines."""
        assert types_of("1 /* two\n two */ 3") == [TokenType.DEC, TokenType.DEC, TokenType.EOF]

    def test_unterminated_block_comment(self):
        """An unterminated block comment runs to end of input."""
        assert types_of("1 /* never closed") == [TokenType.DEC, TokenType.EOF]


class TestKeywords:
    """Test keyword recognition."""

    @pytest.mark.parametrize("word", [
        "true", "false", "null", "const", "ret", "if", "elif", "else",
        "while", "for", "continue", "break", "jmp", "map",
    ])
    def test_keyword(self, word):
        """Reserved words lex as KEYWORD tokens."""
        token = tokenize(word)[0]
        assert token.type == TokenType.KEYWORD
        assert token.is_keyword(word)

    def test_type_names_are_identifiers(self):
        """Type names are ordinary identifiers."""
        assert types_of("int float auto") == [TokenType.IDENTIFIER] * 3 + [TokenType.EOF]

    def test_keyword_prefix_is_identifier(self):
        """A keyword followed by more word characters is an identifier."""
        token = tokenize("iffy")[0]
        assert token.type == TokenType.IDENTIFIER


class TestStringLiterals:
    """Test string literal tokenization."""

    def test_double_quotes(self):
        token = tokenize('"hello"')[0]
        assert token.type == TokenType.STRING
        assert token.value == "hello"

    def test_single_quotes(self):
        token = tokenize("'it is'")[0]
        assert token.value == "it is"

    def test_escapes(self):
        """\\n, \\r and \\t are translated; other escapes keep the character."""
        token = tokenize(r'"a\nb\tc\"d"')[0]
        assert token.value == 'a\nb\tc"d'

    def test_lexeme_keeps_source_text(self):
        token = tokenize(r'"a\n"')[0]
        assert token.lexeme == r'"a\n"'

    def test_unterminated_string(self):
        """Unterminated strings are lexer errors."""
        with pytest.raises(LexerError) as exc_info:
            tokenize('"never closed')
        assert exc_info.value.code == "E002"


class TestNumericLiterals:
    """Test numeric literal radix forms."""

    @pytest.mark.parametrize("source,expected", [
        ("255", TokenType.DEC),
        ("255d", TokenType.DEC),
        ("0d255", TokenType.DEC),
        ("0xff", TokenType.HEX),
        ("0hff", TokenType.HEX),
        ("0ffh", TokenType.HEX),
        ("0o377", TokenType.OCT),
        ("0q377", TokenType.OCT),
        ("377o", TokenType.OCT),
        ("377q", TokenType.OCT),
        ("0b11111111", TokenType.BIN),
        ("0y11111111", TokenType.BIN),
        ("11111111b", TokenType.BIN),
        ("11111111y", TokenType.BIN),
        ("3.14", TokenType.FLOAT),
        (".5", TokenType.FLOAT),
    ])
    def test_radix(self, source, expected):
        """Prefix and suffix letters select the radix."""
        tokens = tokenize(source)
        assert len(tokens) == 2
        assert tokens[0].type == expected

    def test_underscores_kept_in_value(self):
        """Digit separators survive lexing and are stripped by the parser."""
        token = tokenize("1_000_000")[0]
        assert token.type == TokenType.DEC
        assert token.value == "1_000_000"

    def test_suffix_letter_removed(self):
        token = tokenize("255d")[0]
        assert token.value == "255"
        assert token.lexeme == "255d"

    def test_float_followed_by_dot(self):
        """A second '.' ends the float literal."""
        tokens = tokenize("1.5.")
        assert tokens[0].type == TokenType.FLOAT
        assert tokens[0].value == "1.5"
        assert tokens[1].type == TokenType.DOT

    def test_dot_in_hex_literal(self):
        """Only decimal literals may contain a '.'."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("0x1.5")
        assert exc_info.value.code == "E006"


class TestOperators:
    """Test operator tokenization."""

    @pytest.mark.parametrize("source,expected", [
        ("**=", TokenType.POW_EQ),
        ("<<=", TokenType.SHL_EQ),
        (">>=", TokenType.SHR_EQ),
        ("&&=", TokenType.AND_EQ),
        ("||=", TokenType.OR_EQ),
        ("??=", TokenType.NULLISH_EQ),
        ("**", TokenType.POW),
        ("??", TokenType.NULLISH),
        ("?.", TokenType.OPT_CHAIN),
        ("++", TokenType.PPLUS),
        ("--", TokenType.MMINUS),
        ("=>", TokenType.ARROW),
        ("==", TokenType.EE),
        ("!=", TokenType.NE),
        ("~", TokenType.BNOT),
        ("?", TokenType.QMARK),
    ])
    def test_operator(self, source, expected):
        """Operators match greedily, longest first."""
        tokens = tokenize(source)
        assert tokens[0].type == expected
        assert tokens[0].lexeme == source

    def test_greedy_sequence(self):
        """a**=b lexes to a single compound operator."""
        assert types_of("a**=b") == [
            TokenType.IDENTIFIER, TokenType.POW_EQ, TokenType.IDENTIFIER, TokenType.EOF,
        ]

    def test_member_access(self):
        """A '.' not followed by a digit is member access."""
        assert types_of("xs.size") == [
            TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.EOF,
        ]

    def test_unexpected_character(self):
        """Unknown characters are lexer errors."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("int x = @")
        assert exc_info.value.code == "E001"
        assert "@" in exc_info.value.message


class TestTextSpans:
    """Test $"..." interpolated strings."""

    def test_plain_span(self):
        assert types_of('$"hello"') == [
            TokenType.LSPAN, TokenType.STRING, TokenType.RSPAN, TokenType.EOF,
        ]

    def test_span_with_hole(self):
        """Holes keep their braces around the inner tokens."""
        tokens = tokenize('$"a{b}c"')
        assert [t.type for t in tokens] == [
            TokenType.LSPAN, TokenType.STRING, TokenType.LBLOCK,
            TokenType.IDENTIFIER, TokenType.RBLOCK, TokenType.STRING,
            TokenType.RSPAN, TokenType.EOF,
        ]
        assert tokens[1].value == "a"
        assert tokens[5].value == "c"

    def test_hole_with_expression(self):
        tokens = tokenize('$"{a + 1}"')
        assert [t.type for t in tokens] == [
            TokenType.LSPAN, TokenType.LBLOCK, TokenType.IDENTIFIER,
            TokenType.PLUS, TokenType.DEC, TokenType.RBLOCK,
            TokenType.RSPAN, TokenType.EOF,
        ]

    def test_nested_braces_in_hole(self):
        """Braces inside a hole are balanced before the hole closes."""
        tokens = tokenize('$"{map {1: 2}}"')
        assert tokens[-2].type == TokenType.RSPAN
        assert [t.type for t in tokens].count(TokenType.RBLOCK) == 2

    def test_nested_span(self):
        tokens = tokenize('$"x{$"y"}"')
        assert [t.type for t in tokens].count(TokenType.LSPAN) == 2
        assert [t.type for t in tokens].count(TokenType.RSPAN) == 2

    def test_single_quoted_span(self):
        tokens = tokenize("$'a'")
        assert tokens[0].type == TokenType.LSPAN
        assert tokens[2].type == TokenType.RSPAN

    def test_unterminated_span(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize('$"abc')
        assert exc_info.value.code == "E003"

    def test_unterminated_hole(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize('$"abc{x')
        assert exc_info.value.code == "E003"

    def test_dangling_dollar(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("$x")
        assert exc_info.value.code == "E009"


class TestErrorMessages:
    """Test error message quality."""

    def test_error_has_column_info(self):
        """Error points at the offending character."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("int x = @")
        assert exc_info.value.span.start.column == 9

    def test_error_shows_source_line(self):
        """Formatted errors quote the source line with a caret."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("int x = @")
        formatted = str(exc_info.value)
        assert "1:9" in formatted
        assert "int x = @" in formatted
        assert "^" in formatted
        assert "SyntaxError[E001]" in formatted


class TestLexerIterator:
    """Test lexer as iterator."""

    def test_iterate_tokens(self):
        tokens = list(Lexer("int x = 5"))
        assert len(tokens) == 5
        assert tokens[-1].type == TokenType.EOF

    def test_iterator_yields_whole_spans(self):
        tokens = list(Lexer('$"a{b}"'))
        assert [t.type for t in tokens] == types_of('$"a{b}"')
