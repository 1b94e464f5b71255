"""
Lexer for the Brisk scripting language.

Converts source text into a stream of tokens for the parser.
Supports:
- Numeric literals in four radixes, with prefix (0x, 0h, 0d, 0o, 0q, 0b, 0y)
  or suffix (h, d, o, q, b, y) forms and `_` digit separators
- Float literals (1.5, .5)
- Single and double quoted strings with \\n, \\r, \\t escapes
- Text spans: $"sum: {a + b}"
- Single-line (//) and multi-line (/* */) comments
- All operators, matched greedily (longest first)

Whitespace and comments never reach the parser.
"""

import logging
from typing import List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, OPERATORS,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_text_span,
    error_invalid_number_literal,
    error_dangling_dollar,
)

logger = logging.getLogger(__name__)

# Characters allowed inside the digit run of a numeric literal
NUMBER_CHARS = frozenset("0123456789abcdefABCDEF._")

ESCAPE_CHARS = {
    'n': '\n',
    'r': '\r',
    't': '\t',
}

HEX_PREFIXES = "xh"
DEC_PREFIXES = "d"
OCT_PREFIXES = "oq"
BIN_PREFIXES = "by"

WHITESPACE = " \t\r\n"
DIGITS = "0123456789"


class Lexer:
    """
    Tokenizer for Brisk source text.

    Either call tokenize() for the whole list, or iterate the lexer to
    pull tokens one at a time:

        for token in Lexer('print(1)'):
            ...
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0
        # 1-based, for diagnostics
        self.line = 1
        self.column = 1
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        """Source split into lines, built on first use."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Return source line `line_num` (1-based), or None past the end."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _skip_trivia(self) -> None:
        """Discard whitespace and comments ahead of the next token."""
        while not self._is_at_end():
            ch = self._peek()
            if ch in WHITESPACE:
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while not self._is_at_end() and self._peek() != '\n':
                    self._advance()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_multiline_comment()
            else:
                break

    def _skip_multiline_comment(self) -> None:
        """Skip /* ... */; an unterminated comment runs to end of input."""
        self._advance()  # consume '/'
        self._advance()  # consume '*'
        while not self._is_at_end():
            if self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()

    def _scan_string(self) -> Token:
        """Scan a quoted string literal."""
        start = self._location()
        quote = self._advance()

        chars = []
        while not self._is_at_end() and self._peek() != quote:
            ch = self._advance()
            if ch == '\\':
                if self._is_at_end():
                    break
                esc = self._advance()
                chars.append(ESCAPE_CHARS.get(esc, esc))
            else:
                chars.append(ch)

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start), self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING, ''.join(chars), start)

    def _scan_text_span(self, tokens: List[Token]) -> None:
        """
        Scan $"...{expr}..." into LSPAN, STRING runs, braced hole tokens
        and RSPAN.
        """
        start = self._location()
        self._advance()  # consume '$'
        quote = self._peek()
        if quote not in '"\'':
            raise error_dangling_dollar(
                self._span(start), self.get_source_line(start.line)
            )
        self._advance()
        tokens.append(self._make_token(TokenType.LSPAN, "$" + quote, start))

        chars: List[str] = []
        run_start = self._location()
        while True:
            if self._is_at_end():
                raise error_unterminated_text_span(
                    self._span(start), self.get_source_line(start.line)
                )
            ch = self._peek()
            if ch == quote:
                break
            if ch == '\\':
                self._advance()
                if self._is_at_end():
                    continue
                esc = self._advance()
                chars.append(ESCAPE_CHARS.get(esc, esc))
            elif ch == '{':
                if chars:
                    tokens.append(self._make_token(TokenType.STRING, ''.join(chars), run_start))
                    chars = []
                self._scan_hole(tokens, start)
                run_start = self._location()
            else:
                chars.append(self._advance())

        if chars:
            tokens.append(self._make_token(TokenType.STRING, ''.join(chars), run_start))
        end_start = self._location()
        self._advance()  # consume closing quote
        tokens.append(self._make_token(TokenType.RSPAN, quote, end_start))

    def _scan_hole(self, tokens: List[Token], span_start: SourceLocation) -> None:
        """Scan one {expr} interpolation hole, braces included."""
        brace_start = self._location()
        self._advance()
        tokens.append(self._make_token(TokenType.LBLOCK, "{", brace_start))

        depth = 0
        while True:
            self._skip_trivia()
            if self._is_at_end():
                raise error_unterminated_text_span(
                    self._span(span_start), self.get_source_line(span_start.line)
                )
            if self._peek() == '$':
                self._scan_text_span(tokens)
                continue
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.LBLOCK:
                depth += 1
            elif token.type == TokenType.RBLOCK:
                if depth == 0:
                    return
                depth -= 1

    def _scan_number(self) -> Token:
        """
        Scan a numeric literal.

        The token value is the digit run with any radix prefix letter or
        suffix letter removed; underscores are kept and stripped by the
        parser when the literal is converted.
        """
        start = self._location()
        token_type = TokenType.DEC
        chars: List[str] = []

        if self._peek() == '.':
            # .5 is a float, a lone '.' is member access
            self._advance()
            if self._peek() not in DIGITS:
                return self._make_token(TokenType.DOT, ".", start)
            chars.append('.')
            while self._peek() in DIGITS:
                chars.append(self._advance())
            return self._make_token(TokenType.FLOAT, ''.join(chars), start)

        if self._peek() == '0':
            chars.append(self._advance())
            prefix = self._peek()
            if prefix in HEX_PREFIXES:
                self._advance()
                token_type = TokenType.HEX
            elif prefix in DEC_PREFIXES:
                self._advance()
            elif prefix in OCT_PREFIXES:
                self._advance()
                token_type = TokenType.OCT
            elif prefix in BIN_PREFIXES:
                self._advance()
                token_type = TokenType.BIN

        is_float = False
        while not self._is_at_end() and self._peek() in NUMBER_CHARS:
            if self._peek() == '.':
                if token_type not in (TokenType.DEC, TokenType.FLOAT):
                    self._advance()
                    lexeme = self.source[start.offset:self.pos]
                    raise error_invalid_number_literal(
                        lexeme, self._span(start), self.get_source_line(start.line)
                    )
                if is_float:
                    break
                token_type = TokenType.FLOAT
                is_float = True
            chars.append(self._advance())

        if token_type == TokenType.DEC and chars and chars[-1] == 'd':
            chars.pop()
        elif token_type == TokenType.DEC and chars and chars[-1] == 'b':
            chars.pop()
            token_type = TokenType.BIN
        elif token_type != TokenType.HEX and self._peek() == 'h':
            self._advance()
            token_type = TokenType.HEX
        elif self._peek() in 'qo':
            self._advance()
            token_type = TokenType.OCT
        elif self._peek() == 'y':
            self._advance()
            token_type = TokenType.BIN

        return self._make_token(token_type, ''.join(chars), start)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if lexeme in KEYWORDS:
            return self._make_token(TokenType.KEYWORD, lexeme, start, lexeme)
        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_operator(self) -> Token:
        """Greedy longest match against the operator table."""
        start = self._location()
        for width in (3, 2, 1):
            text = self.source[self.pos:self.pos + width]
            if len(text) == width and text in OPERATORS:
                for _ in range(width):
                    self._advance()
                return self._make_token(OPERATORS[text], text, start, text)

        ch = self._advance()
        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def _scan_token(self) -> Token:
        """Scan the next significant token (trivia already skipped)."""
        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        ch = self._peek()

        if ch in '"\'':
            return self._scan_string()

        if ch in DIGITS or (ch == "." and self._peek(1) in DIGITS):
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        return self._scan_operator()

    def _scan_into(self, tokens: List[Token]) -> Token:
        """Append the next token (or a whole text span) and return the last one."""
        self._skip_trivia()
        if self._peek() == '$':
            self._scan_text_span(tokens)
        else:
            tokens.append(self._scan_token())
        return tokens[-1]

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens: List[Token] = []
        while True:
            token = self._scan_into(tokens)
            if token.type == TokenType.EOF:
                break
        logger.debug("tokenized %d characters into %d tokens", len(self.source), len(tokens))
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            batch: List[Token] = []
            last = self._scan_into(batch)
            yield from batch
            if last.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, terminated by an EOF token

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
