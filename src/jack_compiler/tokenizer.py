"""
Jack Tokenizer (Scanner)
========================

This module converts Jack source text into a lazy sequence of tokens.
The compilation engine pulls tokens one at a time with ``advance()``;
there is no buffering and no lookahead beyond the current token.

Token Categories
----------------
- Keywords: class, method, let, while, true, this, ...
- Symbols: { } ( ) [ ] . , ; + - * / & | < > = ~
- Identifiers: Unicode letters, digits and underscores, not starting
  with a digit
- Integer constants: unsigned ASCII decimal digits
- String constants: "double quoted", no escapes, single line

Comments
--------
- Single-line: // comment
- Multi-line: /* comment */ and API style /** comment */

Example Usage
-------------
>>> from jack_compiler.tokenizer import JackTokenizer
>>> tokenizer = JackTokenizer('let x = 5;', "Main.jack")
>>> for token in tokenizer.tokenize():
...     print(token)
Token(KEYWORD, 'let', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(SYMBOL, '=', 1:7)
Token(INT_CONST, 5, 1:9)
Token(SYMBOL, ';', 1:10)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional
from xml.sax.saxutils import escape
import string

from jack_compiler.errors import (
    SourceLocation,
    UnexpectedCharacterError,
    UnterminatedStringError,
)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Lexical categories of the Jack language.

    The enum values double as the element names used by the token XML
    dump produced by ``tokens_to_xml``.
    """
    KEYWORD = "keyword"
    SYMBOL = "symbol"
    IDENTIFIER = "identifier"
    INT_CONST = "integerConstant"
    STRING_CONST = "stringConstant"


KEYWORDS = frozenset({
    # Program structure
    "class", "constructor", "function", "method", "field", "static", "var",
    # Types
    "int", "char", "boolean", "void",
    # Constants
    "true", "false", "null", "this",
    # Statements
    "let", "do", "if", "else", "while", "return",
})

SYMBOLS = frozenset("{}()[].,;+-*/&|<>=~")

# Unicode spaces that str.isspace() accepts but Jack treats as characters
# outside the language: the no-break spaces and NEXT LINE.
NON_SEPARATING_SPACES = frozenset("\u00a0\u2007\u202f\u0085")


def is_separator(char: str) -> bool:
    """True for characters skipped between tokens."""
    return char.isspace() and char not in NON_SEPARATING_SPACES


def is_identifier_start(char: str) -> bool:
    """Any Unicode letter or underscore may start an identifier."""
    return char.isalpha() or char == "_"


def is_identifier_part(char: str) -> bool:
    return char.isalnum() or char == "_"


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token of Jack source.

    The payload type is fixed by the token type: ``int`` for INT_CONST,
    ``str`` for everything else (the keyword text, the one-character
    symbol, the identifier, or the string body without quotes).

    Attributes:
        type: The TokenType classification
        value: The token payload
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if isinstance(self.value, int):
            return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_keyword(self, *words: str) -> bool:
        """Return True if this is a keyword token, optionally one of ``words``."""
        if self.type is not TokenType.KEYWORD:
            return False
        return not words or self.value in words

    def is_symbol(self, *symbols: str) -> bool:
        """Return True if this is a symbol token, optionally one of ``symbols``."""
        if self.type is not TokenType.SYMBOL:
            return False
        return not symbols or self.value in symbols

    def describe(self) -> str:
        """Human-readable form used in parser error messages."""
        if self.type is TokenType.STRING_CONST:
            return f'string constant "{self.value}"'
        if self.type is TokenType.INT_CONST:
            return f"integer constant {self.value}"
        return f"{self.type.value} '{self.value}'"


# =============================================================================
# Scanner Implementation
# =============================================================================

class JackTokenizer:
    """
    Pull-based scanner for Jack source code.

    Usage:
        tokenizer = JackTokenizer(source_text, filename)
        while tokenizer.has_more_tokens():
            token = tokenizer.advance()

    After ``advance()`` has run past the last token, ``current`` is None
    and further calls keep returning None.

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        current: The most recently scanned token, or None
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.current: Optional[Token] = None

        self._pos = 0
        self._line = 1
        self._column = 1
        self._lines = [line.rstrip("\r") for line in source.split("\n")]

    # =========================================================================
    # Public Interface
    # =========================================================================

    def has_more_tokens(self) -> bool:
        """Return True if any token remains after whitespace and comments."""
        self._skip_whitespace_and_comments()
        return not self._at_end()

    def advance(self) -> Optional[Token]:
        """
        Scan the next token and make it the current token.

        Returns:
            The new current token, or None at end of input

        Raises:
            UnterminatedStringError: String constant not closed on its line
            UnexpectedCharacterError: Character outside the language
        """
        self._skip_whitespace_and_comments()
        if self._at_end():
            self.current = None
        else:
            self.current = self._scan_token()
        return self.current

    def tokenize(self) -> Iterator[Token]:
        """Yield every remaining token in order."""
        while self.has_more_tokens():
            yield self.advance()

    def end_location(self) -> SourceLocation:
        """Location just past the last consumed character."""
        return SourceLocation(self.filename, self._line, self._column)

    def line_text(self, line: int) -> Optional[str]:
        """Return the text of a 1-indexed source line, for error context."""
        if 0 < line <= len(self._lines):
            return self._lines[line - 1]
        return None

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume one character, keeping line/column up to date."""
        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    # =========================================================================
    # Whitespace and Comments
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()

            if is_separator(char):
                self._advance()
                continue

            if char == "/" and self._peek(1) == "/":
                self._skip_line_comment()
                continue

            if char == "/" and self._peek(1) == "*":
                self._skip_block_comment()
                continue

            break

    def _skip_line_comment(self) -> None:
        """Skip // up to (not including) the line break."""
        while not self._at_end() and self._peek() not in "\r\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        """
        Skip /* ... */ (also /** ... */).

        The first */ closes the comment; comments do not nest. A comment
        left open runs to the end of input.
        """
        self._advance()  # consume /
        self._advance()  # consume *

        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column
        char = self._peek()

        if char == '"':
            return self._scan_string(start_line, start_column)

        if char in SYMBOLS:
            self._advance()
            return self._make_token(TokenType.SYMBOL, char, start_line, start_column)

        if char in string.digits:
            return self._scan_integer(start_line, start_column)

        if is_identifier_start(char):
            return self._scan_word(start_line, start_column)

        raise UnexpectedCharacterError(
            char,
            SourceLocation(self.filename, start_line, start_column),
            self.line_text(start_line),
        )

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """Scan a string constant; the body is kept exactly as written."""
        self._advance()  # consume opening "

        chars = []
        while not self._at_end():
            char = self._peek()

            if char == '"':
                self._advance()
                return self._make_token(
                    TokenType.STRING_CONST, "".join(chars), start_line, start_column
                )

            if char in "\r\n":
                break

            chars.append(self._advance())

        raise UnterminatedStringError(
            SourceLocation(self.filename, start_line, start_column),
            self.line_text(start_line),
        )

    def _scan_integer(self, start_line: int, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())

        value = int("".join(chars))
        return self._make_token(TokenType.INT_CONST, value, start_line, start_column)

    def _scan_word(self, start_line: int, start_column: int) -> Token:
        """Scan an identifier, classifying reserved words as keywords."""
        chars = []
        while self._peek() and is_identifier_part(self._peek()):
            chars.append(self._advance())

        word = "".join(chars)
        token_type = TokenType.KEYWORD if word in KEYWORDS else TokenType.IDENTIFIER
        return self._make_token(token_type, word, start_line, start_column)

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int,
        line: int,
        column: int,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=line,
            column=column,
            filename=self.filename,
        )


# =============================================================================
# Token XML Dump
# =============================================================================

def tokens_to_xml(source: str, filename: str = "<input>") -> str:
    """
    Render the token stream of ``source`` as an XML listing.

    Example:
        >>> print(tokens_to_xml("x < 1"))
        <tokens>
        <identifier> x </identifier>
        <symbol> &lt; </symbol>
        <integerConstant> 1 </integerConstant>
        </tokens>

    Raises:
        JackSyntaxError: If the source cannot be tokenized
    """
    lines = ["<tokens>"]
    for token in JackTokenizer(source, filename).tokenize():
        tag = token.type.value
        value = escape(str(token.value), {'"': "&quot;"})
        lines.append(f"<{tag}> {value} </{tag}>")
    lines.append("</tokens>")
    return "\n".join(lines) + "\n"
