"""
Jack Compiler Error Hierarchy
=============================

This module defines the exception hierarchy for the Jack compiler.
Every error is fatal for the compilation unit in which it is raised:
the compiler stops at the first problem and the unit-level caller is
responsible for releasing the output stream.

Exception Hierarchy
-------------------
JackError (base for all compiler errors)
├── JackSyntaxError - scanner and parser errors
│   ├── UnterminatedStringError - missing closing quote
│   ├── UnexpectedCharacterError - character outside the language
│   ├── SourceEncodingError - source bytes not in the source encoding
│   └── UnexpectedTokenError - parser expected something else
├── JackSemanticError - name resolution errors
│   ├── UnresolvedIdentifierError - name declared in neither scope
│   └── DuplicateDeclarationError - name declared twice in one scope
└── InvalidDefinitionError - internal invariant violation

Error Message Format
--------------------
    Main.jack:5:12: error: unresolved identifier 'cout'
        let cout = count + 1;
               ^
    hint: did you mean 'count'?
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in a source file, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base Exception
# =============================================================================

class JackError(Exception):
    """
    Base exception for all Jack compiler errors.

    ``str(error)`` is the full report: the headline, then (when the
    offending line is known) the line with a caret under the column,
    then the hint. Tabs in the quoted line are expanded so the caret
    still lines up with the token.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    INDENT = "    "
    TAB_SIZE = 4

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self.report())

    @property
    def headline(self) -> str:
        prefix = f"{self.location}: " if self.location else ""
        return f"{prefix}error: {self.message}"

    def excerpt(self) -> List[str]:
        """The quoted source line and its caret, or nothing."""
        if self.source_line is None or self.location is None:
            return []

        quoted = self.source_line.expandtabs(self.TAB_SIZE)
        if self.location.column < 1:
            return [self.INDENT + quoted]

        before = self.source_line[:self.location.column - 1]
        offset = len(before.expandtabs(self.TAB_SIZE))
        return [self.INDENT + quoted, self.INDENT + " " * offset + "^"]

    def report(self) -> str:
        lines = [self.headline, *self.excerpt()]
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)


# =============================================================================
# Syntax Errors (Scanner and Parser)
# =============================================================================

class JackSyntaxError(JackError):
    """Source text that cannot be tokenized or parsed."""
    pass


class UnterminatedStringError(JackSyntaxError):
    """
    String constant not closed on the line where it started.

    Example:
        do Output.printString("hello
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "unterminated string constant",
            location=location,
            hint="add closing '\"' before the end of the line",
            source_line=source_line,
        )


class UnexpectedCharacterError(JackSyntaxError):
    """Character that starts no token of the language (e.g. '#', '$')."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"unexpected character '{char}' (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class SourceEncodingError(JackSyntaxError):
    """Source file bytes that do not decode in the configured encoding."""

    def __init__(
        self,
        encoding: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.encoding = encoding
        super().__init__(
            f"source is not valid {encoding}",
            location=location,
            hint=f"save the file as {encoding}",
            source_line=source_line,
        )

    @classmethod
    def from_decode_error(
        cls, filename: str, error: UnicodeDecodeError
    ) -> "SourceEncodingError":
        """Locate the first undecodable byte by line and column."""
        data = error.object
        head = data[:error.start]
        line = head.count(b"\n") + 1
        line_start = head.rfind(b"\n") + 1
        line_end = data.find(b"\n", error.start)
        if line_end < 0:
            line_end = len(data)

        prefix = head[line_start:].decode(error.encoding, errors="replace")
        text = data[line_start:line_end].decode(error.encoding, errors="replace")
        return cls(
            error.encoding,
            SourceLocation(filename, line, len(prefix) + 1),
            text.rstrip("\r"),
        )


class UnexpectedTokenError(JackSyntaxError):
    """
    Unexpected token during parsing.

    Raised by every "expect X" check of the compilation engine. Carries
    both what was expected and what was actually found.
    """

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected {found}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Semantic Errors (Name Resolution)
# =============================================================================

class JackSemanticError(JackError):
    """Syntactically valid code that violates the language's naming rules."""
    pass


class UnresolvedIdentifierError(JackSemanticError):
    """
    A variable name found in neither the subroutine nor the class scope.

    Similarly-named identifiers visible at the point of use are offered
    as a hint to help catch typos.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_identifiers: Optional[List[str]] = None,
    ):
        self.identifier = identifier
        self.similar_identifiers = similar_identifiers or []

        hint = None
        if self.similar_identifiers:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_identifiers[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unresolved identifier '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateDeclarationError(JackSemanticError):
    """Identifier declared more than once in the same scope."""

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.identifier = identifier
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{identifier}' was first declared at {original_location}"

        super().__init__(
            f"redeclaration of '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Internal Errors
# =============================================================================

class InvalidDefinitionError(JackError):
    """
    Internal invariant violation in the symbol table.

    Raised when a name is defined without a storage kind. Valid source
    can never trigger this; it indicates a bug in the compiler itself.
    """
    pass
