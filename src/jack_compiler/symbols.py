"""
Symbol Table
============

A flat name → (type, kind, index) mapping for one naming scope.

The compiler keeps two independent instances per compilation unit:

- class scope: STATIC and FIELD entries, reset once per class
- subroutine scope: ARGUMENT and LOCAL entries, reset once per subroutine

Each storage kind has its own running counter. The n-th declaration of a
kind receives index n-1, so ``var_count(kind)`` always equals the number
of declarations of that kind made since the last reset. The table has no
notion of a parent scope; resolving a bare name against both scopes is
the compilation engine's job.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional

from jack_compiler.errors import (
    DuplicateDeclarationError,
    InvalidDefinitionError,
    SourceLocation,
)


class SymbolKind(Enum):
    """
    Storage kind of a named variable.

    NONE is the "not found" result of a lookup and is never stored.
    """
    STATIC = "static"
    FIELD = "field"
    ARGUMENT = "argument"
    LOCAL = "local"
    NONE = "none"


@dataclass(frozen=True)
class Symbol:
    """
    One declared variable.

    Attributes:
        name: Identifier as written in source
        type: Declared type (int, char, boolean or a class name)
        kind: Storage kind, never NONE
        index: Ordinal within its kind, starting at 0
        location: Where the declaration appears, when known
    """
    name: str
    type: str
    kind: SymbolKind
    index: int
    location: Optional[SourceLocation] = None


class SymbolTable:
    """
    Symbol table for a single scope.

    Example:
        table = SymbolTable()
        table.define("x", "int", SymbolKind.FIELD)
        table.define("y", "int", SymbolKind.FIELD)
        table.index_of("y")                  # 1
        table.var_count(SymbolKind.FIELD)    # 2
        table.kind_of("z")                   # SymbolKind.NONE
    """

    def __init__(self) -> None:
        self._symbols: Dict[str, Symbol] = {}
        self._counts: Dict[SymbolKind, int] = {}
        self.reset()

    def reset(self) -> None:
        """Remove every entry and restart all four counters at 0."""
        self._symbols.clear()
        self._counts = {
            SymbolKind.STATIC: 0,
            SymbolKind.FIELD: 0,
            SymbolKind.ARGUMENT: 0,
            SymbolKind.LOCAL: 0,
        }

    def define(
        self,
        name: str,
        type: str,
        kind: SymbolKind,
        location: Optional[SourceLocation] = None,
    ) -> Symbol:
        """
        Declare a new name and give it the next index of its kind.

        Args:
            name: Identifier being declared
            type: Declared type
            kind: Storage kind (must not be NONE)
            location: Source position of the declaration

        Returns:
            The stored Symbol

        Raises:
            InvalidDefinitionError: If kind is NONE
            DuplicateDeclarationError: If name is already declared here
        """
        if kind is SymbolKind.NONE:
            raise InvalidDefinitionError(
                f"cannot define '{name}' without a storage kind",
                location=location,
            )

        existing = self._symbols.get(name)
        if existing is not None:
            raise DuplicateDeclarationError(
                name,
                location=location,
                original_location=existing.location,
            )

        symbol = Symbol(name, type, kind, self._counts[kind], location)
        self._symbols[name] = symbol
        self._counts[kind] += 1
        return symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        """Return the Symbol for name, or None if it is not declared here."""
        return self._symbols.get(name)

    def kind_of(self, name: str) -> SymbolKind:
        """Storage kind of name, or SymbolKind.NONE if not found."""
        symbol = self._symbols.get(name)
        return symbol.kind if symbol else SymbolKind.NONE

    def type_of(self, name: str) -> Optional[str]:
        """Declared type of name, or None if not found."""
        symbol = self._symbols.get(name)
        return symbol.type if symbol else None

    def index_of(self, name: str) -> int:
        """Index of name within its kind, or -1 if not found."""
        symbol = self._symbols.get(name)
        return symbol.index if symbol else -1

    def var_count(self, kind: SymbolKind) -> int:
        """Number of names of ``kind`` defined since the last reset."""
        return self._counts.get(kind, 0)

    def names(self) -> Iterator[str]:
        return iter(self._symbols)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)
