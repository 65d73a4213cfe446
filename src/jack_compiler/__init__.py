"""
Jack Compiler
=============

A single-pass compiler from the Jack teaching language to the textual
instruction set of the Hack stack virtual machine.

Components
----------
- **tokenizer**: pull-based scanner producing classified tokens
- **symbols**: per-scope symbol table (class scope and subroutine scope)
- **vmwriter**: VM instruction emitter
- **engine**: recursive-descent parser that generates code as it parses
- **compiler**: unit-level entry point and file driver
- **cli**: the ``jackc`` command-line tool

Quick Start
-----------
>>> from jack_compiler import compile_jack
>>> vm = compile_jack('''
... class Main {
...     function void main() {
...         do Output.printInt(1 + 2);
...         return;
...     }
... }
... ''')

Or from the command line:
    $ jackc Main.jack
"""

__version__ = "1.0.0"

from jack_compiler.compiler import (
    JackCompiler,
    CompilerOptions,
    CompilerResult,
    compile_jack,
    compile_file,
)
from jack_compiler.engine import CompilationEngine, SubroutineKind
from jack_compiler.errors import (
    SourceLocation,
    JackError,
    JackSyntaxError,
    JackSemanticError,
    UnterminatedStringError,
    UnexpectedCharacterError,
    SourceEncodingError,
    UnexpectedTokenError,
    UnresolvedIdentifierError,
    DuplicateDeclarationError,
    InvalidDefinitionError,
)
from jack_compiler.symbols import Symbol, SymbolKind, SymbolTable
from jack_compiler.tokenizer import JackTokenizer, Token, TokenType, tokens_to_xml
from jack_compiler.vmwriter import Command, Segment, VMWriter

__all__ = [
    "__version__",
    # Main API
    "JackCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_jack",
    "compile_file",
    # Components
    "CompilationEngine",
    "SubroutineKind",
    "JackTokenizer",
    "Token",
    "TokenType",
    "tokens_to_xml",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "VMWriter",
    "Segment",
    "Command",
    # Errors
    "SourceLocation",
    "JackError",
    "JackSyntaxError",
    "JackSemanticError",
    "UnterminatedStringError",
    "UnexpectedCharacterError",
    "SourceEncodingError",
    "UnexpectedTokenError",
    "UnresolvedIdentifierError",
    "DuplicateDeclarationError",
    "InvalidDefinitionError",
]
