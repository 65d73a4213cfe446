"""
Jack Compilation Engine
=======================

Single-pass, syntax-directed translation from Jack to VM code.

There is one routine per grammar production. Each routine pulls tokens
from the tokenizer, checks them against the grammar, resolves names
through the class and subroutine symbol tables, and emits instructions
through the VM writer as it goes. No syntax tree is built.

Grammar
-------
class          ::= 'class' IDENT '{' classVarDec* subroutineDec* '}'
classVarDec    ::= ('static' | 'field') type IDENT (',' IDENT)* ';'
subroutineDec  ::= ('constructor' | 'function' | 'method') ('void' | type)
                   IDENT '(' parameterList ')' subroutineBody
parameterList  ::= (type IDENT (',' type IDENT)*)?
subroutineBody ::= '{' varDec* statements '}'
varDec         ::= 'var' type IDENT (',' IDENT)* ';'
statements     ::= (let | if | while | do | return)*
let            ::= 'let' IDENT ('[' expression ']')? '=' expression ';'
if             ::= 'if' '(' expression ')' '{' statements '}'
                   ('else' '{' statements '}')?
while          ::= 'while' '(' expression ')' '{' statements '}'
do             ::= 'do' subroutineCall ';'
return         ::= 'return' expression? ';'
expression     ::= term (op term)*
term           ::= INT | STRING | keywordConstant | '(' expression ')'
                 | unaryOp term | IDENT ('[' expression ']')? | subroutineCall
subroutineCall ::= IDENT '(' expressionList ')'
                 | IDENT '.' IDENT '(' expressionList ')'
expressionList ::= (expression (',' expression)*)?

Binary operators have no precedence: ``a + b * c`` is ``(a + b) * c``.

Calling Convention
------------------
- Methods receive the object as argument 0; user parameters start at 1.
- Constructors allocate ``Memory.alloc(fieldCount)`` and anchor it in
  ``pointer 0``.
- Every call leaves exactly one value on the stack; ``do`` discards it
  into ``temp 0`` and void subroutines return ``constant 0``.
"""

import difflib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jack_compiler.errors import (
    UnexpectedTokenError,
    UnresolvedIdentifierError,
)
from jack_compiler.symbols import Symbol, SymbolKind, SymbolTable
from jack_compiler.tokenizer import JackTokenizer, Token, TokenType
from jack_compiler.vmwriter import Command, Segment, VMWriter


logger = logging.getLogger(__name__)


# =============================================================================
# Runtime Library Entry Points
# =============================================================================

MEMORY_ALLOC = "Memory.alloc"
STRING_NEW = "String.new"
STRING_APPEND_CHAR = "String.appendChar"
MATH_MULTIPLY = "Math.multiply"
MATH_DIVIDE = "Math.divide"


# =============================================================================
# Operator and Segment Tables
# =============================================================================

BINARY_COMMANDS = {
    "+": Command.ADD,
    "-": Command.SUB,
    "&": Command.AND,
    "|": Command.OR,
    "<": Command.LT,
    ">": Command.GT,
    "=": Command.EQ,
}

# Operators with no native VM command, lowered to two-argument calls
BINARY_CALLS = {
    "*": MATH_MULTIPLY,
    "/": MATH_DIVIDE,
}

BINARY_OPERATORS = frozenset(BINARY_COMMANDS) | frozenset(BINARY_CALLS)

UNARY_COMMANDS = {
    "-": Command.NEG,
    "~": Command.NOT,
}

KIND_SEGMENTS = {
    SymbolKind.STATIC: Segment.STATIC,
    SymbolKind.FIELD: Segment.THIS,
    SymbolKind.ARGUMENT: Segment.ARGUMENT,
    SymbolKind.LOCAL: Segment.LOCAL,
}

PRIMITIVE_TYPES = ("int", "char", "boolean")
STATEMENT_KEYWORDS = ("let", "if", "while", "do", "return")


# =============================================================================
# Compilation Context
# =============================================================================

class SubroutineKind(Enum):
    """The three subroutine flavours, valued by their keyword."""
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"


@dataclass
class SubroutineContext:
    """
    Per-subroutine compilation state.

    A fresh context is created at every subroutine boundary, so label
    numbering restarts at 0 in each subroutine.
    """
    name: str
    kind: SubroutineKind
    if_count: int = 0
    while_count: int = 0

    def next_if_id(self) -> int:
        label_id = self.if_count
        self.if_count += 1
        return label_id

    def next_while_id(self) -> int:
        label_id = self.while_count
        self.while_count += 1
        return label_id


# =============================================================================
# Compilation Engine
# =============================================================================

class CompilationEngine:
    """
    Compiles one Jack class from a tokenizer into a VM writer.

    One engine compiles exactly one compilation unit; it holds no state
    shared with other engines, so separate units can be compiled
    independently.

    Usage:
        tokenizer = JackTokenizer(source, "Main.jack")
        with VMWriter.open("Main.vm") as writer:
            CompilationEngine(tokenizer, writer).compile_class()

    Attributes:
        class_name: Name of the class being compiled (set by compile_class)
        class_table: Static and field symbols of the class
        subroutine_table: Argument and local symbols of the current subroutine
    """

    def __init__(self, tokenizer: JackTokenizer, writer: VMWriter):
        self.tokenizer = tokenizer
        self.writer = writer
        self.class_table = SymbolTable()
        self.subroutine_table = SymbolTable()
        self.class_name = ""
        self.subroutine: Optional[SubroutineContext] = None

        self.tokenizer.advance()

    # =========================================================================
    # Token Helpers
    # =========================================================================

    @property
    def _token(self) -> Optional[Token]:
        return self.tokenizer.current

    def _check_keyword(self, *words: str) -> bool:
        return self._token is not None and self._token.is_keyword(*words)

    def _check_symbol(self, *symbols: str) -> bool:
        return self._token is not None and self._token.is_symbol(*symbols)

    def _advance(self) -> Token:
        """Consume the current token and return it."""
        token = self._token
        self.tokenizer.advance()
        return token

    def _error(self, expected: str) -> UnexpectedTokenError:
        """Build the error for a current token that does not fit the grammar."""
        token = self._token
        if token is None:
            return UnexpectedTokenError(
                "end of input",
                expected=expected,
                location=self.tokenizer.end_location(),
            )
        return UnexpectedTokenError(
            token.describe(),
            expected=expected,
            location=token.location,
            source_line=self.tokenizer.line_text(token.line),
        )

    def _expect_keyword(self, *words: str) -> str:
        if not self._check_keyword(*words):
            raise self._error(" or ".join(f"'{w}'" for w in words))
        return self._advance().value

    def _expect_symbol(self, symbol: str) -> None:
        if not self._check_symbol(symbol):
            raise self._error(f"'{symbol}'")
        self._advance()

    def _expect_identifier(self) -> Token:
        if self._token is None or self._token.type is not TokenType.IDENTIFIER:
            raise self._error("identifier")
        return self._advance()

    def _expect_type(self) -> str:
        """type ::= 'int' | 'char' | 'boolean' | className"""
        if self._check_keyword(*PRIMITIVE_TYPES):
            return self._advance().value
        if self._token is not None and self._token.type is TokenType.IDENTIFIER:
            return self._advance().value
        raise self._error("type")

    # =========================================================================
    # Name Resolution
    # =========================================================================

    def _resolve(self, name: str) -> Optional[Symbol]:
        """Look name up in subroutine scope first, then class scope."""
        symbol = self.subroutine_table.lookup(name)
        if symbol is None:
            symbol = self.class_table.lookup(name)
        return symbol

    def _resolve_variable(self, token: Token) -> Symbol:
        symbol = self._resolve(token.value)
        if symbol is not None:
            return symbol

        visible = set(self.subroutine_table.names()) | set(self.class_table.names())
        raise UnresolvedIdentifierError(
            token.value,
            location=token.location,
            source_line=self.tokenizer.line_text(token.line),
            similar_identifiers=difflib.get_close_matches(token.value, sorted(visible)),
        )

    def _push_symbol(self, symbol: Symbol) -> None:
        self.writer.write_push(KIND_SEGMENTS[symbol.kind], symbol.index)

    def _pop_symbol(self, symbol: Symbol) -> None:
        self.writer.write_pop(KIND_SEGMENTS[symbol.kind], symbol.index)

    # =========================================================================
    # Program Structure
    # =========================================================================

    def compile_class(self) -> None:
        """
        Compile a complete class declaration.

        Raises:
            JackError: On the first lexical, syntax or resolution error
        """
        self.class_table.reset()

        self._expect_keyword("class")
        self.class_name = self._expect_identifier().value
        self._expect_symbol("{")

        while self._check_keyword("static", "field"):
            self.compile_class_var_dec()

        while self._check_keyword(*(kind.value for kind in SubroutineKind)):
            self.compile_subroutine()

        self._expect_symbol("}")

        if self._token is not None:
            raise self._error("end of input after class declaration")

        logger.debug(
            f"Compiled class {self.class_name}: "
            f"{self.writer.instruction_count} instructions"
        )

    def compile_class_var_dec(self) -> None:
        """Declare static/field variables; emits no code."""
        keyword = self._expect_keyword("static", "field")
        kind = SymbolKind.STATIC if keyword == "static" else SymbolKind.FIELD
        var_type = self._expect_type()

        while True:
            name = self._expect_identifier()
            self.class_table.define(name.value, var_type, kind, name.location)
            if not self._check_symbol(","):
                break
            self._advance()

        self._expect_symbol(";")

    def compile_subroutine(self) -> None:
        self.subroutine_table.reset()

        kind = SubroutineKind(self._expect_keyword(*(k.value for k in SubroutineKind)))

        if self._check_keyword("void"):
            self._advance()
        else:
            self._expect_type()

        name = self._expect_identifier().value
        self.subroutine = SubroutineContext(name, kind)

        if kind is SubroutineKind.METHOD:
            self.subroutine_table.define("this", self.class_name, SymbolKind.ARGUMENT)

        self._expect_symbol("(")
        self.compile_parameter_list()
        self._expect_symbol(")")
        self.compile_subroutine_body()

        logger.debug(
            f"Compiled {kind.value} {self.class_name}.{name} "
            f"({self.subroutine_table.var_count(SymbolKind.LOCAL)} locals)"
        )

    def compile_parameter_list(self) -> None:
        if self._check_symbol(")"):
            return

        while True:
            param_type = self._expect_type()
            name = self._expect_identifier()
            self.subroutine_table.define(
                name.value, param_type, SymbolKind.ARGUMENT, name.location
            )
            if not self._check_symbol(","):
                break
            self._advance()

    def compile_subroutine_body(self) -> None:
        self._expect_symbol("{")

        while self._check_keyword("var"):
            self.compile_var_dec()

        n_locals = self.subroutine_table.var_count(SymbolKind.LOCAL)
        self.writer.write_function(f"{self.class_name}.{self.subroutine.name}", n_locals)

        if self.subroutine.kind is SubroutineKind.METHOD:
            # Anchor the receiver passed as argument 0
            self.writer.write_push(Segment.ARGUMENT, 0)
            self.writer.write_pop(Segment.POINTER, 0)
        elif self.subroutine.kind is SubroutineKind.CONSTRUCTOR:
            n_fields = self.class_table.var_count(SymbolKind.FIELD)
            self.writer.write_push(Segment.CONSTANT, n_fields)
            self.writer.write_call(MEMORY_ALLOC, 1)
            self.writer.write_pop(Segment.POINTER, 0)

        self.compile_statements()
        self._expect_symbol("}")

    def compile_var_dec(self) -> None:
        self._expect_keyword("var")
        var_type = self._expect_type()

        while True:
            name = self._expect_identifier()
            self.subroutine_table.define(
                name.value, var_type, SymbolKind.LOCAL, name.location
            )
            if not self._check_symbol(","):
                break
            self._advance()

        self._expect_symbol(";")

    # =========================================================================
    # Statements
    # =========================================================================

    def compile_statements(self) -> None:
        while self._check_keyword(*STATEMENT_KEYWORDS):
            keyword = self._token.value
            if keyword == "let":
                self.compile_let()
            elif keyword == "if":
                self.compile_if()
            elif keyword == "while":
                self.compile_while()
            elif keyword == "do":
                self.compile_do()
            else:
                self.compile_return()

    def compile_let(self) -> None:
        """
        let name = expr;  or  let name[index] = expr;

        For array targets the element address stays on the stack while
        the right-hand side is compiled, and is only moved into
        ``pointer 1`` once the value has been parked in ``temp 0``.
        """
        self._expect_keyword("let")
        target = self._resolve_variable(self._expect_identifier())

        is_array = self._check_symbol("[")
        if is_array:
            self._advance()
            self._push_symbol(target)
            self.compile_expression()
            self._expect_symbol("]")
            self.writer.write_arithmetic(Command.ADD)

        self._expect_symbol("=")
        self.compile_expression()
        self._expect_symbol(";")

        if is_array:
            self.writer.write_pop(Segment.TEMP, 0)
            self.writer.write_pop(Segment.POINTER, 1)
            self.writer.write_push(Segment.TEMP, 0)
            self.writer.write_pop(Segment.THAT, 0)
        else:
            self._pop_symbol(target)

    def compile_if(self) -> None:
        self._expect_keyword("if")

        label_id = self.subroutine.next_if_id()
        false_label = f"IF_FALSE{label_id}"
        end_label = f"IF_END{label_id}"

        self._expect_symbol("(")
        self.compile_expression()
        self._expect_symbol(")")

        self.writer.write_arithmetic(Command.NOT)
        self.writer.write_if(false_label)

        self._expect_symbol("{")
        self.compile_statements()
        self._expect_symbol("}")

        if self._check_keyword("else"):
            self._advance()
            self.writer.write_goto(end_label)
            self.writer.write_label(false_label)

            self._expect_symbol("{")
            self.compile_statements()
            self._expect_symbol("}")

            self.writer.write_label(end_label)
        else:
            self.writer.write_label(false_label)

    def compile_while(self) -> None:
        self._expect_keyword("while")

        label_id = self.subroutine.next_while_id()
        exp_label = f"WHILE_EXP{label_id}"
        end_label = f"WHILE_END{label_id}"

        self.writer.write_label(exp_label)

        self._expect_symbol("(")
        self.compile_expression()
        self._expect_symbol(")")

        self.writer.write_arithmetic(Command.NOT)
        self.writer.write_if(end_label)

        self._expect_symbol("{")
        self.compile_statements()
        self._expect_symbol("}")

        self.writer.write_goto(exp_label)
        self.writer.write_label(end_label)

    def compile_do(self) -> None:
        self._expect_keyword("do")
        self.compile_subroutine_call(self._expect_identifier())
        self._expect_symbol(";")

        # Discard the return value
        self.writer.write_pop(Segment.TEMP, 0)

    def compile_return(self) -> None:
        self._expect_keyword("return")

        if self._check_symbol(";"):
            self.writer.write_push(Segment.CONSTANT, 0)
        else:
            self.compile_expression()

        self._expect_symbol(";")
        self.writer.write_return()

    # =========================================================================
    # Expressions
    # =========================================================================

    def compile_expression(self) -> None:
        self.compile_term()

        while self._check_symbol(*BINARY_OPERATORS):
            operator = self._advance().value
            self.compile_term()
            if operator in BINARY_COMMANDS:
                self.writer.write_arithmetic(BINARY_COMMANDS[operator])
            else:
                self.writer.write_call(BINARY_CALLS[operator], 2)

    def compile_term(self) -> None:
        token = self._token
        if token is None:
            raise self._error("expression")

        if token.type is TokenType.INT_CONST:
            self._advance()
            self.writer.write_push(Segment.CONSTANT, token.value)

        elif token.type is TokenType.STRING_CONST:
            self._advance()
            self._compile_string_constant(token.value)

        elif token.is_keyword("true"):
            self._advance()
            self.writer.write_push(Segment.CONSTANT, 1)
            self.writer.write_arithmetic(Command.NEG)

        elif token.is_keyword("false", "null"):
            self._advance()
            self.writer.write_push(Segment.CONSTANT, 0)

        elif token.is_keyword("this"):
            self._advance()
            self.writer.write_push(Segment.POINTER, 0)

        elif token.is_symbol("("):
            self._advance()
            self.compile_expression()
            self._expect_symbol(")")

        elif token.is_symbol(*UNARY_COMMANDS):
            self._advance()
            self.compile_term()
            self.writer.write_arithmetic(UNARY_COMMANDS[token.value])

        elif token.type is TokenType.IDENTIFIER:
            self._advance()
            if self._check_symbol("["):
                self._compile_array_read(token)
            elif self._check_symbol("(", "."):
                self.compile_subroutine_call(token)
            else:
                self._push_symbol(self._resolve_variable(token))

        else:
            raise self._error("expression")

    def compile_expression_list(self) -> int:
        """Compile comma-separated arguments; return how many were pushed."""
        if self._check_symbol(")"):
            return 0

        self.compile_expression()
        count = 1
        while self._check_symbol(","):
            self._advance()
            self.compile_expression()
            count += 1
        return count

    def compile_subroutine_call(self, first: Token) -> None:
        """
        Compile a call whose first identifier has already been consumed.

        - ``name(args)``: method of the current object, ``this`` is pushed
        - ``var.name(args)``: method of ``var``, called on its declared type
        - ``Class.name(args)``: function or constructor, no receiver
        """
        if self._check_symbol("("):
            self.writer.write_push(Segment.POINTER, 0)
            n_args = self._compile_call_arguments()
            self.writer.write_call(f"{self.class_name}.{first.value}", n_args + 1)
            return

        if not self._check_symbol("."):
            raise self._error("'(' or '.'")
        self._advance()
        name = self._expect_identifier().value

        receiver = self._resolve(first.value)
        if receiver is not None:
            self._push_symbol(receiver)
            n_args = self._compile_call_arguments()
            self.writer.write_call(f"{receiver.type}.{name}", n_args + 1)
        else:
            n_args = self._compile_call_arguments()
            self.writer.write_call(f"{first.value}.{name}", n_args)

    # =========================================================================
    # Term Helpers
    # =========================================================================

    def _compile_call_arguments(self) -> int:
        self._expect_symbol("(")
        n_args = self.compile_expression_list()
        self._expect_symbol(")")
        return n_args

    def _compile_array_read(self, name: Token) -> None:
        """name[index] as an rvalue, read through ``that 0``."""
        base = self._resolve_variable(name)
        self._expect_symbol("[")
        self._push_symbol(base)
        self.compile_expression()
        self._expect_symbol("]")

        self.writer.write_arithmetic(Command.ADD)
        self.writer.write_pop(Segment.POINTER, 1)
        self.writer.write_push(Segment.THAT, 0)

    def _compile_string_constant(self, text: str) -> None:
        self.writer.write_push(Segment.CONSTANT, len(text))
        self.writer.write_call(STRING_NEW, 1)
        for char in text:
            self.writer.write_push(Segment.CONSTANT, ord(char))
            self.writer.write_call(STRING_APPEND_CHAR, 2)
