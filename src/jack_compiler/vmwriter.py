"""
VM Writer
=========

Emits textual stack-machine instructions, one line per call.

The writer performs no validation of indices or labels; getting those
right is the compilation engine's responsibility. It only appends to the
output stream it was given, and ``close()`` flushes (and, for files it
opened itself, releases) that stream.

Output Format
-------------
    push <segment> <index>      pop <segment> <index>
    add sub neg eq gt lt and or not
    label <name>   goto <name>   if-goto <name>
    call <Class.name> <argCount>
    function <Class.name> <localCount>
    return
"""

from enum import Enum
from pathlib import Path
from typing import TextIO


class Segment(Enum):
    """VM memory segments addressed by push/pop, valued by their spelling."""
    CONSTANT = "constant"
    ARGUMENT = "argument"
    LOCAL = "local"
    STATIC = "static"
    THIS = "this"
    THAT = "that"
    POINTER = "pointer"
    TEMP = "temp"


class Command(Enum):
    """Native arithmetic and logical VM commands."""
    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"


class VMWriter:
    """
    Writes VM instructions to a text stream.

    Usage:
        with VMWriter.open("Main.vm") as writer:
            writer.write_function("Main.main", 0)
            writer.write_push(Segment.CONSTANT, 0)
            writer.write_return()

    Attributes:
        instruction_count: Number of instructions written so far
    """

    def __init__(self, stream: TextIO, owns_stream: bool = False):
        """
        Args:
            stream: Destination for the instruction text
            owns_stream: Close the stream on ``close()`` (set by ``open``)
        """
        self._out = stream
        self._owns_stream = owns_stream
        self.instruction_count = 0

    @classmethod
    def open(cls, path: str | Path, encoding: str = "utf-8") -> "VMWriter":
        """Create the output file at path and return a writer that owns it."""
        stream = open(path, "w", encoding=encoding, newline="\n")
        return cls(stream, owns_stream=True)

    def _emit(self, line: str) -> None:
        self._out.write(line + "\n")
        self.instruction_count += 1

    def write_push(self, segment: Segment, index: int) -> None:
        self._emit(f"push {segment.value} {index}")

    def write_pop(self, segment: Segment, index: int) -> None:
        self._emit(f"pop {segment.value} {index}")

    def write_arithmetic(self, command: Command) -> None:
        self._emit(command.value)

    def write_label(self, label: str) -> None:
        self._emit(f"label {label}")

    def write_goto(self, label: str) -> None:
        self._emit(f"goto {label}")

    def write_if(self, label: str) -> None:
        self._emit(f"if-goto {label}")

    def write_call(self, name: str, n_args: int) -> None:
        self._emit(f"call {name} {n_args}")

    def write_function(self, name: str, n_locals: int) -> None:
        self._emit(f"function {name} {n_locals}")

    def write_return(self) -> None:
        self._emit("return")

    def close(self) -> None:
        """Flush the stream, closing it if this writer opened it."""
        if self._out.closed:
            return
        self._out.flush()
        if self._owns_stream:
            self._out.close()

    def __enter__(self) -> "VMWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
