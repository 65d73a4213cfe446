"""
Jack Compiler Main Module
=========================

This module provides the unit-level entry point and the file driver.

A compilation unit is one ``.jack`` file holding one class. Each unit
gets its own tokenizer, symbol tables, engine and output stream, so
units never share mutable state:

    Source → JackTokenizer → CompilationEngine → VMWriter → .vm

Usage
-----
Command line:
    $ jackc Main.jack
    $ jackc Square/              # every .jack file in the directory

Programmatic:
    >>> from jack_compiler import compile_jack
    >>> print(compile_jack('class Main { function void main() { return; } }'))
    function Main.main 0
    push constant 0
    return

Error Handling
--------------
Compilation stops at the first error. The output file is closed on
every exit path; anything emitted before the error stays in it.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from jack_compiler.engine import CompilationEngine
from jack_compiler.errors import SourceEncodingError
from jack_compiler.tokenizer import JackTokenizer
from jack_compiler.vmwriter import VMWriter


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        source_suffix: Extension of Jack source files
        output_suffix: Extension of generated VM files
        output_dir: Directory for generated files (None = beside the source)
        encoding: Text encoding of source and output files
    """
    source_suffix: str = ".jack"
    output_suffix: str = ".vm"
    output_dir: Optional[Path] = None
    encoding: str = "utf-8"


@dataclass
class CompilerResult:
    """
    Result of compiling one unit.

    Attributes:
        filename: Source filename
        class_name: Name of the compiled class
        vm_code: Generated VM text (in-memory compilation only)
        output_path: File the VM code was written to (file compilation only)
        instruction_count: Number of VM instructions emitted
    """
    filename: str = ""
    class_name: str = ""
    vm_code: str = ""
    output_path: Optional[Path] = None
    instruction_count: int = 0


class JackCompiler:
    """
    Compiles Jack classes to VM code.

    Example:
        compiler = JackCompiler()
        for result in compiler.compile_path("projects/11/Pong"):
            print(result.output_path)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_unit(self, tokenizer: JackTokenizer, writer: VMWriter) -> str:
        """
        Compile one class from a token source into an open writer.

        Returns:
            The compiled class name

        Raises:
            JackError: On the first lexical, syntax or resolution error
        """
        engine = CompilationEngine(tokenizer, writer)
        engine.compile_class()
        return engine.class_name

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile Jack source code held in memory.

        Args:
            source: Jack source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult with the VM text in ``vm_code``
        """
        buffer = io.StringIO()
        with VMWriter(buffer) as writer:
            class_name = self.compile_unit(JackTokenizer(source, filename), writer)

        return CompilerResult(
            filename=filename,
            class_name=class_name,
            vm_code=buffer.getvalue(),
            instruction_count=writer.instruction_count,
        )

    def compile_file(
        self,
        source_path: str | Path,
        output_path: Optional[str | Path] = None,
    ) -> CompilerResult:
        """
        Compile a Jack source file, streaming instructions to a VM file.

        Args:
            source_path: Path to the .jack file
            output_path: Destination file (default: ``output_path_for``)

        Returns:
            CompilerResult with ``output_path`` set

        Raises:
            JackError: If compilation fails
            FileNotFoundError: If the source file does not exist
        """
        path = Path(source_path)
        if not path.is_file():
            raise FileNotFoundError(f"Source file not found: {source_path}")

        source = self.read_source(path)
        target = Path(output_path) if output_path else self.output_path_for(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        with VMWriter.open(target, encoding=self.options.encoding) as writer:
            class_name = self.compile_unit(JackTokenizer(source, str(path)), writer)

        logger.info(f"Wrote {target} ({writer.instruction_count} instructions)")
        return CompilerResult(
            filename=str(path),
            class_name=class_name,
            output_path=target,
            instruction_count=writer.instruction_count,
        )

    def read_source(self, path: Path) -> str:
        """
        Read a source file in the configured encoding.

        Raises:
            SourceEncodingError: If the bytes do not decode
        """
        try:
            return path.read_bytes().decode(self.options.encoding)
        except UnicodeDecodeError as e:
            raise SourceEncodingError.from_decode_error(str(path), e) from e

    def compile_path(self, path: str | Path) -> List[CompilerResult]:
        """
        Compile a single source file or every source file in a directory.

        Units are compiled independently, in file name order.

        Raises:
            FileNotFoundError: If path does not exist
            ValueError: If path is a file without the source suffix
            JackError: On the first unit that fails to compile
        """
        return [self.compile_file(source) for source in self.discover_sources(path)]

    def discover_sources(self, path: str | Path) -> List[Path]:
        """Return the source files named by path, sorted by name."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"No such file or directory: {path}")

        if path.is_dir():
            sources = sorted(path.glob(f"*{self.options.source_suffix}"))
            logger.debug(f"Found {len(sources)} source files in {path}")
            return sources

        if path.suffix != self.options.source_suffix:
            raise ValueError(
                f"Input file must be a {self.options.source_suffix} file: {path}"
            )
        return [path]

    def output_path_for(self, source_path: Path) -> Path:
        """``Foo.jack`` → ``Foo.vm``, in output_dir if one is configured."""
        name = source_path.with_suffix(self.options.output_suffix).name
        directory = self.options.output_dir or source_path.parent
        return Path(directory) / name


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_jack(source: str, filename: str = "<input>") -> str:
    """
    Compile Jack source code to VM text.

    Raises:
        JackError: If compilation fails
    """
    return JackCompiler().compile_source(source, filename).vm_code


def compile_file(
    filepath: str | Path,
    output_path: Optional[str | Path] = None,
) -> Path:
    """
    Compile a Jack source file and return the path of the VM file written.

    Raises:
        JackError: If compilation fails
        FileNotFoundError: If source file not found
    """
    return JackCompiler().compile_file(filepath, output_path).output_path
