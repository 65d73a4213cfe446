"""
jackc - Jack Compiler Command-Line Interface
============================================

Usage Examples
--------------
Compile one class:
    $ jackc Main.jack                # writes Main.vm

Compile a program directory:
    $ jackc Pong/                    # writes Pong/*.vm

Write output elsewhere:
    $ jackc Pong/ -o build/

Dump the token stream instead of compiling:
    $ jackc --tokens Main.jack       # writes MainT.xml
"""

import logging
from pathlib import Path
from typing import Optional

import click

from jack_compiler import __version__
from jack_compiler.cli.errors import handle_cli_exception
from jack_compiler.compiler import CompilerOptions, JackCompiler
from jack_compiler.tokenizer import tokens_to_xml


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


@click.command()
@click.argument(
    "source",
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for generated files (default: beside each source)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Write the token stream as XML (NameT.xml) instead of compiling",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="jackc")
def main(
    source: Path,
    output_dir: Optional[Path],
    tokens: bool,
    verbose: bool,
) -> None:
    """
    Compile Jack source code to Hack VM code.

    SOURCE is a .jack file or a directory containing .jack files. Each
    file holds one class and is compiled to a .vm file of the same name.

    \b
    Examples:
        jackc Main.jack              # Outputs Main.vm
        jackc Pong/                  # Compiles every class in Pong/
        jackc Pong/ -o build/        # Outputs into build/
        jackc --tokens Main.jack     # Outputs MainT.xml
    """
    setup_logging(verbose)
    options = CompilerOptions(output_dir=output_dir)
    compiler = JackCompiler(options)

    try:
        sources = compiler.discover_sources(source)
        if not sources:
            click.echo(f"No {options.source_suffix} files found in {source}", err=True)
            return

        for source_file in sources:
            if tokens:
                target = compiler.output_path_for(source_file)
                target = target.with_name(f"{source_file.stem}T.xml")
                text = compiler.read_source(source_file)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(
                    tokens_to_xml(text, str(source_file)), encoding=options.encoding
                )
                click.echo(f"Tokenized {source_file} -> {target}")
                continue

            result = compiler.compile_file(source_file)
            click.echo(f"Compiled {source_file} -> {result.output_path}")
            if verbose:
                click.echo(
                    f"  class {result.class_name}: "
                    f"{result.instruction_count} instructions"
                )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
