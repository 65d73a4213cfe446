"""
Jack Compiler Command-Line Interface
====================================

- **jackc**: compile a .jack file, or every .jack file in a directory,
  to VM code

The tool is a Click application with uniform error reporting and exit
codes (see ``jack_compiler.cli.errors``).
"""

__all__ = ["jackc"]
