# =============================================================================
# test_compiler.py - Compiler Driver Tests
# =============================================================================
# Tests for the unit-level entry point and the file/directory driver.
#
# Test coverage includes:
#   - In-memory compilation results
#   - Output file naming and output directories
#   - Directory discovery order and independent units
#   - Output file released on error
# =============================================================================

import pytest
from jack_compiler.compiler import (
    JackCompiler,
    CompilerOptions,
    compile_jack,
    compile_file,
)
from jack_compiler.errors import SourceEncodingError, UnresolvedIdentifierError


MAIN = """
class Main {
    function void main() {
        var Point p;
        let p = Point.new(1, 2);
        do Output.printInt(p.getX());
        return;
    }
}
"""

POINT = """
class Point {
    field int x, y;

    constructor Point new(int ax, int ay) {
        let x = ax;
        let y = ay;
        return this;
    }

    method int getX() {
        return x;
    }
}
"""


@pytest.fixture
def program_dir(tmp_path):
    """A directory holding a two-class program and an unrelated file."""
    (tmp_path / "Main.jack").write_text(MAIN)
    (tmp_path / "Point.jack").write_text(POINT)
    (tmp_path / "README.txt").write_text("not source")
    return tmp_path


class TestCompileSource:
    """In-memory compilation."""

    def test_result_fields(self):
        result = JackCompiler().compile_source(POINT, "Point.jack")
        assert result.class_name == "Point"
        assert result.filename == "Point.jack"
        assert result.vm_code.startswith("function Point.new 0\n")
        assert result.instruction_count == len(result.vm_code.splitlines())
        assert result.output_path is None

    def test_compile_jack_returns_text(self):
        vm = compile_jack(MAIN)
        assert "call Point.new 2" in vm
        assert "call Point.getX 1" in vm
        assert vm.endswith("return\n")


class TestCompileFile:
    """Single-file compilation writes a .vm file."""

    def test_output_beside_source(self, program_dir):
        result = JackCompiler().compile_file(program_dir / "Point.jack")
        assert result.output_path == program_dir / "Point.vm"
        text = result.output_path.read_text()
        assert text == compile_jack(POINT)

    def test_explicit_output_path(self, program_dir, tmp_path):
        target = tmp_path / "out" / "P.vm"
        path = compile_file(program_dir / "Point.jack", target)
        assert path == target
        assert target.exists()

    def test_output_dir_option(self, program_dir, tmp_path):
        build = tmp_path / "build"
        compiler = JackCompiler(CompilerOptions(output_dir=build))
        result = compiler.compile_file(program_dir / "Main.jack")
        assert result.output_path == build / "Main.vm"
        assert result.output_path.read_text().startswith("function Main.main 1\n")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JackCompiler().compile_file(tmp_path / "Nope.jack")

    def test_error_leaves_closed_partial_file(self, tmp_path):
        source = tmp_path / "Bad.jack"
        source.write_text(
            "class Bad { function void ok() { return; } "
            "function void f() { let q = 1; return; } }"
        )
        with pytest.raises(UnresolvedIdentifierError):
            JackCompiler().compile_file(source)

        written = (tmp_path / "Bad.vm").read_text()
        assert written == "function Bad.ok 0\npush constant 0\nreturn\nfunction Bad.f 0\n"

    def test_undecodable_source(self, tmp_path):
        """Bytes outside the source encoding are a located source error."""
        source = tmp_path / "Main.jack"
        source.write_bytes(b"class Main {\n  // caf\xe9\n}\n")

        with pytest.raises(SourceEncodingError) as exc_info:
            JackCompiler().compile_file(source)

        error = exc_info.value
        assert error.location.line == 2
        assert error.location.column == 9
        assert error.source_line == "  // caf\ufffd"
        assert str(error).startswith(f"{source}:2:9: error: source is not valid utf-8")
        assert not (tmp_path / "Main.vm").exists()

    def test_file_output_is_deterministic(self, program_dir):
        compiler = JackCompiler()
        first = compiler.compile_file(program_dir / "Main.jack").output_path.read_bytes()
        second = compiler.compile_file(program_dir / "Main.jack").output_path.read_bytes()
        assert first == second


class TestCompilePath:
    """Directory and single-path driver."""

    def test_directory_compiles_every_class(self, program_dir):
        results = JackCompiler().compile_path(program_dir)
        assert [r.class_name for r in results] == ["Main", "Point"]
        assert (program_dir / "Main.vm").exists()
        assert (program_dir / "Point.vm").exists()
        assert not (program_dir / "README.vm").exists()

    def test_single_file_path(self, program_dir):
        results = JackCompiler().compile_path(program_dir / "Main.jack")
        assert len(results) == 1

    def test_wrong_suffix(self, program_dir):
        with pytest.raises(ValueError):
            JackCompiler().compile_path(program_dir / "README.txt")

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JackCompiler().discover_sources(tmp_path / "missing")

    def test_empty_directory(self, tmp_path):
        assert JackCompiler().compile_path(tmp_path) == []

    def test_discovery_sorted(self, tmp_path):
        for name in ("Zeta", "Alpha", "Mid"):
            (tmp_path / f"{name}.jack").write_text(f"class {name} {{ }}")
        names = [p.name for p in JackCompiler().discover_sources(tmp_path)]
        assert names == ["Alpha.jack", "Mid.jack", "Zeta.jack"]
