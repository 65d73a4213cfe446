# =============================================================================
# test_vmwriter.py - VM Writer Unit Tests
# =============================================================================
# Tests for the VM instruction emitter: exact output spellings and
# stream ownership.
# =============================================================================

import io

import pytest
from jack_compiler.vmwriter import VMWriter, Segment, Command


def emitted(action) -> list:
    """Run action against a fresh writer and return the emitted lines."""
    buffer = io.StringIO()
    writer = VMWriter(buffer)
    action(writer)
    return buffer.getvalue().splitlines()


class TestInstructionForms:
    """Each write_* method appends exactly one line."""

    def test_push_pop(self):
        def action(w):
            w.write_push(Segment.CONSTANT, 7)
            w.write_pop(Segment.THAT, 0)
        assert emitted(action) == ["push constant 7", "pop that 0"]

    def test_segment_spellings(self):
        def action(w):
            for segment in Segment:
                w.write_push(segment, 1)
        assert emitted(action) == [
            "push constant 1",
            "push argument 1",
            "push local 1",
            "push static 1",
            "push this 1",
            "push that 1",
            "push pointer 1",
            "push temp 1",
        ]

    def test_arithmetic(self):
        def action(w):
            for command in Command:
                w.write_arithmetic(command)
        assert emitted(action) == [
            "add", "sub", "neg", "eq", "gt", "lt", "and", "or", "not",
        ]

    def test_flow_control(self):
        def action(w):
            w.write_label("WHILE_EXP0")
            w.write_if("WHILE_END0")
            w.write_goto("WHILE_EXP0")
        assert emitted(action) == [
            "label WHILE_EXP0",
            "if-goto WHILE_END0",
            "goto WHILE_EXP0",
        ]

    def test_function_call_return(self):
        def action(w):
            w.write_function("Main.main", 2)
            w.write_call("Math.multiply", 2)
            w.write_return()
        assert emitted(action) == [
            "function Main.main 2",
            "call Math.multiply 2",
            "return",
        ]

    def test_instruction_count(self):
        writer = VMWriter(io.StringIO())
        writer.write_push(Segment.CONSTANT, 0)
        writer.write_return()
        assert writer.instruction_count == 2


class TestStreamLifetime:
    """Writers flush on close and only close streams they opened."""

    def test_borrowed_stream_left_open(self):
        buffer = io.StringIO()
        with VMWriter(buffer) as writer:
            writer.write_return()
        assert not buffer.closed
        assert buffer.getvalue() == "return\n"

    def test_open_writes_file(self, tmp_path):
        path = tmp_path / "Main.vm"
        with VMWriter.open(path) as writer:
            writer.write_push(Segment.CONSTANT, 0)
            writer.write_return()
        assert path.read_text() == "push constant 0\nreturn\n"

    def test_file_closed_on_error(self, tmp_path):
        """Everything emitted before an exception reaches the file."""
        path = tmp_path / "Main.vm"
        with pytest.raises(RuntimeError):
            with VMWriter.open(path) as writer:
                writer.write_function("Main.main", 0)
                raise RuntimeError("boom")
        assert path.read_text() == "function Main.main 0\n"

    def test_close_is_idempotent(self, tmp_path):
        writer = VMWriter.open(tmp_path / "X.vm")
        writer.close()
        writer.close()
