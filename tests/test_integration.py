"""
Integration tests for Vira.

End-to-end compile, serialize and execute, plus diagnostic rendering.
"""

import io
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from compiler import compile_source, compile_file, render_report, render_error, Bytecode
from compiler.errors import SyntaxError, ViraError
from vm import VirtualMachine, run_file, run_source


EXAMPLE = """
:std:;
< Simple arithmetic and functions
let width = 6;
let height = 7;
def area(w, h) { w * h; }
def label(name) { "area of " + name; }
write label("box");
write area(width, height);
write area(width, height) / 4;
"""


class TestEndToEnd:

    def test_example_program(self):
        out = io.StringIO()
        run_source(EXAMPLE, output=out)
        assert out.getvalue() == "area of box\n42\n10.5\n"

    def test_artifact_round_trip_executes_identically(self):
        bytecode = compile_source(EXAMPLE)
        decoded = Bytecode.deserialize(bytecode.serialize())

        first, second = io.StringIO(), io.StringIO()
        VirtualMachine(output=first).execute(bytecode)
        VirtualMachine(output=second).execute(decoded)
        assert first.getvalue() == second.getvalue()

    def test_compile_file_and_run_file(self, tmp_path):
        source = tmp_path / "example.vira"
        source.write_text(EXAMPLE, encoding="utf-8")
        artifact = tmp_path / "example.object"
        artifact.write_bytes(compile_file(str(source)).serialize())

        out = io.StringIO()
        vm = run_file(str(artifact), output=out)
        assert out.getvalue() == "area of box\n42\n10.5\n"
        assert vm.globals["width"].to_python() == 6.0

    def test_compile_file_attaches_filename(self, tmp_path):
        source = tmp_path / "broken.vira"
        source.write_text("write (1;", encoding="utf-8")
        with pytest.raises(SyntaxError) as exc:
            compile_file(str(source))
        assert exc.value.filename == str(source)
        assert str(exc.value).startswith(f"{source}:1:9:")


class TestDiagnostics:

    def test_report_layout(self):
        report = render_report("let x = 1\nwrite x;", "Expected ';'", 1, 10)
        assert report.splitlines() == [
            "error: Expected ';'",
            "  --> <source>:1:10",
            "   |",
            " 1 | let x = 1",
            "   | " + " " * 9 + "^ here",
        ]

    def test_report_span_length(self):
        report = render_report('write "abc', "Unterminated string", 1, 7, length=4,
                               filename="main.vira")
        lines = report.splitlines()
        assert lines[1] == "  --> main.vira:1:7"
        assert lines[-1] == "   | " + " " * 6 + "^^^^ here"

    def test_wide_gutter(self):
        source = "\n" * 11 + "write @;"
        lines = render_report(source, "Unexpected character: '@'", 12, 7).splitlines()
        assert lines[2] == "    |"
        assert lines[3] == " 12 | write @;"

    def test_line_out_of_range(self):
        report = render_report("write 1;", "boom", 5, 1)
        assert report.splitlines() == ["error: boom", "  --> <source>:5:1"]

    def test_render_error_from_exception(self):
        source = "let = 5;"
        with pytest.raises(SyntaxError) as exc:
            compile_source(source)
        report = render_error(exc.value, source)
        assert report.startswith("error: Expected variable name")
        assert report.splitlines()[-1] == "   | " + " " * 4 + "^ here"

    def test_render_error_without_location(self):
        error = ViraError("Stack underflow", offset=5)
        assert render_error(error, "") == "error: offset 0x0005: Stack underflow"
