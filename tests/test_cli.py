"""CLI tests for the finalist entry point.

Test cases live in cli/*.tests files. Format:

    === test name
    args: --all {file}
    source code here
    (written to {file} unless empty)
    ---
    exit: 0
    stdout: {file}:2:13: Parameter 'a' can have 'final' modifier
    stdout-contains: substring
    stderr-contains: substring
    ---

Assertion directives in the expected section:
    exit:             exact exit code
    stdout:           one exact stdout line; all of them together form stdout
    stdout-contains:  stdout must contain substring
    stdout-empty:     stdout must be empty
    stderr:           exact stderr content (trailing newline added)
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
"""

import io
import sys
from pathlib import Path

import pytest

from finalist.cli import main, parse_args

CLI_DIR = Path(__file__).parent / "cli"


def parse_cli_test_file(path: Path) -> list[tuple[str, dict]]:
    """Parse a .tests file into (name, case) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, dict]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            result.append((test_name, _parse_case(input_lines, expected_lines)))
        else:
            i += 1
    return result


def _parse_case(input_lines: list[str], expected_lines: list[str]) -> dict:
    """Parse input + expected lines into a test case dict."""
    case: dict = {"args": [], "source": "", "assertions": []}
    if input_lines and input_lines[0].startswith("args:"):
        case["args"] = input_lines[0][len("args:") :].split()
        input_lines = input_lines[1:]
    case["source"] = "\n".join(input_lines).strip("\n")
    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition(":")
        case["assertions"].append((key.strip(), value.strip()))
    return case


def discover_cli_tests() -> list[tuple[str, dict]]:
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, case in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", case))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize tests over CLI test files."""
    if "cli_case" in metafunc.fixturenames:
        params = [pytest.param(case, id=test_id) for test_id, case in discover_cli_tests()]
        metafunc.parametrize("cli_case", params)


def _run(case: dict, tmp_path: Path, capsys) -> tuple[int, str, str, str]:
    """Run main() on the case. Returns (exit code, stdout, stderr, file path)."""
    path = tmp_path / "Input.java"
    if case["source"]:
        path.write_text(case["source"] + "\n")
    args = [arg.replace("{file}", str(path)) for arg in case["args"]]
    code = main(args)
    captured = capsys.readouterr()
    return code, captured.out, captured.err, str(path)


def test_cli(cli_case: dict, tmp_path: Path, capsys):
    code, out, err, path = _run(cli_case, tmp_path, capsys)
    expected_stdout: list[str] = []
    for key, value in cli_case["assertions"]:
        value = value.replace("{file}", path)
        if key == "exit":
            assert code == int(value), err
        elif key == "stdout":
            expected_stdout.append(value)
        elif key == "stdout-contains":
            assert value in out
        elif key == "stdout-empty":
            assert out == ""
        elif key == "stderr":
            assert err == value + "\n"
        elif key == "stderr-contains":
            assert value in err
        elif key == "stderr-empty":
            assert err == ""
        else:
            raise ValueError(f"unknown directive {key}")
    if expected_stdout:
        assert out.splitlines() == expected_stdout


def test_cli_fixtures_discovered():
    assert len(discover_cli_tests()) > 10


# ============================================================
# ARGUMENT PARSING
# ============================================================


def test_parse_args_defaults():
    args, code = parse_args(["A.java"])
    assert code == 0
    assert args.files == ["A.java"]
    assert args.jobs == 1
    assert not args.show_all


def test_parse_args_flags():
    args, _ = parse_args(["--no-locals", "--no-parameters", "--all", "-v", "--jobs", "3", "a", "b"])
    assert args.no_locals and args.no_parameters and args.show_all and args.verbose
    assert args.jobs == 3
    assert args.files == ["a", "b"]


def test_parse_args_stdin_dash():
    args, _ = parse_args(["-"])
    assert args.files == ["-"]


def test_stdin_source(monkeypatch, capsys):
    source = "class A {\n  void f(int a) { }\n}\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(source.encode("utf-8"))))
    assert main(["-"]) == 0
    assert capsys.readouterr().out == "-:2:14: Parameter 'a' can have 'final' modifier\n"


def test_invalid_utf8(tmp_path: Path, capsys):
    path = tmp_path / "Bad.java"
    path.write_bytes(b"class A { \xff }")
    assert main([str(path)]) == 1
    assert "invalid utf-8" in capsys.readouterr().err


def test_worst_exit_code_wins(tmp_path: Path, capsys):
    good = tmp_path / "Good.java"
    good.write_text("class A { void f(int a) { } }\n")
    missing = tmp_path / "Missing.java"
    assert main([str(good), str(missing)]) == 1
    captured = capsys.readouterr()
    assert "Parameter 'a'" in captured.out
    assert "No such file or directory" in captured.err


def test_long_expression_does_not_stop_other_files(tmp_path: Path, capsys):
    big = tmp_path / "Big.java"
    terms = " + ".join(['"a"'] * 1500)
    big.write_text("class A {\n  void f() {\n    String s = " + terms + ";\n  }\n}\n")
    small = tmp_path / "Small.java"
    small.write_text("class B {\n  void g(int b) { }\n}\n")
    assert main([str(big), str(small)]) == 0
    out = capsys.readouterr().out
    assert str(big) + ":3:12: Variable 's' can have 'final' modifier" in out
    assert str(small) + ":2:14: Parameter 'b' can have 'final' modifier" in out


def test_deep_nesting_is_reported_per_file(tmp_path: Path, capsys):
    deep = tmp_path / "Deep.java"
    deep.write_text("class A { int f() { return " + "(" * 1000 + "1" + ")" * 1000 + "; } }\n")
    small = tmp_path / "Small.java"
    small.write_text("class B {\n  void g(int b) { }\n}\n")
    assert main([str(deep), str(small)]) == 1
    captured = capsys.readouterr()
    assert "nesting too deep" in captured.err
    assert str(small) + ":2:14: Parameter 'b' can have 'final' modifier" in captured.out
