"""Tests for reporting options and source pragmas."""

from finalist.config import Options, _extract_pragmas, options_from_pragmas


def test_defaults_report_everything():
    options = Options()
    assert options.report_locals
    assert options.report_parameters


def test_overrides_only_turn_off():
    options = Options().with_overrides(no_locals=True)
    assert not options.report_locals
    assert options.report_parameters
    assert Options(report_locals=False).with_overrides() == Options(report_locals=False)


def test_extract_leading_pragmas():
    source = "// finalist: no-locals\n\n// plain comment\n//finalist:no-parameters\nclass A { }\n// finalist: locals\n"
    assert _extract_pragmas(source) == ["no-locals", "no-parameters"]


def test_pragmas_stop_at_code():
    assert _extract_pragmas("class A { }\n// finalist: no-locals\n") == []


def test_options_from_pragmas():
    options = options_from_pragmas("// finalist: no-parameters\nclass A { }")
    assert options == Options(report_locals=True, report_parameters=False)


def test_pragmas_adjust_base():
    base = Options(report_locals=False)
    options = options_from_pragmas("// finalist: locals\nclass A { }", base)
    assert options.report_locals
    assert options == Options()


def test_later_pragma_wins():
    source = "// finalist: no-locals\n// finalist: locals\nclass A { }"
    assert options_from_pragmas(source).report_locals


def test_unknown_pragma_ignored():
    assert options_from_pragmas("// finalist: everything\nclass A { }") == Options()
