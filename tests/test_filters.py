"""Tests for scope-membership exclusions, verdict precedence, and gating."""

import pytest

from finalist.analysis.filters import apply_options, excluded_by_scope_rule, is_gated, raw_verdict
from finalist.analysis.model import CAN, Scope, Variable, Verdict, cannot
from finalist.config import Options


def _var(kind: str = "Local", **kw) -> Variable:
    return Variable("v", kind, 1, 1, "t", **kw)


def test_final_beats_everything():
    var = _var(is_final=True, multi_declared=True)
    assert raw_verdict(var, "WrittenInLoopBody", {var}) == cannot("AlreadyImmutable")


def test_scope_rule_beats_write_reason():
    var = _var(multi_declared=True)
    assert raw_verdict(var, "WrittenInLoopBody", {var}) == cannot("ExcludedByScopeRule")


def test_write_reason_passed_through():
    var = _var()
    assert raw_verdict(var, "MultipleWritesOnSomePath", {var}) == cannot("MultipleWritesOnSomePath")


def test_unwritten_local_can_be_immutable():
    assert raw_verdict(_var(), None, set()) == CAN


@pytest.mark.parametrize("kind", ["CatchParameter", "ForEachParameter"])
def test_rebound_params_excluded_once_written(kind: str):
    var = _var(kind)
    assert not excluded_by_scope_rule(var, set())
    assert excluded_by_scope_rule(var, {var})


def test_written_parameter_is_not_scope_excluded():
    var = _var("Parameter")
    assert not excluded_by_scope_rule(var, {var})


def test_lambda_parameters_are_never_candidates():
    var = _var("Parameter", scope=Scope("ClosureBody", None))
    method_param = _var("Parameter", scope=Scope("MethodBody", None))
    assert raw_verdict(var, None, set()) == cannot("ExcludedByScopeRule")
    assert raw_verdict(method_param, None, set()) == CAN
    assert not is_gated(var, Options(report_parameters=False))
    final = _var("Parameter", is_final=True, scope=var.scope)
    assert raw_verdict(final, None, set()) == cannot("AlreadyImmutable")


def test_gating_families():
    no_locals = Options(report_locals=False)
    no_params = Options(report_parameters=False)
    assert is_gated(_var("Local"), no_locals)
    assert is_gated(_var("CatchParameter"), no_locals)
    assert is_gated(_var("ForEachParameter"), no_locals)
    assert not is_gated(_var("Parameter"), no_locals)
    assert is_gated(_var("Parameter"), no_params)
    assert not is_gated(_var("Local"), no_params)


def test_apply_options_replaces_every_gated_verdict():
    local = Variable("a", "Local", 1, 1, "t")
    param = Variable("b", "Parameter", 1, 5, "t")
    verdicts = {local: cannot("WrittenInLoopBody"), param: CAN}
    out = apply_options(verdicts, Options(report_locals=False))
    assert out[local] == cannot("ExcludedByConfiguration")
    assert out[param] == CAN
    assert verdicts[local] == cannot("WrittenInLoopBody")


def test_apply_options_none_is_identity():
    local = Variable("a", "Local", 1, 1, "t")
    assert apply_options({local: CAN}, None) == {local: CAN}


def test_verdict_text():
    assert str(CAN) == "CanBeImmutable"
    assert str(cannot("WrittenInLoopBody")) == "CannotBeImmutable(WrittenInLoopBody)"
    assert CAN.can_be_immutable
    assert not cannot("AlreadyImmutable").can_be_immutable


def test_unknown_reason_rejected():
    with pytest.raises(ValueError):
        cannot("Because")


def test_verdicts_are_values():
    assert Verdict("CanBeImmutable") == CAN
