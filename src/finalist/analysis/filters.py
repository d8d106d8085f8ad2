"""Scope-membership rules and configuration gating.

These exclusions do not come from the graph. They run after the write
analysis and take precedence over its findings.
"""

from __future__ import annotations

from ..config import Options
from .model import (
    CAN,
    KIND_CATCH_PARAMETER,
    KIND_FOREACH_PARAMETER,
    KIND_PARAMETER,
    LOCAL_LIKE_KINDS,
    R_ALREADY_IMMUTABLE,
    R_CONFIGURATION,
    R_SCOPE_RULE,
    SCOPE_CLOSURE_BODY,
    Variable,
    Verdict,
    cannot,
)

# Parameters bound by the construct itself; any other write keeps them mutable.
_REBOUND_KINDS: set[str] = {KIND_CATCH_PARAMETER, KIND_FOREACH_PARAMETER}


def is_lambda_parameter(var: Variable) -> bool:
    return (
        var.kind == KIND_PARAMETER
        and var.scope is not None
        and var.scope.kind == SCOPE_CLOSURE_BODY
    )


def excluded_by_scope_rule(var: Variable, written: set[Variable]) -> bool:
    # Of all parameters only method and constructor ones are candidates.
    if var.multi_declared or is_lambda_parameter(var):
        return True
    return var.kind in _REBOUND_KINDS and var in written


def raw_verdict(var: Variable, write_reason: str | None, written: set[Variable]) -> Verdict:
    """Configuration-free verdict for var."""
    if var.is_final:
        return cannot(R_ALREADY_IMMUTABLE)
    if excluded_by_scope_rule(var, written):
        return cannot(R_SCOPE_RULE)
    if write_reason is not None:
        return cannot(write_reason)
    return CAN


def is_gated(var: Variable, options: Options) -> bool:
    if is_lambda_parameter(var):
        return False
    if var.kind == KIND_PARAMETER:
        return not options.report_parameters
    if var.kind in LOCAL_LIKE_KINDS:
        return not options.report_locals
    return False


def apply_options(
    verdicts: dict[Variable, Verdict], options: Options | None
) -> dict[Variable, Verdict]:
    """Replace the verdicts of every gated variable family."""
    if options is None:
        return dict(verdicts)
    out: dict[Variable, Verdict] = {}
    for var, verdict in verdicts.items():
        if is_gated(var, options):
            out[var] = cannot(R_CONFIGURATION)
        else:
            out[var] = verdict
    return out
