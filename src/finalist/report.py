"""Reporting: turn verdicts into user-facing diagnostics."""

from __future__ import annotations

from dataclasses import dataclass

from .analysis.filters import is_gated
from .analysis.model import KIND_CATCH_PARAMETER, KIND_PARAMETER, Variable, Verdict
from .config import Options

INSPECTION_NAME = "LocalCanBeFinal"


@dataclass(frozen=True)
class Diagnostic:
    line: int
    col: int
    message: str
    variable: Variable


def message_for(var: Variable) -> str:
    if var.kind in (KIND_PARAMETER, KIND_CATCH_PARAMETER):
        return "Parameter '" + var.name + "' can have 'final' modifier"
    return "Variable '" + var.name + "' can have 'final' modifier"


def diagnostics(
    verdicts: dict[Variable, Verdict], options: Options | None = None
) -> list[Diagnostic]:
    """One diagnostic per CanBeImmutable verdict whose family is reported."""
    opts = options if options is not None else Options()
    out: list[Diagnostic] = []
    for var, verdict in verdicts.items():
        if not verdict.can_be_immutable or is_gated(var, opts):
            continue
        out.append(Diagnostic(var.line, var.col, message_for(var), var))
    out.sort(key=lambda d: (d.line, d.col))
    return out


def format_diagnostic(path: str, diag: Diagnostic) -> str:
    return path + ":" + str(diag.line) + ":" + str(diag.col) + ": " + diag.message


def format_verdict(path: str, var: Variable, verdict: Verdict) -> str:
    return (
        path
        + ":"
        + str(var.line)
        + ":"
        + str(var.col)
        + ": "
        + var.kind
        + " '"
        + var.name
        + "': "
        + str(verdict)
    )
