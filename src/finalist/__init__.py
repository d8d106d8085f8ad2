"""finalist: find locals and parameters that could be declared final."""

from __future__ import annotations

from .analysis import (
    AnalysisCancelled as AnalysisCancelled,
    AnalysisError as AnalysisError,
    CancelToken as CancelToken,
    ModuleReport as ModuleReport,
    VerdictCache as VerdictCache,
    analyze_block as analyze_block,
    analyze_module as analyze_module,
)
from .config import Options as Options, options_from_pragmas
from .lang import ParseError as ParseError, TokenizeError as TokenizeError, parse, parse_block


def analyze_source(
    source: str,
    options: Options | None = None,
    cache: VerdictCache | None = None,
    cancel: CancelToken | None = None,
) -> ModuleReport:
    """Parse and analyze source. Options default to the source's pragmas."""
    module = parse(source)
    if options is None:
        options = options_from_pragmas(source)
    return analyze_module(module, options, cache=cache, cancel=cancel)


__all__ = [
    "AnalysisCancelled",
    "AnalysisError",
    "CancelToken",
    "ModuleReport",
    "Options",
    "ParseError",
    "TokenizeError",
    "VerdictCache",
    "analyze_block",
    "analyze_module",
    "analyze_source",
    "parse",
    "parse_block",
]
