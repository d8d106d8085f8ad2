"""Effectively-final analysis: public API."""

from __future__ import annotations

from .cache import VerdictCache as VerdictCache, fingerprint as fingerprint
from .cancel import CancelToken as CancelToken
from .cfg import Graph as Graph, build_cfg as build_cfg, dump as dump
from .errors import AnalysisCancelled as AnalysisCancelled, AnalysisError as AnalysisError
from .filters import apply_options as apply_options
from .model import Scope as Scope, Variable as Variable, Verdict as Verdict
from .scopes import collect as collect
from .verdicts import (
    ModuleReport as ModuleReport,
    analyze_block as analyze_block,
    analyze_module as analyze_module,
)
from .writes import analyze_writes as analyze_writes
