"""Verdict aggregation: run the pipeline over every unit of a block or module.

Lambdas are analyzed before the units that contain them, so a containing
unit's graph can account for what its lambdas write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, fields, is_dataclass

from ..config import Options
from ..lang.ast import (
    JBlock,
    JClassDecl,
    JFieldDecl,
    JInitializer,
    JLocalClass,
    JMember,
    JMethodDecl,
    JModule,
    JNew,
    JType,
    Pos,
)
from .cache import VerdictCache, fingerprint
from .cancel import CancelToken, check
from .cfg import Graph, build_cfg
from .errors import AnalysisError
from .filters import apply_options, raw_verdict
from .model import Variable, Verdict, sort_key
from .scopes import collect
from .writes import analyze_writes

LOG = logging.getLogger(__name__)


@dataclass
class ModuleReport:
    """Verdicts for a whole module, in declaration order."""

    verdicts: dict[Variable, Verdict] = field(default_factory=dict)
    # owners whose analysis failed an internal check
    failed: list[str] = field(default_factory=list)

    def by_name(self) -> dict[str, Verdict]:
        """Verdicts keyed by variable name; later declarations win on clashes."""
        return {var.name: verdict for var, verdict in self.verdicts.items()}


def _sorted(verdicts: dict[Variable, Verdict]) -> dict[Variable, Verdict]:
    return {var: verdicts[var] for var in sorted(verdicts, key=sort_key)}


def analyze_block(
    node: JMethodDecl | JInitializer | JBlock,
    owner: str = "<block>",
    *,
    cache: VerdictCache | None = None,
    cancel: CancelToken | None = None,
    on_graph: Callable[[Graph], None] | None = None,
) -> dict[Variable, Verdict]:
    """Raw verdicts for every variable declared in node, lambdas included.

    Variables whose declaration is unreachable are left out. Anonymous and
    local class bodies are opaque here; their members are units of their own.
    """
    check(cancel)
    key = ""
    if cache is not None:
        key = fingerprint(node)
        cached = cache.get(owner, key)
        if cached is not None:
            return cached
    try:
        verdicts = _analyze_units(node, owner, cancel, on_graph)
    except RecursionError:
        pos = node.pos
        raise AnalysisError("block nests too deeply to analyze", pos.line, pos.col) from None
    if cache is not None:
        verdicts = cache.put(owner, key, verdicts)
    return verdicts


def _analyze_units(
    node: JMethodDecl | JInitializer | JBlock,
    owner: str,
    cancel: CancelToken | None,
    on_graph: Callable[[Graph], None] | None,
) -> dict[Variable, Verdict]:
    collection = collect(node, owner)
    summaries: dict[int, dict[Variable, int]] = {}
    verdicts: dict[Variable, Verdict] = {}
    for unit in reversed(collection.units):
        check(cancel)
        graph = build_cfg(unit, collection, summaries, cancel)
        if on_graph is not None:
            on_graph(graph)
        result = analyze_writes(graph, cancel)
        if unit.is_closure:
            own = set(unit.variables)
            outer = {var for var in result.written if var not in own}
            summaries[id(unit.node)] = result.write_summary(outer)
        bound: set[Variable] = set()
        for graph_node in graph.nodes:
            for var, _ in graph_node.binds:
                bound.add(var)
        for var in unit.variables:
            if var not in bound:
                LOG.debug("%s: %s is unreachable, not reported", unit.label, var.name)
                continue
            verdicts[var] = raw_verdict(var, result.reasons.get(var), result.written)
    return _sorted(verdicts)


def _nested_classes(node: object) -> list[tuple[str, list[JMember]]]:
    """Anonymous and local class bodies directly inside node, in source order.

    Returns (label suffix, members) pairs. Bodies nested inside a found class
    are left for that class's own members to report.
    """
    found: list[tuple[str, list[JMember]]] = []
    stack: list[object] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, JLocalClass):
            found.append(("$" + item.decl.name, item.decl.members))
        elif isinstance(item, JNew) and item.body is not None:
            found.append(("$anon@" + str(item.pos.line) + ":" + str(item.pos.col), item.body))
            stack.extend(reversed(item.args))
        elif is_dataclass(item) and not isinstance(item, (Pos, JType)):
            stack.extend(getattr(item, f.name) for f in reversed(fields(item)))
    return found


def _units_of(module: JModule) -> list[tuple[str, JMethodDecl | JInitializer]]:
    """Every analyzable member with its owner label, in source order.

    Methods of anonymous and local classes are labelled after the member
    that contains them, e.g. `A.f@3$anon@4:18.run@5`.
    """
    out: list[tuple[str, JMethodDecl | JInitializer]] = []
    stack: list[tuple[str, list[JMember]]] = [
        (cls.name, cls.members) for cls in reversed(module.classes)
    ]
    while stack:
        prefix, members = stack.pop()
        nested: list[tuple[str, list[JMember]]] = []
        init_count = 0
        for member in members:
            if isinstance(member, JMethodDecl):
                if member.body is not None:
                    label = prefix + "." + member.name + "@" + str(member.pos.line)
                    out.append((label, member))
                    for suffix, body in _nested_classes(member.body):
                        nested.append((label + suffix, body))
            elif isinstance(member, JInitializer):
                name = "<clinit>" if member.is_static else "<init>"
                label = prefix + "." + name + "#" + str(init_count)
                out.append((label, member))
                init_count += 1
                for suffix, body in _nested_classes(member.body):
                    nested.append((label + suffix, body))
            elif isinstance(member, JFieldDecl):
                for suffix, body in _nested_classes(member.declarators):
                    nested.append((prefix + suffix, body))
            elif isinstance(member, JClassDecl):
                nested.append((prefix + "." + member.name, member.members))
        stack.extend(reversed(nested))
    return out


def analyze_module(
    module: JModule,
    options: Options | None = None,
    cache: VerdictCache | None = None,
    cancel: CancelToken | None = None,
    on_graph: Callable[[Graph], None] | None = None,
) -> ModuleReport:
    """Analyze every method and initializer; a failing block is skipped, not fatal."""
    report = ModuleReport()
    raw: dict[Variable, Verdict] = {}
    for owner, member in _units_of(module):
        try:
            found = analyze_block(member, owner, cache=cache, cancel=cancel, on_graph=on_graph)
        except AnalysisError as e:
            LOG.warning("skipping %s: %s", owner, e)
            report.failed.append(owner)
            continue
        raw.update(found)
    report.verdicts = _sorted(apply_options(raw, options))
    return report
