"""Write-path analysis: how many times each variable can be written per path.

Each variable carries a set of observed write counts, encoded as a bitmask
over {0, 1, 2+}. Merging at joins is set union, so a write on one branch and
none on the other yields {0, 1} rather than collapsing to the larger count.
A declaration or binding node resets its variable; a write shifts every
count up by one, saturating at 2+. A write that arrives while the set holds
1 or 2+ is a violation.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from .cancel import CancelToken, check
from .cfg import Graph, Node
from .errors import AnalysisError
from .model import R_MULTIPLE_WRITES, R_WRITTEN_IN_LOOP, Variable

LOG = logging.getLogger(__name__)

ZERO = 1
ONE = 2
MANY = 4

State = dict[Variable, int]  # absent means ZERO


def bump(mask: int) -> int:
    """Shift every count in mask up by one write."""
    out = 0
    if mask & ZERO:
        out |= ONE
    if mask & (ONE | MANY):
        out |= MANY
    return out


def merge(into: State, other: State) -> bool:
    """Union other into into. Returns True if into changed."""
    changed = False
    for var in set(into) | set(other):
        old = into.get(var, ZERO)
        new = old | other.get(var, ZERO)
        if new != old or var not in into:
            into[var] = new
            changed = changed or new != old
    return changed


def describe(mask: int) -> str:
    parts: list[str] = []
    if mask & ZERO:
        parts.append("0")
    if mask & ONE:
        parts.append("1")
    if mask & MANY:
        parts.append("2+")
    return "{" + ",".join(parts) + "}"


# ============================================================
# RESULT
# ============================================================


@dataclass
class WriteResult:
    """Fixed-point outcome for one graph."""

    out_states: dict[int, State] = field(default_factory=dict)
    # variable -> ids of nodes where a second write can happen
    violations: dict[Variable, list[int]] = field(default_factory=dict)
    reasons: dict[Variable, str] = field(default_factory=dict)
    written: set[Variable] = field(default_factory=set)
    steps: int = 0

    def mask_after(self, node_id: int, var: Variable) -> int:
        return self.out_states.get(node_id, {}).get(var, ZERO)

    def write_summary(self, variables: set[Variable]) -> dict[Variable, int]:
        """Largest write count (1, or 2 for more) per variable, over every node."""
        summary: dict[Variable, int] = {}
        for var in sorted(variables & self.written, key=lambda v: (v.line, v.col)):
            mask = 0
            for state in self.out_states.values():
                mask |= state.get(var, ZERO)
            if mask & MANY:
                summary[var] = 2
            elif mask & ONE:
                summary[var] = 1
        return summary


# ============================================================
# FIXED POINT
# ============================================================


def _transfer(node: Node, state: State, result: WriteResult) -> State:
    out = dict(state)
    for var, has_value in node.binds:
        out[var] = ONE if has_value else ZERO
    for var in node.writes:
        mask = out.get(var, ZERO)
        if mask & (ONE | MANY):
            hits = result.violations.setdefault(var, [])
            if node.id not in hits:
                hits.append(node.id)
        out[var] = bump(mask)
    return out


def _reaches_itself(node: Node, var: Variable) -> bool:
    """True if node can reach itself without passing a binding of var."""
    seen: set[int] = set()
    worklist: list[Node] = [edge.dst for edge in node.succs]
    while worklist:
        current = worklist.pop()
        if current is node:
            return True
        if current.id in seen or current.binds_var(var):
            continue
        seen.add(current.id)
        for edge in current.succs:
            worklist.append(edge.dst)
    return False


def analyze_writes(graph: Graph, cancel: CancelToken | None = None) -> WriteResult:
    """Run the write-count dataflow over graph to a fixed point."""
    result = WriteResult()
    for node in graph.nodes:
        result.written.update(node.writes)
    in_states: dict[int, State] = {graph.entry.id: {}}
    worklist: deque[Node] = deque([graph.entry])
    queued: set[int] = {graph.entry.id}
    while worklist:
        check(cancel)
        node = worklist.popleft()
        queued.discard(node.id)
        result.steps += 1
        out = _transfer(node, in_states[node.id], result)
        result.out_states[node.id] = out
        for edge in node.succs:
            dst = edge.dst
            if dst.id not in in_states:
                in_states[dst.id] = dict(out)
                changed = True
            else:
                changed = merge(in_states[dst.id], out)
            if changed and dst.id not in queued:
                queued.add(dst.id)
                worklist.append(dst)
    for node in graph.nodes:
        if node.id not in result.out_states:
            raise AnalysisError(
                "node " + str(node.id) + " (" + node.kind + ") is not reachable from entry", 0, 0
            )
    for var, node_ids in result.violations.items():
        check(cancel)
        reason = R_MULTIPLE_WRITES
        for node_id in node_ids:
            if _reaches_itself(graph.node(node_id), var):
                reason = R_WRITTEN_IN_LOOP
                break
        result.reasons[var] = reason
    LOG.debug(
        "%s: fixed point after %d steps, %d violating variables",
        graph.label,
        result.steps,
        len(result.violations),
    )
    return result
