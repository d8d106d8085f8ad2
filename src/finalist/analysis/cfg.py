"""Control-flow graph construction for one analysis unit.

The builder keeps a frontier: the (node, edge kind) pairs that fall through
to whatever is emitted next. Structured statements split and merge the
frontier; jumps park their frontier on the frame they target until the frame
closes. Finally blocks are built once per way of leaving the protected region
so that each exit path sees its own copy of the finally writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..lang.ast import (
    JArrayLit,
    JAssign,
    JBinary,
    JBlock,
    JBreak,
    JCall,
    JCast,
    JContinue,
    JDoWhile,
    JEmpty,
    JExpr,
    JExprStmt,
    JFieldAccess,
    JFor,
    JForEach,
    JIf,
    JIncDec,
    JIndex,
    JInstanceOf,
    JLabeled,
    JLambda,
    JLiteral,
    JLocalClass,
    JLocalDecl,
    JMethodRef,
    JName,
    JNew,
    JReturn,
    JStmt,
    JSwitch,
    JTernary,
    JThrow,
    JTry,
    JUnary,
    JWhile,
)
from .cancel import CancelToken, check
from .errors import AnalysisError
from .model import Variable
from .scopes import Collection, Unit

LOG = logging.getLogger(__name__)

# Node kinds
N_ENTRY = "entry"
N_EXIT = "exit"
N_EXC_EXIT = "exc_exit"
N_JOIN = "join"
N_LOOP = "loop"
N_DECLARE = "declare"
N_BIND = "bind"
N_WRITE = "write"
N_BRANCH = "branch"
N_SWITCH = "switch"
N_CALL = "call"
N_NEW = "new"
N_CLOSURE = "closure"
N_THROW = "throw"
N_RETURN = "return"
N_JUMP = "jump"
N_TRY = "try"
N_CATCH = "catch"

# Edge kinds
E_NORMAL = "normal"
E_TRUE = "true"
E_FALSE = "false"
E_EXCEPTION = "exception"
E_LOOP_BACK = "loop_back"
E_BREAK = "break"
E_CONTINUE = "continue"

# Nodes that only route control and never raise.
_SILENT: set[str] = {N_JOIN, N_LOOP, N_JUMP}

# Outside any try region only these reach the exception exit.
_MAY_THROW: set[str] = {N_CALL, N_NEW, N_THROW}

# Jump frame kinds
F_LOOP = "loop"
F_SWITCH = "switch"
F_LABEL = "label"
F_FINALLY = "finally"

# Expression work steps
_W_EVAL = "eval"
_W_COND = "cond"
_W_EMIT = "emit"
_W_WRITE = "write"
_W_BRANCH = "branch"
_W_NOT = "not"
_W_AND = "and"
_W_AND_DONE = "and_done"
_W_OR = "or"
_W_OR_DONE = "or_done"
_W_MERGE = "merge"
_W_THEN = "then"
_W_ELSE = "else"
_W_JOIN = "join"


# ============================================================
# GRAPH
# ============================================================


@dataclass(eq=False)
class Edge:
    src: Node
    dst: Node
    kind: str


@dataclass(eq=False)
class Node:
    """One execution point.

    binds: variables (re)bound here, with whether the binding carries a value.
    writes: one entry per assignment performed here; a closure node may list
    the same variable twice to stand for repeated writes.
    """

    id: int
    kind: str
    ast: object = field(default=None, repr=False)
    binds: list[tuple[Variable, bool]] = field(default_factory=list)
    writes: list[Variable] = field(default_factory=list)
    succs: list[Edge] = field(default_factory=list, repr=False)
    preds: list[Edge] = field(default_factory=list, repr=False)

    def binds_var(self, var: Variable) -> bool:
        for bound, _ in self.binds:
            if bound == var:
                return True
        return False


@dataclass(eq=False)
class Graph:
    label: str
    entry: Node
    exit: Node | None
    exception_exit: Node | None
    nodes: list[Node] = field(default_factory=list)

    def edges(self) -> list[Edge]:
        out: list[Edge] = []
        for node in self.nodes:
            out.extend(node.succs)
        return out

    def node(self, node_id: int) -> Node:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def nodes_of(self, kind: str) -> list[Node]:
        return [n for n in self.nodes if n.kind == kind]


def _connect(src: Node, dst: Node, kind: str) -> None:
    for edge in src.succs:
        if edge.dst is dst and edge.kind == kind:
            return
    edge = Edge(src, dst, kind)
    src.succs.append(edge)
    dst.preds.append(edge)


# ============================================================
# FRAMES
# ============================================================


@dataclass
class _JumpFrame:
    """A construct that break/continue/return can leave or target."""

    kind: str
    labels: list[str]
    breaks: list[tuple[Node, str]] = field(default_factory=list)
    continues: list[tuple[Node, str]] = field(default_factory=list)
    finally_body: JBlock | None = None
    handler_depth: int = 0
    jump_depth: int = 0


# ============================================================
# BUILDER
# ============================================================


class _Builder:
    def __init__(
        self, unit: Unit, collection: Collection, summaries: dict[int, dict[Variable, int]]
    ):
        self.unit = unit
        self.collection = collection
        self.summaries = summaries
        self.next_id: int = 0
        self.nodes: list[Node] = []
        entry = self._new(N_ENTRY, unit.node)
        entry.binds = [(p, True) for p in unit.params]
        self.exit = self._new(N_EXIT, None)
        self.exc_exit = self._new(N_EXC_EXIT, None)
        self.graph = Graph(unit.label, entry, self.exit, self.exc_exit)
        self._frontier: list[tuple[Node, str]] = [(entry, E_NORMAL)]
        # Each handler frame lists where an exception raised inside it goes.
        self._handlers: list[list[Node]] = []
        self._jumps: list[_JumpFrame] = []
        self._pending_labels: list[str] = []

    # ── Helpers ──────────────────────────────────────────────

    def _new(self, kind: str, ast: object) -> Node:
        node = Node(self.next_id, kind, ast)
        self.next_id += 1
        self.nodes.append(node)
        return node

    def _emit(self, kind: str, ast: object) -> Node:
        """Create a node fed by the current frontier; it becomes the frontier."""
        node = self._new(kind, ast)
        for src, edge_kind in self._frontier:
            _connect(src, node, edge_kind)
        self._frontier = [(node, E_NORMAL)]
        if kind not in _SILENT:
            if self._handlers:
                for target in self._handlers[-1]:
                    _connect(node, target, E_EXCEPTION)
            elif kind in _MAY_THROW:
                _connect(node, self.exc_exit, E_EXCEPTION)
        return node

    def _exc_targets(self) -> list[Node]:
        if self._handlers:
            return self._handlers[-1]
        return [self.exc_exit]

    def _take_labels(self) -> list[str]:
        labels = self._pending_labels
        self._pending_labels = []
        return labels

    def _var(self, expr: JExpr) -> Variable | None:
        if isinstance(expr, JName):
            return self.collection.lookup(expr)
        return None

    def _error(self, msg: str, node: JStmt | JExpr) -> AnalysisError:
        return AnalysisError(msg, node.pos.line, node.pos.col)

    # ── Entry Point ──────────────────────────────────────────

    def build(self) -> Graph:
        body = self.unit.body
        if isinstance(body, JBlock):
            self._block(body)
        else:
            self._expr(body)
        for src, edge_kind in self._frontier:
            _connect(src, self.exit, edge_kind)
        self._frontier = []
        self.graph.nodes = self.nodes
        return self.graph

    # ── Statements ───────────────────────────────────────────

    def _block(self, block: JBlock) -> None:
        for stmt in block.stmts:
            self._stmt(stmt)

    def _stmt(self, stmt: JStmt) -> None:
        if isinstance(stmt, JBlock):
            self._block(stmt)
        elif isinstance(stmt, JLocalDecl):
            self._local_decl(stmt)
        elif isinstance(stmt, JExprStmt):
            self._expr(stmt.expr)
        elif isinstance(stmt, JIf):
            self._if(stmt)
        elif isinstance(stmt, JWhile):
            self._while(stmt)
        elif isinstance(stmt, JDoWhile):
            self._do_while(stmt)
        elif isinstance(stmt, JFor):
            self._for(stmt)
        elif isinstance(stmt, JForEach):
            self._foreach(stmt)
        elif isinstance(stmt, JSwitch):
            self._switch(stmt)
        elif isinstance(stmt, JTry):
            self._try(stmt)
        elif isinstance(stmt, JReturn):
            self._return(stmt)
        elif isinstance(stmt, JThrow):
            self._expr(stmt.expr)
            self._emit(N_THROW, stmt)
            self._frontier = []
        elif isinstance(stmt, JBreak):
            self._jump(stmt, stmt.label, is_break=True)
        elif isinstance(stmt, JContinue):
            self._jump(stmt, stmt.label, is_break=False)
        elif isinstance(stmt, JLabeled):
            self._labeled(stmt)
        elif isinstance(stmt, (JEmpty, JLocalClass)):
            pass
        else:
            raise self._error("unexpected statement " + type(stmt).__name__, stmt)

    def _local_decl(self, stmt: JLocalDecl) -> None:
        for decl in stmt.declarators:
            var = self.collection.decls.get(id(decl))
            if var is None:
                raise AnalysisError("undeclared local " + decl.name, decl.pos.line, decl.pos.col)
            if decl.init is not None:
                self._expr(decl.init)
            node = self._emit(N_DECLARE, decl)
            node.binds.append((var, decl.init is not None))

    def _if(self, stmt: JIf) -> None:
        on_true, on_false = self._cond(stmt.cond)
        self._frontier = on_true
        self._stmt(stmt.then)
        after_then = self._frontier
        self._frontier = on_false
        if stmt.orelse is not None:
            self._stmt(stmt.orelse)
        self._frontier = after_then + self._frontier
        if self._frontier:
            self._emit(N_JOIN, stmt)

    def _loop_frame(self) -> _JumpFrame:
        return _JumpFrame(F_LOOP, self._take_labels())

    def _close_loop(self, frame: _JumpFrame, head: Node, exits: list[tuple[Node, str]]) -> None:
        """Route the body tail back to head; the loop continues from exits and breaks."""
        for src, _ in self._frontier:
            _connect(src, head, E_LOOP_BACK)
        self._frontier = exits + frame.breaks

    def _while(self, stmt: JWhile) -> None:
        frame = self._loop_frame()
        head = self._emit(N_LOOP, stmt)
        on_true, on_false = self._cond(stmt.cond)
        self._frontier = on_true
        self._jumps.append(frame)
        self._stmt(stmt.body)
        self._jumps.pop()
        for src, _ in frame.continues:
            _connect(src, head, E_CONTINUE)
        self._close_loop(frame, head, on_false)

    def _do_while(self, stmt: JDoWhile) -> None:
        frame = self._loop_frame()
        head = self._emit(N_LOOP, stmt)
        self._jumps.append(frame)
        self._stmt(stmt.body)
        self._jumps.pop()
        self._frontier = self._frontier + frame.continues
        on_true, on_false = self._cond(stmt.cond)
        self._frontier = on_true
        self._close_loop(frame, head, on_false)

    def _for(self, stmt: JFor) -> None:
        frame = self._loop_frame()
        for init in stmt.init:
            self._stmt(init)
        head = self._emit(N_LOOP, stmt)
        if stmt.cond is None:
            on_true, on_false = self._frontier, []
        else:
            on_true, on_false = self._cond(stmt.cond)
        self._frontier = on_true
        self._jumps.append(frame)
        self._stmt(stmt.body)
        self._jumps.pop()
        self._frontier = self._frontier + frame.continues
        for update in stmt.update:
            self._expr(update)
        self._close_loop(frame, head, on_false)

    def _foreach(self, stmt: JForEach) -> None:
        frame = self._loop_frame()
        self._expr(stmt.iterable)
        head = self._emit(N_LOOP, stmt)
        test = self._emit(N_BRANCH, stmt)
        self._frontier = [(test, E_TRUE)]
        var = self.collection.decls.get(id(stmt.param))
        bind = self._emit(N_BIND, stmt.param)
        if var is not None:
            bind.binds.append((var, True))
        self._jumps.append(frame)
        self._stmt(stmt.body)
        self._jumps.pop()
        for src, _ in frame.continues:
            _connect(src, head, E_CONTINUE)
        self._close_loop(frame, head, [(test, E_FALSE)])

    def _switch(self, stmt: JSwitch) -> None:
        frame = _JumpFrame(F_SWITCH, self._take_labels())
        self._expr(stmt.expr)
        switch = self._emit(N_SWITCH, stmt)
        self._frontier = []
        has_default = False
        self._jumps.append(frame)
        for case in stmt.cases:
            if case.is_default:
                has_default = True
            # Fall-through from the previous group joins the case entry.
            self._frontier = self._frontier + [(switch, E_TRUE)]
            self._emit(N_JOIN, case)
            for inner in case.body:
                self._stmt(inner)
        self._jumps.pop()
        if not has_default:
            self._frontier = self._frontier + [(switch, E_FALSE)]
        self._frontier = self._frontier + frame.breaks

    def _labeled(self, stmt: JLabeled) -> None:
        labels = [stmt.label]
        body = stmt.body
        while isinstance(body, JLabeled):
            labels.append(body.label)
            body = body.body
        if isinstance(body, (JWhile, JDoWhile, JFor, JForEach, JSwitch)):
            self._pending_labels = labels
            self._stmt(body)
            return
        frame = _JumpFrame(F_LABEL, labels)
        self._jumps.append(frame)
        self._stmt(body)
        self._jumps.pop()
        self._frontier = self._frontier + frame.breaks

    def _try(self, stmt: JTry) -> None:
        fin_exc: Node | None = None
        if stmt.finally_body is not None:
            # Entry of the copy run when an exception escapes the region.
            fin_exc = self._new(N_JOIN, stmt.finally_body)
            escape = [fin_exc]
        else:
            escape = list(self._exc_targets())
        catch_nodes: list[Node] = []
        for catch in stmt.catches:
            node = self._new(N_CATCH, catch)
            var = self.collection.decls.get(id(catch.param))
            if var is not None:
                node.binds.append((var, True))
            catch_nodes.append(node)
        fin_frame: _JumpFrame | None = None
        if stmt.finally_body is not None:
            fin_frame = _JumpFrame(
                F_FINALLY,
                [],
                finally_body=stmt.finally_body,
                handler_depth=len(self._handlers),
                jump_depth=len(self._jumps),
            )
            self._jumps.append(fin_frame)

        self._handlers.append(catch_nodes + escape)
        self._emit(N_TRY, stmt)
        self._block(stmt.body)
        self._handlers.pop()
        tails = self._frontier

        if fin_exc is not None:
            self._handlers.append([fin_exc])
        for catch, node in zip(stmt.catches, catch_nodes):
            self._frontier = [(node, E_NORMAL)]
            self._block(catch.body)
            tails = tails + self._frontier
        if fin_exc is not None:
            self._handlers.pop()
        if fin_frame is not None:
            self._jumps.pop()

        self._frontier = tails
        if stmt.finally_body is None or fin_exc is None:
            return
        if self._frontier:
            self._block(stmt.finally_body)
        after = self._frontier
        if fin_exc.preds:
            self._frontier = [(fin_exc, E_NORMAL)]
            self._block(stmt.finally_body)
            if self._frontier:
                self._emit(N_THROW, None)
        self._frontier = after

    def _inline_finally(self, frame: _JumpFrame) -> None:
        """Build a copy of frame's finally block with the stacks it was opened under."""
        if frame.finally_body is None:
            return
        saved_handlers = self._handlers
        saved_jumps = self._jumps
        self._handlers = saved_handlers[: frame.handler_depth]
        self._jumps = saved_jumps[: frame.jump_depth]
        self._block(frame.finally_body)
        self._handlers = saved_handlers
        self._jumps = saved_jumps

    def _return(self, stmt: JReturn) -> None:
        if stmt.value is not None:
            self._expr(stmt.value)
        self._emit(N_RETURN, stmt)
        for frame in reversed(list(self._jumps)):
            if frame.kind == F_FINALLY:
                self._inline_finally(frame)
        for src, edge_kind in self._frontier:
            _connect(src, self.exit, edge_kind)
        self._frontier = []

    def _jump(self, stmt: JStmt, label: str | None, is_break: bool) -> None:
        crossed: list[_JumpFrame] = []
        target: _JumpFrame | None = None
        for frame in reversed(self._jumps):
            if frame.kind == F_FINALLY:
                crossed.append(frame)
            elif label is not None:
                if label in frame.labels:
                    target = frame
                    break
            elif frame.kind == F_LOOP or (is_break and frame.kind == F_SWITCH):
                target = frame
                break
        word = "break" if is_break else "continue"
        if target is None:
            raise self._error(word + " outside of a matching statement", stmt)
        if not is_break and target.kind != F_LOOP:
            raise self._error("continue target is not a loop", stmt)
        self._emit(N_JUMP, stmt)
        for frame in crossed:
            self._inline_finally(frame)
        if is_break:
            target.breaks.extend((src, E_BREAK) for src, _ in self._frontier)
        else:
            target.continues.extend((src, E_CONTINUE) for src, _ in self._frontier)
        self._frontier = []

    # ── Conditions and Expressions ───────────────────────────
    #
    # Both run on an explicit work stack so long operator chains never exhaust
    # the interpreter stack. Condition steps leave their (on_true, on_false)
    # frontiers on a results stack for the step that consumes them.

    def _cond(self, expr: JExpr) -> tuple[list[tuple[Node, str]], list[tuple[Node, str]]]:
        """Build a condition. Returns the frontiers taken when it is true and false."""
        results = self._run([(_W_COND, expr)])
        return results.pop()

    def _expr(self, expr: JExpr) -> None:
        """Emit nodes for expr's side effects in evaluation order."""
        self._run([(_W_EVAL, expr)])

    def _run(self, work: list[tuple]) -> list[tuple[list, list]]:
        results: list[tuple[list, list]] = []
        while work:
            item = work.pop()
            step = item[0]
            if step == _W_EVAL:
                work.extend(reversed(self._eval(item[1])))
            elif step == _W_COND:
                work.extend(reversed(self._cond_steps(item[1], results)))
            elif step == _W_EMIT:
                self._emit(item[1], item[2])
            elif step == _W_WRITE:
                node = self._emit(N_WRITE, item[1])
                node.writes.append(item[2])
            elif step == _W_BRANCH:
                branch = self._emit(N_BRANCH, item[1])
                results.append(([(branch, E_TRUE)], [(branch, E_FALSE)]))
            elif step == _W_NOT:
                on_true, on_false = results.pop()
                results.append((on_false, on_true))
            elif step == _W_AND:
                left_true, left_false = results.pop()
                self._frontier = left_true
                work.append((_W_AND_DONE, left_false))
                work.append((_W_COND, item[1]))
            elif step == _W_AND_DONE:
                right_true, right_false = results.pop()
                results.append((right_true, item[1] + right_false))
            elif step == _W_OR:
                left_true, left_false = results.pop()
                self._frontier = left_false
                work.append((_W_OR_DONE, left_true))
                work.append((_W_COND, item[1]))
            elif step == _W_OR_DONE:
                right_true, right_false = results.pop()
                results.append((item[1] + right_true, right_false))
            elif step == _W_MERGE:
                on_true, on_false = results.pop()
                self._frontier = on_true + on_false
            elif step == _W_THEN:
                on_true, on_false = results.pop()
                self._frontier = on_true
                work.append((_W_ELSE, item[1], on_false))
                work.append((_W_EVAL, item[1].then_expr))
            elif step == _W_ELSE:
                after_then = self._frontier
                self._frontier = item[2]
                work.append((_W_JOIN, after_then))
                work.append((_W_EVAL, item[1].else_expr))
            elif step == _W_JOIN:
                self._frontier = item[1] + self._frontier
        return results

    def _cond_steps(self, expr: JExpr, results: list[tuple[list, list]]) -> list[tuple]:
        """Steps for one condition, in evaluation order."""
        if isinstance(expr, JLiteral) and expr.kind == "bool":
            if expr.raw == "true":
                results.append((self._frontier, []))
            else:
                results.append(([], self._frontier))
            return []
        if isinstance(expr, JUnary) and expr.op == "!":
            return [(_W_COND, expr.operand), (_W_NOT,)]
        if isinstance(expr, JBinary) and expr.op == "&&":
            return [(_W_COND, expr.left), (_W_AND, expr.right)]
        if isinstance(expr, JBinary) and expr.op == "||":
            return [(_W_COND, expr.left), (_W_OR, expr.right)]
        return [(_W_EVAL, expr), (_W_BRANCH, expr)]

    def _eval(self, expr: JExpr) -> list[tuple]:
        """Steps for expr's side effects, in evaluation order."""
        if isinstance(expr, (JLiteral, JName)):
            return []
        if isinstance(expr, JFieldAccess):
            return [(_W_EVAL, expr.obj)]
        if isinstance(expr, JIndex):
            return [(_W_EVAL, expr.obj), (_W_EVAL, expr.index)]
        if isinstance(expr, JMethodRef):
            return [(_W_EVAL, expr.obj)]
        if isinstance(expr, JCall):
            steps = [(_W_EVAL, expr.func)]
            steps.extend((_W_EVAL, arg) for arg in expr.args)
            steps.append((_W_EMIT, N_CALL, expr))
            return steps
        if isinstance(expr, JNew):
            # An anonymous class body is its own unit; here it is only the allocation.
            steps = [(_W_EVAL, arg) for arg in expr.args]
            steps.extend((_W_EVAL, dim) for dim in expr.dims)
            if expr.init is not None:
                steps.append((_W_EVAL, expr.init))
            steps.append((_W_EMIT, N_NEW, expr))
            return steps
        if isinstance(expr, JArrayLit):
            return [(_W_EVAL, elem) for elem in expr.elements]
        if isinstance(expr, JUnary):
            return [(_W_EVAL, expr.operand)]
        if isinstance(expr, JBinary):
            if expr.op == "&&" or expr.op == "||":
                return [(_W_COND, expr), (_W_MERGE,)]
            return [(_W_EVAL, expr.left), (_W_EVAL, expr.right)]
        if isinstance(expr, (JInstanceOf, JCast)):
            return [(_W_EVAL, expr.expr)]
        if isinstance(expr, JTernary):
            return [(_W_COND, expr.cond), (_W_THEN, expr)]
        if isinstance(expr, JIncDec):
            return self._write_steps(expr, expr.target, None)
        if isinstance(expr, JAssign):
            return self._write_steps(expr, expr.target, expr.value)
        if isinstance(expr, JLambda):
            node = self._emit(N_CLOSURE, expr)
            summary = self.summaries.get(id(expr), {})
            for var, count in summary.items():
                for _ in range(count):
                    node.writes.append(var)
            return []
        raise self._error("unexpected expression " + type(expr).__name__, expr)

    def _write_steps(self, expr: JExpr, target: JExpr, value: JExpr | None) -> list[tuple]:
        var = self._var(target)
        steps: list[tuple] = []
        if var is None:
            # Field or array element: only the subexpressions matter.
            if isinstance(target, JFieldAccess):
                steps.append((_W_EVAL, target.obj))
            elif isinstance(target, JIndex):
                steps.append((_W_EVAL, target.obj))
                steps.append((_W_EVAL, target.index))
            if value is not None:
                steps.append((_W_EVAL, value))
            return steps
        if value is not None:
            steps.append((_W_EVAL, value))
        steps.append((_W_WRITE, expr, var))
        return steps


# ============================================================
# PRUNING
# ============================================================


def prune(graph: Graph, cancel: CancelToken | None = None) -> Graph:
    """Drop nodes unreachable from entry, in place."""
    reachable: set[int] = {graph.entry.id}
    worklist: list[Node] = [graph.entry]
    while worklist:
        check(cancel)
        node = worklist.pop()
        for edge in node.succs:
            if edge.dst.id not in reachable:
                reachable.add(edge.dst.id)
                worklist.append(edge.dst)
    kept: list[Node] = []
    for node in graph.nodes:
        if node.id not in reachable:
            continue
        node.preds = [e for e in node.preds if e.src.id in reachable]
        kept.append(node)
    dropped = len(graph.nodes) - len(kept)
    graph.nodes = kept
    if graph.exit is not None and graph.exit.id not in reachable:
        graph.exit = None
    if graph.exception_exit is not None and graph.exception_exit.id not in reachable:
        graph.exception_exit = None
    if dropped:
        LOG.debug("%s: pruned %d unreachable nodes", graph.label, dropped)
    return graph


# ============================================================
# PUBLIC API
# ============================================================


def build_cfg(
    unit: Unit,
    collection: Collection,
    summaries: dict[int, dict[Variable, int]] | None = None,
    cancel: CancelToken | None = None,
) -> Graph:
    """Build and prune the CFG of one unit.

    summaries maps id(JLambda) to the number of times the lambda writes each
    outer variable (1, or 2 for more than once).
    """
    check(cancel)
    builder = _Builder(unit, collection, summaries if summaries is not None else {})
    graph = prune(builder.build(), cancel)
    LOG.debug(
        "%s: %d nodes, %d edges", graph.label, len(graph.nodes), len(graph.edges())
    )
    return graph


def _describe(node: Node) -> str:
    parts = [str(node.id), node.kind]
    ast = node.ast
    pos = getattr(ast, "pos", None)
    if pos is not None:
        parts.append("@" + str(pos.line) + ":" + str(pos.col))
    if node.binds:
        parts.append("binds=" + ",".join(v.name for v, _ in node.binds))
    if node.writes:
        parts.append("writes=" + ",".join(v.name for v in node.writes))
    return " ".join(parts)


def dump(graph: Graph) -> str:
    """Render a graph as text, one node per line followed by its edges."""
    lines = ["graph " + graph.label]
    for node in graph.nodes:
        lines.append("  " + _describe(node))
        for edge in node.succs:
            lines.append("    -> " + str(edge.dst.id) + " " + edge.kind)
    return "\n".join(lines) + "\n"
