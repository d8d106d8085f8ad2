"""Scope collection and name binding for one analyzed block.

Walks a method body, initializer, or bare block in source order with an
explicit stack, creating a Variable for every declaration and resolving every
simple name to the Variable it denotes. Lambdas found along the way become
separate units with a ClosureBody scope; their bodies are walked with the
enclosing environment visible so captured names resolve to outer variables.
"""

from __future__ import annotations

from collections import ChainMap
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
    JDeclarator,
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
    JInitializer,
    JInstanceOf,
    JLabeled,
    JLambda,
    JLiteral,
    JLocalClass,
    JLocalDecl,
    JMethodDecl,
    JMethodRef,
    JName,
    JNew,
    JParam,
    JReturn,
    JStmt,
    JSwitch,
    JTernary,
    JThrow,
    JTry,
    JUnary,
    JWhile,
)
from .errors import AnalysisError
from .model import (
    KIND_CATCH_PARAMETER,
    KIND_FOREACH_PARAMETER,
    KIND_LOCAL,
    KIND_PARAMETER,
    SCOPE_CATCH_BLOCK,
    SCOPE_CLOSURE_BODY,
    SCOPE_GENERIC,
    SCOPE_INITIALIZER,
    SCOPE_LOOP_BODY,
    SCOPE_METHOD_BODY,
    SCOPE_SWITCH_BLOCK,
    Scope,
    Variable,
)

Env = ChainMap  # name -> Variable


# ============================================================
# UNITS
# ============================================================


@dataclass(eq=False)
class Unit:
    """One independently analyzed body: method, initializer, or lambda."""

    label: str
    node: JMethodDecl | JInitializer | JLambda | JBlock
    scope: Scope
    parent: Unit | None = None
    params: list[Variable] = field(default_factory=list)
    variables: list[Variable] = field(default_factory=list)

    @property
    def body(self) -> JBlock | JExpr:
        node = self.node
        if isinstance(node, JMethodDecl):
            if node.body is None:
                raise AnalysisError("method has no body", node.pos.line, node.pos.col)
            return node.body
        if isinstance(node, JInitializer):
            return node.body
        if isinstance(node, JLambda):
            return node.body
        return node

    @property
    def is_closure(self) -> bool:
        return isinstance(self.node, JLambda)


@dataclass
class Collection:
    """Everything the collector learned about one block."""

    units: list[Unit]
    refs: dict[int, Variable]
    decls: dict[int, Variable]

    @property
    def root(self) -> Unit:
        return self.units[0]

    def lookup(self, name: JName) -> Variable | None:
        return self.refs.get(id(name))


# ============================================================
# COLLECTOR
# ============================================================


class _Collector:
    def __init__(self) -> None:
        self.units: list[Unit] = []
        self.refs: dict[int, Variable] = {}
        self.decls: dict[int, Variable] = {}
        # (node, env, scope, unit), popped in source order
        self.stack: list[tuple[object, Env, Scope, Unit]] = []

    def run(self) -> None:
        while self.stack:
            node, env, scope, unit = self.stack.pop()
            if isinstance(node, JStmt):
                self._stmt(node, env, scope, unit)
            elif isinstance(node, JExpr):
                self._expr(node, env, scope, unit)
            else:
                raise AnalysisError("unexpected node " + type(node).__name__, 0, 0)

    # ── Declarations ─────────────────────────────────────────

    def declare(
        self,
        node: JDeclarator | JParam,
        kind: str,
        is_final: bool,
        env: Env,
        scope: Scope,
        unit: Unit,
        multi_declared: bool = False,
    ) -> Variable:
        var = Variable(
            name=node.name,
            kind=kind,
            line=node.pos.line,
            col=node.pos.col,
            owner=unit.label,
            is_final=is_final,
            multi_declared=multi_declared,
            node=node,
            scope=scope,
        )
        scope.variables.append(var)
        unit.variables.append(var)
        if kind == KIND_PARAMETER:
            unit.params.append(var)
        env.maps[0][node.name] = var
        self.decls[id(node)] = var
        return var

    def push(self, nodes: list, env: Env, scope: Scope, unit: Unit) -> None:
        """Queue nodes so they are visited in list order."""
        for node in reversed(nodes):
            if node is not None:
                self.stack.append((node, env, scope, unit))

    def push_body(
        self, body: JStmt, kind: str, env: Env, scope: Scope, unit: Unit
    ) -> None:
        """Queue a loop body in a fresh scope of the given kind."""
        inner = scope.add_child(kind, body)
        inner_env = env.new_child()
        if isinstance(body, JBlock):
            self.push(body.stmts, inner_env, inner, unit)
        else:
            self.push([body], inner_env, inner, unit)

    # ── Statements ───────────────────────────────────────────

    def _stmt(self, stmt: JStmt, env: Env, scope: Scope, unit: Unit) -> None:
        if isinstance(stmt, JBlock):
            inner = scope.add_child(SCOPE_GENERIC, stmt)
            self.push(stmt.stmts, env.new_child(), inner, unit)
        elif isinstance(stmt, JLocalDecl):
            self._local_decl(stmt, env, scope, unit, multi_declared=False)
        elif isinstance(stmt, JExprStmt):
            self.push([stmt.expr], env, scope, unit)
        elif isinstance(stmt, JIf):
            self.push([stmt.cond, stmt.then, stmt.orelse], env, scope, unit)
        elif isinstance(stmt, JWhile):
            self.push_body(stmt.body, SCOPE_LOOP_BODY, env, scope, unit)
            self.push([stmt.cond], env, scope, unit)
        elif isinstance(stmt, JDoWhile):
            self.push([stmt.cond], env, scope, unit)
            self.push_body(stmt.body, SCOPE_LOOP_BODY, env, scope, unit)
        elif isinstance(stmt, JFor):
            self._for(stmt, env, scope, unit)
        elif isinstance(stmt, JForEach):
            self._foreach(stmt, env, scope, unit)
        elif isinstance(stmt, JSwitch):
            inner = scope.add_child(SCOPE_SWITCH_BLOCK, stmt)
            inner_env = env.new_child()
            items: list = []
            for case in stmt.cases:
                items.extend(case.labels)
                items.extend(case.body)
            self.push(items, inner_env, inner, unit)
            self.push([stmt.expr], env, scope, unit)
        elif isinstance(stmt, JTry):
            self._try(stmt, env, scope, unit)
        elif isinstance(stmt, JReturn):
            self.push([stmt.value], env, scope, unit)
        elif isinstance(stmt, JThrow):
            self.push([stmt.expr], env, scope, unit)
        elif isinstance(stmt, JLabeled):
            self.push([stmt.body], env, scope, unit)
        elif isinstance(stmt, (JBreak, JContinue, JEmpty)):
            pass
        elif isinstance(stmt, JLocalClass):
            # analyzed as its own members; opaque to this block
            pass
        else:
            raise AnalysisError(
                "unexpected statement " + type(stmt).__name__,
                stmt.pos.line,
                stmt.pos.col,
            )

    def _local_decl(
        self, stmt: JLocalDecl, env: Env, scope: Scope, unit: Unit, multi_declared: bool
    ) -> None:
        is_final = "final" in stmt.modifiers
        inits: list = []
        for decl in stmt.declarators:
            # A local is in scope in its own initializer.
            self.declare(decl, KIND_LOCAL, is_final, env, scope, unit, multi_declared)
            inits.append(decl.init)
        self.push(inits, env, scope, unit)

    def _for(self, stmt: JFor, env: Env, scope: Scope, unit: Unit) -> None:
        loop = scope.add_child(SCOPE_LOOP_BODY, stmt)
        loop_env = env.new_child()
        body_env = loop_env.new_child()
        if isinstance(stmt.body, JBlock):
            self.push(stmt.body.stmts, body_env, loop, unit)
        else:
            self.push([stmt.body], body_env, loop, unit)
        self.push(list(stmt.update), loop_env, loop, unit)
        self.push([stmt.cond], loop_env, loop, unit)
        for init in reversed(stmt.init):
            if isinstance(init, JLocalDecl):
                self._local_decl(
                    init, loop_env, loop, unit, multi_declared=len(init.declarators) > 1
                )
            else:
                self.push([init], loop_env, loop, unit)

    def _foreach(self, stmt: JForEach, env: Env, scope: Scope, unit: Unit) -> None:
        loop = scope.add_child(SCOPE_LOOP_BODY, stmt)
        loop_env = env.new_child()
        body_env = loop_env.new_child()
        if isinstance(stmt.body, JBlock):
            self.push(stmt.body.stmts, body_env, loop, unit)
        else:
            self.push([stmt.body], body_env, loop, unit)
        self.declare(
            stmt.param,
            KIND_FOREACH_PARAMETER,
            "final" in stmt.param.modifiers,
            loop_env,
            loop,
            unit,
        )
        # The iterable is evaluated before the parameter exists.
        self.push([stmt.iterable], env, scope, unit)

    def _try(self, stmt: JTry, env: Env, scope: Scope, unit: Unit) -> None:
        if stmt.finally_body is not None:
            self.push([stmt.finally_body], env, scope, unit)
        for catch in reversed(stmt.catches):
            inner = scope.add_child(SCOPE_CATCH_BLOCK, catch)
            inner_env = env.new_child()
            self.push(catch.body.stmts, inner_env.new_child(), inner, unit)
            self.declare(
                catch.param,
                KIND_CATCH_PARAMETER,
                "final" in catch.param.modifiers,
                inner_env,
                inner,
                unit,
            )
        self.push([stmt.body], env, scope, unit)

    # ── Expressions ──────────────────────────────────────────

    def _expr(self, expr: JExpr, env: Env, scope: Scope, unit: Unit) -> None:
        if isinstance(expr, JName):
            var = env.get(expr.name)
            if var is not None:
                self.refs[id(expr)] = var
        elif isinstance(expr, JLiteral):
            pass
        elif isinstance(expr, JFieldAccess):
            self.push([expr.obj], env, scope, unit)
        elif isinstance(expr, JIndex):
            self.push([expr.obj, expr.index], env, scope, unit)
        elif isinstance(expr, JCall):
            items: list = []
            # A bare method name is not a variable reference.
            if not isinstance(expr.func, JName):
                items.append(expr.func)
            items.extend(expr.args)
            self.push(items, env, scope, unit)
        elif isinstance(expr, JNew):
            self.push(list(expr.args) + list(expr.dims) + [expr.init], env, scope, unit)
        elif isinstance(expr, JArrayLit):
            self.push(list(expr.elements), env, scope, unit)
        elif isinstance(expr, JUnary):
            self.push([expr.operand], env, scope, unit)
        elif isinstance(expr, JIncDec):
            self.push([expr.target], env, scope, unit)
        elif isinstance(expr, JBinary):
            self.push([expr.left, expr.right], env, scope, unit)
        elif isinstance(expr, JInstanceOf):
            self.push([expr.expr], env, scope, unit)
        elif isinstance(expr, JCast):
            self.push([expr.expr], env, scope, unit)
        elif isinstance(expr, JTernary):
            self.push([expr.cond, expr.then_expr, expr.else_expr], env, scope, unit)
        elif isinstance(expr, JAssign):
            self.push([expr.target, expr.value], env, scope, unit)
        elif isinstance(expr, JMethodRef):
            self.push([expr.obj], env, scope, unit)
        elif isinstance(expr, JLambda):
            self._lambda(expr, env, scope, unit)
        else:
            raise AnalysisError(
                "unexpected expression " + type(expr).__name__,
                expr.pos.line,
                expr.pos.col,
            )

    def _lambda(self, lam: JLambda, env: Env, scope: Scope, unit: Unit) -> None:
        closure_scope = scope.add_child(SCOPE_CLOSURE_BODY, lam)
        closure_scope.captured = dict(env)
        label = unit.label + "$lambda@" + str(lam.pos.line) + ":" + str(lam.pos.col)
        closure = Unit(label, lam, closure_scope, parent=unit)
        self.units.append(closure)
        closure_env = env.new_child()
        for param in lam.params:
            self.declare(
                param,
                KIND_PARAMETER,
                "final" in param.modifiers,
                closure_env,
                closure_scope,
                closure,
            )
        if isinstance(lam.body, JBlock):
            self.push(lam.body.stmts, closure_env.new_child(), closure_scope, closure)
        else:
            self.push([lam.body], closure_env, closure_scope, closure)


# ============================================================
# PUBLIC API
# ============================================================


def collect(node: JMethodDecl | JInitializer | JBlock, label: str) -> Collection:
    """Collect scopes, variables, and name bindings for one top-level block."""
    collector = _Collector()
    env: Env = ChainMap()
    if isinstance(node, JMethodDecl):
        if node.body is None:
            raise AnalysisError("method has no body", node.pos.line, node.pos.col)
        scope = Scope(SCOPE_METHOD_BODY, node)
        unit = Unit(label, node, scope)
        collector.units.append(unit)
        for param in node.params:
            collector.declare(
                param, KIND_PARAMETER, "final" in param.modifiers, env, scope, unit
            )
        body = node.body
    elif isinstance(node, JInitializer):
        scope = Scope(SCOPE_INITIALIZER, node)
        unit = Unit(label, node, scope)
        collector.units.append(unit)
        body = node.body
    elif isinstance(node, JBlock):
        scope = Scope(SCOPE_INITIALIZER, node)
        unit = Unit(label, node, scope)
        collector.units.append(unit)
        body = node
    else:
        raise AnalysisError("cannot analyze " + type(node).__name__, 0, 0)
    collector.push(body.stmts, env.new_child(), scope, unit)
    collector.run()
    return Collection(collector.units, collector.refs, collector.decls)
