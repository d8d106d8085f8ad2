"""AST: parse-time node definitions for the Java-like input language.

The node set is closed: every consumer matches on these classes with
isinstance chains and treats anything else as a bug.
"""

from __future__ import annotations

from dataclasses import dataclass


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# TYPES (parse-time, unresolved)
# ============================================================


@dataclass
class JType:
    """A type reference: name, optional type arguments, array dimensions."""

    pos: Pos
    name: str
    args: list[JType]
    dims: int


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class JParam:
    """Method, lambda, catch, or foreach parameter.

    pos is the position of the name. typ is None for inferred lambda params.
    """

    pos: Pos
    modifiers: list[str]
    typ: JType | None
    name: str
    varargs: bool = False


@dataclass
class JDeclarator:
    """One `name [= init]` inside a local or field declaration."""

    pos: Pos
    name: str
    dims: int
    init: JExpr | None


@dataclass
class JMember:
    """Base for all class members."""

    pos: Pos


@dataclass
class JFieldDecl(JMember):
    """modifiers Type a = 1, b;"""

    modifiers: list[str]
    typ: JType
    declarators: list[JDeclarator]


@dataclass
class JMethodDecl(JMember):
    """modifiers Ret name(params) throws ... { body }. ret is None for constructors."""

    modifiers: list[str]
    ret: JType | None
    name: str
    params: list[JParam]
    body: JBlock | None


@dataclass
class JInitializer(JMember):
    """{ ... } or static { ... } at class level."""

    is_static: bool
    body: JBlock


@dataclass
class JClassDecl(JMember):
    """class Name { members }."""

    modifiers: list[str]
    name: str
    members: list[JMember]


@dataclass
class JModule:
    """Top-level module: list of class declarations."""

    classes: list[JClassDecl]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class JStmt:
    """Base for all statements."""

    pos: Pos


@dataclass
class JBlock(JStmt):
    """{ stmts }."""

    stmts: list[JStmt]


@dataclass
class JLocalDecl(JStmt):
    """[final] Type a = 1, b;"""

    modifiers: list[str]
    typ: JType
    declarators: list[JDeclarator]


@dataclass
class JExprStmt(JStmt):
    """Expression as statement."""

    expr: JExpr


@dataclass
class JIf(JStmt):
    """if (cond) then else orelse."""

    cond: JExpr
    then: JStmt
    orelse: JStmt | None


@dataclass
class JWhile(JStmt):
    """while (cond) body."""

    cond: JExpr
    body: JStmt


@dataclass
class JDoWhile(JStmt):
    """do body while (cond);"""

    body: JStmt
    cond: JExpr


@dataclass
class JFor(JStmt):
    """for (init; cond; update) body. init is one JLocalDecl or expression statements."""

    init: list[JStmt]
    cond: JExpr | None
    update: list[JExpr]
    body: JStmt


@dataclass
class JForEach(JStmt):
    """for (Type x : iterable) body."""

    param: JParam
    iterable: JExpr
    body: JStmt


@dataclass
class JSwitchCase:
    """One label group (`case a: case b:`) with its statements."""

    pos: Pos
    labels: list[JExpr]
    is_default: bool
    body: list[JStmt]


@dataclass
class JSwitch(JStmt):
    """switch (expr) { groups }."""

    expr: JExpr
    cases: list[JSwitchCase]


@dataclass
class JCatch:
    """catch (final A | B name) { body }."""

    pos: Pos
    param: JParam
    types: list[JType]
    body: JBlock


@dataclass
class JTry(JStmt):
    """try { ... } catch ... finally { ... }."""

    body: JBlock
    catches: list[JCatch]
    finally_body: JBlock | None


@dataclass
class JReturn(JStmt):
    """return expr?;"""

    value: JExpr | None


@dataclass
class JThrow(JStmt):
    """throw expr;"""

    expr: JExpr


@dataclass
class JBreak(JStmt):
    """break label?;"""

    label: str | None


@dataclass
class JContinue(JStmt):
    """continue label?;"""

    label: str | None


@dataclass
class JLabeled(JStmt):
    """label: body."""

    label: str
    body: JStmt


@dataclass
class JEmpty(JStmt):
    """;"""


@dataclass
class JLocalClass(JStmt):
    """A class declared inside a block."""

    decl: JClassDecl


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class JExpr:
    """Base for all expressions."""

    pos: Pos


@dataclass
class JLiteral(JExpr):
    """int, float, string, char, bool, or null literal. raw keeps the source text."""

    kind: str
    raw: str


@dataclass
class JName(JExpr):
    """Simple name; this and super are names that never resolve."""

    name: str


@dataclass
class JFieldAccess(JExpr):
    """obj.field."""

    obj: JExpr
    field: str


@dataclass
class JIndex(JExpr):
    """obj[index]."""

    obj: JExpr
    index: JExpr


@dataclass
class JCall(JExpr):
    """func(args)."""

    func: JExpr
    args: list[JExpr]


@dataclass
class JNew(JExpr):
    """new T(args), new T(args) { members }, new T[n][m], or new T[] { init }."""

    typ: JType
    args: list[JExpr]
    dims: list[JExpr]
    init: JArrayLit | None
    # anonymous class body
    body: list[JMember] | None = None


@dataclass
class JArrayLit(JExpr):
    """{ a, b, c } array initializer."""

    elements: list[JExpr]


@dataclass
class JUnary(JExpr):
    """op operand for + - ! ~."""

    op: str
    operand: JExpr


@dataclass
class JIncDec(JExpr):
    """++x, x++, --x, x--."""

    op: str
    prefix: bool
    target: JExpr


@dataclass
class JBinary(JExpr):
    """left op right."""

    op: str
    left: JExpr
    right: JExpr


@dataclass
class JInstanceOf(JExpr):
    """expr instanceof Type."""

    expr: JExpr
    typ: JType


@dataclass
class JCast(JExpr):
    """(Type) expr."""

    typ: JType
    expr: JExpr


@dataclass
class JTernary(JExpr):
    """cond ? then_expr : else_expr."""

    cond: JExpr
    then_expr: JExpr
    else_expr: JExpr


@dataclass
class JAssign(JExpr):
    """target op value, op in = += -= ... >>>=."""

    op: str
    target: JExpr
    value: JExpr


@dataclass
class JLambda(JExpr):
    """(params) -> body, body is a block or an expression."""

    params: list[JParam]
    body: JBlock | JExpr


@dataclass
class JMethodRef(JExpr):
    """obj::name."""

    obj: JExpr
    name: str
