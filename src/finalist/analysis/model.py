"""Analysis data model: variables, scopes, verdicts."""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# KINDS
# ============================================================

# Variable kinds
KIND_LOCAL = "Local"
KIND_PARAMETER = "Parameter"
KIND_CATCH_PARAMETER = "CatchParameter"
KIND_FOREACH_PARAMETER = "ForEachParameter"

# Kinds gated by report_locals rather than report_parameters.
LOCAL_LIKE_KINDS: set[str] = {
    KIND_LOCAL,
    KIND_CATCH_PARAMETER,
    KIND_FOREACH_PARAMETER,
}

# Scope kinds
SCOPE_METHOD_BODY = "MethodBody"
SCOPE_INITIALIZER = "Initializer"
SCOPE_CLOSURE_BODY = "ClosureBody"
SCOPE_LOOP_BODY = "LoopBody"
SCOPE_CATCH_BLOCK = "CatchBlock"
SCOPE_SWITCH_BLOCK = "SwitchBlock"
SCOPE_GENERIC = "Generic"

# Verdict statuses
CAN_BE_IMMUTABLE = "CanBeImmutable"
CANNOT_BE_IMMUTABLE = "CannotBeImmutable"

# Reasons a variable cannot be immutable
R_MULTIPLE_WRITES = "MultipleWritesOnSomePath"
R_WRITTEN_IN_LOOP = "WrittenInLoopBody"
R_ALREADY_IMMUTABLE = "AlreadyImmutable"
R_SCOPE_RULE = "ExcludedByScopeRule"
R_CONFIGURATION = "ExcludedByConfiguration"

REASONS: set[str] = {
    R_MULTIPLE_WRITES,
    R_WRITTEN_IN_LOOP,
    R_ALREADY_IMMUTABLE,
    R_SCOPE_RULE,
    R_CONFIGURATION,
}


# ============================================================
# VARIABLES AND SCOPES
# ============================================================


@dataclass(frozen=True)
class Variable:
    """A declared local or parameter.

    Identity is the declaration site plus the owning unit label, so the same
    source parsed twice yields equal variables. The AST node and the scope
    ride along for the analysis but take no part in equality.
    """

    name: str
    kind: str
    line: int
    col: int
    owner: str
    is_final: bool = False
    multi_declared: bool = False
    node: object = field(default=None, compare=False, repr=False)
    scope: Scope | None = field(default=None, compare=False, repr=False)


@dataclass(eq=False)
class Scope:
    """A lexical region owning directly-declared variables and child scopes."""

    kind: str
    node: object
    parent: Scope | None = field(default=None, repr=False)
    variables: list[Variable] = field(default_factory=list)
    children: list[Scope] = field(default_factory=list)
    # ClosureBody only: outer variables visible where the closure appears.
    captured: dict[str, Variable] = field(default_factory=dict)

    def add_child(self, kind: str, node: object) -> Scope:
        child = Scope(kind, node, parent=self)
        self.children.append(child)
        return child

    def walk(self) -> list[Scope]:
        """All scopes in this subtree, preorder."""
        out: list[Scope] = []
        stack: list[Scope] = [self]
        while stack:
            scope = stack.pop()
            out.append(scope)
            stack.extend(reversed(scope.children))
        return out


# ============================================================
# VERDICTS
# ============================================================


@dataclass(frozen=True)
class Verdict:
    status: str
    reason: str | None = None

    @property
    def can_be_immutable(self) -> bool:
        return self.status == CAN_BE_IMMUTABLE

    def __str__(self) -> str:
        if self.reason is None:
            return self.status
        return self.status + "(" + self.reason + ")"


CAN = Verdict(CAN_BE_IMMUTABLE)


def cannot(reason: str) -> Verdict:
    if reason not in REASONS:
        raise ValueError("unknown reason: " + reason)
    return Verdict(CANNOT_BE_IMMUTABLE, reason)


def sort_key(var: Variable) -> tuple[int, int]:
    return (var.line, var.col)
