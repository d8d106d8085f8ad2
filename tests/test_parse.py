"""Tests for the tokenizer and parser of the Java-like input language."""

import pytest

from finalist.lang import ParseError, TokenizeError, parse, parse_block
from finalist.lang.ast import (
    JAssign,
    JBinary,
    JBlock,
    JCast,
    JExprStmt,
    JForEach,
    JLambda,
    JLocalClass,
    JLocalDecl,
    JMethodDecl,
    JNew,
    JTry,
)
from finalist.lang.tokens import tokenize


def _expr(source: str):
    """Parse a single expression statement inside a block."""
    block = parse_block("{ " + source + "; }")
    stmt = block.stmts[0]
    assert isinstance(stmt, JExprStmt)
    return stmt.expr


def _decl_init(source: str):
    block = parse_block("{ " + source + "; }")
    stmt = block.stmts[0]
    assert isinstance(stmt, JLocalDecl)
    return stmt.declarators[0].init


def _method(source: str) -> JMethodDecl:
    module = parse("class A { " + source + " }")
    member = module.classes[0].members[0]
    assert isinstance(member, JMethodDecl)
    return member


# ============================================================
# TOKENS
# ============================================================


def test_gt_always_lexed_alone():
    values = [t.value for t in tokenize("a >> b >>> c")]
    assert values.count(">") == 5


def test_positions_are_one_based():
    tokens = tokenize("int x;\n  y = 1;")
    assert (tokens[0].line, tokens[0].col) == (1, 1)
    y = [t for t in tokens if t.value == "y"][0]
    assert (y.line, y.col) == (2, 3)


def test_comments_skipped():
    values = [t.value for t in tokenize("a /* b */ // c\n d")]
    assert "b" not in values
    assert "c" not in values
    assert "d" in values


def test_unterminated_block_comment():
    with pytest.raises(TokenizeError) as exc:
        tokenize("int x; /* never closed")
    assert exc.value.line == 1
    assert "unterminated block comment" in str(exc.value)


def test_unexpected_character():
    with pytest.raises(TokenizeError):
        tokenize("int x = #;")


# ============================================================
# OPERATORS
# ============================================================


def test_glued_shift():
    expr = _expr("y = x >> 2")
    assert isinstance(expr, JAssign)
    assert isinstance(expr.value, JBinary)
    assert expr.value.op == ">>"


def test_glued_unsigned_shift():
    expr = _expr("y = x >>> 2")
    assert expr.value.op == ">>>"


def test_glued_shift_assign():
    expr = _expr("x >>>= 3")
    assert isinstance(expr, JAssign)
    assert expr.op == ">>>="
    expr = _expr("x >>= 3")
    assert expr.op == ">>="


def test_spaced_gt_is_two_comparisons_not_a_shift():
    with pytest.raises(ParseError):
        _expr("y = x > > 2")


def test_shift_binds_tighter_than_comparison():
    expr = _expr("b = x >> 1 > y")
    assert expr.value.op == ">"
    assert expr.value.left.op == ">>"


def test_assignment_is_right_associative():
    expr = _expr("a = b = 1")
    assert isinstance(expr.value, JAssign)


def test_invalid_assignment_target():
    with pytest.raises(ParseError) as exc:
        _expr("f() = 1")
    assert "invalid assignment target" in str(exc.value)


# ============================================================
# CASTS AND LAMBDAS
# ============================================================


def test_reference_cast():
    init = _decl_init("String s = (String) o")
    assert isinstance(init, JCast)
    assert init.typ.name == "String"


def test_primitive_cast_of_unary():
    init = _decl_init("int n = (int) -x")
    assert isinstance(init, JCast)


def test_parenthesized_name_is_not_cast():
    init = _decl_init("int n = (a) + b")
    assert isinstance(init, JBinary)
    assert init.op == "+"


def test_lambda_forms():
    bare = _decl_init("Function f = x -> x")
    assert isinstance(bare, JLambda)
    assert [p.name for p in bare.params] == ["x"]
    inferred = _decl_init("BiFunction f = (a, b) -> a")
    assert [p.name for p in inferred.params] == ["a", "b"]
    assert all(p.typ is None for p in inferred.params)
    typed = _decl_init("BiFunction f = (int a, final int b) -> { return a; }")
    assert typed.params[1].modifiers == ["final"]
    assert isinstance(typed.body, JBlock)
    empty = _decl_init("Runnable r = () -> run()")
    assert empty.params == []


def test_lambda_param_position_is_its_name():
    lam = _decl_init("BiFunction f = (int a, int b) -> a")
    assert lam.params[1].pos.col == lam.params[0].pos.col + 7


# ============================================================
# TYPES AND DECLARATIONS
# ============================================================


def test_nested_generics():
    block = parse_block("{ Map<String, List<Integer>> m = null; }")
    typ = block.stmts[0].typ
    assert typ.name == "Map"
    assert typ.args[1].name == "List"
    assert typ.args[1].args[0].name == "Integer"


def test_diamond():
    init = _decl_init("List<String> xs = new ArrayList<>()")
    assert isinstance(init, JNew)
    assert init.typ.args == []


def test_wildcards():
    block = parse_block("{ List<? extends Number> xs = null; }")
    assert block.stmts[0].typ.args[0].name == "?"


def test_array_creation():
    init = _decl_init("int[][] g = new int[3][]")
    assert isinstance(init, JNew)
    assert init.typ.dims == 2
    assert len(init.dims) == 1


def test_comparison_is_not_a_declaration():
    block = parse_block("{ a < b; }")
    assert isinstance(block.stmts[0], JExprStmt)


def test_param_position_is_its_name():
    method = _method("void f(final int x, String... rest) { }")
    x, rest = method.params
    assert x.modifiers == ["final"]
    assert x.pos.col == 28
    assert rest.varargs


def test_foreach_header():
    block = parse_block("{ for (final String s : items) { } }")
    loop = block.stmts[0]
    assert isinstance(loop, JForEach)
    assert loop.param.name == "s"
    assert loop.param.modifiers == ["final"]


def test_multi_catch():
    block = parse_block("{ try { a(); } catch (IOException | RuntimeException e) { } }")
    stmt = block.stmts[0]
    assert isinstance(stmt, JTry)
    assert [t.name for t in stmt.catches[0].types] == ["IOException", "RuntimeException"]


def test_synchronized_evaluates_lock_then_body():
    block = parse_block("{ synchronized (lock) { int x = 1; } }")
    inner = block.stmts[0]
    assert isinstance(inner, JBlock)
    assert isinstance(inner.stmts[0], JExprStmt)
    assert isinstance(inner.stmts[1], JBlock)


def test_abstract_method_has_no_body():
    method = _method("abstract int f(int x);")
    assert method.body is None


def test_constructor():
    module = parse("class P { P(int x) { } }")
    ctor = module.classes[0].members[0]
    assert isinstance(ctor, JMethodDecl)
    assert ctor.ret is None
    assert ctor.name == "P"


def test_annotations_skipped():
    module = parse("@Deprecated class A { @SuppressWarnings(\"x\") void f(@Nullable Object o) { } }")
    method = module.classes[0].members[0]
    assert method.params[0].name == "o"


def test_anonymous_class_body():
    init = _decl_init("Runnable r = new Runnable() { public void run() { } int n; }")
    assert isinstance(init, JNew)
    assert init.args == []
    assert [type(m).__name__ for m in init.body] == ["JMethodDecl", "JFieldDecl"]
    assert init.body[0].name == "run"


def test_plain_new_has_no_body():
    init = _decl_init("Object o = new Object()")
    assert init.body is None


def test_local_class():
    block = parse_block("{ final class L { L() { } int f() { return 1; } } }")
    stmt = block.stmts[0]
    assert isinstance(stmt, JLocalClass)
    assert stmt.decl.name == "L"
    assert stmt.decl.modifiers == ["final"]
    assert [m.name for m in stmt.decl.members] == ["L", "f"]
    assert stmt.decl.members[0].ret is None


# ============================================================
# ERRORS
# ============================================================


@pytest.mark.parametrize(
    "source,message",
    [
        ("{ try (R r = open()) { } }", "try-with-resources is not supported"),
        ("{ switch (x) { case 1 -> f(); } }", "arrow-form switch cases are not supported"),
        ("{ try { } }", "try must have catch or finally"),
        ("{ int x = 1 }", "expected ';'"),
    ],
)
def test_parse_errors(source: str, message: str):
    with pytest.raises(ParseError) as exc:
        parse_block(source)
    assert message in exc.value.msg
    assert exc.value.line == 1


def test_error_position():
    with pytest.raises(ParseError) as exc:
        parse_block("{\n  int x = ;\n}")
    assert exc.value.line == 2
    assert exc.value.col == 11
    assert str(exc.value).endswith("at line 2 col 11")


def test_trailing_tokens_after_block():
    with pytest.raises(ParseError) as exc:
        parse_block("{ } x")
    assert "after block" in exc.value.msg


def test_unclosed_block():
    with pytest.raises(ParseError) as exc:
        parse_block("{ int x = 1;")
    assert "unexpected end of input" in exc.value.msg


def test_deep_nesting_is_a_parse_error():
    source = "{ int x = " + "(" * 1000 + "1" + ")" * 1000 + "; }"
    with pytest.raises(ParseError) as exc:
        parse_block(source)
    assert "nesting too deep" in exc.value.msg


def test_long_operator_chain_parses():
    init = _decl_init("int s = " + " + ".join(["1"] * 2000))
    assert isinstance(init, JBinary)
    assert init.op == "+"
