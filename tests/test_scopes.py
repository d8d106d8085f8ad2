"""Tests for scope collection and name binding."""

import pytest

from finalist.analysis.errors import AnalysisError
from finalist.analysis.scopes import collect
from finalist.lang import parse, parse_block
from finalist.lang.ast import JInitializer, JMethodDecl

BLOCK = """\
{
  int a = 1;
  for (int i = 0, j = 0; i < 3; i++) { int b = i; }
  while (a > 0) { int d; }
  try { } catch (Exception e) { int f; }
  switch (a) { case 1: int g = 1; break; }
  { int h; }
  Runnable r = () -> { int z = a; };
}
"""


def _collect(source: str = BLOCK):
    block = parse_block(source)
    return block, collect(block, "<block>")


def _var(collection, name: str):
    for unit in collection.units:
        for var in unit.variables:
            if var.name == name:
                return var
    raise ValueError(f"no variable {name}")


def test_root_scope_kind():
    _, collection = _collect()
    assert collection.root.scope.kind == "Initializer"
    assert collection.root.label == "<block>"


def test_scope_tree_shape():
    _, collection = _collect()
    kinds = [child.kind for child in collection.root.scope.children]
    # the try body is a nested block, built after its catch scopes
    assert kinds == [
        "LoopBody",
        "LoopBody",
        "CatchBlock",
        "Generic",
        "SwitchBlock",
        "Generic",
        "ClosureBody",
    ]


def test_walk_is_preorder():
    _, collection = _collect()
    scopes = collection.root.scope.walk()
    assert scopes[0] is collection.root.scope
    assert len(scopes) == 8


def test_variable_scopes():
    _, collection = _collect()
    assert _var(collection, "a").scope is collection.root.scope
    assert _var(collection, "b").scope.kind == "LoopBody"
    assert _var(collection, "i").scope is _var(collection, "b").scope
    assert _var(collection, "d").scope.kind == "LoopBody"
    assert _var(collection, "f").scope.kind == "CatchBlock"
    assert _var(collection, "g").scope.kind == "SwitchBlock"
    assert _var(collection, "h").scope.kind == "Generic"
    assert _var(collection, "z").scope.kind == "ClosureBody"


def test_variable_kinds():
    _, collection = _collect()
    assert _var(collection, "a").kind == "Local"
    assert _var(collection, "e").kind == "CatchParameter"
    assert _var(collection, "e").scope is _var(collection, "f").scope


def test_multi_declared_for_init():
    _, collection = _collect()
    assert _var(collection, "i").multi_declared
    assert _var(collection, "j").multi_declared
    assert not _var(collection, "b").multi_declared
    _, single = _collect("{ for (int k = 0; k < 3; k++) { } }")
    assert not _var(single, "k").multi_declared


def test_lambda_becomes_unit():
    _, collection = _collect()
    assert len(collection.units) == 2
    closure = collection.units[1]
    assert closure.is_closure
    assert closure.parent is collection.root
    assert closure.label == "<block>$lambda@8:16"
    assert [v.name for v in closure.variables] == ["z"]
    assert _var(collection, "z").owner == closure.label
    assert "z" not in [v.name for v in collection.root.variables]


def test_lambda_captures_visible_names():
    _, collection = _collect()
    captured = collection.units[1].scope.captured
    assert captured["a"] is _var(collection, "a")
    assert "r" in captured
    assert "i" not in captured
    assert "h" not in captured


def test_captured_reference_resolves_to_outer():
    block, collection = _collect()
    lam = block.stmts[-1].declarators[0].init
    ref = lam.body.stmts[0].declarators[0].init
    assert collection.lookup(ref) is _var(collection, "a")


def test_inner_block_shadow_resolves_innermost():
    source = "{ int x = 1; { int y = x; } int w = x; }"
    block, collection = _collect(source)
    inner_ref = block.stmts[1].stmts[0].declarators[0].init
    outer_ref = block.stmts[2].declarators[0].init
    assert collection.lookup(inner_ref) is _var(collection, "x")
    assert collection.lookup(outer_ref) is _var(collection, "x")


def test_block_local_not_visible_after_block():
    source = "{ { int y = 1; } y = 2; }"
    block, collection = _collect(source)
    target = block.stmts[1].expr.target
    assert collection.lookup(target) is None


def test_unresolved_name():
    block, collection = _collect("{ undeclared = 1; }")
    assert collection.lookup(block.stmts[0].expr.target) is None


def test_foreach_iterable_cannot_see_param():
    block, collection = _collect("{ for (String s : s) { } }")
    loop = block.stmts[0]
    assert collection.lookup(loop.iterable) is None
    assert _var(collection, "s").kind == "ForEachParameter"


def test_method_params():
    module = parse("class A { void f(final int x, int y) { int z = x; } }")
    method = module.classes[0].members[0]
    assert isinstance(method, JMethodDecl)
    collection = collect(method, "A.f")
    root = collection.root
    assert root.scope.kind == "MethodBody"
    assert [p.name for p in root.params] == ["x", "y"]
    assert [v.kind for v in root.params] == ["Parameter", "Parameter"]
    assert root.params[0].is_final
    assert not root.params[1].is_final


def test_lambda_params_are_parameters():
    _, collection = _collect("{ BiFunction f = (a, b) -> a; }")
    closure = collection.units[1]
    assert [p.name for p in closure.params] == ["a", "b"]
    assert all(p.kind == "Parameter" for p in closure.params)


def test_initializer_unit():
    module = parse("class A { static { int x = 1; } }")
    init = module.classes[0].members[0]
    assert isinstance(init, JInitializer)
    collection = collect(init, "A.<clinit>#0")
    assert collection.root.scope.kind == "Initializer"
    assert [v.name for v in collection.root.variables] == ["x"]


def test_abstract_method_rejected():
    module = parse("abstract class A { abstract void f(int x); }")
    with pytest.raises(AnalysisError):
        collect(module.classes[0].members[0], "A.f")


def test_variables_equal_across_collections():
    _, first = _collect()
    _, second = _collect()
    assert _var(first, "a") == _var(second, "a")
    assert hash(_var(first, "z")) == hash(_var(second, "z"))


def test_anonymous_and_local_class_bodies_are_opaque():
    _, collection = _collect(
        "{ int x = 1; class L { void m() { int y = x; } }"
        " Runnable r = new Runnable() { public void run() { int z = x; } }; }"
    )
    assert len(collection.units) == 1
    assert [v.name for v in collection.root.variables] == ["x", "r"]
