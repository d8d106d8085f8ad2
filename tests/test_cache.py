"""Tests for the verdict cache, cancellation, and concurrent use."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from finalist import analyze_source
from finalist.analysis import (
    AnalysisCancelled,
    CancelToken,
    VerdictCache,
    analyze_block,
    fingerprint,
)
from finalist.analysis.model import CAN, Variable, cannot
from finalist.lang import parse_block


def test_fingerprint_is_stable():
    assert fingerprint(parse_block("{ int x = 1; }")) == fingerprint(parse_block("{ int x = 1; }"))


def test_fingerprint_sees_positions():
    assert fingerprint(parse_block("{ int x = 1; }")) != fingerprint(parse_block("{ int x  = 1; }"))


def test_fingerprint_of_long_expression():
    source = "{ String s = " + " + ".join(['"a"'] * 3000) + "; }"
    assert fingerprint(parse_block(source)) == fingerprint(parse_block(source))
    assert fingerprint(parse_block(source)) != fingerprint(parse_block(source.replace("s", "t")))


def test_get_counts_hits_and_misses():
    cache = VerdictCache()
    assert cache.get("o", "k") is None
    assert cache.misses == 1
    cache.put("o", "k", {})
    assert cache.get("o", "k") == {}
    assert cache.hits == 1


def test_first_put_wins():
    cache = VerdictCache()
    x = Variable("x", "Local", 1, 1, "o")
    first = cache.put("o", "k", {x: CAN})
    second = cache.put("o", "k", {x: cannot("WrittenInLoopBody")})
    assert first == {x: CAN}
    assert second == {x: CAN}
    assert cache.get("o", "k") == {x: CAN}
    assert len(cache) == 1


def test_entries_keyed_by_owner():
    cache = VerdictCache()
    cache.put("a", "k", {})
    cache.put("b", "k", {})
    assert len(cache) == 2


def test_returned_entries_are_copies():
    cache = VerdictCache()
    x = Variable("x", "Local", 1, 1, "o")
    cache.put("o", "k", {x: CAN})
    found = cache.get("o", "k")
    found.clear()
    assert cache.get("o", "k") == {x: CAN}


def test_analyze_block_uses_cache():
    cache = VerdictCache()
    first = analyze_block(parse_block("{ int x = 1; }"), cache=cache)
    second = analyze_block(parse_block("{ int x = 1; }"), cache=cache)
    assert first == second
    assert (cache.hits, cache.misses) == (1, 1)


def test_cancel_token():
    token = CancelToken()
    assert not token.cancelled
    token.check()
    token.cancel()
    assert token.cancelled
    with pytest.raises(AnalysisCancelled):
        token.check()


def test_cancelled_analysis_leaves_cache_empty():
    cache = VerdictCache()
    token = CancelToken()
    token.cancel()
    with pytest.raises(AnalysisCancelled):
        analyze_block(parse_block("{ int x = 1; }"), cache=cache, cancel=token)
    assert len(cache) == 0


def test_concurrent_analyses_agree():
    source = """\
class A {
  void f(int a) { int x; if (a > 0) { x = 1; } else { x = 2; } use(x); }
  void g(int b) { int y = 0; while (b > y) { y++; } }
}
"""
    cache = VerdictCache()
    expected = analyze_source(source).verdicts
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: analyze_source(source, cache=cache).verdicts, range(8)))
    for verdicts in results:
        assert verdicts == expected
    assert len(cache) == 2
    assert cache.hits + cache.misses == 16
