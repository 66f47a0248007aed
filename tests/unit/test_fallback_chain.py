import pytest

from merchandising.services.recommendation.fallback import run_fallback_chain


pytestmark = pytest.mark.unit


def test_first_non_empty_tier_wins():
    calls = []

    def tier(name, items):
        def _attempt():
            calls.append(name)
            return items
        return (name, _attempt)

    result = run_fallback_chain("test", [tier("a", []), tier("b", [1, 2]), tier("c", [3])])

    assert result.items == [1, 2]
    assert result.tier == "b"
    assert calls == ["a", "b"]


def test_failing_tier_falls_through():
    def broken():
        raise RuntimeError("store down")

    result = run_fallback_chain("test", [("broken", broken), ("ok", lambda: ["x"])])

    assert result.items == ["x"]
    assert result.tier == "ok"


def test_all_empty():
    result = run_fallback_chain("test", [("a", lambda: []), ("b", lambda: None)])

    assert result.items == []
    assert result.tier is None


def test_empty_chain():
    assert run_fallback_chain("test", []).items == []
