import pytest

from merchandising.services.recommendation.sizing import closest_size


pytestmark = pytest.mark.unit


class TestClosestSize:
    def test_exact_match(self):
        assert closest_size("M", ["S", "M", "L"]) == "M"
        assert closest_size("42", ["40", "42", "44"]) == "42"

    def test_numeric_nearest(self):
        assert closest_size("43", ["38", "40", "44", "46"]) == "44"

    def test_numeric_tie_picks_lower_value(self):
        assert closest_size("42", ["44", "40"]) == "40"
        assert closest_size("42", ["40", "44"]) == "40"

    def test_ordinal_nearest(self):
        assert closest_size("XS", ["M", "L", "XL"]) == "M"
        assert closest_size("XXXL", ["S", "XL"]) == "XL"

    def test_ordinal_tie_picks_earlier_size(self):
        assert closest_size("M", ["L", "S"]) == "S"
        assert closest_size("M", ["S", "L"]) == "S"

    def test_numeric_target_without_numeric_candidates_falls_back_to_first(self):
        assert closest_size("42", ["S", "M"]) == "S"

    def test_ordinal_target_without_ordinal_candidates_falls_back_to_first(self):
        assert closest_size("M", ["40", "42"]) == "40"

    def test_unknown_target_returns_first(self):
        assert closest_size("Free", ["One Size", "M"]) == "One Size"

    def test_ordinal_ignores_non_ordinal_candidates(self):
        assert closest_size("L", ["One Size", "XXS", "XL"]) == "XL"

    def test_empty_available(self):
        assert closest_size("M", []) is None

    def test_deterministic(self):
        available = ["XS", "XL", "S", "L"]
        results = {closest_size("M", available) for _ in range(10)}
        assert results == {"S"}
