"""Test weight generation"""

from datetime import datetime, timedelta, timezone

import pytest

from spotility.core.ratings import RatingEntry
from spotility.weights import WeightEntry, format_weights, generate_weights


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def entries(ratings, newest_first=None):
    """(track_id, RatingEntry) pairs; later keys in newest_first are older"""
    order = newest_first or list(ratings)
    result = []
    for track_id, rating in ratings.items():
        added_at = BASE_TIME - timedelta(days=order.index(track_id))
        result.append((track_id, RatingEntry(rating, added_at, added_at)))
    return result


def weight_map(weights):
    return {w.track_id: w.weight for w in weights}


class TestGenerateWeights:
    """Test the rating to weight transform"""

    def test_monotonic_in_rating(self):
        weights = weight_map(generate_weights(entries({"A": 1, "B": 5, "C": 3})))

        assert weights["B"] > weights["C"] > weights["A"]

    def test_one_weight_per_track_within_bounds(self):
        ratings = {f"t{i}": 1 + (i % 5) for i in range(37)}
        weights = generate_weights(entries(ratings))

        assert len(weights) == 37
        assert {w.track_id for w in weights} == set(ratings)
        assert all(0.0 < w.weight <= 1.0 for w in weights)

    def test_single_track_gets_full_weight(self):
        assert generate_weights(entries({"only": 2})) == [WeightEntry("only", 1.0)]

    def test_empty_database(self):
        assert generate_weights([]) == []

    def test_equal_ratings_prefer_newer_tracks(self):
        weights = weight_map(generate_weights(
            entries({"old": 4, "new": 4}, newest_first=["new", "old"])
        ))

        assert weights["new"] > weights["old"]

    def test_rank_based_values(self):
        weights = generate_weights(entries({"a": 1, "b": 5, "c": 3, "d": 4}))

        assert [w.track_id for w in weights] == ["b", "d", "c", "a"]
        assert [w.weight for w in weights] == [1.0, 0.75, 0.5, 0.25]

    def test_accepts_generator(self):
        pairs = (pair for pair in entries({"a": 1, "b": 2}))
        assert len(generate_weights(pairs)) == 2


class TestFormatWeights:
    """Test the plugin text format"""

    def test_default_format(self):
        weights = generate_weights(entries({"a": 1, "b": 5, "c": 3}))
        assert format_weights(weights) == "b:10.00|c:6.67|a:3.33"

    def test_scale_and_precision(self):
        weights = [WeightEntry("a", 1.0), WeightEntry("b", 0.5)]
        assert format_weights(weights, scale=1.0, precision=3) == "a:1.000|b:0.500"

    def test_empty(self):
        assert format_weights([]) == ""

    @pytest.mark.parametrize("scale,precision", [(0, 2), (-1, 2), (10, -1)])
    def test_invalid_arguments(self, scale, precision):
        with pytest.raises(ValueError):
            format_weights([WeightEntry("a", 1.0)], scale=scale, precision=precision)
