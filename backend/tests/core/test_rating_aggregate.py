"""Rating Aggregation — tests for replace-on-conflict and top-rated ranking.

Tests cover:
    - Rating 3 then 5 by one user leaves one entry with value 5
    - Ratings must be integers in 1-5 (bools and floats rejected)
    - Ranking by (mean, count) desc; equal means broken by count
    - Unrated recipes never ranked; n bounds the result
    - Full ties ordered by id, independent of input order
"""

from datetime import datetime, timezone

import pytest

from commonroom.core.errors import RequestValidationFailed
from commonroom.core.rating_aggregate import (
    aggregate,
    apply_rating,
    rank_top_rated,
    validate_rating,
)
from commonroom.core.records import Recipe, RecipeRating

NOW = datetime(2026, 3, 2, tzinfo=timezone.utc)


def _recipe(recipe_id: str, *ratings: int) -> Recipe:
    return Recipe(
        id=recipe_id,
        ratings=[RecipeRating(user_id=f"u{i}", rating=r) for i, r in enumerate(ratings)],
    )


def test_rerating_replaces_previous_entry():
    recipe = apply_rating(Recipe(id="r1"), "u1", 3, "", NOW)
    recipe = apply_rating(recipe, "u1", 5, "changed my mind", NOW)
    assert len(recipe.ratings) == 1
    assert recipe.ratings[0].rating == 5
    assert recipe.ratings[0].comment == "changed my mind"


def test_rating_keeps_other_users():
    recipe = apply_rating(_recipe("r1", 4), "u9", 2, "", NOW)
    assert aggregate(recipe).count == 2
    assert aggregate(recipe).mean == 3.0


@pytest.mark.parametrize("value", [0, 6, 4.5, True, "5"])
def test_invalid_ratings_rejected(value):
    with pytest.raises(RequestValidationFailed):
        validate_rating(value)


def test_equal_mean_ranked_by_count():
    r1 = _recipe("r1", 4, 5)
    r2 = _recipe("r2", 4, 5, 4, 5, 4, 5)
    assert aggregate(r1).mean == aggregate(r2).mean == 4.5
    ranked = rank_top_rated([r1, r2], 2)
    assert [r.recipe.id for r in ranked] == ["r2", "r1"]
    assert [r.count for r in ranked] == [6, 2]


def test_unrated_excluded_and_n_bounds():
    ranked = rank_top_rated([_recipe("r0"), _recipe("r1", 3), _recipe("r2", 5)], 1)
    assert [r.recipe.id for r in ranked] == ["r2"]
    assert rank_top_rated([_recipe("r1", 3)], 0) == []


def test_full_ties_ordered_by_id_regardless_of_input_order():
    a, b, c = _recipe("b", 4), _recipe("a", 4), _recipe("c", 4)
    assert [r.recipe.id for r in rank_top_rated([a, b, c], 3)] == ["a", "b", "c"]
    assert [r.recipe.id for r in rank_top_rated([c, a, b], 3)] == ["a", "b", "c"]


def test_rated_recipe_raw_carries_aggregate():
    raw = aggregate(_recipe("r1", 2, 4)).to_raw()
    assert raw["rating"] == 3.0
    assert raw["rating_count"] == 2
