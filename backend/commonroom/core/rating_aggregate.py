"""Rating Aggregation — replace-on-conflict rating and the top-rated ranking.

Invariants:
    - At most one rating per (recipe, user): a new rating replaces the prior one
    - Ranking key is (mean, count) descending; recipe id ascending is the final
      tie-break so equal inputs always rank the same way
    - Recipes with no ratings are never ranked
"""

from dataclasses import dataclass
from datetime import datetime

from commonroom.core.errors import RequestValidationFailed
from commonroom.core.records import Recipe, RecipeRating, copy_record

MIN_RATING: int = 1
MAX_RATING: int = 5
MAX_COMMENT_LENGTH: int = 2000


@dataclass(frozen=True)
class RatedRecipe:
    recipe: Recipe
    mean: float
    count: int

    def to_raw(self) -> dict:
        return {**self.recipe.to_raw(), "rating": self.mean, "rating_count": self.count}


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise RequestValidationFailed("Rating must be an integer", "rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise RequestValidationFailed(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}", "rating",
        )
    return rating


def apply_rating(
    recipe: Recipe, user_id: str, rating: int, comment: str, now: datetime,
) -> Recipe:
    """Drop the user's previous entry, append the new one."""
    if len(comment) > MAX_COMMENT_LENGTH:
        raise RequestValidationFailed(
            f"Comment exceeds {MAX_COMMENT_LENGTH} characters", "comment",
        )
    entry = RecipeRating(
        user_id=user_id, rating=validate_rating(rating), comment=comment, created_at=now,
    )
    kept = [r for r in recipe.ratings if r.user_id != user_id]
    return copy_record(recipe, ratings=kept + [entry])


def aggregate(recipe: Recipe) -> RatedRecipe:
    count = len(recipe.ratings)
    mean = sum(r.rating for r in recipe.ratings) / count if count else 0.0
    return RatedRecipe(recipe=recipe, mean=mean, count=count)


def rank_top_rated(recipes: list[Recipe], n: int) -> list[RatedRecipe]:
    """The n best recipes by (mean, count), each with at least one rating."""
    if n <= 0:
        return []
    rated = [agg for agg in map(aggregate, recipes) if agg.count >= 1]
    rated.sort(key=lambda agg: agg.recipe.id)
    rated.sort(key=lambda agg: (agg.mean, agg.count), reverse=True)
    return rated[:n]
