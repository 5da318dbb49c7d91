"""Recipe Schemas — recipe creation, rating, ranked views.

Invariants:
    - RatingCreate.rating is an integer in 1-5; strict, so "4" or 4.5 is a 400
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from commonroom.core.rating_aggregate import (
    MAX_COMMENT_LENGTH,
    MAX_RATING,
    MIN_RATING,
    RatedRecipe,
)


class RecipeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    ingredients: list[str] = Field(default_factory=list, max_length=200)
    instructions: str = Field("", max_length=20_000)


class RatingCreate(BaseModel):
    rating: StrictInt = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    rating: int
    comment: str = ""
    created_at: datetime | None = None


class RecipeResponse(BaseModel):
    """A recipe with its mean rating and rating count."""
    id: str
    author_id: str
    title: str
    description: str
    ingredients: list[str]
    instructions: str
    ratings: list[RatingResponse]
    created_at: datetime | None = None
    rating: float
    rating_count: int

    @classmethod
    def from_rated(cls, rated: RatedRecipe) -> "RecipeResponse":
        recipe = rated.recipe
        return cls(
            id=recipe.id,
            author_id=recipe.author_id,
            title=recipe.title,
            description=recipe.description,
            ingredients=recipe.ingredients,
            instructions=recipe.instructions,
            ratings=[RatingResponse.model_validate(r) for r in recipe.ratings],
            created_at=recipe.created_at,
            rating=rated.mean,
            rating_count=rated.count,
        )
