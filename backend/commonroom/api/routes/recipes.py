"""Recipe Routes — recipes, ratings and the top-rated view.

Invariants:
    - One rating per (recipe, user): rating again replaces the earlier one
    - /top-rated lists only rated recipes, by (mean, count) descending
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from commonroom.api.dependencies import get_caller, get_rating_aggregator
from commonroom.config import get_settings
from commonroom.core.authorize import Caller
from commonroom.schemas.recipes import RatingCreate, RecipeCreate, RecipeResponse
from commonroom.services.rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])

_settings = get_settings()


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    body: RecipeCreate,
    caller: Caller = Depends(get_caller),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    rated = await aggregator.create_recipe(
        caller, body.title, body.description, body.ingredients, body.instructions,
    )
    return RecipeResponse.from_rated(rated)


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(
    caller: Caller = Depends(get_caller),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    return [RecipeResponse.from_rated(r) for r in await aggregator.list_recipes()]


@router.get("/top-rated", response_model=list[RecipeResponse])
async def top_rated(
    limit: int = Query(_settings.top_rated_default, ge=1, le=_settings.top_rated_max),
    caller: Caller = Depends(get_caller),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    return [RecipeResponse.from_rated(r) for r in await aggregator.top_rated(limit)]


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    caller: Caller = Depends(get_caller),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    return RecipeResponse.from_rated(await aggregator.get_recipe(recipe_id))


@router.post("/{recipe_id}/rate", response_model=RecipeResponse)
async def rate_recipe(
    recipe_id: str,
    body: RatingCreate,
    caller: Caller = Depends(get_caller),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    rated = await aggregator.rate(caller, recipe_id, body.rating, body.comment)
    return RecipeResponse.from_rated(rated)
