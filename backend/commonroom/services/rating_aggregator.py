"""Rating Aggregator — recipe creation, replace-on-conflict rating, top-rated view.

Invariants:
    - rate() is a single read-modify-write on recipe:{id}: the user's previous
      entry is dropped and the new one appended, so one user holds one rating
    - Means and counts are computed on read from the stored ratings; nothing
      derived is persisted
    - top_rated(n) ranks only recipes with at least one rating
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import Action, NotificationType
from commonroom.core.errors import RequestValidationFailed
from commonroom.core.rating_aggregate import (
    RatedRecipe,
    aggregate,
    apply_rating,
    rank_top_rated,
    validate_rating,
)
from commonroom.core.records import Recipe
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.record_store import RecordStore, new_id, utc_now

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class RatingAggregator:
    """Recipes and their ratings."""

    def __init__(
        self,
        records: RecordStore,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.records = records
        self.notifier = notifier
        self.clock = clock
        self.id_factory = id_factory

    async def create_recipe(
        self,
        caller: Caller,
        title: str,
        description: str = "",
        ingredients: list[str] | None = None,
        instructions: str = "",
    ) -> RatedRecipe:
        authorize(caller, Action.CREATE_RECIPE)
        if not title.strip():
            raise RequestValidationFailed("Title is required", "title")
        recipe = Recipe(
            id=self.id_factory(),
            author_id=caller.user_id,
            title=title.strip(),
            description=description,
            ingredients=list(ingredients or []),
            instructions=instructions,
            created_at=self.clock(),
        )
        await self.records.store_recipe(recipe)
        logger.info(
            "Recipe created",
            extra={"user_id": caller.user_id, "recipe_id": recipe.id,
                   "operation": "create_recipe"},
        )
        return aggregate(recipe)

    async def get_recipe(self, recipe_id: str) -> RatedRecipe:
        return aggregate(await self.records.require_recipe(recipe_id))

    async def list_recipes(self) -> list[RatedRecipe]:
        recipes = sorted(
            await self.records.scan_recipes(),
            key=lambda r: (r.created_at or _EPOCH, r.id),
            reverse=True,
        )
        return [aggregate(r) for r in recipes]

    async def rate(
        self, caller: Caller, recipe_id: str, rating: int, comment: str = "",
    ) -> RatedRecipe:
        validate_rating(rating)
        recipe = await self.records.require_recipe(recipe_id)
        authorize(caller, Action.RATE_RECIPE, recipe)
        updated = apply_rating(recipe, caller.user_id, rating, comment, self.clock())
        await self.records.store_recipe(updated)
        logger.info(
            f"Recipe rated {rating}",
            extra={"user_id": caller.user_id, "recipe_id": recipe_id,
                   "operation": "rate_recipe"},
        )

        if recipe.author_id and recipe.author_id != caller.user_id:
            await self.notifier.notify(
                recipe.author_id, NotificationType.RATING, "New rating",
                f"Your recipe '{recipe.title}' was rated {rating}/5",
                related_id=recipe_id,
            )
        return aggregate(updated)

    async def top_rated(self, n: int) -> list[RatedRecipe]:
        return rank_top_rated(await self.records.scan_recipes(), n)
