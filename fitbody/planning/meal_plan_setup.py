"""First-run nutrition setup: pick meals for each requested type and save them as plans."""

import logging
import random
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fitbody.api.meal_api import NO_DIETARY_PREFERENCE, MealAPI
from fitbody.data_layer.models import Meal, OperationResult
from fitbody.planning.meal_selection import select_meals_for_type

logger = logging.getLogger(__name__)


class MealPlanPreferences(BaseModel):
    """What the user asked for on the setup screen.

    Accepts the camelCase ``mealTypes`` key the setup form produces.
    """

    model_config = ConfigDict(populate_by_name=True)

    meal_types: List[str] = Field(default_factory=list, alias="mealTypes")
    dietary: str = NO_DIETARY_PREFERENCE
    cal_min: Optional[float] = None
    cal_max: Optional[float] = None
    minutes: Optional[float] = None

    def filters_for(self, meal_type: str) -> Dict[str, Any]:
        return {
            "dietary": self.dietary,
            "type": meal_type,
            "cal_min": self.cal_min,
            "cal_max": self.cal_max,
            "minutes": self.minutes,
        }


def empty_result_message(empty_types: List[str]) -> str:
    message = "No meals found matching your preferences."
    if empty_types:
        message += (
            f" No {', '.join(empty_types)} meals found with your dietary and calorie requirements."
        )
    return message + " Try adjusting your dietary preferences, calorie range, or preparation time."


class MealPlanSetup:
    """Runs the setup flow against the meal endpoints.

    Usage:
        setup = MealPlanSetup(meal_api, refresh=nutrition.fetch_meal_plans)
        result = setup.run({"mealTypes": ["breakfast"], "dietary": "vegan"}, user_id)

    After ``run`` the candidates fetched per type are available in
    ``meals_by_type``.
    """

    def __init__(
        self,
        meal_api: MealAPI,
        refresh: Optional[Callable[[], Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.meal_api = meal_api
        self.refresh = refresh
        self.rng = rng or random.Random()
        self.meals_by_type: Dict[str, List[Meal]] = {}

    def run(self, preferences: Any, account_id: Optional[str]) -> OperationResult:
        """Select meals for each requested type and create one plan record per meal.

        Args:
            preferences: MealPlanPreferences or an equivalent dict
            account_id: Account that will own the plans

        Returns:
            OperationResult whose data holds ``mealsFound``, ``mealPlansCreated``
            and ``mealTypeBreakdown``
        """
        if not account_id:
            return OperationResult.failure("User not authenticated")

        if not isinstance(preferences, MealPlanPreferences):
            try:
                preferences = MealPlanPreferences.model_validate(preferences)
            except ValidationError as e:
                return OperationResult.failure(f"Invalid meal plan preferences: {e.error_count()} error(s)")

        logger.info(f"Setting up meal plan for {account_id}: {preferences.meal_types}")

        self.meals_by_type = {}
        selected: List[Meal] = []
        for meal_type in preferences.meal_types:
            result = self.meal_api.get_meals(preferences.filters_for(meal_type))
            candidates = result.data if result.success else []
            if not result.success:
                logger.warning(f"Failed to fetch {meal_type} meals: {result.error}")
            self.meals_by_type[meal_type] = list(candidates)

            if not candidates:
                logger.warning(f"No {meal_type} meals found matching criteria")
                continue

            picks = select_meals_for_type(candidates, self.rng)
            logger.info(
                f"Selected {len(picks)} {meal_type} meals: "
                + ", ".join(f"{m.name} ({m.cal:g}cal)" for m in picks)
            )
            selected.extend(picks)

        breakdown = {t: len(meals) for t, meals in self.meals_by_type.items()}

        if not selected:
            empty_types = [t for t in preferences.meal_types if not self.meals_by_type.get(t)]
            return OperationResult.failure(
                empty_result_message(empty_types),
                details={"meal_type_results": breakdown, "empty_types": empty_types},
            )

        batch = self.meal_api.create_meal_plans([m.id for m in selected], account_id)
        if not batch.success:
            return OperationResult.failure(
                "Failed to create meal plans", details={"errors": batch.errors}
            )

        if self.refresh is not None:
            self.refresh()

        meals_found = sum(breakdown.values())
        return OperationResult.ok(
            {
                "mealsFound": meals_found,
                "mealPlansCreated": len(batch.data),
                "mealTypeBreakdown": breakdown,
            },
            message=batch.message,
            details={"errors": batch.errors} if batch.errors else {},
        )
