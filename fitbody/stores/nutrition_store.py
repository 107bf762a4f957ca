"""Nutrition store: meal cache, the user's meal plans and the setup-complete flag.

The setup-complete flag is derived from the meal-plan list
(``len(meal_plans) > 0``) and recomputed whenever that list changes. The
persisted ``nutritionSetupComplete`` value is only read once at startup as a
hint for the first render, and is overwritten by every recomputation.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from fitbody.api.http_client import ApiResult
from fitbody.api.meal_api import ALL_MEAL_TYPES, NO_DIETARY_PREFERENCE, MealAPI
from fitbody.data_layer.models import Meal, MealPlan, OperationResult, Pagination
from fitbody.data_layer.storage import SETUP_COMPLETE_KEY, KeyValueStorage
from fitbody.planning.meal_plan_setup import MealPlanSetup
from fitbody.stores.entity_cache import CacheState, EntityCache
from fitbody.stores.session_store import NOT_AUTHENTICATED, SessionStore

logger = logging.getLogger(__name__)


def default_filters() -> Dict[str, Any]:
    return {
        "dietary": NO_DIETARY_PREFERENCE,
        "type": ALL_MEAL_TYPES,
        "cal_min": None,
        "cal_max": None,
        "minutes": None,
        "allergies": "",
    }


@dataclass(frozen=True)
class NutritionState(CacheState):
    meal_plans: Tuple[MealPlan, ...] = ()
    plans_loading: bool = False
    active_filters: Dict[str, Any] = field(default_factory=default_filters)
    search_query: str = ""
    active_meal_type: str = "breakfast"
    is_setup_complete: bool = False
    setup_loading: bool = False


class NutritionStore(EntityCache[Meal]):
    """Meal cache and meal-plan state for the logged-in user.

    Usage:
        nutrition = NutritionStore(MealAPI(client), session, storage)
        nutrition.fetch_meal_plans()
        if not nutrition.is_setup_complete:
            nutrition.setup_meal_plan({"mealTypes": ["breakfast", "lunch"]})
    """

    entity_name = "meal"
    entity_plural = "meals"

    def __init__(
        self,
        api: MealAPI,
        session: SessionStore,
        storage: KeyValueStorage,
        page_size: int = 10,
    ):
        self.api = api
        self.session = session
        self.storage = storage
        super().__init__(page_size)

    def _initial_state(self):
        return NutritionState(
            pagination=Pagination(limit=self.page_size),
            is_setup_complete=self._read_setup_hint(),
        )

    def _read_setup_hint(self) -> bool:
        try:
            return bool(self.storage.get_json(SETUP_COMPLETE_KEY))
        except ValueError:
            logger.warning("Ignoring corrupt nutrition setup flag")
            return False

    def _set_meal_plans(self, plans: Tuple[MealPlan, ...], **changes: Any) -> None:
        complete = len(plans) > 0
        self.storage.set_json(SETUP_COMPLETE_KEY, complete)
        self._apply(meal_plans=plans, is_setup_complete=complete, **changes)

    # ------------------------------------------------------------------
    # EntityCache hooks
    # ------------------------------------------------------------------

    def _request_list(self, filters: Dict[str, Any], page: int, limit: int) -> ApiResult:
        merged = {**self._state.active_filters, **filters}
        return self.api.get_meals(merged, page=page, limit=limit)

    def _request_detail(self, entity_id: str) -> ApiResult:
        return self.api.get_meal(entity_id)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def meal_plans(self) -> Tuple[MealPlan, ...]:
        return self._state.meal_plans

    @property
    def is_setup_complete(self) -> bool:
        return self._state.is_setup_complete

    @property
    def active_filters(self) -> Dict[str, Any]:
        return dict(self._state.active_filters)

    def set_filters(self, filters: Dict[str, Any]) -> None:
        self._apply(active_filters={**self._state.active_filters, **filters})

    def set_search_query(self, query: str) -> None:
        self._apply(search_query=query)

    def set_active_meal_type(self, meal_type: str) -> None:
        self._apply(active_meal_type=meal_type)

    def clear_error(self) -> None:
        self._apply(error=None, detail_error=None)

    # ------------------------------------------------------------------
    # Meal plans
    # ------------------------------------------------------------------

    def fetch_meal_plans(self) -> bool:
        user_id = self.session.user_id
        if not user_id:
            return False

        self._apply(plans_loading=True)
        result = self.api.get_meal_plans(user_id)
        if not result.success:
            self._apply(plans_loading=False, error=result.error or "Failed to fetch meal plans")
            return False

        self._set_meal_plans(tuple(result.data), plans_loading=False)
        logger.debug(f"Loaded {len(result.data)} meal plans for {user_id}")
        return True

    def add_to_meal_plan(self, meal_id: str) -> OperationResult:
        user_id = self.session.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)

        result = self.api.add_to_meal_plan(meal_id, user_id)
        if not result.success:
            self._apply(error=result.error or "Failed to add meal to plan")
            return OperationResult.failure(result.error)

        logger.info(f"Added meal {meal_id} to plan")
        plans = self._state.meal_plans
        if isinstance(result.data, MealPlan):
            plans += (result.data,)
        self._set_meal_plans(plans)
        return OperationResult.ok(result.data)

    def remove_from_meal_plan(self, meal_plan_id: str) -> OperationResult:
        """Delete a plan record, then reload the plan list from the server."""
        result = self.api.remove_from_meal_plan(meal_plan_id)
        if not result.success:
            self._apply(error=result.error or "Failed to remove meal from plan")
            return OperationResult.failure(result.error)

        logger.info(f"Removed meal plan {meal_plan_id}")
        if not self.fetch_meal_plans():
            remaining = tuple(p for p in self._state.meal_plans if p.id != meal_plan_id)
            self._set_meal_plans(remaining)
        return OperationResult.ok(meal_plan_id)

    def check_setup_status(self) -> Dict[str, Any]:
        """Ask the server whether the user has any meal plans.

        Returns:
            Dict with ``has_plans``, ``is_setup_complete`` and ``meal_plan_count``
        """
        user_id = self.session.user_id
        if not user_id:
            return {"has_plans": False, "is_setup_complete": False, "meal_plan_count": 0}

        result = self.api.get_meal_plans(user_id)
        if not result.success:
            logger.warning(f"Failed to check setup status: {result.error}")
            return {
                "has_plans": False,
                "is_setup_complete": self._state.is_setup_complete,
                "meal_plan_count": len(self._state.meal_plans),
            }

        self._set_meal_plans(tuple(result.data))
        count = len(result.data)
        return {"has_plans": count > 0, "is_setup_complete": count > 0, "meal_plan_count": count}

    def setup_meal_plan(
        self, preferences: Any, rng: Optional[random.Random] = None
    ) -> OperationResult:
        """Run first-time setup with *preferences* for the logged-in user."""
        user_id = self.session.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)

        if isinstance(preferences, dict):
            filters = {k: v for k, v in preferences.items() if k in default_filters()}
            self.set_filters(filters)

        setup = MealPlanSetup(self.api, refresh=self.fetch_meal_plans, rng=rng)
        self._apply(setup_loading=True)
        try:
            result = setup.run(preferences, user_id)
        finally:
            self._apply(setup_loading=False)

        if result.success:
            meals = tuple(m for meals in setup.meals_by_type.values() for m in meals)
            self._apply(
                items=meals,
                pagination=Pagination(
                    page=1, limit=self.page_size, total=len(meals), has_more=False
                ),
            )
        return result

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def get_filtered_by_type(self, meal_type: Optional[str] = None) -> List[Meal]:
        meal_type = meal_type or self._state.active_meal_type
        meals = list(self._state.items)
        if meal_type != ALL_MEAL_TYPES:
            meals = [m for m in meals if m.type == meal_type]
        query = self._state.search_query.lower()
        if query:
            meals = [m for m in meals if query in m.name.lower()]
        return meals

    get_filtered = get_filtered_by_type

    def get_meal_plans_by_type(self, meal_type: str) -> List[MealPlan]:
        if meal_type == ALL_MEAL_TYPES:
            return list(self._state.meal_plans)
        return [p for p in self._state.meal_plans if p.meal_type == meal_type]

    def get_stats(self) -> Dict[str, Any]:
        meals = self._state.items
        stats: Dict[str, Any] = {"total": len(meals), "meal_plans": len(self._state.meal_plans)}
        for meal in meals:
            if meal.type:
                stats[meal.type] = stats.get(meal.type, 0) + 1
        return stats
