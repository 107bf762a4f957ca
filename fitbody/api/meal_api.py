"""Meal and meal-plan endpoints."""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from fitbody.api.http_client import ApiResult, HttpClient, as_record_list
from fitbody.data_layer.models import BatchResult, Meal, MealPlan

logger = logging.getLogger(__name__)

NO_DIETARY_PREFERENCE = "no-preferences"
ALL_MEAL_TYPES = "all"


def build_meal_params(filters: Dict[str, Any]) -> Dict[str, Any]:
    """Translate client-side meal filters into backend query parameters.

    ``dietary`` is omitted for "no-preferences", ``type`` for "all", and
    empty or zero numeric filters are omitted entirely.
    """
    params: Dict[str, Any] = {}
    dietary = filters.get("dietary")
    if dietary and dietary != NO_DIETARY_PREFERENCE:
        params["dietary"] = dietary
    meal_type = filters.get("type")
    if meal_type and meal_type != ALL_MEAL_TYPES:
        params["type"] = meal_type
    for key in ("cal_min", "cal_max", "minutes", "number_of_servings"):
        if filters.get(key):
            params[key] = filters[key]
    return params


class MealAPI:
    """Adapter for ``/api/meals`` and ``/api/meal-plans``."""

    def __init__(self, client: HttpClient):
        self.client = client

    def get_meals(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ApiResult:
        """Fetch meals matching *filters*.

        Args:
            filters: dietary, type, cal_min, cal_max, minutes, number_of_servings
            page: 1-based page number
            limit: Page size

        Returns:
            ApiResult whose data is a list of Meal
        """
        params = build_meal_params(filters or {})
        params.update({"page": page, "limit": limit})
        result = self.client.call("/api/meals", params=params)
        if not result.success:
            return result
        return replace(result, data=[self._meal(m) for m in as_record_list(result.data)])

    def get_meal(self, meal_id: str) -> ApiResult:
        result = self.client.call(f"/api/meals/{meal_id}")
        if not result.success:
            return result
        if not isinstance(result.data, dict):
            return ApiResult.failure("NOT_FOUND", f"Meal {meal_id} not found", 404)
        return replace(result, data=self._meal(result.data))

    def get_meal_plans(self, account_id: str) -> ApiResult:
        """Fetch the account's meal plans with their meals populated.

        Returns:
            ApiResult whose data is a list of MealPlan
        """
        result = self.client.call(f"/api/meal-plans/accounts/{account_id}")
        if not result.success:
            if result.is_not_found:
                return ApiResult(success=True, data=[], status_code=result.status_code)
            return result
        plans = [MealPlan.from_api(p, self.client.media_url) for p in as_record_list(result.data)]
        return replace(result, data=plans)

    def add_to_meal_plan(self, meal_id: str, account_id: str) -> ApiResult:
        result = self.client.call(
            "/api/meal-plans",
            method="POST",
            json_body={"meal_id": meal_id, "account_id": account_id},
        )
        if result.success and isinstance(result.data, dict):
            return replace(result, data=MealPlan.from_api(result.data, self.client.media_url))
        return result

    def remove_from_meal_plan(self, meal_plan_id: str) -> ApiResult:
        return self.client.call(f"/api/meal-plans/{meal_plan_id}", method="DELETE")

    def create_meal_plans(self, meal_ids: List[str], account_id: str) -> BatchResult:
        """Create one meal-plan record per meal, sequentially.

        A failed create does not stop the remaining ones.

        Args:
            meal_ids: Meals to add to the account's plan
            account_id: Owning account

        Returns:
            BatchResult; success iff at least one record was created
        """
        created: List[Any] = []
        errors: List[Dict[str, Any]] = []

        for meal_id in meal_ids:
            result = self.add_to_meal_plan(meal_id, account_id)
            if result.success:
                created.append(result.data)
            else:
                errors.append({"meal_id": meal_id, "error": result.error})

        if errors:
            logger.warning(f"{len(errors)} of {len(meal_ids)} meal plans failed to create: {errors}")

        message = f"Created {len(created)} meal plans"
        if errors:
            message += f" ({len(errors)} failed)"

        return BatchResult(success=len(created) > 0, data=created, errors=errors, message=message)

    def _meal(self, payload: dict) -> Meal:
        return Meal.from_api(payload, self.client.media_url)
