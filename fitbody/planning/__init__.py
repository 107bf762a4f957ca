"""Meal-plan setup: per-type meal selection and plan creation."""

from fitbody.planning.meal_selection import calorie_terciles, select_meals_for_type
from fitbody.planning.meal_plan_setup import (
    MealPlanPreferences,
    MealPlanSetup,
    empty_result_message,
)

__all__ = [
    "calorie_terciles",
    "select_meals_for_type",
    "MealPlanPreferences",
    "MealPlanSetup",
    "empty_result_message",
]
