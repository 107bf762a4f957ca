"""Navigation guards."""

from fitbody.navigation.guards import (
    AuthGuard,
    NutritionGuard,
    RouteDecision,
    RouteOutcome,
    nutrition_entry_route,
    post_login_target,
)

__all__ = [
    "AuthGuard",
    "NutritionGuard",
    "RouteDecision",
    "RouteOutcome",
    "nutrition_entry_route",
    "post_login_target",
]
