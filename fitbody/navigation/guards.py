"""Route guards: decide whether a screen may render or where to send the user.

Guards are evaluated on every route change and hold no state of their own.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from fitbody.stores.nutrition_store import NutritionStore
from fitbody.stores.session_store import SessionStore

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"
NUTRITION_SETUP_PATH = "/nutrition/setup"
NUTRITION_MEALS_PATH = "/nutrition/meals"
NUTRITION_LOADING_PATH = "/nutrition/loading"


class RouteOutcome(Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    PENDING = "pending"


@dataclass(frozen=True)
class RouteDecision:
    """Result of evaluating a guard.

    Attributes:
        outcome: Whether to render, redirect, or wait
        target: Redirect destination (REDIRECT only)
        state: Navigation state passed along with the redirect
        replace: Whether the redirect replaces the current history entry
    """

    outcome: RouteOutcome
    target: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)
    replace: bool = True

    @classmethod
    def allow(cls) -> "RouteDecision":
        return cls(RouteOutcome.ALLOW)

    @classmethod
    def pending(cls) -> "RouteDecision":
        return cls(RouteOutcome.PENDING)

    @classmethod
    def redirect(cls, target: str, state: Optional[Dict[str, Any]] = None) -> "RouteDecision":
        return cls(RouteOutcome.REDIRECT, target=target, state=state or {})

    @property
    def allowed(self) -> bool:
        return self.outcome is RouteOutcome.ALLOW


class AuthGuard:
    """Keeps anonymous users out of authenticated screens."""

    def __init__(self, session: SessionStore):
        self.session = session

    def evaluate(self, location: Any) -> RouteDecision:
        """Decide what to do for a request to *location*.

        Args:
            location: The requested location (a path or a router location object)

        Returns:
            PENDING while a session operation is in flight, a redirect to the
            login screen carrying ``{"from": location}`` when anonymous,
            otherwise ALLOW
        """
        if self.session.is_loading:
            return RouteDecision.pending()
        if not self.session.is_authenticated:
            return RouteDecision.redirect(LOGIN_PATH, {"from": location})
        return RouteDecision.allow()


def post_login_target(state: Optional[Dict[str, Any]]) -> str:
    """Where to go after logging in: the location the login redirect preserved."""
    origin = (state or {}).get("from")
    if isinstance(origin, dict):
        origin = origin.get("pathname")
    return origin or HOME_PATH


class NutritionGuard:
    """Routes between the setup flow and the meal screens based on plan existence."""

    def __init__(self, session: SessionStore, nutrition: NutritionStore):
        self.session = session
        self.nutrition = nutrition

    def evaluate(self, path: str, requires_setup: bool = False) -> RouteDecision:
        """Check the user's meal plans and decide whether *path* may render.

        Queries the server on every call.
        """
        if not self.session.user_id:
            return RouteDecision.allow()

        on_setup = path == NUTRITION_SETUP_PATH
        on_loading = path == NUTRITION_LOADING_PATH

        try:
            status = self.nutrition.check_setup_status()
        except Exception as e:
            logger.warning(f"Setup status check failed, using cached flag: {e}")
            if not self.nutrition.is_setup_complete and not on_setup:
                return RouteDecision.redirect(NUTRITION_SETUP_PATH)
            return RouteDecision.allow()

        has_plans = status["has_plans"]
        if has_plans and on_setup:
            return RouteDecision.redirect(NUTRITION_MEALS_PATH)
        if not has_plans and not on_setup and not on_loading:
            return RouteDecision.redirect(NUTRITION_SETUP_PATH)
        if requires_setup and not has_plans:
            return RouteDecision.redirect(NUTRITION_SETUP_PATH)
        return RouteDecision.allow()


def nutrition_entry_route(nutrition: NutritionStore) -> str:
    """Landing route for the nutrition tab: meals if the user has plans, else setup."""
    try:
        status = nutrition.check_setup_status()
    except Exception as e:
        logger.warning(f"Setup status check failed: {e}")
        return NUTRITION_SETUP_PATH
    return NUTRITION_MEALS_PATH if status["has_plans"] else NUTRITION_SETUP_PATH
