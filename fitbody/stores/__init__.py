"""Client-side state stores, one per concern, constructed once and injected."""

from fitbody.stores.cancellation import CancellationToken
from fitbody.stores.entity_cache import CacheState, EntityCache, EntityMap
from fitbody.stores.session_store import ProfileSetupData, SessionStatus, SessionStore
from fitbody.stores.onboarding_store import OnboardingStore
from fitbody.stores.article_store import ArticleStore
from fitbody.stores.workout_store import WorkoutStore
from fitbody.stores.nutrition_store import NutritionStore

__all__ = [
    "CancellationToken",
    "CacheState",
    "EntityCache",
    "EntityMap",
    "ProfileSetupData",
    "SessionStatus",
    "SessionStore",
    "OnboardingStore",
    "ArticleStore",
    "WorkoutStore",
    "NutritionStore",
]
