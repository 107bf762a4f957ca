"""Backend adapters for the FitBody REST API."""

from fitbody.api.http_client import (
    HttpClient,
    ApiResult,
    ApiRequestError,
    EnvelopeKind,
    decode_envelope,
)
from fitbody.api.auth_api import AuthAPI
from fitbody.api.article_api import ArticleAPI
from fitbody.api.workout_api import WorkoutAPI, flatten_guides
from fitbody.api.meal_api import MealAPI, build_meal_params

__all__ = [
    # HTTP adapter
    "HttpClient",
    "ApiResult",
    "ApiRequestError",
    "EnvelopeKind",
    "decode_envelope",
    # Resource adapters
    "AuthAPI",
    "ArticleAPI",
    "WorkoutAPI",
    "flatten_guides",
    "MealAPI",
    "build_meal_params",
]
