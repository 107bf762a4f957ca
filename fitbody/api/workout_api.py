"""Workout ("lesson"), guide, favorite and progress-tracking endpoints."""
import logging
import re
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from fitbody.api.http_client import ApiResult, HttpClient, as_record_list
from fitbody.data_layer.models import (
    Guide,
    MediaResolver,
    OperationResult,
    ProgressEntry,
    Workout,
    entity_id,
)

logger = logging.getLogger(__name__)

FAVORITE_TYPE = "video"
POPULAR_COUNT = 5

_ROUND_DIGITS = re.compile(r"(\d+)")


def _round_number(key: Any) -> Optional[int]:
    """Parse a round key such as ``"1"``, ``"round_2"`` or ``"Round 3"``."""
    if isinstance(key, int):
        return key
    match = _ROUND_DIGITS.search(str(key))
    return int(match.group(1)) if match else None


def flatten_guides(grouped: Any, media_url: MediaResolver) -> List[Guide]:
    """Flatten a round-keyed grouping of exercises into one ordered list.

    Order is round number ascending, then position within the round. Round
    keys without a number keep their arrival order after the numbered ones
and their guides carry ``round=None``.
    A flat list of guides carrying a ``round`` field is also accepted.

    Args:
        grouped: ``{round_key: [guide, ...]}`` or ``[guide, ...]``
        media_url: Resolver for video filenames

    Returns:
        Ordered list of Guide
    """
    if isinstance(grouped, list):
        rounds: Dict[Any, List[dict]] = {}
        for guide in grouped:
            rounds.setdefault(guide.get("round", 0), []).append(guide)
        grouped = rounds
    if not isinstance(grouped, dict):
        return []

    guides: List[Tuple[Tuple[bool, int, int, int], Guide]] = []
    for key_index, (key, items) in enumerate(grouped.items()):
        number = _round_number(key)
        for position, payload in enumerate(items or []):
            guide = Guide.from_api(payload, number, position, media_url)
            guides.append(((number is None, number or 0, key_index, position), guide))

    guides.sort(key=lambda pair: pair[0])
    return [guide for _, guide in guides]


def _favorite_lesson_id(favorite: dict) -> Optional[str]:
    ref = favorite.get("lesson_id")
    if isinstance(ref, dict):
        return entity_id(ref)
    return str(ref) if ref else None


class WorkoutAPI:
    """Adapter for ``/api/lessons``, ``/api/guides``, ``/api/favorite`` and
    ``/api/process-trackings``."""

    def __init__(self, client: HttpClient):
        self.client = client

    def get_workouts(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ApiResult:
        """Fetch workouts matching *filters*.

        Recognized filters: ``name`` (or ``search``), ``level`` (or
        ``difficulty``), ``is_recommended``, ``is_challenge``,
        ``is_weekly_challenge``.

        Returns:
            ApiResult whose data is a list of Workout
        """
        filters = filters or {}
        level = filters.get("level") or filters.get("difficulty")
        params = {
            "name": filters.get("name") or filters.get("search") or None,
            "level": level.lower() if isinstance(level, str) else None,
            "is_recommended": filters.get("is_recommended"),
            "is_challenge": filters.get("is_challenge"),
            "is_weekly_challenge": filters.get("is_weekly_challenge"),
            "page": page,
            "limit": limit,
        }
        result = self.client.call("/api/lessons", params=params)
        if not result.success:
            return result
        return replace(result, data=[self._workout(w) for w in as_record_list(result.data)])

    def get_workout(self, workout_id: str) -> ApiResult:
        result = self.client.call(f"/api/lessons/{workout_id}")
        if not result.success:
            return result
        if not isinstance(result.data, dict):
            return ApiResult.failure("NOT_FOUND", f"Workout {workout_id} not found", 404)
        return replace(result, data=self._workout(result.data))

    def get_popular(self, limit: int = POPULAR_COUNT) -> ApiResult:
        """Most visited workouts, sorted client-side (the backend cannot sort)."""
        result = self.client.call("/api/lessons")
        if not result.success:
            return result
        workouts = [self._workout(w) for w in as_record_list(result.data)]
        workouts.sort(key=lambda w: w.number_of_visits, reverse=True)
        return replace(result, data=workouts[:limit])

    def get_guides(self, workout_id: str) -> ApiResult:
        """Fetch the exercises of a workout, flattened across rounds.

        Returns:
            ApiResult whose data is an ordered list of Guide
        """
        result = self.client.call(f"/api/guides/lessons/{workout_id}")
        if not result.success:
            return result
        return replace(result, data=flatten_guides(result.data or {}, self.client.media_url))

    def get_favorites(self, user_id: str) -> ApiResult:
        """Fetch the ids of the user's favorite workouts.

        Returns:
            ApiResult whose data is a list of workout ids
        """
        records = self._favorite_records(user_id)
        if not records.success:
            return records
        ids: List[str] = []
        for _, workout_id in records.data:
            if workout_id not in ids:
                ids.append(workout_id)
        return replace(records, data=ids)

    def toggle_favorite(self, workout_id: str, user_id: str) -> OperationResult:
        """Add or remove a workout favorite based on the server's current list.

        Read-then-write with no locking: concurrent toggles can race.

        Returns:
            OperationResult with action "added" or "removed"
        """
        records = self._favorite_records(user_id)
        if not records.success:
            return OperationResult.failure(records.error or "Failed to fetch existing favorites")

        existing = next((fav_id for fav_id, wid in records.data if wid == workout_id), None)
        if existing is not None:
            logger.info(f"Removing workout favorite {workout_id}")
            result = self.client.call(f"/api/favorite/{existing}", method="DELETE")
            action = "removed"
        else:
            logger.info(f"Adding workout favorite {workout_id}")
            result = self.client.call(
                "/api/favorite",
                method="POST",
                json_body={"account_id": user_id, "lesson_id": workout_id, "type": FAVORITE_TYPE},
            )
            action = "added"

        if not result.success:
            return OperationResult.failure(result.error or "Failed to toggle favorite")
        return OperationResult.ok(result.data, action=action)

    def get_progress(
        self,
        user_id: str,
        date: Optional[str] = None,
        lesson_id: Optional[str] = None,
    ) -> ApiResult:
        result = self.client.call(
            f"/api/process-trackings/{user_id}",
            params={"date": date, "lesson_id": lesson_id},
        )
        if not result.success:
            return result
        return replace(result, data=[ProgressEntry.from_api(p) for p in as_record_list(result.data)])

    def log_progress(self, progress_data: Dict[str, Any]) -> ApiResult:
        result = self.client.call("/api/process-trackings", method="POST", json_body=progress_data)
        if result.success and isinstance(result.data, dict):
            return replace(result, data=ProgressEntry.from_api(result.data))
        return result

    def _favorite_records(self, user_id: str) -> ApiResult:
        """Fetch ``(favorite_id, workout_id)`` pairs; not-found means none."""
        result = self.client.call(
            f"/api/favorite/accounts/{user_id}", params={"type": FAVORITE_TYPE}
        )
        if not result.success:
            if result.is_not_found:
                return ApiResult(success=True, data=[], status_code=result.status_code)
            return result

        pairs = []
        for favorite in as_record_list(result.data):
            workout_id = _favorite_lesson_id(favorite)
            if workout_id:
                pairs.append((entity_id(favorite), workout_id))
        return replace(result, data=pairs)

    def _workout(self, payload: dict) -> Workout:
        return Workout.from_api(payload, self.client.media_url)
