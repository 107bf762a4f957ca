"""Workout cache: lessons, their guides, favorites and progress tracking."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fitbody.api.http_client import ApiResult
from fitbody.api.workout_api import WorkoutAPI
from fitbody.data_layer.models import (
    WORKOUT_LEVELS,
    Guide,
    OperationResult,
    Pagination,
    Workout,
)
from fitbody.stores.cancellation import CancellationToken, is_cancelled
from fitbody.stores.entity_cache import CacheState, EntityCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkoutState(CacheState):
    guides: Tuple[Guide, ...] = ()
    guides_loading: bool = False
    guides_error: Optional[str] = None
    popular: Tuple[Workout, ...] = ()
    active_filter: str = "beginner"
    history: Tuple[Any, ...] = ()
    progress: Tuple[Any, ...] = ()


class WorkoutStore(EntityCache[Workout]):
    """Workout cache backed by ``WorkoutAPI``."""

    entity_name = "workout"
    entity_plural = "workouts"

    def __init__(self, api: WorkoutAPI, page_size: int = 10):
        self.api = api
        super().__init__(page_size)

    def _initial_state(self):
        return WorkoutState(pagination=Pagination(limit=self.page_size))

    def _request_list(self, filters: Dict[str, Any], page: int, limit: int) -> ApiResult:
        return self.api.get_workouts(filters, page=page, limit=limit)

    def _request_detail(self, entity_id: str) -> ApiResult:
        return self.api.get_workout(entity_id)

    def _request_favorites(self, user_id: str) -> ApiResult:
        return self.api.get_favorites(user_id)

    def _request_toggle(self, item_id: str, user_id: str) -> OperationResult:
        return self.api.toggle_favorite(item_id, user_id)

    @property
    def guides(self) -> Tuple[Guide, ...]:
        return self._state.guides

    @property
    def popular(self) -> Tuple[Workout, ...]:
        return self._state.popular

    @property
    def history(self) -> Tuple[Any, ...]:
        return self._state.history

    @property
    def progress(self) -> Tuple[Any, ...]:
        return self._state.progress

    def fetch_guides(
        self, workout_id: str, token: Optional[CancellationToken] = None
    ) -> List[Guide]:
        """Load the ordered exercise list of *workout_id*.

        Returns:
            The guides, or an empty list on failure
        """
        if not workout_id or is_cancelled(token):
            return []

        self._apply(guides_loading=True)
        result = self.api.get_guides(workout_id)

        if is_cancelled(token):
            self._apply(guides_loading=False)
            return []
        if not result.success:
            self._apply(guides_loading=False, guides_error=result.error)
            return []

        guides = tuple(result.data)
        self._apply(guides_loading=False, guides=guides, guides_error=None)
        logger.debug(f"Loaded {len(guides)} guides for workout {workout_id}")
        return list(guides)

    def fetch_popular(self) -> bool:
        result = self.api.get_popular()
        if not result.success:
            self._apply(error=result.error)
            return False
        self._apply(popular=tuple(result.data))
        return True

    def set_active_filter(self, level: str) -> None:
        self._apply(active_filter=level)

    def clear_current(self) -> None:
        self._apply(current=None, detail_error=None, guides=(), guides_error=None)

    # ------------------------------------------------------------------
    # Progress tracking
    # ------------------------------------------------------------------

    def log_workout(self, workout_data: Dict[str, Any]) -> OperationResult:
        """Record a completed workout and add it to the local history."""
        result = self.api.log_progress(workout_data)
        if not result.success:
            return OperationResult.failure(result.error)
        self._apply(history=self._state.history + (workout_data,))
        return OperationResult.ok()

    def fetch_progress(
        self,
        user_id: Optional[str],
        date: Optional[str] = None,
        lesson_id: Optional[str] = None,
    ) -> bool:
        if not user_id:
            return False
        result = self.api.get_progress(user_id, date=date, lesson_id=lesson_id)
        if not result.success:
            logger.warning(f"Failed to fetch progress for {user_id}: {result.error}")
            return False
        self._apply(progress=tuple(result.data))
        return True

    def log_progress(self, progress_data: Dict[str, Any]) -> OperationResult:
        """Save a progress record; it is appended to both progress and history."""
        result = self.api.log_progress(progress_data)
        if not result.success:
            return OperationResult.failure(result.error)
        self._apply(
            progress=self._state.progress + (result.data,),
            history=self._state.history + (result.data,),
        )
        return OperationResult.ok(result.data)

    # ------------------------------------------------------------------

    def get_filtered(self, level: Optional[str] = None) -> List[Workout]:
        level = level or self._state.active_filter
        return [w for w in self._state.items if w.level == level]

    def get_stats(self) -> Dict[str, Any]:
        workouts = self._state.items
        stats: Dict[str, Any] = {"total": len(workouts)}
        for level in WORKOUT_LEVELS:
            stats[level] = sum(1 for w in workouts if w.level == level)
        stats["recommended"] = sum(1 for w in workouts if w.is_recommended)
        stats["challenges"] = sum(1 for w in workouts if w.is_challenge)
        return stats
