"""Tests for workout-specific store behavior (guides, progress, stats)."""

import pytest
from unittest.mock import Mock

from fitbody.api.http_client import ApiResult
from fitbody.api.workout_api import WorkoutAPI
from fitbody.data_layer.models import Guide, ProgressEntry, Workout
from fitbody.stores.cancellation import CancellationToken
from fitbody.stores.workout_store import WorkoutStore


def ok(data=None):
    return ApiResult(success=True, data=data, status_code=200)


@pytest.fixture
def api():
    """Provide a mocked WorkoutAPI."""
    return Mock(spec=WorkoutAPI)


@pytest.fixture
def store(api):
    """Provide a workout store."""
    return WorkoutStore(api)


class TestGuides:
    """Tests for guide loading."""

    def test_fetch_guides(self, store, api):
        """Test loading guides into state."""
        guides = [Guide(id="g1", name="Squat", round=1), Guide(id="g2", name="Plank", round=2)]
        api.get_guides.return_value = ok(guides)

        result = store.fetch_guides("w1")

        assert [g.id for g in result] == ["g1", "g2"]
        assert store.guides == tuple(guides)
        assert store.state.guides_loading is False

    def test_fetch_guides_without_id(self, store, api):
        """Test that an empty workout id makes no call."""
        assert store.fetch_guides("") == []
        api.get_guides.assert_not_called()

    def test_fetch_guides_failure(self, store, api):
        """Test a failed guide fetch."""
        api.get_guides.return_value = ApiResult.failure("API_ERROR", "down")

        assert store.fetch_guides("w1") == []
        assert store.state.guides_error == "down"

    def test_cancelled_guides_are_dropped(self, store, api):
        """Test a cancelled guide fetch."""
        token = CancellationToken()
        parent_cancelled = token.child()
        api.get_guides.side_effect = lambda wid: (token.cancel(), ok([Guide(id="g1", name="x")]))[1]

        assert store.fetch_guides("w1", token=parent_cancelled) == []
        assert store.guides == ()
        assert store.state.guides_loading is False

    def test_clear_current_also_clears_guides(self, store, api):
        """Test clearing the current workout."""
        api.get_workout.return_value = ok(Workout(id="w1", name="A"))
        api.get_guides.return_value = ok([Guide(id="g1", name="Squat")])
        store.fetch_detail("w1")
        store.fetch_guides("w1")

        store.clear_current()

        assert store.current is None
        assert store.guides == ()


class TestProgress:
    """Tests for workout logging and progress tracking."""

    def test_log_workout_appends_history(self, store, api):
        """Test logging a completed workout."""
        api.log_progress.return_value = ok(ProgressEntry(id="p1"))

        result = store.log_workout({"lesson_id": "w1", "account_id": "u1"})

        assert result.success is True
        assert store.history == ({"lesson_id": "w1", "account_id": "u1"},)
        assert store.progress == ()

    def test_log_progress_appends_both(self, store, api):
        """Test that progress records go to progress and history."""
        entry = ProgressEntry(id="p1", lesson_id="w1")
        api.log_progress.return_value = ok(entry)

        store.log_progress({"lesson_id": "w1"})

        assert store.progress == (entry,)
        assert store.history == (entry,)

    def test_fetch_progress(self, store, api):
        """Test loading progress records."""
        api.get_progress.return_value = ok([ProgressEntry(id="p1")])

        assert store.fetch_progress("u1", date="2024-01-01") is True
        api.get_progress.assert_called_once_with("u1", date="2024-01-01", lesson_id=None)
        assert len(store.progress) == 1

    def test_fetch_progress_requires_user(self, store, api):
        """Test that no call is made without a user."""
        assert store.fetch_progress(None) is False
        api.get_progress.assert_not_called()


class TestWorkoutViews:
    """Tests for filtering and stats over the loaded page."""

    def test_filter_and_stats(self, store, api):
        """Test level filtering and counts."""
        api.get_workouts.return_value = ok([
            Workout(id="w1", name="A", level="beginner", is_recommended=True),
            Workout(id="w2", name="B", level="advanced", is_challenge=True),
            Workout(id="w3", name="C", level="beginner"),
        ])
        store.fetch_list()

        assert [w.id for w in store.get_filtered()] == ["w1", "w3"]
        store.set_active_filter("advanced")
        assert [w.id for w in store.get_filtered()] == ["w2"]
        assert store.get_stats() == {
            "total": 3,
            "beginner": 2,
            "intermediate": 0,
            "advanced": 1,
            "recommended": 1,
            "challenges": 1,
        }

    def test_fetch_popular(self, store, api):
        """Test loading popular workouts."""
        api.get_popular.return_value = ok([Workout(id="w9", name="Top")])

        assert store.fetch_popular() is True
        assert store.popular[0].id == "w9"
