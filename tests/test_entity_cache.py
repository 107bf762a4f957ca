"""Tests for the shared entity cache behavior (lists, detail cache, favorites)."""

import pytest
from unittest.mock import Mock, patch

from fitbody.api.http_client import ApiResult, HttpClient
from fitbody.api.workout_api import WorkoutAPI
from fitbody.data_layer.models import OperationResult, Workout
from fitbody.stores.cancellation import CancellationToken
from fitbody.stores.entity_cache import EntityMap
from fitbody.stores.workout_store import WorkoutStore


def ok(data=None):
    return ApiResult(success=True, data=data, status_code=200)


def workouts(*ids, level="beginner"):
    return [Workout(id=i, name=f"Workout {i}", level=level) for i in ids]


@pytest.fixture
def api():
    """Provide a mocked WorkoutAPI."""
    return Mock(spec=WorkoutAPI)


@pytest.fixture
def store(api):
    """Provide a workout store with page size 2."""
    return WorkoutStore(api, page_size=2)


class TestEntityMap:
    """Tests for the id-keyed entity map."""

    def test_put_and_lookup(self):
        """Test storing and looking up entities."""
        cache = EntityMap()
        workout = cache.put(Workout(id="w1", name="A"))

        assert "w1" in cache
        assert len(cache) == 1
        assert cache.lookup("w1") is workout
        assert cache.lookup("w1", force_refresh=True) is None

        cache.invalidate("w1")
        assert cache.get("w1") is None


class TestFetchList:
    """Tests for list fetching and pagination."""

    def test_full_page_has_more(self, store, api):
        """Test has_more when the page is full."""
        api.get_workouts.return_value = ok(workouts("w1", "w2"))

        assert store.fetch_list() is True

        assert [w.id for w in store.items] == ["w1", "w2"]
        assert store.pagination.has_more is True
        assert store.pagination.page == 1
        assert store.state.loading is False
        assert store.state.last_fetch is not None
        api.get_workouts.assert_called_once_with({}, page=1, limit=2)

    def test_short_page_has_no_more(self, store, api):
        """Test has_more when fewer items than the limit come back."""
        api.get_workouts.return_value = ok(workouts("w1"))
        store.fetch_list()

        assert store.pagination.has_more is False

    def test_load_more_appends_next_page(self, store, api):
        """Test that load_more increments the page and appends."""
        api.get_workouts.side_effect = [ok(workouts("w1", "w2")), ok(workouts("w3"))]
        store.fetch_list({"level": "beginner"})

        assert store.load_more({"level": "beginner"}) is True

        assert store.pagination.page == 2
        assert [w.id for w in store.items] == ["w1", "w2", "w3"]
        assert store.pagination.total == 3
        assert store.pagination.has_more is False
        api.get_workouts.assert_called_with({"level": "beginner"}, page=2, limit=2)

    def test_load_more_without_more_is_noop(self, store, api):
        """Test that load_more does nothing after a short page."""
        api.get_workouts.return_value = ok(workouts("w1"))
        store.fetch_list()

        assert store.load_more() is False
        assert api.get_workouts.call_count == 1

    def test_failure_sets_error_and_keeps_items(self, store, api):
        """Test a failed fetch."""
        api.get_workouts.side_effect = [ok(workouts("w1")), ApiResult.failure("API_ERROR", "boom")]
        store.fetch_list()

        assert store.fetch_list() is False
        assert store.state.error == "boom"
        assert store.state.loading is False
        assert [w.id for w in store.items] == ["w1"]

    def test_cancelled_response_is_dropped(self, store, api):
        """Test that a response arriving after cancellation changes nothing but the flag."""
        token = CancellationToken()

        def respond(*args, **kwargs):
            token.cancel()
            return ok(workouts("w1", "w2"))

        api.get_workouts.side_effect = respond

        assert store.fetch_list(token=token) is False
        assert store.items == ()
        assert store.state.loading is False

    def test_reset(self, store, api):
        """Test reset clears items and pagination."""
        api.get_workouts.return_value = ok(workouts("w1", "w2"))
        store.fetch_list()

        store.reset()

        assert store.items == ()
        assert store.pagination.page == 1
        assert store.pagination.has_more is False

    def test_listeners_see_each_transition(self, store, api):
        """Test subscribe and unsubscribe."""
        api.get_workouts.return_value = ok(workouts("w1"))
        states = []
        unsubscribe = store.subscribe(states.append)

        store.fetch_list()
        unsubscribe()
        store.fetch_list()

        assert [s.loading for s in states] == [True, False]


class TestFetchDetail:
    """Tests for the detail cache."""

    def test_second_fetch_served_from_cache(self, store, api):
        """Test at most one network call for repeated detail fetches."""
        api.get_workout.return_value = ok(Workout(id="w1", name="A"))

        first = store.fetch_detail("w1")
        second = store.fetch_detail("w1")

        assert api.get_workout.call_count == 1
        assert second is first
        assert store.current is first

    def test_cache_hit_does_not_touch_loading(self, store, api):
        """Test that a cache hit emits no loading transition."""
        api.get_workout.return_value = ok(Workout(id="w1", name="A"))
        store.fetch_detail("w1")
        states = []
        store.subscribe(states.append)

        store.fetch_detail("w1")

        assert all(not s.detail_loading for s in states)

    def test_force_refresh_hits_network(self, store, api):
        """Test forced refresh."""
        api.get_workout.side_effect = [
            ok(Workout(id="w1", name="Old")),
            ok(Workout(id="w1", name="New")),
        ]
        store.fetch_detail("w1")

        refreshed = store.fetch_detail("w1", force_refresh=True)

        assert refreshed.name == "New"
        assert store.cache.get("w1").name == "New"

    def test_failure_sets_detail_error(self, store, api):
        """Test a failed detail fetch."""
        api.get_workout.return_value = ApiResult.failure("NOT_FOUND", "Workout not found", 404)

        assert store.fetch_detail("nope") is None
        assert store.state.detail_error == "Workout not found"
        assert store.state.detail_loading is False


class TestFavorites:
    """Tests for favorite toggling."""

    def test_requires_user(self, store):
        """Test the missing user error."""
        result = store.toggle_favorite("w1", None)

        assert result.success is False
        assert result.error == "User ID is required"

    def test_toggle_scenario_against_backend(self):
        """Test add then remove through the real adapter with a mocked transport."""
        client = HttpClient("http://api.test")
        store = WorkoutStore(WorkoutAPI(client))
        responses = [
            ok([]),
            ok({"_id": "fav1"}),
            ok([{"_id": "fav1", "lesson_id": "W"}]),
            ok(None),
        ]
        with patch.object(client, "call", side_effect=responses):
            added = store.toggle_favorite("W", "u1")
            assert added.success is True
            assert added.action == "added"
            assert "W" in store.favorites

            removed = store.toggle_favorite("W", "u1")
            assert removed.action == "removed"
            assert "W" not in store.favorites

    def test_local_set_follows_server_action(self, store, api):
        """Test that a stale local set is corrected by the server's answer."""
        api.get_favorites.return_value = ok(["w1"])
        store.fetch_favorites("u1")
        api.toggle_favorite.return_value = OperationResult.ok(None, action="added")

        result = store.toggle_favorite("w1", "u1")

        assert result.action == "added"
        assert store.favorites == ("w1",)

    def test_failed_toggle_leaves_favorites(self, store, api):
        """Test a failed toggle."""
        api.toggle_favorite.return_value = OperationResult.failure("Network error occurred")

        result = store.toggle_favorite("w1", "u1")

        assert result.success is False
        assert store.favorites == ()
