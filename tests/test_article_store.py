"""Tests for article-specific store behavior."""

import pytest
from unittest.mock import Mock

from fitbody.api.article_api import ArticleAPI
from fitbody.api.http_client import ApiResult
from fitbody.data_layer.models import Article, OperationResult
from fitbody.stores.article_store import ArticleStore


def ok(data=None):
    return ApiResult(success=True, data=data, status_code=200)


@pytest.fixture
def api():
    """Provide a mocked ArticleAPI."""
    return Mock(spec=ArticleAPI)


@pytest.fixture
def store(api):
    """Provide an article store with some loaded articles."""
    api.get_articles.return_value = ok([
        Article(id="a1", title="Protein basics", excerpt="Macros 101", tags=["nutrition"]),
        Article(id="a2", title="Sleep", excerpt="Recovery", category="Wellness", is_featured=True),
        Article(id="a3", title="Mobility", excerpt="Stretching", tags=["Recovery"]),
    ])
    store = ArticleStore(api)
    store.fetch_list()
    return store


class TestArticleStore:
    """Tests for ArticleStore."""

    def test_search_filter_is_title_only_on_backend(self, api):
        """Test that search becomes the backend name filter."""
        api.get_articles.return_value = ok([])
        ArticleStore(api).fetch_list({"search": "sleep"}, page=3)

        api.get_articles.assert_called_once_with(name="sleep", page=3, limit=10)

    def test_filter_by_search(self, store):
        """Test local search over title, excerpt and tags."""
        store.set_search_query("recovery")

        assert [a.id for a in store.get_filtered()] == ["a2", "a3"]

    def test_filter_by_category(self, store):
        """Test category filtering is case-insensitive."""
        assert [a.id for a in store.get_filtered(category="wellness")] == ["a2"]
        store.set_active_category("general")
        assert [a.id for a in store.get_filtered()] == ["a1", "a3"]

    def test_stats(self, store):
        """Test article stats."""
        assert store.get_stats() == {
            "total": 3,
            "featured": 1,
            "categories": {"General": 2, "Wellness": 1},
        }

    def test_shelves(self, store, api):
        """Test featured and popular shelves."""
        api.get_featured.return_value = ok([Article(id="a1", title="x")])
        api.get_popular.return_value = ok([Article(id="a2", title="y")])
        api.get_categories.return_value = ok([])

        assert store.fetch_featured() is True
        assert store.fetch_popular() is True
        assert store.fetch_categories() is True
        assert store.featured[0].id == "a1"
        assert store.popular[0].id == "a2"
        assert store.state.categories == ()

    def test_toggle_refreshes_favorites(self, store, api):
        """Test that a successful toggle reloads favorites from the server."""
        api.toggle_favorite.return_value = OperationResult.ok(None, action="added")
        api.get_favorites.return_value = ok(["a1", "a9"])

        result = store.toggle_favorite("a1", "u1")

        assert result.action == "added"
        api.get_favorites.assert_called_once_with("u1")
        assert store.favorites == ("a1", "a9")
