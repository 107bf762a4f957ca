"""Article cache: list, detail, featured/popular shelves and favorites."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fitbody.api.article_api import ArticleAPI
from fitbody.api.http_client import ApiResult
from fitbody.data_layer.models import Article, OperationResult, Pagination
from fitbody.stores.entity_cache import CacheState, EntityCache

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class ArticleState(CacheState):
    featured: Tuple[Article, ...] = ()
    popular: Tuple[Article, ...] = ()
    categories: Tuple[str, ...] = ()
    active_category: str = ALL_CATEGORIES
    search_query: str = ""


class ArticleStore(EntityCache[Article]):
    """Article cache backed by ``ArticleAPI``."""

    entity_name = "article"
    entity_plural = "articles"

    def __init__(self, api: ArticleAPI, page_size: int = 10):
        self.api = api
        super().__init__(page_size)

    def _initial_state(self):
        return ArticleState(pagination=Pagination(limit=self.page_size))

    def _request_list(self, filters: Dict[str, Any], page: int, limit: int) -> ApiResult:
        # The backend only searches by title
        name = filters.get("search") or filters.get("name")
        return self.api.get_articles(name=name, page=page, limit=limit)

    def _request_detail(self, entity_id: str) -> ApiResult:
        return self.api.get_article(entity_id)

    def _request_favorites(self, user_id: str) -> ApiResult:
        return self.api.get_favorites(user_id)

    def _request_toggle(self, item_id: str, user_id: str) -> OperationResult:
        return self.api.toggle_favorite(item_id, user_id)

    def toggle_favorite(self, item_id: str, user_id: Optional[str]) -> OperationResult:
        """Toggle an article favorite, then reload the favorite list from the server."""
        result = super().toggle_favorite(item_id, user_id)
        if result.success:
            self.fetch_favorites(user_id)
        return result

    # ------------------------------------------------------------------
    # Shelves
    # ------------------------------------------------------------------

    def fetch_featured(self) -> bool:
        result = self.api.get_featured()
        if not result.success:
            self._apply(error=result.error)
            return False
        self._apply(featured=tuple(result.data))
        return True

    def fetch_popular(self) -> bool:
        result = self.api.get_popular()
        if not result.success:
            self._apply(error=result.error)
            return False
        self._apply(popular=tuple(result.data))
        return True

    def fetch_categories(self) -> bool:
        result = self.api.get_categories()
        if not result.success:
            return False
        self._apply(categories=tuple(result.data or ()))
        return True

    @property
    def featured(self) -> Tuple[Article, ...]:
        return self._state.featured

    @property
    def popular(self) -> Tuple[Article, ...]:
        return self._state.popular

    # ------------------------------------------------------------------
    # Local filtering
    # ------------------------------------------------------------------

    def set_active_category(self, category: str) -> None:
        self._apply(active_category=category)

    def set_search_query(self, query: str) -> None:
        self._apply(search_query=query)

    def get_filtered(
        self, category: Optional[str] = None, search: Optional[str] = None
    ) -> List[Article]:
        """Filter the loaded articles by category and a free-text search.

        Arguments default to the active category and search query. The
        search matches title, excerpt or any tag, case-insensitively.
        """
        category = category or self._state.active_category
        search = (search or self._state.search_query).lower()

        articles = list(self._state.items)
        if category and category != ALL_CATEGORIES:
            articles = [a for a in articles if a.category.lower() == category.lower()]
        if search:
            articles = [
                a for a in articles
                if search in a.title.lower()
                or search in a.excerpt.lower()
                or any(search in tag.lower() for tag in a.tags)
            ]
        return articles

    def get_stats(self) -> Dict[str, Any]:
        articles = self._state.items
        categories = self._state.categories or tuple(dict.fromkeys(a.category for a in articles))
        return {
            "total": len(articles),
            "featured": sum(1 for a in articles if a.is_featured),
            "categories": {c: sum(1 for a in articles if a.category == c) for c in categories},
        }
