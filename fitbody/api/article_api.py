"""Article and article-favorite endpoints."""
import logging
from dataclasses import replace
from typing import List, Optional

from fitbody.api.http_client import ApiResult, HttpClient, as_record_list
from fitbody.data_layer.models import Article, OperationResult, entity_id

logger = logging.getLogger(__name__)

FEATURED_COUNT = 4
POPULAR_COUNT = 5


def _favorite_article_id(favorite: dict) -> Optional[str]:
    ref = favorite.get("articles_id")
    if isinstance(ref, dict):
        return entity_id(ref)
    return str(ref) if ref else None


class ArticleAPI:
    """Adapter for ``/api/articles`` and ``/api/favorite/articles``."""

    def __init__(self, client: HttpClient):
        self.client = client

    def get_articles(
        self,
        name: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ApiResult:
        """Fetch a page of articles, normalized to ``Article``.

        Args:
            name: Title search (the only filter the backend supports)
            page: 1-based page number
            limit: Page size

        Returns:
            ApiResult whose data is a list of Article
        """
        result = self.client.call(
            "/api/articles", params={"name": name or None, "page": page, "limit": limit}
        )
        if not result.success:
            return result
        return replace(result, data=[self._normalize(a) for a in as_record_list(result.data)])

    def get_article(self, article_id: str) -> ApiResult:
        result = self.client.call(f"/api/articles/{article_id}")
        if not result.success:
            return result
        if not isinstance(result.data, dict):
            return ApiResult.failure("NOT_FOUND", f"Article {article_id} not found", 404)
        return replace(result, data=self._normalize(result.data))

    def get_featured(self) -> ApiResult:
        """Most recent articles; the backend has no featured flag."""
        result = self.get_articles()
        if result.success:
            return replace(result, data=result.data[:FEATURED_COUNT])
        return result

    def get_popular(self) -> ApiResult:
        result = self.get_articles()
        if result.success:
            return replace(result, data=result.data[:POPULAR_COUNT])
        return result

    def get_categories(self) -> ApiResult:
        """The backend has no article categories."""
        return ApiResult(success=True, data=[])

    def get_favorites(self, user_id: str) -> ApiResult:
        """Fetch the ids of the user's favorite articles.

        A not-found response means the user has no favorites yet.

        Returns:
            ApiResult whose data is a list of article ids
        """
        result = self.client.call(f"/api/favorite/articles/user/{user_id}")
        if not result.success:
            if result.is_not_found:
                return ApiResult(success=True, data=[], status_code=result.status_code)
            return result

        ids: List[str] = []
        for favorite in as_record_list(result.data):
            article_id = _favorite_article_id(favorite)
            if article_id and article_id not in ids:
                ids.append(article_id)
        return replace(result, data=ids)

    def add_favorite(self, article_id: str, user_id: str) -> ApiResult:
        return self.client.call(
            "/api/favorite/articles",
            method="POST",
            json_body={"account_id": user_id, "articles_id": article_id, "type": "article"},
        )

    def remove_favorite(self, article_id: str, user_id: str) -> ApiResult:
        return self.client.call(
            f"/api/favorite/articles/{article_id}",
            method="DELETE",
            json_body={"account_id": user_id},
        )

    def toggle_favorite(self, article_id: str, user_id: str) -> OperationResult:
        """Add or remove a favorite depending on what the server currently holds.

        This is a read followed by a write with no locking; two clients
        toggling at once can race.

        Returns:
            OperationResult with action "added" or "removed"
        """
        current = self.get_favorites(user_id)
        if not current.success:
            return OperationResult.failure(current.error or "Failed to fetch current favorites")

        if article_id in current.data:
            logger.info(f"Removing article favorite {article_id}")
            result = self.remove_favorite(article_id, user_id)
            action = "removed"
        else:
            logger.info(f"Adding article favorite {article_id}")
            result = self.add_favorite(article_id, user_id)
            action = "added"

        if not result.success:
            return OperationResult.failure(result.error or "Failed to toggle favorite")
        return OperationResult.ok(result.data, action=action)

    def _normalize(self, payload: dict) -> Article:
        return Article.from_api(payload, self.client.media_url)
