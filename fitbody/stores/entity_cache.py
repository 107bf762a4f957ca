"""Generalized entity cache shared by the article, workout and meal stores.

Each store owns one ``EntityCache`` instance holding:

- a list view with pagination and append semantics
- a single "current detail" slot backed by an id-keyed ``EntityMap``
- the user's favorite ids
- request lifecycle flags (loading / error per concern)

State is an immutable ``CacheState`` replaced on every transition, so a
consumer holding an old state object never sees it change underneath it.
Listeners registered with ``subscribe`` are called after each transition.

Calls run on the caller's thread. Overlapping calls are neither coalesced
nor ordered: whichever response is applied last wins. A request made with a
``CancellationToken`` that is cancelled before its response arrives has its
payload discarded; only its loading flag is released.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from fitbody.api.http_client import ApiResult
from fitbody.data_layer.models import OperationResult, Pagination
from fitbody.stores.cancellation import CancellationToken, is_cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityMap(Generic[T]):
    """Owned map from entity id to entity.

    Entries are reused until explicitly refreshed or invalidated.
    """

    def __init__(self, key: Callable[[T], str] = lambda entity: entity.id):
        self._key = key
        self._entries: Dict[str, T] = {}

    def get(self, entity_id: str) -> Optional[T]:
        return self._entries.get(entity_id)

    def put(self, entity: T) -> T:
        """Store *entity* under its id, replacing any previous entry."""
        self._entries[self._key(entity)] = entity
        return entity

    def lookup(self, entity_id: str, force_refresh: bool = False) -> Optional[T]:
        """Return the cached entity, or None when absent or a refresh is forced."""
        if force_refresh:
            return None
        return self._entries.get(entity_id)

    def invalidate(self, entity_id: str) -> None:
        self._entries.pop(entity_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class CacheState(Generic[T]):
    """Snapshot of one entity cache."""

    items: Tuple[T, ...] = ()
    current: Optional[T] = None
    pagination: Pagination = field(default_factory=Pagination)
    favorites: Tuple[str, ...] = ()
    loading: bool = False
    detail_loading: bool = False
    favorites_loading: bool = False
    error: Optional[str] = None
    detail_error: Optional[str] = None
    favorites_error: Optional[str] = None
    last_fetch: Optional[float] = None


Listener = Callable[[Any], None]


class EntityCache(Generic[T]):
    """Base class for a reducer-style entity store.

    Subclasses provide the network requests through ``_request_list``,
    ``_request_detail``, ``_request_favorites`` and ``_request_toggle``.
    """

    entity_name = "item"
    entity_plural = "items"

    def __init__(self, page_size: int = 10):
        self.page_size = page_size
        self.cache: EntityMap[T] = EntityMap()
        self._state = self._initial_state()
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------

    def _initial_state(self):
        return CacheState(pagination=Pagination(limit=self.page_size))

    @property
    def state(self):
        return self._state

    @property
    def items(self) -> Tuple[T, ...]:
        return self._state.items

    @property
    def current(self) -> Optional[T]:
        return self._state.current

    @property
    def favorites(self) -> Tuple[str, ...]:
        return self._state.favorites

    @property
    def pagination(self) -> Pagination:
        return self._state.pagination

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for state changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    # ------------------------------------------------------------------
    # Network hooks
    # ------------------------------------------------------------------

    def _request_list(self, filters: Dict[str, Any], page: int, limit: int) -> ApiResult:
        raise NotImplementedError

    def _request_detail(self, entity_id: str) -> ApiResult:
        raise NotImplementedError

    def _request_favorites(self, user_id: str) -> ApiResult:
        return ApiResult.failure(
            "UNSUPPORTED", f"Favorites are not supported for {self.entity_plural}"
        )

    def _request_toggle(self, item_id: str, user_id: str) -> OperationResult:
        return OperationResult.failure(f"Favorites are not supported for {self.entity_plural}")

    # ------------------------------------------------------------------
    # List view
    # ------------------------------------------------------------------

    def fetch_list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        limit: Optional[int] = None,
        append: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """Fetch one page of the list view.

        Args:
            filters: Entity-specific filters
            page: 1-based page number
            limit: Page size (defaults to the current pagination limit)
            append: Append to the loaded list instead of replacing it
            token: Optional cancellation token

        Returns:
            True if the page was fetched and applied
        """
        if is_cancelled(token):
            return False
        limit = limit or self._state.pagination.limit

        self._apply(loading=True, error=None)
        result = self._request_list(filters or {}, page, limit)

        if is_cancelled(token):
            logger.debug(f"Discarding {self.entity_plural} page {page}: request cancelled")
            self._apply(loading=False)
            return False

        if not result.success:
            self._apply(loading=False, error=result.error or f"Failed to fetch {self.entity_plural}")
            return False

        fetched = tuple(result.data or ())
        items = self._state.items + fetched if append else fetched
        self._apply(
            loading=False,
            items=items,
            pagination=Pagination.from_page(page, limit, len(fetched), total=len(items)),
            error=None,
            last_fetch=time.time(),
        )
        logger.debug(f"Loaded {len(fetched)} {self.entity_plural} (page {page}, append={append})")
        return True

    def load_more(
        self,
        filters: Optional[Dict[str, Any]] = None,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """Fetch the next page and append it.

        No-op while a list fetch is in flight or when the last page was short.
        """
        state = self._state
        if state.loading or not state.pagination.has_more:
            return False
        return self.fetch_list(
            filters,
            page=state.pagination.page + 1,
            limit=state.pagination.limit,
            append=True,
            token=token,
        )

    def reset(self) -> None:
        """Drop the loaded list and start pagination over."""
        self._apply(items=(), pagination=Pagination(limit=self.page_size))

    # ------------------------------------------------------------------
    # Detail view
    # ------------------------------------------------------------------

    def fetch_detail(
        self,
        entity_id: str,
        force_refresh: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        """Load one entity into the current-detail slot.

        A cached entity is served without a network call and without
        touching the detail loading flag, unless *force_refresh* is set.

        Returns:
            The current entity, or None on failure
        """
        cached = self.cache.lookup(entity_id, force_refresh)
        if cached is not None:
            logger.debug(f"Cache hit for {self.entity_name} {entity_id}")
            self._apply(current=cached, detail_error=None)
            return cached

        if is_cancelled(token):
            return None

        self._apply(detail_loading=True, detail_error=None)
        result = self._request_detail(entity_id)

        if is_cancelled(token):
            logger.debug(f"Discarding {self.entity_name} {entity_id}: request cancelled")
            self._apply(detail_loading=False)
            return None

        if not result.success:
            self._apply(
                detail_loading=False,
                detail_error=result.error or f"Failed to fetch {self.entity_name} details",
            )
            return None

        entity = self.cache.put(result.data)
        self._apply(detail_loading=False, current=entity, detail_error=None)
        return entity

    def clear_current(self) -> None:
        self._apply(current=None, detail_error=None)

    def invalidate(self, entity_id: str) -> None:
        """Forget a cached entity so the next detail fetch hits the network."""
        self.cache.invalidate(entity_id)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def is_favorite(self, item_id: str) -> bool:
        return item_id in self._state.favorites

    def fetch_favorites(self, user_id: Optional[str]) -> bool:
        """Replace the local favorite set with the server's."""
        if not user_id:
            return False

        self._apply(favorites_loading=True)
        result = self._request_favorites(user_id)
        if not result.success:
            self._apply(favorites_loading=False, favorites_error=result.error)
            return False

        self._apply(
            favorites_loading=False,
            favorites=tuple(result.data or ()),
            favorites_error=None,
        )
        return True

    def toggle_favorite(self, item_id: str, user_id: Optional[str]) -> OperationResult:
        """Toggle *item_id* in the user's favorites.

        The local set follows the action the server reports, which may
        differ from the local membership if another client changed it.

        Returns:
            OperationResult with action "added" or "removed"
        """
        if not user_id:
            return OperationResult.failure("User ID is required")

        was_favorite = self.is_favorite(item_id)
        result = self._request_toggle(item_id, user_id)
        if not result.success:
            logger.warning(f"Failed to toggle favorite {item_id}: {result.error}")
            return OperationResult.failure(result.error or "Failed to toggle favorite")

        action = result.action or ("removed" if was_favorite else "added")
        if (action == "added") == was_favorite:
            logger.info(
                f"Local favorites were stale for {self.entity_name} {item_id}; "
                f"server reported '{action}'"
            )

        favorites = tuple(f for f in self._state.favorites if f != item_id)
        if action == "added":
            favorites += (item_id,)
        self._apply(favorites=favorites)

        return OperationResult.ok(item_id, action=action)

    # ------------------------------------------------------------------
    # Derived views over the loaded page
    # ------------------------------------------------------------------

    def get_filtered(self, *args: Any, **kwargs: Any) -> List[T]:
        return list(self._state.items)

    def get_stats(self) -> Dict[str, Any]:
        return {"total": len(self._state.items)}
