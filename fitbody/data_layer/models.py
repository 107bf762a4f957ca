"""Data models for the FitBody client."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

MediaResolver = Callable[[Optional[str]], Optional[str]]

PLACEHOLDER_IMAGE = "/api/placeholder/300/200"

WORKOUT_LEVELS = ("beginner", "intermediate", "advanced")
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


def _identity(value: Optional[str]) -> Optional[str]:
    return value


def entity_id(payload: Dict[str, Any]) -> Optional[str]:
    """Return the backend id of a record (`_id` preferred over `id`)."""
    value = payload.get("_id") or payload.get("id")
    return str(value) if value is not None else None


def _as_number(value: Any, default: float = 0.0) -> float:
    """Coerce a numeric backend field, falling back to *default*."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _extra(payload: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in known}


def format_duration(seconds: Any) -> str:
    """Format a number of seconds as ``m:ss`` (e.g. 65 -> "1:05")."""
    total = int(_as_number(seconds))
    return f"{total // 60}:{total % 60:02d}"


@dataclass(frozen=True)
class Pagination:
    """Paging state for a list view.

    ``has_more`` is a heuristic: a full page implies there may be another.
    The backend never reports a total.
    """

    page: int = 1
    limit: int = 10
    total: int = 0
    has_more: bool = False

    @classmethod
    def from_page(
        cls, page: int, limit: int, returned: int, total: Optional[int] = None
    ) -> "Pagination":
        """Build pagination for a page that returned *returned* items."""
        return cls(
            page=page,
            limit=limit,
            total=total if total is not None else returned,
            has_more=returned == limit,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "hasMore": self.has_more,
        }


@dataclass
class Article:
    """Represents an article, relabelled from the backend's field names."""

    id: str
    title: str
    excerpt: str = ""
    image: str = PLACEHOLDER_IMAGE
    content: str = ""
    tags: List[str] = field(default_factory=list)
    author: str = "FitBody Team"
    category: str = "General"
    read_time: str = "5 min read"
    published_date: str = ""
    is_featured: bool = False
    views: int = 0
    likes: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("_id", "id", "name", "title", "description", "excerpt", "avatar",
              "content", "createdAt")

    @classmethod
    def from_api(cls, payload: Dict[str, Any], media_url: MediaResolver = _identity) -> "Article":
        """Normalize a backend article (name/description/avatar -> title/excerpt/image).

        Args:
            payload: Raw article dict from the API
            media_url: Resolver turning relative filenames into absolute URLs

        Returns:
            Article instance
        """
        avatar = payload.get("avatar")
        image = media_url(avatar) if avatar else None
        return cls(
            id=entity_id(payload) or "",
            title=payload.get("name") or payload.get("title") or "",
            excerpt=payload.get("description") or payload.get("excerpt") or "",
            image=image or PLACEHOLDER_IMAGE,
            content=payload.get("content") or "",
            published_date=payload.get("createdAt") or datetime.now(timezone.utc).isoformat(),
            extra=_extra(payload, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "excerpt": self.excerpt,
            "image": self.image,
            "content": self.content,
            "tags": list(self.tags),
            "author": self.author,
            "category": self.category,
            "readTime": self.read_time,
            "publishedDate": self.published_date,
            "isFeatured": self.is_featured,
            "views": self.views,
            "likes": self.likes,
        }


@dataclass
class Workout:
    """Represents a workout (a "lesson" on the backend)."""

    id: str
    name: str
    minutes: float = 0
    cal: float = 0
    avatar: Optional[str] = None
    level: str = "beginner"
    is_recommended: bool = False
    is_challenge: bool = False
    is_weekly_challenge: bool = False
    excercise: int = 0  # exercise count, spelled as the backend spells it
    number_of_visits: int = 0
    description: str = "Complete workout session"
    equipment: str = "No equipment needed"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("_id", "id", "name", "minutes", "cal", "avatar", "level",
              "is_recommended", "is_challenge", "is_weekly_challenge", "excercise",
              "number_of_visits", "createdAt", "updatedAt")

    @classmethod
    def from_api(cls, payload: Dict[str, Any], media_url: MediaResolver = _identity) -> "Workout":
        return cls(
            id=entity_id(payload) or "",
            name=payload.get("name") or "",
            minutes=_as_number(payload.get("minutes")),
            cal=_as_number(payload.get("cal")),
            avatar=media_url(payload.get("avatar")),
            level=payload.get("level") or "beginner",
            is_recommended=bool(payload.get("is_recommended")),
            is_challenge=bool(payload.get("is_challenge")),
            is_weekly_challenge=bool(payload.get("is_weekly_challenge")),
            excercise=int(_as_number(payload.get("excercise"))),
            number_of_visits=int(_as_number(payload.get("number_of_visits"))),
            created_at=payload.get("createdAt"),
            updated_at=payload.get("updatedAt"),
            extra=_extra(payload, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "minutes": self.minutes,
            "cal": self.cal,
            "avatar": self.avatar,
            "level": self.level,
            "is_recommended": self.is_recommended,
            "is_challenge": self.is_challenge,
            "is_weekly_challenge": self.is_weekly_challenge,
            "excercise": self.excercise,
        }


@dataclass
class Guide:
    """A single exercise step within a workout, grouped server-side by round."""

    id: str
    name: str
    seconds: float = 0
    repetitions: int = 0
    description: str = ""
    video: Optional[str] = None
    round: Optional[int] = 0  # None when the round key carries no number
    position: int = 0  # index within its round
    duration: str = "0:00"
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("_id", "id", "name", "seconds", "repetitions", "description", "video", "round")

    @classmethod
    def from_api(
        cls,
        payload: Dict[str, Any],
        round_number: Optional[int],
        position: int,
        media_url: MediaResolver = _identity,
    ) -> "Guide":
        seconds = _as_number(payload.get("seconds"))
        return cls(
            id=entity_id(payload) or "",
            name=payload.get("name") or "",
            seconds=seconds,
            repetitions=int(_as_number(payload.get("repetitions"))),
            description=payload.get("description") or "",
            video=media_url(payload.get("video")),
            round=round_number,
            position=position,
            duration=format_duration(seconds),
            extra=_extra(payload, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "seconds": self.seconds,
            "repetitions": self.repetitions,
            "description": self.description,
            "video": self.video,
            "round": self.round,
            "duration": self.duration,
        }


@dataclass
class Meal:
    """Represents a meal with its media URLs resolved."""

    id: str
    name: str
    type: str = ""
    cal: float = 0
    minutes: float = 0
    dietary: str = ""
    number_of_servings: int = 1
    avatar: Optional[str] = None
    video: Optional[str] = None
    content: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("_id", "id", "name", "type", "cal", "minutes", "dietary",
              "number_of_servings", "avatar", "video", "content")

    @classmethod
    def from_api(cls, payload: Dict[str, Any], media_url: MediaResolver = _identity) -> "Meal":
        return cls(
            id=entity_id(payload) or "",
            name=payload.get("name") or "",
            type=payload.get("type") or "",
            cal=_as_number(payload.get("cal")),
            minutes=_as_number(payload.get("minutes")),
            dietary=payload.get("dietary") or "",
            number_of_servings=int(_as_number(payload.get("number_of_servings"), 1)),
            avatar=media_url(payload.get("avatar")),
            video=media_url(payload.get("video")),
            content=payload.get("content") or "",
            extra=_extra(payload, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "cal": self.cal,
            "minutes": self.minutes,
            "dietary": self.dietary,
            "number_of_servings": self.number_of_servings,
            "avatar": self.avatar,
            "video": self.video,
        }


@dataclass
class MealPlan:
    """Join record between an account and a meal (the user's curated set)."""

    id: str
    meal_id: Optional[str]
    account_id: Optional[str]
    meal: Optional[Meal] = None  # populated when the backend expands meal_id
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any], media_url: MediaResolver = _identity) -> "MealPlan":
        raw_meal = payload.get("meal_id")
        meal = None
        meal_id = None
        if isinstance(raw_meal, dict):
            meal = Meal.from_api(raw_meal, media_url)
            meal_id = meal.id
        elif raw_meal is not None:
            meal_id = str(raw_meal)

        account = payload.get("account_id")
        if isinstance(account, dict):
            account = entity_id(account)

        return cls(
            id=entity_id(payload) or "",
            meal_id=meal_id,
            account_id=account,
            meal=meal,
            extra=_extra(payload, ("_id", "id", "meal_id", "account_id")),
        )

    @property
    def meal_type(self) -> Optional[str]:
        return self.meal.type if self.meal else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "meal_id": self.meal.to_dict() if self.meal else self.meal_id,
            "account_id": self.account_id,
        }


@dataclass
class ProgressEntry:
    """A workout progress-tracking record."""

    id: Optional[str]
    account_id: Optional[str] = None
    lesson_id: Optional[str] = None
    date: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "ProgressEntry":
        return cls(
            id=entity_id(payload),
            account_id=payload.get("account_id"),
            lesson_id=payload.get("lesson_id"),
            date=payload.get("date") or payload.get("createdAt"),
            extra=_extra(payload, ("_id", "id", "account_id", "lesson_id", "date", "createdAt")),
        )


@dataclass
class OperationResult:
    """Outcome of a store operation.

    Stores never raise for network or domain failures; they return this.

    Attributes:
        success: Whether the operation succeeded
        data: Operation payload on success
        error: Human-readable error message on failure
        action: For toggles, "added" or "removed"
        message: Optional informational message
        details: Structured extra information (e.g. per-type counts)
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    action: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, **kwargs: Any) -> "OperationResult":
        return cls(success=True, data=data, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> "OperationResult":
        return cls(success=False, error=error, **kwargs)


@dataclass
class BatchResult:
    """Outcome of a sequential batch of creates where partial failure is tolerated."""

    success: bool
    data: List[Any] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    message: str = ""
