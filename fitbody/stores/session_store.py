"""Session store: the authenticated identity, persisted across restarts.

The identity is the raw account record the backend returns on login, kept
as a dict so profile fields the client does not model survive a round trip.
Memory and durable storage are always written together.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from fitbody.api.auth_api import AuthAPI
from fitbody.api.http_client import ApiResult
from fitbody.data_layer.models import OperationResult, entity_id
from fitbody.data_layer.storage import USER_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "User not authenticated"


class SessionStatus(Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class ProfileSetupData(BaseModel):
    """Onboarding answers, coerced into the shape the account endpoint expects."""

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    gender: Optional[str] = None
    age: int
    weight: float
    weightUnit: Optional[str] = None
    height: float
    heightUnit: Optional[str] = None
    goal: Optional[str] = None
    activityLevel: Optional[str] = None
    bio: str = ""
    notifications: bool = True
    units: str = "metric"
    profilePicture: Optional[str] = None

    @field_validator("bio", mode="before")
    @classmethod
    def _empty_bio(cls, value: Any) -> Any:
        return value or ""

    @field_validator("units", mode="before")
    @classmethod
    def _default_units(cls, value: Any) -> Any:
        return value or "metric"

    @field_validator("notifications", mode="before")
    @classmethod
    def _notifications_opt_out(cls, value: Any) -> bool:
        # Only an explicit False turns notifications off
        return value is not False

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump()
        if not payload.get("profilePicture"):
            payload.pop("profilePicture", None)
        return payload


Listener = Callable[[Optional[Dict[str, Any]]], None]


class SessionStore:
    """Holds who is logged in and performs account operations.

    Usage:
        session = SessionStore(AuthAPI(client), JsonFileStorage())
        result = session.login("alice", "secret")
        if result.success:
            print(session.user_id)
    """

    def __init__(self, auth_api: AuthAPI, storage: KeyValueStorage):
        """Initialize and hydrate from *storage*.

        A stored identity that is not valid JSON is removed and the session
        starts anonymous.
        """
        self.auth_api = auth_api
        self.storage = storage
        self._user: Optional[Dict[str, Any]] = None
        self._loading = False
        self._listeners: List[Listener] = []
        self._hydrate()

    def _hydrate(self) -> None:
        try:
            saved = self.storage.get_json(USER_KEY)
        except ValueError as e:
            logger.warning(f"Discarding corrupt saved session: {e}")
            self.storage.remove(USER_KEY)
            return
        if isinstance(saved, dict):
            self._user = saved
        elif saved is not None:
            logger.warning("Discarding saved session that is not an object")
            self.storage.remove(USER_KEY)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def user_id(self) -> Optional[str]:
        return entity_id(self._user) if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def status(self) -> SessionStatus:
        if self._loading:
            return SessionStatus.AUTHENTICATING
        if self._user is not None:
            return SessionStatus.AUTHENTICATED
        return SessionStatus.ANONYMOUS

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for identity changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_user(self, user: Optional[Dict[str, Any]]) -> None:
        if user is None:
            self.storage.remove(USER_KEY)
        else:
            self.storage.set_json(USER_KEY, user)
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> OperationResult:
        return self._authenticate(lambda: self.auth_api.login(username, password))

    def signup(self, user_data: Dict[str, Any]) -> OperationResult:
        return self._authenticate(lambda: self.auth_api.register(user_data))

    def logout(self) -> None:
        logger.info("Logging out")
        self._set_user(None)

    def change_password(self, current_password: str, new_password: str) -> OperationResult:
        user_id = self.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)

        self._loading = True
        try:
            result = self.auth_api.change_password(user_id, current_password, new_password)
        finally:
            self._loading = False

        if not result.success:
            return OperationResult.failure(result.error)
        return OperationResult.ok(message="Password changed successfully")

    def update_profile(self, profile_data: Dict[str, Any]) -> OperationResult:
        """Send *profile_data* to the account endpoint and merge the response."""
        user_id = self.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)
        logger.info(f"Updating profile for {user_id}")
        return self._merge_from(lambda: self.auth_api.update_account(user_id, profile_data))

    def complete_profile_setup(self, setup_data: Dict[str, Any]) -> OperationResult:
        """Validate the onboarding draft and save it to the account.

        Args:
            setup_data: Draft fields (numbers may be strings, as typed)

        Returns:
            OperationResult whose data is the merged identity
        """
        user_id = self.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)

        try:
            profile = ProfileSetupData(**setup_data)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            return OperationResult.failure(f"Invalid profile data: {fields}")

        return self._merge_from(lambda: self.auth_api.update_account(user_id, profile.to_payload()))

    def refresh_user_data(self) -> OperationResult:
        user_id = self.user_id
        if not user_id:
            return OperationResult.failure(NOT_AUTHENTICATED)
        return self._merge_from(lambda: self.auth_api.get_account(user_id))

    # ------------------------------------------------------------------

    def _authenticate(self, request: Callable[[], ApiResult]) -> OperationResult:
        self._loading = True
        try:
            result = request()
        finally:
            self._loading = False

        if not result.success:
            return OperationResult.failure(result.error)
        if not isinstance(result.data, dict):
            return OperationResult.failure("Invalid account data received")

        self._set_user(result.data)
        logger.info(f"Authenticated as {self.user_id}")
        return OperationResult.ok(result.data)

    def _merge_from(self, request: Callable[[], ApiResult]) -> OperationResult:
        self._loading = True
        try:
            result = request()
        finally:
            self._loading = False

        if not result.success:
            logger.warning(f"Account update failed: {result.error}")
            return OperationResult.failure(result.error)

        merged = dict(self._user or {})
        if isinstance(result.data, dict):
            merged.update(result.data)
        self._set_user(merged)
        return OperationResult.ok(merged)
