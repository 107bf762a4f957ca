"""Authentication and account endpoints."""
import logging
from typing import Any, Dict

from fitbody.api.http_client import ApiResult, HttpClient

logger = logging.getLogger(__name__)


class AuthAPI:
    """Adapter for ``/api/auth`` and ``/api/accounts``."""

    def __init__(self, client: HttpClient):
        self.client = client

    def login(self, username: str, password: str) -> ApiResult:
        logger.info(f"Login attempt for {username}")
        return self.client.call(
            "/api/auth/login",
            method="POST",
            json_body={"username": username, "password": password},
        )

    def register(self, user_data: Dict[str, Any]) -> ApiResult:
        logger.info(f"Signup attempt for {user_data.get('username')}")
        return self.client.call("/api/auth/register", method="POST", json_body=user_data)

    def change_password(self, user_id: str, old_password: str, new_password: str) -> ApiResult:
        return self.client.call(
            f"/api/auth/change-password/{user_id}",
            method="PATCH",
            json_body={"oldPassword": old_password, "password": new_password},
        )

    def get_account(self, user_id: str) -> ApiResult:
        return self.client.call(f"/api/accounts/{user_id}")

    def update_account(self, user_id: str, profile_data: Dict[str, Any]) -> ApiResult:
        return self.client.call(f"/api/accounts/{user_id}", method="PATCH", json_body=profile_data)
