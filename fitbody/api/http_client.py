"""HTTP client adapter for the FitBody backend.

Every backend call goes through ``HttpClient.call``, which never raises:
transport errors, non-2xx statuses and undecodable bodies all come back as a
failed ``ApiResult``.

The backend answers in two shapes and both are decoded here, and only here:

- WRAPPED: ``{"statusCode": 200, "message": "...", "data": ...}``. Success
  requires a 2xx HTTP status and ``200 <= statusCode < 300``; the payload is
  the ``data`` member.
- PLAIN: any other JSON document. Success is the HTTP status alone; the
  payload is the whole body.

Callers only ever see ``ApiResult.data``, never the envelope.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from fitbody.config import ClientConfig, DEFAULT_API_URL

logger = logging.getLogger(__name__)


class EnvelopeKind(Enum):
    """Which of the two backend response conventions a body used."""

    WRAPPED = "wrapped"
    PLAIN = "plain"


class ApiRequestError(Exception):
    """Exception for transport-level failures.

    Used internally; callers receive a failed ApiResult instead.
    """

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


@dataclass
class ApiResult:
    """Uniform result of a backend call.

    Attributes:
        success: Whether the call succeeded
        data: Decoded payload (``data`` member for WRAPPED, whole body for PLAIN)
        message: Backend message, if any
        status_code: Backend status (0 for transport failures)
        error: Human-readable error message if failed
        error_code: Machine-readable error code if failed
        envelope: Which response convention was decoded
    """

    success: bool
    data: Any = None
    message: Optional[str] = None
    status_code: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None
    envelope: Optional[EnvelopeKind] = None

    @classmethod
    def failure(
        cls,
        error_code: str,
        error: str,
        status_code: int = 0,
        envelope: Optional[EnvelopeKind] = None,
    ) -> "ApiResult":
        """Create a failed result.

        Args:
            error_code: Machine-readable error code
            error: Human-readable error message
            status_code: HTTP or envelope status (0 when nothing was received)
            envelope: Envelope kind if a body was decoded

        Returns:
            ApiResult with success=False
        """
        return cls(
            success=False,
            status_code=status_code,
            error=error,
            error_code=error_code,
            envelope=envelope,
        )

    @property
    def is_not_found(self) -> bool:
        """True for failures that mean "nothing there" rather than a fault."""
        if self.success:
            return False
        if self.status_code == 404:
            return True
        text = (self.error or "").lower()
        return "404" in text or "not found" in text or "không tìm thấy" in text


def as_record_list(data: Any) -> List[dict]:
    """Extract a list of records from a payload that may nest it under ``data``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    return []


def decode_envelope(http_status: int, body: Any) -> ApiResult:
    """Normalize a decoded response body into an ApiResult.

    Args:
        http_status: HTTP status code of the response
        body: Parsed JSON body (``None`` for an empty body)

    Returns:
        ApiResult for either envelope convention
    """
    http_ok = 200 <= http_status < 300

    if isinstance(body, dict) and "statusCode" in body:
        try:
            status = int(body["statusCode"])
        except (TypeError, ValueError):
            status = http_status
        message = body.get("message")
        if http_ok and 200 <= status < 300:
            return ApiResult(
                success=True,
                data=body.get("data"),
                message=message,
                status_code=status,
                envelope=EnvelopeKind.WRAPPED,
            )
        return ApiResult.failure(
            error_code="NOT_FOUND" if status == 404 else "API_ERROR",
            error=message or f"API error: {status}",
            status_code=status,
            envelope=EnvelopeKind.WRAPPED,
        )

    if http_ok:
        return ApiResult(
            success=True,
            data=body,
            message=body.get("message") if isinstance(body, dict) else None,
            status_code=http_status,
            envelope=EnvelopeKind.PLAIN,
        )

    message = body.get("message") if isinstance(body, dict) else None
    return ApiResult.failure(
        error_code="NOT_FOUND" if http_status == 404 else "API_ERROR",
        error=message or f"HTTP error! status: {http_status}",
        status_code=http_status,
        envelope=EnvelopeKind.PLAIN,
    )


class HttpClient:
    """JSON-over-HTTP client for the FitBody REST API.

    Usage:
        client = HttpClient("http://localhost:1200")
        result = client.call("/api/meals", params={"type": "lunch"})
        if result.success:
            print(result.data)
        else:
            print(f"Error: {result.error}")
    """

    DEFAULT_HEADERS = {"Content-Type": "application/json"}

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize client.

        Args:
            base_url: Backend base URL (no trailing slash needed)
            timeout: Transport timeout in seconds
            headers: Extra headers merged over the defaults

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required")
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self.headers = {**self.DEFAULT_HEADERS, **(headers or {})}

    @classmethod
    def from_config(cls, config: ClientConfig) -> "HttpClient":
        return cls(base_url=config.api_url, timeout=config.timeout_seconds)

    def call(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
    ) -> ApiResult:
        """Perform one request and normalize the response.

        Args:
            endpoint: Path beginning with ``/`` (e.g. ``/api/meals``)
            method: HTTP method
            params: Query parameters; ``None`` values are dropped
            json_body: JSON-serializable request body

        Returns:
            ApiResult (never raises)
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self._send(method, url, self._encode_params(params), json_body)
        except ApiRequestError as e:
            logger.warning(f"{method} {endpoint} failed: {e.message}")
            return ApiResult.failure(error_code=e.error_code, error=e.message)

        if not response.content:
            body = None
        else:
            try:
                body = response.json()
            except ValueError:
                logger.warning(f"{method} {endpoint} returned a non-JSON body")
                return ApiResult.failure(
                    error_code="INVALID_RESPONSE",
                    error=f"Invalid JSON response (status {response.status_code})",
                    status_code=response.status_code,
                )

        result = decode_envelope(response.status_code, body)
        if not result.success:
            logger.info(f"{method} {endpoint} -> {result.status_code}: {result.error}")
        return result

    def media_url(self, filename: Optional[str]) -> Optional[str]:
        """Turn a relative media filename into an absolute URL.

        Args:
            filename: Relative filename, absolute URL, or None

        Returns:
            Absolute URL, or None for an empty filename
        """
        if not filename:
            return None
        if filename.startswith("http"):
            return filename
        return f"{self.base_url}/{filename.lstrip('/')}"

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]],
        json_body: Any,
    ) -> requests.Response:
        """Make the HTTP request.

        Raises:
            ApiRequestError: If the request could not be completed
        """
        try:
            return requests.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise ApiRequestError("TIMEOUT", "Request timed out")
        except requests.exceptions.ConnectionError:
            raise ApiRequestError("CONNECTION_ERROR", "Network error occurred")
        except requests.exceptions.RequestException as e:
            raise ApiRequestError("API_ERROR", f"Request failed: {str(e)}")

    @staticmethod
    def _encode_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        if not params:
            return None
        encoded = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                encoded[key] = "true" if value else "false"
            else:
                encoded[key] = str(value)
        return encoded or None
