"""Tests for the HTTP client adapter.

Tests mock ``requests.request`` to avoid hitting a real backend.
"""

import json

import pytest
import requests
from unittest.mock import Mock, patch

from fitbody.api.http_client import (
    ApiResult,
    EnvelopeKind,
    HttpClient,
    as_record_list,
    decode_envelope,
)
from fitbody.config import ClientConfig


def make_response(status_code=200, body=None, raw=None):
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    if raw is not None:
        response.content = raw
        response.json.side_effect = ValueError("No JSON object could be decoded")
    elif body is None:
        response.content = b""
    else:
        response.content = json.dumps(body).encode()
        response.json.return_value = body
    return response


class TestDecodeEnvelope:
    """Tests for decoding the two backend response conventions."""

    def test_wrapped_success_unwraps_data(self):
        """Test that a wrapped 2xx body yields its data member."""
        body = {"statusCode": 200, "message": "OK", "data": [{"_id": "m1"}]}
        result = decode_envelope(200, body)

        assert result.success is True
        assert result.data == [{"_id": "m1"}]
        assert result.message == "OK"
        assert result.envelope == EnvelopeKind.WRAPPED

    def test_wrapped_error_status_fails_even_with_http_200(self):
        """Test that a wrapped statusCode outside 2xx is a failure."""
        body = {"statusCode": 400, "message": "Invalid meal id", "data": None}
        result = decode_envelope(200, body)

        assert result.success is False
        assert result.error == "Invalid meal id"
        assert result.error_code == "API_ERROR"
        assert result.status_code == 400

    def test_wrapped_error_without_message(self):
        """Test the fallback error text for a wrapped failure."""
        result = decode_envelope(500, {"statusCode": 500})

        assert result.success is False
        assert result.error == "API error: 500"

    def test_wrapped_not_found(self):
        """Test that a wrapped 404 maps to NOT_FOUND."""
        result = decode_envelope(404, {"statusCode": 404, "message": "Not found"})

        assert result.error_code == "NOT_FOUND"
        assert result.is_not_found is True

    def test_plain_success_returns_whole_body(self):
        """Test that a plain 2xx body is the payload."""
        body = [{"_id": "a1"}, {"_id": "a2"}]
        result = decode_envelope(200, body)

        assert result.success is True
        assert result.data == body
        assert result.envelope == EnvelopeKind.PLAIN

    def test_plain_http_error_uses_body_message(self):
        """Test that a plain non-2xx response carries the body's message."""
        result = decode_envelope(401, {"message": "Wrong password"})

        assert result.success is False
        assert result.error == "Wrong password"
        assert result.status_code == 401

    def test_plain_http_error_without_message(self):
        """Test the fallback error text for a plain failure."""
        result = decode_envelope(503, None)

        assert result.success is False
        assert result.error == "HTTP error! status: 503"


class TestApiResult:
    """Tests for ApiResult helpers."""

    def test_not_found_detected_from_message(self):
        """Test that localized not-found messages count as not found."""
        result = ApiResult.failure("API_ERROR", "Không tìm thấy danh sách yêu thích", 400)
        assert result.is_not_found is True

    def test_success_is_never_not_found(self):
        """Test that a successful result is not a not-found."""
        assert ApiResult(success=True, status_code=404).is_not_found is False

    def test_as_record_list_accepts_nested_data(self):
        """Test extracting records nested under a data key."""
        assert as_record_list({"data": [{"_id": "x"}]}) == [{"_id": "x"}]
        assert as_record_list([{"_id": "y"}]) == [{"_id": "y"}]
        assert as_record_list({"_id": "z"}) == []
        assert as_record_list(None) == []


class TestHttpClient:
    """Tests for HttpClient requests."""

    @pytest.fixture
    def client(self):
        """Provide a client pointed at a test backend."""
        return HttpClient("http://api.test/")

    def test_empty_base_url_raises(self):
        """Test that an empty base URL is rejected."""
        with pytest.raises(ValueError):
            HttpClient("  ")

    def test_from_config(self):
        """Test building a client from configuration."""
        client = HttpClient.from_config(ClientConfig(api_url="http://cfg.test", timeout_seconds=3))
        assert client.base_url == "http://cfg.test"
        assert client.timeout == 3

    def test_call_builds_url_and_encodes_params(self, client):
        """Test that None params are dropped and booleans are lowercased."""
        response = make_response(200, [])
        with patch("fitbody.api.http_client.requests.request", return_value=response) as mock:
            client.call("/api/lessons", params={"level": "beginner", "name": None, "is_challenge": True})

        args, kwargs = mock.call_args
        assert args == ("GET", "http://api.test/api/lessons")
        assert kwargs["params"] == {"level": "beginner", "is_challenge": "true"}
        assert kwargs["timeout"] == 10.0
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_call_sends_json_body(self, client):
        """Test that the JSON body is passed through."""
        response = make_response(201, {"statusCode": 201, "data": {"_id": "p1"}})
        with patch("fitbody.api.http_client.requests.request", return_value=response) as mock:
            result = client.call("/api/meal-plans", method="POST", json_body={"meal_id": "m1"})

        assert mock.call_args.kwargs["json"] == {"meal_id": "m1"}
        assert result.success is True
        assert result.data == {"_id": "p1"}

    def test_empty_body_is_success_with_no_data(self, client):
        """Test that a 204 response decodes to an empty success."""
        with patch("fitbody.api.http_client.requests.request", return_value=make_response(204)):
            result = client.call("/api/meal-plans/p1", method="DELETE")

        assert result.success is True
        assert result.data is None

    def test_non_json_body_is_invalid_response(self, client):
        """Test that an HTML error page becomes INVALID_RESPONSE."""
        response = make_response(502, raw=b"<html>Bad gateway</html>")
        with patch("fitbody.api.http_client.requests.request", return_value=response):
            result = client.call("/api/articles")

        assert result.success is False
        assert result.error_code == "INVALID_RESPONSE"
        assert result.status_code == 502

    def test_timeout_is_converted(self, client):
        """Test that a transport timeout never raises."""
        with patch(
            "fitbody.api.http_client.requests.request",
            side_effect=requests.exceptions.Timeout(),
        ):
            result = client.call("/api/articles")

        assert result.success is False
        assert result.error_code == "TIMEOUT"
        assert result.error == "Request timed out"

    def test_connection_error_is_converted(self, client):
        """Test that an unreachable backend yields a generic network error."""
        with patch(
            "fitbody.api.http_client.requests.request",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            result = client.call("/api/articles")

        assert result.error_code == "CONNECTION_ERROR"
        assert result.error == "Network error occurred"
        assert result.status_code == 0

    def test_media_url(self, client):
        """Test media URL resolution."""
        assert client.media_url("uploads/a.png") == "http://api.test/uploads/a.png"
        assert client.media_url("/uploads/a.png") == "http://api.test/uploads/a.png"
        assert client.media_url("https://cdn.test/a.png") == "https://cdn.test/a.png"
        assert client.media_url(None) is None
        assert client.media_url("") is None
