"""
Unit tests for response envelopes and the error model.
"""

import json

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import (
    ConfigurationError,
    RateLimitError,
    UpstreamError,
    UpstreamFetchError,
    ValidationError,
)
from shared.responses import bad_request, create_response, internal_server_error, ok


def body(response):
    return json.loads(response.body)


class TestResponses:
    """Test cases for envelope helpers."""

    def test_ok_carries_payload_in_data(self):
        response = ok("Success", {"items": [1, 2]})
        assert response.status_code == 200
        assert body(response) == {"statusCode": 200, "message": "Success", "data": {"items": [1, 2]}}

    def test_ok_text_payload(self):
        assert body(ok("Success", "<html></html>"))["data"] == "<html></html>"

    def test_bad_request(self):
        response = bad_request("Target URL is required")
        assert response.status_code == 400
        assert body(response) == {
            "statusCode": 400,
            "message": "Target URL is required",
            "error": "Bad Request",
        }

    def test_internal_server_error(self):
        response = internal_server_error("Failed to fetch data from ScraperAPI")
        assert response.status_code == 500
        assert body(response)["error"] == "Internal Server Error"
        assert "data" not in body(response)

    def test_falsy_payload_kept(self):
        """Empty but present payloads are not dropped from the envelope."""
        assert body(create_response(200, "Success", []))["data"] == []
        assert body(create_response(200, "Success", ""))["data"] == ""


class TestErrors:
    """Test cases for the exception hierarchy."""

    def test_codes(self):
        assert ValidationError().code == "VALIDATION_ERROR"
        assert ConfigurationError().code == "CONFIGURATION_ERROR"
        assert UpstreamError().code == "UPSTREAM_ERROR"
        assert UpstreamFetchError().code == "UPSTREAM_FETCH_ERROR"
        assert RateLimitError().code == "RATE_LIMIT_ERROR"

    def test_upstream_error_details(self):
        error = UpstreamError("Unexpected status 503", status_code=503, transient=True, details={"attempt": 1})
        assert error.status_code == 503
        assert error.transient is True
        assert error.details == {"status_code": 503, "transient": True, "attempt": 1}

    def test_to_response(self):
        response = UpstreamFetchError(details={"target": "https://example.com"}).to_response()
        assert response.code == "UPSTREAM_FETCH_ERROR"
        assert response.details == {"target": "https://example.com"}
