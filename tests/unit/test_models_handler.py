"""Tests for models endpoint handler."""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from azrelay.api.handlers.models import build_model_list
from azrelay.core.backend import PROBE_PAYLOAD
from azrelay.utils.errors import API_KEY_VALIDATION_FAILED, INTERNAL_SERVER_ERROR
from conftest import API_KEY, BACKEND_URL, MODEL_NAME, FakeBackend, create_test_app

COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "ok"}}],
}


class TestBuildModelList:
    """Tests for build_model_list helper."""

    def test_single_model(self):
        """Test listing has exactly one entry for the configured model."""
        listing = build_model_list("my-model")
        assert listing.object == "list"
        assert len(listing.data) == 1
        assert listing.data[0].id == "my-model"
        assert listing.data[0].object == "model"
        assert listing.data[0].owned_by == "user"

    def test_created_is_current_time_in_milliseconds(self):
        """Test created timestamp is taken at call time."""
        before = int(time.time() * 1000)
        listing = build_model_list("my-model")
        after = int(time.time() * 1000)
        assert before <= listing.data[0].created <= after


class TestListModelsSuccess:
    """Tests for GET /v1/models when the probe succeeds."""

    @pytest.fixture
    def backend(self):
        return FakeBackend(lambda request: httpx.Response(200, json=COMPLETION))

    @pytest.fixture
    def client(self, settings, backend):
        return TestClient(create_test_app(settings, backend))

    def test_returns_configured_model(self, client):
        """Test listing contains only the configured model."""
        response = client.get("/v1/models")

        assert response.status_code == 200
        data = response.json()
        assert data["object"] == "list"
        assert len(data["data"]) == 1
        assert data["data"][0]["id"] == MODEL_NAME
        assert data["data"][0]["object"] == "model"
        assert data["data"][0]["owned_by"] == "user"
        assert isinstance(data["data"][0]["created"], int)

    def test_probe_request(self, client, backend):
        """Test the probe is a minimal non-streaming completion."""
        client.get("/v1/models")

        assert len(backend.requests) == 1
        request = backend.last_request
        assert request.method == "POST"
        assert str(request.url) == BACKEND_URL
        assert request.headers["authorization"] == f"Bearer {API_KEY}"
        assert request.headers["content-type"] == "application/json"
        assert backend.last_json == PROBE_PAYLOAD

    def test_probes_on_every_call(self, client, backend):
        """Test nothing is cached between calls."""
        client.get("/v1/models")
        client.get("/v1/models")
        assert len(backend.requests) == 2


class TestListModelsBackendRejection:
    """Tests for GET /v1/models when the backend rejects the probe."""

    def test_forwards_401(self, settings):
        """Test backend 401 is returned with the backend body as details."""
        backend_error = {"error": {"code": "401", "message": "Access denied due to invalid key"}}
        backend = FakeBackend(lambda request: httpx.Response(401, json=backend_error))
        client = TestClient(create_test_app(settings, backend))

        response = client.get("/v1/models")

        assert response.status_code == 401
        data = response.json()
        assert data["error"]["message"] == API_KEY_VALIDATION_FAILED
        assert data["error"]["details"] == backend_error

    def test_forwards_other_status_codes(self, settings):
        """Test non-auth backend errors keep their status code."""
        backend = FakeBackend(lambda request: httpx.Response(429, json={"error": "slow down"}))
        client = TestClient(create_test_app(settings, backend))

        response = client.get("/v1/models")

        assert response.status_code == 429
        assert response.json()["error"]["details"] == {"error": "slow down"}

    def test_text_error_body(self, settings):
        """Test a non-JSON backend body is passed as text."""
        backend = FakeBackend(lambda request: httpx.Response(503, text="Service Unavailable"))
        client = TestClient(create_test_app(settings, backend))

        response = client.get("/v1/models")

        assert response.status_code == 503
        assert response.json()["error"]["details"] == "Service Unavailable"


class TestListModelsTransportFailure:
    """Tests for GET /v1/models when the backend cannot be reached."""

    def test_connection_refused(self, settings):
        """Test connection failures return 500 with the failure message."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        client = TestClient(create_test_app(settings, FakeBackend(refuse)))

        response = client.get("/v1/models")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["message"] == INTERNAL_SERVER_ERROR
        assert data["error"]["details"] == "Connection refused"

    def test_timeout(self, settings):
        """Test timeouts are reported as transport failures."""

        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("", request=request)

        client = TestClient(create_test_app(settings, FakeBackend(slow)))

        response = client.get("/v1/models")

        assert response.status_code == 500
        assert response.json()["error"]["details"] == "ReadTimeout"
