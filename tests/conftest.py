"""Shared test fixtures."""

import json
from collections.abc import Callable

import httpx
import pytest
from fastapi import FastAPI

from azrelay.api.deps import get_backend_client
from azrelay.config import Settings
from azrelay.core.backend import BackendClient
from azrelay.main import create_app

BACKEND_ENDPOINT = "https://azure.test/models"
BACKEND_URL = f"{BACKEND_ENDPOINT}/chat/completions"
API_KEY = "test-azure-key"
MODEL_NAME = "gpt-4o-test"


class FakeBackend:
    """Records requests sent to the backend and answers with a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self):
        return json.loads(self.last_request.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def create_test_app(settings: Settings, backend: FakeBackend) -> FastAPI:
    """Create the full app with the backend replaced by a fake."""
    app = create_app(settings)
    app.dependency_overrides[get_backend_client] = lambda: BackendClient(
        settings, transport=backend.transport()
    )
    return app


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings with every required value present."""
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    return Settings(
        azure_api_endpoint=BACKEND_ENDPOINT,
        azure_api_key=API_KEY,
        model_name=MODEL_NAME,
    )
