"""Tests for global exception handlers."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from throttle_gate.core.errors import (
    AppError,
    ClientUnidentifiedError,
    StoreInconsistencyError,
    ValidationAppError,
)
from throttle_gate.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="invalid_quota_override",
                message="Quota must be an integer",
                details={"value": "a:b"},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_quota_override"
        assert error["details"] == {"value": "a:b"}
        assert "request_id" in error

    @pytest.mark.parametrize("error_cls", [ClientUnidentifiedError, StoreInconsistencyError])
    def test_throttle_errors_return_403(self, client: TestClient, app_with_handlers: FastAPI, error_cls):
        @app_with_handlers.get("/test-throttle")
        async def test_endpoint():
            raise error_cls()

        response = client.get("/test-throttle")

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Could not identify client."

    def test_details_omitted_when_empty(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-plain")
        async def test_endpoint():
            raise AppError(code="plain", message="plain")

        response = client.get("/test-plain")

        assert "details" not in response.json()["error"]


class TestGeneralExceptionHandler:
    def test_never_leaks_exception_text(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("store password=hunter2")))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "hunter2" not in json.dumps(data)
        assert "ValueError" not in json.dumps(data)

    def test_handlers_registered(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
