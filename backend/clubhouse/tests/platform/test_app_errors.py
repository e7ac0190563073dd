"""Tests for the AppError hierarchy and its HTTP rendering."""

from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from clubhouse.platform.errors import (
    AppError,
    AuthenticationError,
    ConflictError,
    LoginRequiredError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    register_error_handlers,
)


def _app_raising(error: Exception) -> TestClient:
    app = FastAPI()
    register_error_handlers(app)
    router = APIRouter()

    @router.get("/boom")
    async def boom():
        raise error

    app.include_router(router)
    return TestClient(app, raise_server_exceptions=False)


class TestErrorShapes:
    def test_to_dict(self):
        error = ValidationError("Bad input", details={"field": "email"})
        assert error.to_dict() == {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Bad input",
                "details": {"field": "email"},
            }
        }

    def test_status_codes(self):
        assert ValidationError("x").status_code == 400
        assert AuthenticationError().status_code == 401
        assert PermissionDeniedError().status_code == 403
        assert NotFoundError("Booking").status_code == 404
        assert ConflictError("x").status_code == 409
        assert LoginRequiredError().status_code == 303

    def test_not_found_message_includes_identifier(self):
        assert NotFoundError("Booking", "b-1").message == "Booking with id 'b-1' not found"
        assert NotFoundError("Booking").message == "Booking not found"


class TestErrorRendering:
    def test_app_error_rendered_as_json(self):
        client = _app_raising(ConflictError("Already registered"))
        response = client.get("/boom")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        assert "X-Correlation-ID" in response.headers

    def test_login_required_redirects(self):
        client = _app_raising(LoginRequiredError())
        response = client.get("/boom", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_unexpected_error_hides_details(self):
        client = _app_raising(RuntimeError("database password is hunter2"))
        response = client.get("/boom")
        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "hunter2" not in response.text

    def test_correlation_id_is_echoed(self):
        client = _app_raising(AppError("X", "x", 418))
        response = client.get("/boom", headers={"X-Correlation-ID": "corr-123"})
        assert response.status_code == 418
        assert response.headers["X-Correlation-ID"] == "corr-123"
