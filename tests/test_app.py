"""
Tests for the FitBook HTTP API.

Supabase is replaced through dependency overrides; the auth service is
patched where the routers use it.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from prometheus_client import REGISTRY
from postgrest.exceptions import APIError

from fitbook.app import app
from fitbook.dependencies import (
    get_current_role,
    get_current_user,
    get_db,
    get_optional_role,
    get_optional_user,
    get_session_service,
)
from fitbook.exceptions import AuthError, BackendTimeoutError
from fitbook.models import CurrentUser, UserRole

from .conftest import FakeSupabase

TRAINER = CurrentUser(
    id="trainer-1",
    email="max@example.com",
    user_metadata={"full_name": "Max Power"},
    access_token="trainer-token",
)
CLIENT = CurrentUser(
    id="client-1",
    email="jane@example.com",
    user_metadata={"full_name": "Jane Doe"},
    access_token="client-token",
)

SESSION_FORM = {
    "session_date": "2025-01-06",
    "start_time": "09:00",
    "end_time": "10:00",
    "session_type": "group",
    "price": 30,
}


@pytest_asyncio.fixture
async def client():
    """Async HTTP client bound to the app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def as_trainer(db):
    app.dependency_overrides[get_current_user] = lambda: TRAINER
    app.dependency_overrides[get_current_role] = lambda: UserRole.TRAINER
    app.dependency_overrides[get_db] = lambda: db
    return db


@pytest.fixture
def as_client(db):
    app.dependency_overrides[get_current_user] = lambda: CLIENT
    app.dependency_overrides[get_current_role] = lambda: UserRole.CLIENT
    app.dependency_overrides[get_db] = lambda: db
    return db


@pytest.fixture
def mock_auth_service():
    with patch("fitbook.routers.auth.auth_service") as mock_service:
        yield mock_service


@pytest.mark.asyncio
class TestHealth:
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "FitBook"

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["supabase"] == "configured"

    async def test_metrics(self, client):
        await client.get("/health")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "fitbook_http_requests_total" in response.text

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    async def test_unknown_route(self, client):
        response = await client.get("/no-such-page")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found", "success": False}

    async def test_unmatched_paths_share_metrics_label(self, client):
        await client.get("/wp-login.php")

        labels = {"method": "GET", "endpoint": "unmatched", "status": "404"}
        assert REGISTRY.get_sample_value("fitbook_http_requests_total", labels) >= 1
        assert (
            REGISTRY.get_sample_value(
                "fitbook_http_requests_total",
                {"method": "GET", "endpoint": "/wp-login.php", "status": "404"},
            )
            is None
        )

    async def test_request_id_is_generated(self, client):
        response = await client.get("/health")

        assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
class TestAuthEndpoints:
    async def test_signup(self, client, mock_auth_service):
        mock_auth_service.sign_up = AsyncMock(
            return_value={
                "user": {"id": "user-1", "email": "jane@example.com", "role": "client"},
                "session": None,
                "message": "Registration successful! Please check your email to confirm your account.",
            }
        )

        response = await client.post(
            "/auth/signup",
            json={"email": "jane@example.com", "password": "secret1", "full_name": "Jane Doe"},
        )

        assert response.status_code == 201
        assert response.json()["session"] is None
        mock_auth_service.sign_up.assert_awaited_once_with(
            email="jane@example.com", password="secret1", full_name="Jane Doe"
        )

    async def test_signup_email_exists(self, client, mock_auth_service):
        mock_auth_service.sign_up = AsyncMock(
            side_effect=AuthError("Signup failed: Email already registered", "email_exists")
        )

        response = await client.post(
            "/auth/signup",
            json={"email": "jane@example.com", "password": "secret1", "full_name": "Jane Doe"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Signup failed: Email already registered"

    async def test_signup_short_password(self, client, mock_auth_service):
        response = await client.post(
            "/auth/signup",
            json={"email": "jane@example.com", "password": "abc", "full_name": "Jane Doe"},
        )

        assert response.status_code == 422

    async def test_trainer_signup_splits_specialties(self, client, mock_auth_service):
        mock_auth_service.register_trainer = AsyncMock(
            return_value={
                "user": {"id": "user-1", "email": "max@example.com", "role": "trainer"},
                "session": None,
                "message": "Trainer registration successful! Check your email to confirm your account.",
            }
        )

        response = await client.post(
            "/auth/trainer-signup",
            json={
                "email": "max@example.com",
                "password": "secret1",
                "full_name": "Max Power",
                "specialties": "Yoga, Weight Training",
                "hourly_rate": "60",
            },
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "trainer"
        kwargs = mock_auth_service.register_trainer.call_args.kwargs
        assert kwargs["specialties"] == ["Yoga", "Weight Training"]
        assert kwargs["hourly_rate"] == 60.0

    async def test_trainer_signup_profile_failure(self, client, mock_auth_service):
        mock_auth_service.register_trainer = AsyncMock(
            side_effect=AuthError("Trainer profile creation failed: denied", "profile_failed")
        )

        response = await client.post(
            "/auth/trainer-signup",
            json={
                "email": "max@example.com",
                "password": "secret1",
                "full_name": "Max Power",
                "specialties": "Yoga",
                "hourly_rate": 60,
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Trainer profile creation failed: denied"

    async def test_signup_weak_password(self, client, mock_auth_service):
        mock_auth_service.sign_up = AsyncMock(
            side_effect=AuthError(
                "Signup failed: Password should contain at least one digit", "weak_password"
            )
        )

        response = await client.post(
            "/auth/signup",
            json={"email": "jane@example.com", "password": "abcdef", "full_name": "Jane Doe"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "detail": "Signup failed: Password should contain at least one digit",
            "success": False,
        }

    async def test_signin_invalid_credentials(self, client, mock_auth_service):
        mock_auth_service.sign_in = AsyncMock(
            side_effect=AuthError("Invalid login credentials", "invalid_credentials")
        )

        response = await client.post(
            "/auth/signin", json={"email": "jane@example.com", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid login credentials"

    async def test_signin_email_not_confirmed(self, client, mock_auth_service):
        mock_auth_service.sign_in = AsyncMock(
            side_effect=AuthError("Email not confirmed", "email_not_confirmed")
        )

        response = await client.post(
            "/auth/signin", json={"email": "jane@example.com", "password": "secret1"}
        )

        assert response.status_code == 403

    async def test_signout(self, client, mock_auth_service):
        mock_auth_service.sign_out = AsyncMock(return_value={"message": "Signed out successfully"})

        response = await client.post(
            "/auth/signout", headers={"Authorization": "Bearer client-token"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Signed out successfully", "success": True}
        mock_auth_service.sign_out.assert_awaited_once_with("client-token")

    async def test_refresh_invalid(self, client, mock_auth_service):
        mock_auth_service.refresh_session = AsyncMock(
            side_effect=AuthError("Invalid or expired refresh token", "invalid_refresh_token")
        )

        response = await client.post("/auth/refresh", json={"refresh_token": "bad"})

        assert response.status_code == 401

    async def test_me(self, client, as_trainer):
        response = await client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["role"] == "trainer"
        assert response.json()["full_name"] == "Max Power"

    async def test_me_requires_token(self, client):
        response = await client.get("/auth/me")

        assert response.status_code == 401
        assert response.json() == {"detail": "Authorization header required", "success": False}
        assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
class TestSessionEndpoints:
    async def test_list_available(self, client, as_client, session_row):
        as_client.queue("training_sessions", [session_row])

        response = await client.get("/sessions")

        assert response.status_code == 200
        cards = response.json()
        assert cards[0]["time_label"] == "09:00 - 10:00"
        assert cards[0]["price_label"] == "$50.00"

    async def test_trainer_creates_session(self, client, as_trainer, session_row):
        as_trainer.queue("training_sessions", [{**session_row, "session_type": "group", "price": 30}])

        response = await client.post("/sessions", json=SESSION_FORM)

        assert response.status_code == 201
        assert response.json()["session_type"] == "group"
        payload = as_trainer.queries_for("training_sessions")[0].called("insert")[0][1][0]
        assert payload["trainer_id"] == "trainer-1"
        assert payload["status"] == "available"

    async def test_client_cannot_create_session(self, client, as_client):
        response = await client.post("/sessions", json=SESSION_FORM)

        assert response.status_code == 403
        assert response.json() == {
            "detail": "This action is only available to trainers",
            "success": False,
        }
        assert as_client.queries_for("training_sessions") == []

    async def test_end_time_before_start(self, client, as_trainer):
        response = await client.post(
            "/sessions", json={**SESSION_FORM, "start_time": "10:00", "end_time": "09:00"}
        )

        assert response.status_code == 422

    async def test_trainer_dashboard(self, client, as_trainer, session_row):
        as_trainer.queue("training_sessions", [{**session_row, "bookings": []}])

        response = await client.get("/sessions/mine")

        assert response.status_code == 200
        assert response.json()[0]["date_label"] == "1/6/2025"

    async def test_cancel_unknown_session(self, client, as_trainer):
        response = await client.post("/sessions/99/cancel")

        assert response.status_code == 404
        assert response.json()["detail"] == "Session '99' not found"
        labels = {"method": "POST", "endpoint": "/sessions/{session_id}/cancel", "status": "404"}
        assert REGISTRY.get_sample_value("fitbook_http_requests_total", labels) >= 1

    async def test_update_status(self, client, as_trainer, session_row):
        as_trainer.queue("training_sessions", [{**session_row, "status": "completed"}])

        response = await client.patch("/sessions/11/status", json={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    async def test_backend_timeout(self, client, as_client):
        sessions = MagicMock()
        sessions.list_available_sessions = AsyncMock(
            side_effect=BackendTimeoutError("sessions.list_available", 10.0)
        )
        app.dependency_overrides[get_session_service] = lambda: sessions

        response = await client.get("/sessions")

        assert response.status_code == 504
        assert response.json()["success"] is False
        assert "taking too long" in response.json()["detail"]

    async def test_backend_error(self, client, as_client):
        as_client.queue(
            "training_sessions", APIError({"code": "PGRST000", "message": "connection lost"})
        )

        response = await client.get("/sessions")

        assert response.status_code == 502


@pytest.mark.asyncio
class TestBookingEndpoints:
    async def test_client_books_session(self, client, as_client):
        as_client.queue("training_sessions", [{"id": 11, "status": "available"}])
        as_client.queue(
            "bookings", [{"id": 5, "session_id": 11, "client_id": "client-1", "status": "pending"}]
        )

        response = await client.post("/bookings", json={"session_id": 11})

        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    async def test_book_without_session_id(self, client, as_client):
        response = await client.post("/bookings", json={"session_id": ""})

        assert response.status_code == 422
        assert response.json()["success"] is False

    async def test_book_cancelled_session(self, client, as_client):
        as_client.queue("training_sessions", [{"id": 11, "status": "cancelled"}])

        response = await client.post("/bookings", json={"session_id": 11})

        assert response.status_code == 409

    async def test_trainer_cannot_book(self, client, as_trainer):
        response = await client.post("/bookings", json={"session_id": 11})

        assert response.status_code == 403

    async def test_confirm_foreign_booking(self, client, as_trainer):
        as_trainer.queue(
            "bookings",
            [
                {
                    "id": 5,
                    "session_id": 11,
                    "client_id": "client-1",
                    "status": "pending",
                    "training_sessions": {"trainer_id": "trainer-2"},
                }
            ],
        )

        response = await client.post("/bookings/5/confirm")

        assert response.status_code == 403

    async def test_my_bookings(self, client, as_client):
        response = await client.get("/bookings/mine")

        assert response.status_code == 200
        assert response.json() == []


@pytest.mark.asyncio
class TestProfileEndpoints:
    async def test_home(self, client, as_client):
        response = await client.get("/home")

        assert response.status_code == 200
        data = response.json()
        assert data["greeting"] == "Welcome, Jane Doe!"
        assert len(data["cards"]) == 3

    async def test_profile(self, client, as_client):
        as_client.queue("users", [{"id": "client-1", "full_name": "Jane Doe"}])

        response = await client.get("/profile")

        assert response.status_code == 200
        assert response.json()["name"] == "Jane Doe"
        assert response.json()["trainer"] is None

    async def test_navigation_anonymous(self, client):
        response = await client.get("/navigation", params={"view": "profile"})

        assert response.status_code == 200
        data = response.json()
        assert data["current_view"] == "register"
        assert data["signed_in"] is False
        assert [item["view"] for item in data["items"]] == [
            "login",
            "register",
            "trainer-register",
        ]

    async def test_navigation_client_cannot_open_dashboard(self, client):
        app.dependency_overrides[get_optional_user] = lambda: CLIENT
        app.dependency_overrides[get_optional_role] = lambda: UserRole.CLIENT

        response = await client.get("/navigation", params={"view": "trainer-dashboard"})

        assert response.json()["current_view"] == "home"
        assert response.json()["role"] == "client"
