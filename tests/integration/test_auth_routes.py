"""Login, logout and session handling."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from src.catalog.api.http.app import create_app
from src.catalog.api.http.middleware.limiter import LoginRateLimiter
from src.catalog.core.services import (
    RedisSessionStorage,
    UserService,
    UserSessionService,
)
from src.catalog.entities.core.user import UserRepository
from src.catalog.runtime.config.config_data import RateLimiterConfig
from tests.fixtures.auth import ADMIN_PASSWORD, USER_PASSWORD, login


class TestLogin:
    def test_root_redirects_to_books(self, client: TestClient):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/book/"

    def test_login_page(self, client: TestClient):
        response = client.get("/login")

        assert response.status_code == 200
        assert 'name="password"' in response.text

    def test_login_sets_session_cookie(self, client: TestClient, admin_user):
        response = client.post(
            "/login",
            data={"email": "ADMIN@example.com", "password": ADMIN_PASSWORD},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/book/"
        assert "user_session_id" in response.cookies
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie

    def test_login_returns_to_next(self, client: TestClient, regular_user):
        response = client.post(
            "/login",
            data={
                "email": regular_user.email,
                "password": USER_PASSWORD,
                "next": "/book/new",
            },
            follow_redirects=False,
        )

        assert response.headers["location"] == "/book/new"

    def test_login_ignores_external_next(self, client: TestClient, regular_user):
        response = client.post(
            "/login",
            data={
                "email": regular_user.email,
                "password": USER_PASSWORD,
                "next": "https://evil.example/",
            },
            follow_redirects=False,
        )

        assert response.headers["location"] == "/book/"

    def test_wrong_password(self, client: TestClient, regular_user):
        response = client.post(
            "/login",
            data={"email": regular_user.email, "password": "nope"},
            follow_redirects=False,
        )

        assert response.status_code == 401
        assert "E-mail ou senha inválidos." in response.text
        assert "user_session_id" not in response.cookies

    def test_login_page_redirects_signed_in_users(self, user_client: TestClient):
        response = user_client.get("/login", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/book/"

    def test_login_is_throttled(self, test_config, app_dependencies, regular_user):
        config = test_config.model_copy(
            update={"rate_limiter": RateLimiterConfig(login_requests=2)}
        )
        app_dependencies.login_limiter = LoginRateLimiter.from_config(config.rate_limiter)
        application = create_app(config)
        application.state.app_dependencies = app_dependencies

        with TestClient(application) as throttled:
            statuses = [
                throttled.post(
                    "/login",
                    data={"email": regular_user.email, "password": "bad"},
                ).status_code
                for _ in range(3)
            ]

        assert statuses == [401, 401, 429]


class TestSession:
    def test_logout_ends_session(self, user_client: TestClient):
        session_id = user_client.cookies.get("user_session_id")

        response = user_client.post("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        user_client.cookies.clear()
        user_client.cookies.set("user_session_id", session_id)
        assert user_client.get("/book/", follow_redirects=False).status_code == 303

    def test_session_bound_to_client(self, user_client: TestClient):
        response = user_client.get(
            "/book/",
            headers={"user-agent": "another-browser"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        # The mismatch drops the session for the original client as well
        assert user_client.get("/book/", follow_redirects=False).status_code == 303

    def test_login_and_user_lookup_run_off_the_event_loop(
        self, client: TestClient, regular_user, monkeypatch
    ):
        calls: list[tuple[str, bool]] = []

        def record(name: str, original):
            def wrapper(*args, **kwargs):
                try:
                    asyncio.get_running_loop()
                    on_loop = True
                except RuntimeError:
                    on_loop = False
                calls.append((name, on_loop))
                return original(*args, **kwargs)

            return wrapper

        monkeypatch.setattr(
            UserService, "authenticate", record("authenticate", UserService.authenticate)
        )
        monkeypatch.setattr(UserRepository, "get", record("get", UserRepository.get))

        login(client, regular_user.email, USER_PASSWORD)
        assert client.get("/book/").status_code == 200

        assert ("authenticate", False) in calls
        assert ("get", False) in calls
        assert all(not on_loop for _, on_loop in calls)

    def test_unknown_session_cookie(self, client: TestClient):
        client.cookies.set("user_session_id", "forged")

        response = client.get("/book/", follow_redirects=False)

        assert response.status_code == 303


class UnreachableRedis:
    async def _fail(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    setex = get = delete = exists = ping = _fail


class TestSessionStoreOutage:
    @pytest.fixture
    def broken_sessions(self, app_dependencies, test_config):
        storage = RedisSessionStorage(UnreachableRedis())
        app_dependencies.session_storage = storage
        app_dependencies.user_session_service = UserSessionService(
            storage, test_config.app.session_max_age
        )

    def test_pages_answer_service_unavailable(
        self, broken_sessions, client: TestClient
    ):
        client.cookies.set("user_session_id", "some-session")

        response = client.get("/book/", follow_redirects=False)

        assert response.status_code == 503
        assert "Serviço indisponível" in response.text

    def test_api_answers_service_unavailable(
        self, broken_sessions, client: TestClient
    ):
        client.cookies.set("user_session_id", "some-session")

        response = client.get("/api/books")

        assert response.status_code == 503
        assert "detail" in response.json()

    def test_login_answers_service_unavailable(
        self, broken_sessions, client: TestClient, regular_user
    ):
        response = client.post(
            "/login",
            data={"email": regular_user.email, "password": USER_PASSWORD},
            follow_redirects=False,
        )

        assert response.status_code == 503


class TestHealth:
    def test_liveness(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["sessions"]["type"] == "in-memory"

    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert "x-request-id" in response.headers
