"""Unit tests for authstarr.client: AuthClient orchestration and the httpx-backed RemoteAuthService."""

import json
import subprocess
import sys
import unittest
from pathlib import Path

import httpx
from sqlalchemy.orm import sessionmaker

from authstarr.client import AuthClient, RemoteAuthService
from authstarr.core.config import Settings
from authstarr.core.database import build_engine
from authstarr.core.errors import (
    AuthStarrError,
    DuplicateUsername,
    InvalidRequest,
    InvalidRole,
    NoTokenIssued,
    PersistFailure,
    Unauthorized,
)
from authstarr.models import Base
from authstarr.services.auth_service import AuthService
from authstarr.services.store import provision_store


class TestAuthClientInProcess(unittest.TestCase):
    def setUp(self) -> None:
        settings = Settings(_env_file=None, DATABASE_URL="sqlite://", BCRYPT_ROUNDS=4)
        engine = build_engine("sqlite://")
        Base.metadata.create_all(engine)
        self.session = sessionmaker(bind=engine, autoflush=False)()
        provision_store(self.session, settings)
        self.auth = AuthClient(AuthService(self.session, settings))

    def tearDown(self) -> None:
        self.session.close()

    def test_register_then_login(self) -> None:
        user, token = self.auth.register_user("alice@example.com", "correct-horse", ["admin"])
        self.assertEqual(user.accounts[0].username, "alice_admin")
        result = self.auth.login("alice@example.com", "correct-horse")
        self.assertEqual(result.token, token)
        self.assertEqual(result.userid, user.userid)

    def test_login_without_registration(self) -> None:
        with self.assertRaises(Unauthorized):
            self.auth.login("nobody", "correct-horse")

    def test_wrong_client_secret_fails_registration_step(self) -> None:
        auth = AuthClient(self.auth.service, client_secret="not-the-secret")
        with self.assertRaises(Unauthorized):
            auth.register_user("bob", "correct-horse")
        with self.assertRaises(NoTokenIssued):
            self.auth.login("bob", "correct-horse")

    def test_login_uses_the_configured_client(self) -> None:
        self.auth.service.register_client("dashboard", "dashboard-secret")
        dashboard = AuthClient(self.auth.service, "dashboard", "dashboard-secret")
        _, token = dashboard.register_user("carol", "correct-horse")

        result = dashboard.login("carol", "correct-horse")
        self.assertEqual(result.token, token)
        # The base client was never authenticated for carol.
        with self.assertRaises(NoTokenIssued):
            self.auth.login("carol", "correct-horse")

    def test_login_checks_the_configured_client_secret(self) -> None:
        self.auth.service.register_client("dashboard", "dashboard-secret")
        AuthClient(self.auth.service, "dashboard", "dashboard-secret").register_user(
            "dave", "correct-horse"
        )
        with self.assertRaises(Unauthorized):
            AuthClient(self.auth.service, "dashboard", "wrong-secret").login("dave", "correct-horse")


def _remote(handler) -> RemoteAuthService:
    return RemoteAuthService("http://auth.test", transport=httpx.MockTransport(handler))


class TestRemoteAuthService(unittest.TestCase):
    def test_register_and_authenticate_requests(self) -> None:
        seen: list[tuple[str, dict]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            seen.append((request.url.path, payload))
            if request.url.path == "/api/v1/users":
                return httpx.Response(
                    201,
                    json={
                        "userid": 1,
                        "username": payload["username"],
                        "role": "client",
                        "password": payload["password"],
                        "accounts": [],
                    },
                )
            return httpx.Response(200, json={"token": "tok-abc", "token_type": "bearer"})

        with _remote(handler) as remote:
            user, token = AuthClient(remote).register_user("alice", "correct-horse")
        self.assertEqual(user.userid, 1)
        self.assertEqual(token, "tok-abc")
        self.assertEqual([path for path, _ in seen], ["/api/v1/users", "/api/v1/tokens"])
        self.assertEqual(seen[1][1]["client_name"], "baseID")
        self.assertEqual(seen[1][1]["client_secret"], "clientSecret")

    def test_login_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"userid": 3, "username": "alice", "token": "tok-abc", "role": "client"},
            )

        with _remote(handler) as remote:
            result = AuthClient(remote).login("alice", "correct-horse")
        self.assertEqual(result.token, "tok-abc")

    def test_login_sends_the_configured_client(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={"userid": 3, "username": "alice", "token": "tok-dash", "role": "client"},
            )

        with _remote(handler) as remote:
            AuthClient(remote, "dashboard", "dashboard-secret").login("alice", "correct-horse")
            remote.login("alice", "correct-horse")
        self.assertEqual(seen[0]["client_name"], "dashboard")
        self.assertEqual(seen[0]["client_secret"], "dashboard-secret")
        self.assertNotIn("client_name", seen[1])

    def test_login_error_statuses(self) -> None:
        cases = [
            (401, Unauthorized),
            (404, NoTokenIssued),
            (409, AuthStarrError),
            (503, PersistFailure),
        ]
        for status_code, error_cls in cases:
            with self.subTest(status_code=status_code):

                def handler(request: httpx.Request, status_code: int = status_code) -> httpx.Response:
                    return httpx.Response(status_code, json={"detail": "nope"})

                with _remote(handler) as remote:
                    with self.assertRaises(error_cls) as ctx:
                        remote.login("alice", "correct-horse")
                self.assertIs(type(ctx.exception), error_cls)
                self.assertEqual(ctx.exception.message, "nope")

    def test_register_error_statuses(self) -> None:
        cases = [
            (409, {"detail": "Username 'alice' already exists."}, DuplicateUsername),
            (422, {"detail": "Invalid role name 'a b'."}, InvalidRole),
            (404, {"detail": "Not Found"}, AuthStarrError),
        ]
        for status_code, body, error_cls in cases:
            with self.subTest(status_code=status_code):

                def handler(
                    request: httpx.Request, status_code: int = status_code, body: dict = body
                ) -> httpx.Response:
                    return httpx.Response(status_code, json=body)

                with _remote(handler) as remote:
                    with self.assertRaises(error_cls) as ctx:
                        remote.register_user("alice", "correct-horse", ["a b"])
                self.assertIs(type(ctx.exception), error_cls)

    def test_validation_detail_is_not_a_role_error(self) -> None:
        detail = [
            {
                "type": "string_too_short",
                "loc": ["body", "password"],
                "msg": "String should have at least 8 characters",
            }
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"detail": detail})

        with _remote(handler) as remote:
            with self.assertRaises(InvalidRequest) as ctx:
                remote.register_user("alice", "short")
        self.assertNotIsInstance(ctx.exception, InvalidRole)
        self.assertIn("string_too_short", ctx.exception.message)

    def test_not_found_outside_login_is_not_missing_grant(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": "Not Found"})

        with _remote(handler) as remote:
            with self.assertRaises(AuthStarrError) as ctx:
                remote.authenticate_client("alice", "correct-horse", "baseID", "clientSecret")
        self.assertNotIsInstance(ctx.exception, NoTokenIssued)

    def test_unreachable_service(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _remote(handler) as remote:
            with self.assertRaises(PersistFailure):
                remote.login("alice", "correct-horse")


class TestClientImport(unittest.TestCase):
    def test_client_import_does_not_build_an_engine(self) -> None:
        # Fresh interpreter: this test process has already imported the database module.
        result = subprocess.run(
            [
                sys.executable,
                "-c",
                "import sys, authstarr.client; print('authstarr.core.database' in sys.modules)",
            ],
            cwd=Path(__file__).resolve().parents[1],
            capture_output=True,
            text=True,
            check=True,
        )
        self.assertEqual(result.stdout.strip(), "False")


if __name__ == "__main__":
    unittest.main()
