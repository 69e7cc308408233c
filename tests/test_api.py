# =============================================================================
# tests/test_api.py - HTTP Endpoint Tests
# =============================================================================
# Exercises the FastAPI app through TestClient:
# - 401 / 403 / 400 / 201 / 500 on POST /api/v1/clients
# - Catalog and auth routes
#
# Authentication is replaced with a dependency override; the role still
# comes from SupabaseClient.fetch_user_profile, which is patched per test.
#
# Run with: pytest tests/test_api.py -v
# =============================================================================

from contextlib import ExitStack
from unittest.mock import AsyncMock, patch
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.main import app
from lib.supabase_client import SupabaseClient

USER = AuthUser(id=UUID("7b1c1f8e-2c39-4b8e-9f53-0d3c9c1f2a11"), email="mod@example.com")
CLIENTS_URL = "/api/v1/clients"


@pytest.fixture
def client():
    """TestClient with no auth override (raw header handling)."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class RoleSwitcher:
    """
    Signs USER in and stubs the profile lookup with a chosen role.

    Each switch stacks another patch on fetch_user_profile; close() unwinds
    them through an ExitStack so the real method is back afterwards.
    """

    def __init__(self, client: TestClient):
        self.client = client
        self._stack = ExitStack()

    def __call__(self, role: str | None) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: USER
        profile = {"id": str(USER.id), "email": USER.email, "role": role} if role else None
        self._stack.enter_context(
            patch.object(SupabaseClient, "fetch_user_profile", return_value=profile)
        )
        return self.client

    def close(self) -> None:
        self._stack.close()


@pytest.fixture
def as_role(client):
    """Sign the test user in with the given dashboard role."""
    switcher = RoleSwitcher(client)
    yield switcher
    switcher.close()


def _form(fields: dict) -> dict:
    """Rename list fields to the bracketed names the dashboard sends."""
    data = dict(fields)
    data["requested_services[]"] = data.pop("requested_services")
    return data


# =============================================================================
# Auth gates
# =============================================================================

class TestAuthGates:

    def test_missing_token_is_401(self, client, intake_fields, backend):
        response = client.post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_REQUIRED"
        assert backend.insert_calls == []

    def test_garbage_token_is_401(self, client, intake_fields):
        response = client.post(
            CLIENTS_URL,
            data=_form(intake_fields),
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    def test_empty_key_token_is_401_by_default(self, client, intake_fields, backend, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", "")
        forged = jwt.encode({"sub": str(USER.id), "aud": "authenticated"}, "", algorithm="HS256")

        response = client.post(
            CLIENTS_URL,
            data=_form(intake_fields),
            headers={"Authorization": f"Bearer {forged}"},
        )

        assert response.status_code == 401
        assert backend.insert_calls == []

    def test_designer_is_403(self, as_role, intake_fields, backend):
        response = as_role("designer").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "Insufficient permissions"
        assert body["details"]["role"] == "designer"
        assert backend.insert_calls == []

    def test_missing_profile_is_403(self, as_role, intake_fields):
        response = as_role(None).post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 403

    @pytest.mark.parametrize("role", ["moderator", "admin"])
    def test_intake_roles_allowed(self, as_role, intake_fields, backend, role):
        response = as_role(role).post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 201

    def test_role_switches_unwind_to_real_lookup(self, client):
        original = SupabaseClient.__dict__["fetch_user_profile"]
        switcher = RoleSwitcher(client)

        switcher("designer")
        switcher("admin")
        assert SupabaseClient.fetch_user_profile(USER.id)["role"] == "admin"
        switcher.close()

        assert SupabaseClient.__dict__["fetch_user_profile"] is original


# =============================================================================
# POST /clients
# =============================================================================

class TestCreateClientEndpoint:

    def test_worked_example_returns_201_with_id(self, as_role, intake_fields, backend):
        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 201
        client_id = response.json()["id"]
        UUID(client_id)
        assert [c["id"] for c in backend.rows("clients")] == [client_id]
        assert len(backend.rows("client_services")) == 1
        assert backend.rows("payments") == []
        assert backend.rows("clients")[0]["inserted_by"] == str(USER.id)

    def test_files_and_payment_multipart(self, as_role, intake_fields, backend):
        intake_fields.update({"total_amount": "150", "deposit_amount": "50"})
        files = [
            ("files[]", ("cv.pdf", b"%PDF-1.4", "application/pdf")),
            ("files[]", ("photo.jpg", b"\xff\xd8\xff", "image/jpeg")),
            ("payment_screenshot", ("receipt.png", b"\x89PNG", "image/png")),
        ]

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields), files=files)

        assert response.status_code == 201
        file_rows = backend.rows("client_files")
        assert [r["label"] for r in file_rows] == ["cv.pdf", "photo.jpg"]
        assert [r["mime_type"] for r in file_rows] == ["application/pdf", "image/jpeg"]
        (payment,) = backend.rows("payments")
        assert payment["total_amount"] == 150
        assert payment["payment_screenshot"].endswith("-receipt.png")

    def test_validation_errors_are_400_with_fields(self, as_role, intake_fields, backend):
        intake_fields.update({"email": "nope", "phone_number": "123"})

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = {e["field"] for e in body["details"]["errors"]}
        assert fields == {"email", "phone_number"}
        assert backend.insert_calls == []

    def test_infinite_total_is_400(self, as_role, intake_fields, backend):
        intake_fields["total_amount"] = "inf"

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["details"]["errors"]]
        assert fields == ["total_amount"]
        assert backend.insert_calls == []

    def test_missing_services_is_400(self, as_role, intake_fields, backend):
        data = _form(intake_fields)
        del data["requested_services[]"]

        response = as_role("moderator").post(CLIENTS_URL, data=data)

        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["details"]["errors"]]
        assert "requested_services" in fields

    def test_six_files_is_400_before_any_write(self, as_role, intake_fields, backend):
        files = [("files[]", (f"doc{i}.pdf", b"data", "application/pdf")) for i in range(6)]

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields), files=files)

        assert response.status_code == 400
        assert response.json()["code"] == "TOO_MANY_FILES"
        assert backend.insert_calls == []
        assert backend.blobs == {}

    def test_oversized_file_is_400(self, as_role, intake_fields, backend):
        big = b"x" * (10 * 1024 * 1024 + 1)
        files = [("files[]", ("big.pdf", big, "application/pdf"))]

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields), files=files)

        assert response.status_code == 400
        assert response.json()["code"] == "FILE_TOO_LARGE"
        assert backend.upload_calls == 0

    def test_limits_checked_before_reading_parts(self, as_role, intake_fields, backend):
        files = [("files[]", (f"doc{i}.pdf", b"data", "application/pdf")) for i in range(6)]
        files.append(("files[]", ("big.pdf", b"x" * (10 * 1024 * 1024 + 1), "application/pdf")))

        with patch("app.routers.clients._read_upload", new_callable=AsyncMock) as read_upload:
            too_many = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields), files=files)
            too_big = as_role("moderator").post(
                CLIENTS_URL, data=_form(intake_fields), files=files[-1:]
            )

        assert too_many.json()["code"] == "TOO_MANY_FILES"
        assert too_big.json()["code"] == "FILE_TOO_LARGE"
        read_upload.assert_not_called()

    def test_oversized_screenshot_ignored_without_payment(self, as_role, intake_fields, backend):
        big = b"x" * (10 * 1024 * 1024 + 1)
        files = [("payment_screenshot", ("receipt.png", big, "image/png"))]

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields), files=files)

        assert response.status_code == 201
        assert backend.upload_calls == 0

    def test_upstream_failure_is_500_naming_step(self, as_role, intake_fields, backend):
        backend.fail_insert.add("client_services")

        response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "UPSTREAM_WRITE_FAILED"
        assert body["error"].startswith("Failed to link services")
        assert body["details"]["step"] == "link_services"
        assert backend.rows("clients") == []

    def test_unexpected_error_is_generic_500(self, as_role, intake_fields):
        with patch(
            "app.routers.clients.ClientIntakeService.create_client",
            side_effect=RuntimeError("kaboom"),
        ):
            response = as_role("moderator").post(CLIENTS_URL, data=_form(intake_fields))

        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"}


# =============================================================================
# Catalog & auth routes
# =============================================================================

class TestCatalog:

    def test_services_for_any_role(self, as_role):
        services = [{"id": "svc-1", "name": "ATS CV", "base_price": 300}]
        with patch.object(SupabaseClient, "fetch_active_services", return_value=services):
            response = as_role("designer").get("/api/v1/services")

        assert response.status_code == 200
        assert response.json() == {"services": services}

    def test_accounts_require_intake_role(self, as_role):
        accounts = [{"id": "acc-1", "provider": "Vodafone Cash", "account_number": "01012345678"}]
        with patch.object(SupabaseClient, "fetch_active_accounts", return_value=accounts):
            denied = as_role("designer").get("/api/v1/accounts")
            allowed = as_role("admin").get("/api/v1/accounts")

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["accounts"][0]["provider"] == "Vodafone Cash"


class TestAuthRoutes:

    @pytest.mark.parametrize("role, route", [
        ("moderator", "/clients/new"),
        ("designer", "/tasks"),
        ("admin", "/admin"),
    ])
    def test_me_includes_landing_route(self, as_role, role, route):
        response = as_role(role).get("/api/v1/auth/me")

        assert response.status_code == 200
        body = response.json()
        assert body["role"] == role
        assert body["landing_route"] == route

    def test_landing_without_profile_defaults_to_tasks(self, as_role):
        response = as_role(None).get("/api/v1/auth/landing")

        assert response.json() == {"role": None, "route": "/tasks"}

    def test_me_requires_token(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_verify_echoes_token_user(self, client):
        token = jwt.encode(
            {"sub": str(USER.id), "email": USER.email, "aud": "authenticated"},
            settings.SUPABASE_JWT_SECRET,
            algorithm="HS256",
        )

        with patch.object(SupabaseClient, "fetch_user_profile") as lookup:
            response = client.get("/api/v1/auth/verify", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"valid": True, "user_id": str(USER.id), "email": USER.email}
        lookup.assert_not_called()

    def test_verify_rejects_bad_token(self, client):
        response = client.get("/api/v1/auth/verify", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestHealth:

    def test_liveness(self, client):
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"
