"""
HTTP Tests for the Reset Service
================================
Endpoints, status codes and health probes via FastAPI's TestClient.
"""

import re
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from otpreset_core.app import create_app, create_mailer
from otpreset_core.exceptions import StoreUnavailableError, UpstreamServiceError
from otpreset_core.otp.models import OTPConfig
from otpreset_core.reset.mailer import ConsoleMailer, SMTPMailer
from otpreset_core.store.factory import StoreConfig
from otpreset_core.store.in_memory import InMemoryStore

from conftest import FAST_HASH, RecordingMailer


@pytest.fixture
def directory():
    directory = AsyncMock()
    directory.get_email.return_value = "a@x.com"
    return directory


@pytest.fixture
def passwords():
    return AsyncMock()


@pytest.fixture
def api_mailer():
    return RecordingMailer()


@pytest.fixture
def api_store():
    return InMemoryStore()


@pytest.fixture
def client(api_store, directory, api_mailer, passwords):
    app = create_app(
        otp_config=OTPConfig(**FAST_HASH),
        store=api_store,
        directory=directory,
        mailer=api_mailer,
        passwords=passwords,
        configure_logging=False,
    )
    with TestClient(app) as client:
        yield client


def sent_code(mailer: RecordingMailer) -> str:
    return re.search(r"code is (\d+)", mailer.sent[0][2]).group(1)


class TestCreateApp:
    """Tests for application wiring."""

    def test_injected_empty_store_is_used(self, api_store, directory, api_mailer, passwords):
        """An empty store is still the store the app runs on."""
        app = create_app(
            otp_config=OTPConfig(**FAST_HASH),
            store=api_store,
            directory=directory,
            mailer=api_mailer,
            passwords=passwords,
            configure_logging=False,
        )

        assert len(api_store) == 0
        assert app.state.flow.manager.store is api_store
        assert app.state.flow.mailer is api_mailer


class TestStartEndpoint:
    """Tests for POST /auth/otp/start."""

    def test_start(self, client, api_mailer):
        """Issues a code and reports the timing policy."""
        response = client.post("/auth/otp/start", json={"userId": "u1"})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["ttlMs"] == 600_000
        assert body["resendCooldownMs"] == 30_000
        assert body["maxResends"] == 5
        assert 0 < body["expiresInMs"] <= 600_000
        assert len(api_mailer.sent) == 1

    def test_start_cooldown(self, client):
        """An immediate repeat is throttled with retryInMs."""
        client.post("/auth/otp/start", json={"userId": "u1"})

        response = client.post("/auth/otp/start", json={"userId": "u1"})

        assert response.status_code == 429
        body = response.json()
        assert body["ok"] is False
        assert body["reason"] == "cooldown"
        assert 0 < body["retryInMs"] <= 30_000

    def test_start_requires_user_id(self, client):
        """Empty bodies are rejected with a 400 in the usual shape."""
        response = client.post("/auth/otp/start", json={})

        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error"] == "invalid_request"
        assert client.post("/auth/otp/start", json={"userId": ""}).status_code == 400

    def test_start_store_outage(self, client, api_store, monkeypatch):
        """Store failures become a friendly 503."""
        monkeypatch.setattr(api_store, "get", AsyncMock(side_effect=StoreUnavailableError("down", "get")))

        response = client.post("/auth/otp/start", json={"userId": "u1"})

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["code"] == "OTP_STORE_UNAVAILABLE"
        assert "down" not in detail["message"]


class TestVerifyEndpoint:
    """Tests for POST /auth/otp/verify."""

    def test_verify_success(self, client, api_mailer, passwords):
        """Right code resets the password."""
        client.post("/auth/otp/start", json={"userId": "u1"})

        response = client.post("/auth/otp/verify", json={
            "userId": "u1",
            "otp": sent_code(api_mailer),
            "newPassword": "new-password-1",
        })

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        passwords.set_password.assert_awaited_once_with("u1", "new-password-1")

    def test_verify_without_code_issued(self, client):
        """No live entry is reported as expired."""
        response = client.post("/auth/otp/verify", json={
            "userId": "u1", "otp": "123456", "newPassword": "new-password-1",
        })

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "expired"}

    def test_verify_wrong_code(self, client, api_mailer):
        """Wrong code is a 400 invalid_code."""
        client.post("/auth/otp/start", json={"userId": "u1"})
        wrong = "000000" if sent_code(api_mailer) != "000000" else "111111"

        response = client.post("/auth/otp/verify", json={
            "userId": "u1", "otp": wrong, "newPassword": "new-password-1",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_code"

    def test_verify_too_many_attempts(self, client, api_mailer):
        """The sixth attempt is a 429 and burns the code."""
        client.post("/auth/otp/start", json={"userId": "u1"})
        code = sent_code(api_mailer)
        wrong = "000000" if code != "000000" else "111111"
        payload = {"userId": "u1", "otp": wrong, "newPassword": "new-password-1"}

        for _ in range(5):
            assert client.post("/auth/otp/verify", json=payload).status_code == 400

        response = client.post("/auth/otp/verify", json={**payload, "otp": code})

        assert response.status_code == 429
        assert response.json()["error"] == "too_many_attempts"

    @pytest.mark.parametrize("payload", [
        {"userId": "u1", "otp": "12345", "newPassword": "new-password-1"},
        {"userId": "u1", "otp": "12a456", "newPassword": "new-password-1"},
        {"userId": "u1", "otp": "123456", "newPassword": "short"},
        {"otp": "123456", "newPassword": "new-password-1"},
    ])
    def test_verify_validation(self, client, payload):
        """Malformed requests never reach the manager."""
        response = client.post("/auth/otp/verify", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_validation_never_echoes_password(self, client):
        """Rejected passwords do not come back in the response."""
        response = client.post("/auth/otp/verify", json={
            "userId": "u1", "otp": "123456", "newPassword": "s3cr3t",
        })

        assert response.status_code == 400
        assert "s3cr3t" not in response.text

    def test_password_update_failure(self, client, api_mailer, passwords):
        """Upstream failure is a 502 and the code stays usable."""
        client.post("/auth/otp/start", json={"userId": "u1"})
        code = sent_code(api_mailer)
        passwords.set_password.side_effect = UpstreamServiceError("boom", service="user-admin", status_code=500)
        payload = {"userId": "u1", "otp": code, "newPassword": "new-password-1"}

        response = client.post("/auth/otp/verify", json=payload)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "PASSWORD_UPDATE_FAILED"
        assert "boom" not in response.text

        passwords.set_password.side_effect = None
        assert client.post("/auth/otp/verify", json=payload).status_code == 200


class TestHealth:
    """Tests for the health probes."""

    def test_health(self, client):
        """Reports the store component."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["otp_store"]["status"] == "connected"
        assert body["components"]["otp_store"]["backend"] == "memory"

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_ready_when_store_down(self, client, api_store, monkeypatch):
        """Readiness fails when the store cannot be reached."""
        monkeypatch.setattr(api_store, "ping", AsyncMock(side_effect=StoreUnavailableError("down", "ping")))

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert client.get("/health").json()["status"] == "unhealthy"


class TestCreateMailer:
    """Tests for mailer selection."""

    def test_defaults_to_smtp(self, monkeypatch):
        monkeypatch.delenv("EMAIL_BACKEND", raising=False)

        assert isinstance(create_mailer(StoreConfig(backend="redis")), SMTPMailer)

    def test_console_outside_production(self, monkeypatch):
        """Console mail is a development convenience."""
        monkeypatch.setenv("EMAIL_BACKEND", "console")

        assert isinstance(create_mailer(StoreConfig(environment="development")), ConsoleMailer)

    def test_console_refused_in_production(self, monkeypatch):
        """Codes must never end up only in production logs."""
        monkeypatch.setenv("EMAIL_BACKEND", "console")

        with pytest.raises(ValueError):
            create_mailer(StoreConfig(environment="production"))
