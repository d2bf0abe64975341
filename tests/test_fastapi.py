"""
FastAPI Integration Tests
=========================
Credential guard dependency and error envelopes over HTTP.
"""

import httpx
import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, Request

from verifly_core.errors import (
    GENERIC_INTERNAL_MESSAGE,
    AccessDenied,
    AlreadyVerified,
    ApplicationInactive,
    ConcurrentUpdate,
    DecryptionFailure,
    InternalError,
    InvalidCredentials,
    InvalidToken,
    RequestNotFound,
    ServiceNotFound,
)
from verifly_core.integrations.fastapi import (
    API_KEY_HEADER,
    API_SECRET_HEADER,
    ApiCredentialGuard,
    install_exception_handlers,
    status_for,
)


def build_app(core) -> FastAPI:
    app = FastAPI()
    install_exception_handlers(app)
    guard = ApiCredentialGuard(core.authenticator)

    @app.get("/whoami")
    async def whoami(request: Request, application=Depends(guard)):
        return {"id": application.id, "stateId": request.state.application.id}

    @app.post("/verification/generate")
    async def generate(body: dict, application=Depends(guard)):
        envelope = await core.engine.generate(application.id, body["data"])
        return envelope.to_api()

    return app


@pytest_asyncio.fixture
async def client(core):
    transport = httpx.ASGITransport(app=build_app(core))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def headers(registered):
    return {
        API_KEY_HEADER: registered["applicationKey"],
        API_SECRET_HEADER: registered["applicationKeySecret"],
    }


class TestStatusMapping:
    """Tests for error-to-status mapping."""

    @pytest.mark.parametrize("exc,status", [
        (RequestNotFound("r1"), 404),
        (ServiceNotFound("authMO"), 404),
        (AlreadyVerified("r1"), 409),
        (ConcurrentUpdate("r1"), 409),
        (InvalidToken("r1", attempts_remaining=1), 400),
        (InvalidCredentials(), 401),
        (ApplicationInactive("a1"), 403),
        (AccessDenied(), 403),
        (DecryptionFailure(), 500),
        (InternalError(), 500),
    ])
    def test_status_for(self, exc, status):
        assert status_for(exc) == status


class TestCredentialGuard:
    """Tests for the guard dependency."""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, client, headers, app_id):
        response = await client.get("/whoami", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"id": app_id, "stateId": app_id}

    @pytest.mark.asyncio
    async def test_missing_headers(self, client, registered):
        response = await client.get("/whoami")

        assert response.status_code == 401
        body = response.json()
        assert body["data"] == []
        assert body["responseMessages"][0]["type"] == "E"
        assert body["responseMessages"][0]["code"] == "MISSING_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_wrong_secret(self, client, headers):
        headers[API_SECRET_HEADER] = "wrong"

        response = await client.get("/whoami", headers=headers)

        assert response.status_code == 401
        assert response.json()["responseMessages"][0]["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_inactive_application(self, client, core, headers, app_id):
        await core.onboarding.deactivate(app_id)

        response = await client.get("/whoami", headers=headers)

        assert response.status_code == 403
        assert response.json()["responseMessages"][0]["code"] == "APPLICATION_INACTIVE"

    @pytest.mark.asyncio
    async def test_integrity_fault_is_generic(self, client, store, headers, app_id):
        stored = await store.applications.find_one(id=app_id)
        stored.api_secret = "not-a-fernet-token"
        await store.applications.save(stored)

        response = await client.get("/whoami", headers=headers)

        assert response.status_code == 500
        message = response.json()["responseMessages"][0]
        assert message["text"] == GENERIC_INTERNAL_MESSAGE
        assert message["code"] == "INTERNAL_ERROR"


class TestEngineOverHttp:
    """Lifecycle operations behind the guard."""

    @pytest.mark.asyncio
    async def test_generate(self, client, headers):
        response = await client.post(
            "/verification/generate",
            headers=headers,
            json={"data": [{"serviceType": "authMO", "userIdentity": "+15551234567"}]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["responseMessages"][0]["type"] == "S"
        assert len(body["data"][0]["token"]) == 6

    @pytest.mark.asyncio
    async def test_business_error_is_client_safe(self, client, headers):
        response = await client.post(
            "/verification/generate",
            headers=headers,
            json={"data": [{"serviceType": "verifyMO", "userIdentity": "+15551234567"}]},
        )

        assert response.status_code == 404
        assert response.json()["responseMessages"][0]["code"] == "SERVICE_NOT_FOUND"
