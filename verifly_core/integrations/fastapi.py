"""
FastAPI Integration
===================
Credential guard dependency and error-to-status mapping.

Usage:
    from fastapi import Depends, FastAPI
    from verifly_core.integrations.fastapi import ApiCredentialGuard, install_exception_handlers

    app = FastAPI()
    install_exception_handlers(app)
    guard = ApiCredentialGuard(core.authenticator)

    @app.post("/verification/generate")
    async def generate(body: dict, application=Depends(guard)):
        envelope = await core.engine.generate(application.id, body["data"])
        return envelope.to_api()
"""

from typing import Dict

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from ..auth import ApiAuthenticator, RequestContext
from ..directory import ResolvedApplication
from ..errors import AccessDenied, ApplicationInactive, ErrorKind, VeriflyError
from ..responses import error_envelope

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "X-App-Auth-Key"
API_SECRET_HEADER = "X-App-Auth-Secret"

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.AUTH_FAILURE: 401,
    ErrorKind.INTEGRITY_FAULT: 500,
    ErrorKind.INTERNAL: 500,
}


def status_for(exc: VeriflyError) -> int:
    """HTTP status for a failure. Authorization failures are 403, not 401."""
    if isinstance(exc, (AccessDenied, ApplicationInactive)):
        return 403
    return STATUS_BY_KIND.get(exc.kind, 500)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class ApiCredentialGuard:
    """
    FastAPI dependency that authenticates the calling application.

    The resolved application is returned and also stored on
    ``request.state.application``.
    """

    def __init__(
        self,
        authenticator: ApiAuthenticator,
        key_header: str = API_KEY_HEADER,
        secret_header: str = API_SECRET_HEADER,
    ):
        self.authenticator = authenticator
        self.key_header = key_header
        self.secret_header = secret_header

    async def __call__(self, request: Request) -> ResolvedApplication:
        context = RequestContext(
            method=request.method,
            path=request.url.path,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        application = await self.authenticator.authenticate(
            request.headers.get(self.key_header),
            request.headers.get(self.secret_header),
            context,
        )
        request.state.application = application
        return application


async def verifly_error_handler(request: Request, exc: VeriflyError) -> JSONResponse:
    """Render a VeriflyError as an error envelope."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed with internal error",
            path=request.url.path,
            code=exc.code,
        )
    return JSONResponse(status_code=status_code, content=error_envelope(exc).to_api())


def install_exception_handlers(app: FastAPI) -> None:
    """Register the VeriflyError handler on an app."""
    app.add_exception_handler(VeriflyError, verifly_error_handler)
