import logging
import typing
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from jwksauthlib.auth.bearer_token_authenticator import BearerTokenAuthenticator
from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksFetchException
from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)
from jwksauthlib.auth.models.identity_record import IdentityRecord
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["AUTH"])

AUTHENTICATION_FAILED = "Authentication failed"


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """
    Authenticates the bearer token on each request and stores the resulting
    IdentityRecord on request.state.identity.

    A request without a token passes through with identity None unless
    require_authentication is set. A token that fails verification always gets
    a 401 with a generic message; the specific failure is only logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        authenticator: BearerTokenAuthenticator,
        require_authentication: bool = False,
        query_parameter: str | None = "token",
        cookie_name: str | None = "access_token",
        header_name: str | None = "X-Access-Token",
    ):
        super().__init__(app)
        self.authenticator = authenticator
        self.require_authentication = require_authentication
        self.query_parameter = query_parameter
        self.cookie_name = cookie_name
        self.header_name = header_name

    def extract_token(self, request: Request) -> Optional[str]:
        token = self.authenticator.extract_token(
            authorization_header=request.headers.get("authorization")
        )
        if token:
            return token
        if self.query_parameter and request.query_params.get(self.query_parameter):
            return request.query_params[self.query_parameter]
        if self.cookie_name and request.cookies.get(self.cookie_name):
            return request.cookies[self.cookie_name]
        if self.header_name and request.headers.get(self.header_name):
            return request.headers[self.header_name]
        return None

    async def dispatch(
        self,
        request: Request,
        call_next: typing.Callable[[Request], typing.Awaitable[Response]],
    ) -> Response:
        request.state.identity = None
        token = self.extract_token(request)
        if not token:
            if self.require_authentication:
                logger.info(f"No token provided for {request.url.path}")
                return self._unauthorized_response()
            return await call_next(request)

        try:
            identity: IdentityRecord = await self.authenticator.authenticate_async(
                token=token
            )
        except TokenVerificationException as e:
            logger.warning(
                f"Invalid token provided for {request.url.path}: [{e.kind}] {e.message}"
            )
            return self._unauthorized_response()
        except JwksFetchException as e:
            logger.error(
                f"Could not obtain JWKS to verify token for {request.url.path}: {e.message}"
            )
            return self._unauthorized_response()

        request.state.identity = identity
        return await call_next(request)

    @staticmethod
    def _unauthorized_response() -> Response:
        return JSONResponse(
            status_code=401,
            content={"detail": AUTHENTICATION_FAILED},
            headers={"WWW-Authenticate": "Bearer"},
        )
