"""Bearer token authentication against Supabase.

Route handlers depend on ``get_current_user``; the authenticator behind it is
chosen once at startup. In test mode every request is treated as the
configured test user and no token is checked.
"""

import logging
from typing import Protocol

from fastapi import Request
from pydantic import BaseModel
from supabase import AuthApiError, Client, create_client

from ..config import ClaritySettings, SupabaseConfig
from ..errors import AuthenticationError
from .errors import unauthorized

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
TEST_USER_EMAIL = "test@example.com"


class AuthenticatedUser(BaseModel):
    """The caller identity attached to a request."""

    id: str
    email: str | None = None


class Authenticator(Protocol):
    """Turns an ``Authorization`` header into a user."""

    def authenticate(self, authorization: str | None) -> AuthenticatedUser:
        """Validate the header; raises ``AuthenticationError`` on failure."""
        ...


class SupabaseAuthenticator:
    """Validates bearer tokens with the Supabase auth API."""

    def __init__(self, config: SupabaseConfig, client: Client | None = None):
        self.client: Client = client or create_client(config.url, config.anon_key)

    def authenticate(self, authorization: str | None) -> AuthenticatedUser:
        """Validate a bearer token.

        Args:
            authorization: Raw ``Authorization`` header value

        Returns:
            AuthenticatedUser: The user the token belongs to

        Raises:
            AuthenticationError: If the header is missing/malformed or the token
                is rejected
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationError("Missing or invalid authorization header")

        token = authorization[len(BEARER_PREFIX) :].strip()
        if not token:
            raise AuthenticationError("Missing or invalid authorization header")

        try:
            response = self.client.auth.get_user(token)
        except AuthApiError as e:
            logger.warning(f"Supabase rejected bearer token: {e}")
            raise AuthenticationError("Invalid token") from e
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            raise AuthenticationError("Authentication failed") from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Invalid token")
        return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))


class TestModeAuthenticator:
    """Accepts every request as one fixed user."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, user_id: str, email: str = TEST_USER_EMAIL):
        self.user = AuthenticatedUser(id=user_id, email=email)

    def authenticate(self, authorization: str | None) -> AuthenticatedUser:
        """Return the fixed test user regardless of the header."""
        return self.user


def build_authenticator(settings: ClaritySettings) -> Authenticator:
    """Pick the authenticator for the configured mode."""
    if settings.server.test_mode:
        user_id = settings.server.test_user_id or "test-user"
        logger.warning(f"TEST_MODE enabled: all requests authenticate as {user_id}")
        return TestModeAuthenticator(user_id)
    return SupabaseAuthenticator(settings.supabase)


def get_current_user(request: Request) -> AuthenticatedUser:
    """FastAPI dependency resolving the authenticated caller.

    Raises:
        ApiError: 401 when authentication fails
    """
    authenticator: Authenticator = request.app.state.authenticator
    try:
        return authenticator.authenticate(request.headers.get("Authorization"))
    except AuthenticationError as e:
        raise unauthorized(str(e)) from e
