"""OAuth2 client for the Supabase authorization server."""
import httpx
from urllib.parse import urlencode
from pydantic import ValidationError

from project_migrator.core.config import settings
from project_migrator.core.exceptions import MigratorError
from project_migrator.core.logging import get_logger
from .pkce import CODE_CHALLENGE_METHOD
from .schemas import TokenResponse

logger = get_logger(__name__)


class OAuthNotConfiguredError(MigratorError):
    """Raised when the OAuth app credentials are missing from the environment."""

    status_code = 503

    def __init__(self):
        super().__init__(
            "OAuth is not configured. Set SUPA_CONNECT_CLIENT_ID, "
            "SUPA_CONNECT_CLIENT_SECRET and REDIRECT_URL"
        )


class OAuthExchangeError(MigratorError):
    """Raised when the authorization code cannot be exchanged for a token."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class OAuthClient:
    """
    Authorization code + PKCE flow against the Supabase OAuth endpoints.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize OAuth client from settings."""
        self.client_id = settings.SUPA_CONNECT_CLIENT_ID
        self.client_secret = settings.SUPA_CONNECT_CLIENT_SECRET
        self.redirect_url = settings.REDIRECT_URL
        self.authorize_url = settings.OAUTH_AUTHORIZE_URL
        self.token_url = settings.OAUTH_TOKEN_URL
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_url)

    def _check_configured(self):
        if not self.is_configured():
            raise OAuthNotConfiguredError()

    def build_authorize_url(self, state: str, code_challenge: str) -> str:
        """URL the browser is sent to for the user to grant access."""
        self._check_configured()
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": CODE_CHALLENGE_METHOD,
        })
        return f"{self.authorize_url}?{query}"

    async def exchange_code(self, code: str, code_verifier: str) -> TokenResponse:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Code received on the redirect URI
            code_verifier: PKCE verifier generated at login

        Returns:
            TokenResponse with the access token

        Raises:
            OAuthExchangeError: on transport failure, non-2xx status or a
                response without an access token
        """
        self._check_configured()
        form = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "code_verifier": code_verifier,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_url,
        }

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(
                    self.token_url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error("Token exchange request failed", error=str(e))
            raise OAuthExchangeError(f"Failed to exchange token: {e}") from e

        if not response.is_success:
            logger.error(
                "Token exchange rejected",
                status_code=response.status_code,
                body=response.text,
            )
            raise OAuthExchangeError(
                f"Failed to exchange token: HTTP {response.status_code} - {response.text}",
                upstream_status=response.status_code,
                body=response.text,
            )

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Token response could not be parsed", error=str(e))
            raise OAuthExchangeError(f"Failed to parse token response: {e}") from e


def get_oauth_client() -> OAuthClient:
    """FastAPI dependency; overridden in tests."""
    return OAuthClient()
