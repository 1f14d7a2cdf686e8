"""Pydantic schemas for the OAuth module."""
from pydantic import BaseModel


class OAuthSessionData(BaseModel):
    """PKCE verifier and CSRF state kept in the session between login and callback."""
    pkce_verifier_secret: str | None = None
    csrf_token_secret: str | None = None


class TokenResponse(BaseModel):
    """Token endpoint response. Only the access token is required."""
    access_token: str
    refresh_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None
