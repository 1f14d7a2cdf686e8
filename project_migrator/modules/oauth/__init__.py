"""OAuth module: sign in with a Supabase account (authorization code + PKCE)."""
from .client import OAuthClient, OAuthExchangeError
from .routes import router

__all__ = [
    "OAuthClient",
    "OAuthExchangeError",
    "router",
]
