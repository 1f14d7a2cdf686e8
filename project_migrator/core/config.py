"""Application configuration."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    PROJECT_NAME: str = "Project Migrator API"
    VERSION: str = "0.3.0"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 10000

    # CORS - restrict in production; wildcard only safe for local dev
    CORS_ORIGINS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==========================================================================
    # Supabase OAuth application
    # ==========================================================================

    # Credentials of the OAuth app registered in the Supabase dashboard
    SUPA_CONNECT_CLIENT_ID: str = ""
    SUPA_CONNECT_CLIENT_SECRET: str = ""

    # Must match the redirect URI registered for the OAuth app
    REDIRECT_URL: str = ""

    OAUTH_AUTHORIZE_URL: str = "https://api.supabase.com/v1/oauth/authorize"
    OAUTH_TOKEN_URL: str = "https://api.supabase.com/v1/oauth/token"

    # Where the callback page sends the browser after a successful login
    POST_LOGIN_REDIRECT: str = "/migrate"

    # ==========================================================================
    # Sessions (signed cookie)
    # ==========================================================================

    SESSION_SECRET_KEY: str = "change-me-in-production"
    SESSION_COOKIE_NAME: str = "migrator_session"
    SESSION_HTTPS_ONLY: bool = False
    SESSION_MAX_AGE: int = 60 * 60 * 8

    # ==========================================================================
    # Supabase Management API
    # ==========================================================================

    MANAGEMENT_API_URL: str = "https://api.supabase.com/v1"
    MANAGEMENT_API_TIMEOUT: float = 30.0

    # Per-process cache of fetched source snapshots
    SNAPSHOT_CACHE_TTL: int = 15 * 60
    SNAPSHOT_CACHE_MAX_BYTES: int = 2 * 1024 * 1024
    SNAPSHOT_CACHE_MAX_ENTRIES: int = 200

    @property
    def oauth_configured(self) -> bool:
        """Whether the OAuth app credentials are all present."""
        return bool(
            self.SUPA_CONNECT_CLIENT_ID
            and self.SUPA_CONNECT_CLIENT_SECRET
            and self.REDIRECT_URL
        )

    @property
    def cors_allows_credentials(self) -> bool:
        """Only allow credentials if CORS is not wildcard (security requirement)."""
        return "*" not in self.CORS_ORIGINS

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
