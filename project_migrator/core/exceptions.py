"""Base exception types shared across modules."""


class MigratorError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticatedError(MigratorError):
    """Raised when the session carries no Supabase access token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
