"""Session accessors for the signed-cookie session set up in main.py."""
import uuid

from fastapi import Request

from project_migrator.core.exceptions import NotAuthenticatedError

ACCESS_TOKEN_KEY = "supabase_access_token"
SESSION_ID_KEY = "session_id"


def get_access_token(request: Request) -> str | None:
    """Return the Supabase access token stored by the OAuth callback, if any."""
    return request.session.get(ACCESS_TOKEN_KEY)


def set_access_token(request: Request, token: str) -> None:
    request.session[ACCESS_TOKEN_KEY] = token


def get_session_id(request: Request) -> str:
    """Return a stable identifier for this browser session, creating one on first use."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        session_id = str(uuid.uuid4())
        request.session[SESSION_ID_KEY] = session_id
    return session_id


async def require_access_token(request: Request) -> str:
    """FastAPI dependency. Raises NotAuthenticatedError (401) before any remote call."""
    token = get_access_token(request)
    if not token:
        raise NotAuthenticatedError()
    return token
