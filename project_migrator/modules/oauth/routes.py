"""OAuth login routes for connecting a Supabase account."""
from html import escape

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from project_migrator.core.config import settings
from project_migrator.core.logging import get_logger
from project_migrator.core.session import get_access_token, get_session_id, set_access_token
from project_migrator.modules.migrate.client import ManagementAPIClient, get_management_client
from project_migrator.modules.migrate.routes import build_project_list
from project_migrator.modules.migrate.schemas import ProjectListResponse
from project_migrator.modules.migrate.services import snapshot_cache
from .client import OAuthClient, OAuthExchangeError, get_oauth_client
from .pkce import generate_csrf_token, generate_pkce_pair
from .schemas import OAuthSessionData

logger = get_logger(__name__)

router = APIRouter(prefix="/connect-supabase", tags=["oauth"])

OAUTH_DATA_KEY = "oauth_data"
# Flat keys written by earlier releases; still honoured by the callback
LEGACY_VERIFIER_KEY = "pkce_verifier_secret"
LEGACY_CSRF_KEY = "csrf_token_secret"

LOGIN_PATH = "/connect-supabase/login"
PROJECTS_PATH = "/connect-supabase/projects"


def _error_page(message: str, status_code: int = 400, login_link: bool = True) -> HTMLResponse:
    body = f"<h1>Error</h1><p>{escape(message)} Please try logging in again.</p>"
    if login_link:
        body += f'<p><a href="{LOGIN_PATH}">Back to Login</a></p>'
    return HTMLResponse(body, status_code=status_code)


def _redirect_page(target: str) -> HTMLResponse:
    target = escape(target, quote=True)
    return HTMLResponse(f"""<!DOCTYPE html>
<html>
<head>
    <meta http-equiv="refresh" content="0;url={target}">
    <title>Redirecting...</title>
</head>
<body>
    <p>Authentication successful! Redirecting to your projects...</p>
    <p>If you are not redirected, <a href="{target}">click here</a>.</p>
</body>
</html>
""")


def _pop_oauth_data(request: Request) -> OAuthSessionData | None:
    """Take the login state out of the session so a callback URL works only once."""
    data = request.session.pop(OAUTH_DATA_KEY, None)
    if data:
        return OAuthSessionData.model_validate(data)

    verifier = request.session.pop(LEGACY_VERIFIER_KEY, None)
    csrf_token = request.session.pop(LEGACY_CSRF_KEY, None)
    if verifier and csrf_token:
        logger.info("Found legacy PKCE and CSRF session keys")
        return OAuthSessionData(pkce_verifier_secret=verifier, csrf_token_secret=csrf_token)
    return None


@router.get("/login")
async def login(request: Request, oauth_client: OAuthClient = Depends(get_oauth_client)):
    """Start the authorization code flow, or skip it if already signed in."""
    if get_access_token(request):
        logger.info("Existing access token found in session, skipping OAuth flow")
        return RedirectResponse(PROJECTS_PATH, status_code=303)

    if not oauth_client.is_configured():
        logger.error("Login attempted but OAuth app credentials are not configured")
        return _error_page("OAuth is not configured on this server.", status_code=503, login_link=False)

    verifier, challenge = generate_pkce_pair()
    csrf_token = generate_csrf_token()

    request.session[OAUTH_DATA_KEY] = OAuthSessionData(
        pkce_verifier_secret=verifier,
        csrf_token_secret=csrf_token,
    ).model_dump()

    logger.info("OAuth state stored in session, redirecting to Supabase", session_id=get_session_id(request))
    return RedirectResponse(
        oauth_client.build_authorize_url(state=csrf_token, code_challenge=challenge),
        status_code=303,
    )


@router.get("/oauth2/callback")
async def callback(
    request: Request,
    code: str,
    state: str,
    oauth_client: OAuthClient = Depends(get_oauth_client),
):
    """Finish the authorization code flow and keep the access token in the session."""
    oauth_data = _pop_oauth_data(request)
    if oauth_data is None:
        logger.warning("OAuth callback without session data")
        return _error_page("No session data found.")

    if not oauth_data.pkce_verifier_secret:
        logger.warning("No PKCE verifier found in session")
        return _error_page("No PKCE verifier found in session.")

    if not oauth_data.csrf_token_secret:
        logger.warning("No CSRF token found in session")
        return _error_page("No CSRF token found in session.")

    if oauth_data.csrf_token_secret != state:
        logger.warning("CSRF token mismatch on OAuth callback")
        return _error_page("CSRF token mismatch.", login_link=False)

    try:
        token = await oauth_client.exchange_code(code, oauth_data.pkce_verifier_secret)
    except OAuthExchangeError as e:
        return _error_page(f"{e.message}.", status_code=e.status_code)

    set_access_token(request, token.access_token)
    if token.refresh_token:
        # TODO: persist the refresh token so expired sessions can renew without a new login
        logger.info("Refresh token received but not stored")

    logger.info("OAuth login completed", session_id=get_session_id(request))
    return _redirect_page(settings.POST_LOGIN_REDIRECT)


@router.get("/projects", response_model=ProjectListResponse)
async def projects(client: ManagementAPIClient = Depends(get_management_client)):
    """List the signed-in user's projects."""
    return build_project_list(await client.list_projects())


@router.get("/logout")
async def logout(request: Request):
    """Forget the access token and any snapshots cached for this session."""
    snapshot_cache.clear(get_session_id(request))
    request.session.clear()
    return RedirectResponse("/", status_code=303)
