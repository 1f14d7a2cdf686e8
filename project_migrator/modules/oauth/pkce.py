"""PKCE (RFC 7636) and CSRF state helpers for the authorization code flow."""
import base64
import hashlib
import secrets

CODE_CHALLENGE_METHOD = "S256"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def code_challenge_for(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a new PKCE pair. Returns (code_verifier, code_challenge)."""
    verifier = _b64url(secrets.token_bytes(32))
    return verifier, code_challenge_for(verifier)


def generate_csrf_token() -> str:
    return _b64url(secrets.token_bytes(16))
