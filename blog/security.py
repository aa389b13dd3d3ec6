"""
Password hashing and anti-forgery tokens.

Passwords are hashed with Argon2 through passlib.  Anti-forgery tokens
are random per-session values kept in the signed session cookie; every
rendered form embeds the token and every POST handler checks it.
"""
import secrets

from passlib.context import CryptContext
from starlette.requests import Request

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

CSRF_SESSION_KEY = "csrf_token"


def hash_password(plain: str) -> str:
    """Hash a plain text password using Argon2."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Return True when *plain* matches *hashed*; malformed hashes never match."""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def get_csrf_token(request: Request) -> str:
    """
    Return the anti-forgery token for the current session, creating it on
    first use.
    """
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_SESSION_KEY] = token
    return token


def validate_csrf_token(request: Request, submitted: str | None) -> bool:
    """Check *submitted* against the session token in constant time."""
    expected = request.session.get(CSRF_SESSION_KEY)
    if not expected or not submitted:
        return False
    return secrets.compare_digest(expected, submitted)
