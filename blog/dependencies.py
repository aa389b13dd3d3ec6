import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.database import get_db
from blog.identity import IdentityService, get_identity
from blog.models import User
from blog.security import validate_csrf_token
from blog.services import role_service, user_service

logger = logging.getLogger(__name__)

SESSION_USER_ID = "user_id"
SESSION_USERNAME = "username"


class LoginRequired(Exception):
    """
    Raised by ``require_user`` when no principal is signed in.

    The application turns it into a redirect to the login page that comes
    back to *return_url* afterwards.
    """

    def __init__(self, return_url: str) -> None:
        super().__init__(return_url)
        self.return_url = return_url


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Resolve the principal from the session cookie.

    Returns None for anonymous requests and for sessions whose user has
    since been deleted.
    """
    user_id = request.session.get(SESSION_USER_ID)
    if not user_id:
        return None
    return await user_service.get_user(db, user_id)


async def require_user(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> User:
    if user is None:
        raise LoginRequired(request.url.path)
    return user


async def require_admin(
    user: User = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
) -> User:
    if not await role_service.is_admin(identity, user):
        logger.warning("User %s denied: %s role required", user.username, settings.ADMIN_ROLE)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


async def get_form(request: Request) -> dict[str, str]:
    """
    Posted form fields with blank values dropped, so a blank required
    input is reported as missing.  Multi-valued fields keep their last
    value; use ``request.form()`` directly for those.
    """
    form = await request.form()
    return {
        key: value
        for key, value in form.items()
        if isinstance(value, str) and value.strip() != ""
    }


async def verify_csrf(request: Request) -> None:
    """Reject POSTs whose anti-forgery field does not match the session token."""
    form = await request.form()
    submitted = form.get(settings.CSRF_FIELD_NAME)
    if not validate_csrf_token(request, submitted if isinstance(submitted, str) else None):
        logger.warning("Anti-forgery token rejected for %s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid anti-forgery token",
        )
