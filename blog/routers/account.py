import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.database import get_db
from blog.dependencies import SESSION_USER_ID, SESSION_USERNAME, get_form, verify_csrf
from blog.identity import IdentityService, get_identity
from blog.models import User
from blog.schemas import LoginViewModel, RegisterViewModel, parse_form
from blog.services import user_service
from blog.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/Account", tags=["account"])

DEFAULT_RETURN_URL = "/Article/List"


def _local_url(url: str | None) -> str:
    """Only follow same-site paths after login; anything else goes to the list."""
    if url and url.startswith("/") and not url.startswith("//") and "\\" not in url:
        return url
    return DEFAULT_RETURN_URL


def _sign_in(request: Request, user: User) -> None:
    request.session[SESSION_USER_ID] = user.id
    request.session[SESSION_USERNAME] = user.username


@router.get("/Login", response_class=HTMLResponse)
async def login_form(request: Request, ReturnUrl: str | None = None):
    return render(request, "account/login.html", {}, return_url=_local_url(ReturnUrl))


@router.post("/Login", dependencies=[Depends(verify_csrf)])
async def login(
    request: Request,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    form = await get_form(request)
    return_url = _local_url(form.get("return_url"))
    data, errors = parse_form(LoginViewModel, form)
    if data is not None:
        user = await user_service.get_user_by_username(db, data.username)
        if user is not None and identity.verify_password(data.password, user.password_hash):
            _sign_in(request, user)
            logger.info("User %s signed in", user.username)
            return RedirectResponse(return_url, status_code=status.HTTP_302_FOUND)
        errors = {"": ["Invalid login attempt."]}

    form.pop("password", None)
    return render(request, "account/login.html", form, return_url=return_url, errors=errors)


@router.post("/Logout", dependencies=[Depends(verify_csrf)])
async def logout(request: Request):
    request.session.pop(SESSION_USER_ID, None)
    request.session.pop(SESSION_USERNAME, None)
    return RedirectResponse(DEFAULT_RETURN_URL, status_code=status.HTTP_302_FOUND)


@router.get("/Register", response_class=HTMLResponse)
async def register_form(request: Request):
    return render(request, "account/register.html", {})


@router.post("/Register", dependencies=[Depends(verify_csrf)])
async def register(
    request: Request,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    form = await get_form(request)
    data, errors = parse_form(RegisterViewModel, form)
    if data is not None and await user_service.get_user_by_username(db, data.username):
        data, errors = None, {"username": [f"Name {data.username} is already taken."]}
    if data is None:
        form.pop("password", None)
        form.pop("confirm_password", None)
        return render(request, "account/register.html", form, errors=errors)

    user = await user_service.create_user(
        db,
        identity,
        username=data.username,
        email=data.email,
        full_name=data.full_name,
        password=data.password,
        roles=[settings.DEFAULT_ROLE],
    )
    _sign_in(request, user)
    return RedirectResponse(DEFAULT_RETURN_URL, status_code=status.HTTP_302_FOUND)
