from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.dependencies import get_form, require_admin, verify_csrf
from blog.identity import IdentityService, get_identity
from blog.models import User
from blog.schemas import EditUserViewModel, RoleSelection, parse_form
from blog.services import role_service, user_service
from blog.templating import render

router = APIRouter(
    prefix="/Admin/User",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _redirect_to_list() -> RedirectResponse:
    return RedirectResponse("/Admin/User/List", status_code=status.HTTP_302_FOUND)


async def _load_user(db: AsyncSession, user_id: str | None) -> User:
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _posted_roles(request: Request) -> list[dict]:
    """
    Rebuild the role checkboxes from the form: ``role_names`` lists every
    role rendered, ``selected_roles`` only the checked ones.
    """
    form = await request.form()
    selected = set(form.getlist("selected_roles"))
    return [
        {"name": name, "is_selected": name in selected}
        for name in form.getlist("role_names")
    ]


@router.get("")
@router.get("/Index")
async def index():
    return _redirect_to_list()


@router.get("/List", response_class=HTMLResponse)
async def list_users(
    request: Request,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.get_users(db)
    admins = await role_service.get_admin_usernames(identity, users)
    return render(request, "user/list.html", users, admins=admins)


@router.get("/Edit", response_class=HTMLResponse)
@router.get("/Edit/{user_id}", response_class=HTMLResponse)
async def edit_form(
    request: Request,
    user_id: str | None = None,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    values = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
    }
    roles = await role_service.get_user_roles(identity, user)
    return render(request, "user/edit.html", values, roles=roles)


@router.post("/Edit", dependencies=[Depends(verify_csrf)])
@router.post("/Edit/{user_id}", dependencies=[Depends(verify_csrf)])
async def edit(
    request: Request,
    user_id: str | None = None,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    form = await get_form(request)
    form["roles"] = await _posted_roles(request)
    data, errors = parse_form(EditUserViewModel, form)
    if data is not None:
        user = await _load_user(db, user_id)
        taken_by = await user_service.get_user_by_username(db, data.username)
        if taken_by is not None and taken_by.id != user.id:
            data, errors = None, {"username": [f"Name {data.username} is already taken."]}
    if data is None:
        form["id"] = user_id
        form.pop("password", None)
        form.pop("confirm_password", None)
        roles = [RoleSelection(**role) for role in form["roles"]]
        return render(request, "user/edit.html", form, roles=roles, errors=errors)

    await user_service.update_user(db, identity, user, data)
    return _redirect_to_list()


@router.get("/Delete", response_class=HTMLResponse)
@router.get("/Delete/{user_id}", response_class=HTMLResponse)
async def delete_form(
    request: Request,
    user_id: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    return render(request, "user/delete.html", user)


@router.post("/Delete", dependencies=[Depends(verify_csrf)])
@router.post("/Delete/{user_id}", dependencies=[Depends(verify_csrf)])
async def delete_confirmed(
    user_id: str | None = None,
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    await user_service.delete_user(db, identity, user)
    return _redirect_to_list()
