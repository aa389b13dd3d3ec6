import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.dependencies import get_form, require_user, verify_csrf
from blog.identity import IdentityService, get_identity
from blog.models import Article, User
from blog.schemas import ArticleViewModel, parse_form
from blog.services import article_service, role_service
from blog.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/Article", tags=["articles"])


def _redirect_to_index() -> RedirectResponse:
    return RedirectResponse("/Article/Index", status_code=status.HTTP_302_FOUND)


async def _load_article(db: AsyncSession, article_id: int | None) -> Article:
    if article_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")
    article = await article_service.get_article(db, article_id)
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


async def _authorize_edit(identity: IdentityService, article: Article, principal: User) -> None:
    is_admin = await role_service.is_admin(identity, principal)
    if not article_service.is_authorized_to_edit(article, principal, is_admin):
        logger.warning(
            "User %s may not modify article %d", principal.username, article.id
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def _validate_article_form(
    db: AsyncSession, form: dict
) -> tuple[ArticleViewModel | None, dict[str, list[str]]]:
    data, errors = parse_form(ArticleViewModel, form)
    if data is not None and await article_service.get_category(db, data.category_id) is None:
        return None, {"category_id": ["Select a valid category."]}
    return data, errors


async def _render_form(
    request: Request, db: AsyncSession, name: str, values: dict, errors=None
) -> HTMLResponse:
    return render(
        request,
        name,
        values,
        categories=await article_service.get_categories(db),
        errors=errors or {},
    )


# ---------------------------------------------------------------------------
# Index / List / Details
# ---------------------------------------------------------------------------

@router.get("")
@router.get("/Index")
async def index():
    return RedirectResponse("/Article/List", status_code=status.HTTP_302_FOUND)


@router.get("/List", response_class=HTMLResponse)
async def list_articles(request: Request, db: AsyncSession = Depends(get_db)):
    articles = await article_service.get_articles(db)
    return render(request, "article/list.html", articles)


@router.get("/Details", response_class=HTMLResponse)
@router.get("/Details/{article_id}", response_class=HTMLResponse)
async def details(
    request: Request,
    article_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    article = await _load_article(db, article_id)
    return render(request, "article/details.html", article)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.get("/Create", response_class=HTMLResponse)
async def create_form(
    request: Request,
    principal: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _render_form(request, db, "article/create.html", {})


@router.post("/Create", dependencies=[Depends(verify_csrf)])
async def create(
    request: Request,
    principal: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    form = await get_form(request)
    data, errors = await _validate_article_form(db, form)
    if data is None:
        return await _render_form(request, db, "article/create.html", form, errors)

    await article_service.create_article(db, data, principal)
    return _redirect_to_index()


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.get("/Delete", response_class=HTMLResponse)
@router.get("/Delete/{article_id}", response_class=HTMLResponse)
async def delete_form(
    request: Request,
    article_id: int | None = None,
    principal: User = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    article = await _load_article(db, article_id)
    await _authorize_edit(identity, article, principal)
    return render(request, "article/delete.html", article, tags=article.joined_tags)


@router.post("/Delete", dependencies=[Depends(verify_csrf)])
@router.post("/Delete/{article_id}", dependencies=[Depends(verify_csrf)])
async def delete_confirmed(
    article_id: int | None = None,
    principal: User = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    article = await _load_article(db, article_id)
    await _authorize_edit(identity, article, principal)
    await article_service.delete_article(db, article)
    return _redirect_to_index()


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

@router.get("/Edit", response_class=HTMLResponse)
@router.get("/Edit/{article_id}", response_class=HTMLResponse)
async def edit_form(
    request: Request,
    article_id: int | None = None,
    principal: User = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    article = await _load_article(db, article_id)
    await _authorize_edit(identity, article, principal)
    values = {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "category_id": article.category_id,
        "tags": article.joined_tags,
    }
    return await _render_form(request, db, "article/edit.html", values)


@router.post("/Edit", dependencies=[Depends(verify_csrf)])
@router.post("/Edit/{article_id}", dependencies=[Depends(verify_csrf)])
async def edit(
    request: Request,
    article_id: int | None = None,
    principal: User = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    form = await get_form(request)
    if article_id is None:
        try:
            article_id = int(form["id"])
        except (KeyError, ValueError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    article = await _load_article(db, article_id)
    await _authorize_edit(identity, article, principal)

    form["id"] = str(article_id)
    data, errors = await _validate_article_form(db, form)
    if data is None:
        return await _render_form(request, db, "article/edit.html", form, errors)

    await article_service.update_article(db, article, data)
    return _redirect_to_index()
